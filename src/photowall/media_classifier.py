"""Media type classification by file extension."""

from __future__ import annotations

from pathlib import PurePath
from typing import Optional

from .config import ACCEPTED_EXTENSIONS, HEIC_EXTENSIONS, VIDEO_EXTENSIONS
from .models.asset import MediaKind


def _suffix(filename: str) -> str:
    return PurePath(filename).suffix.lower()


def is_accepted(filename: str) -> bool:
    """Return ``True`` when *filename* carries one of the scanned extensions."""

    return _suffix(filename) in ACCEPTED_EXTENSIONS


def classify_kind(filename: str) -> Optional[MediaKind]:
    """Return the media kind for *filename*, or ``None`` when not accepted.

    Only the final suffix counts, so ``IMG_0001.HEIC.mov`` is a video.
    """

    suffix = _suffix(filename)
    if suffix not in ACCEPTED_EXTENSIONS:
        return None
    if suffix in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if suffix in HEIC_EXTENSIONS:
        return MediaKind.HEIC
    return MediaKind.IMAGE


__all__ = ["classify_kind", "is_accepted"]
