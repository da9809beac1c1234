"""Utilities for working with the served asset tree."""

from __future__ import annotations

from pathlib import Path

from ..config import GENERATED_DIR_NAME, PHOTOS_DIR_NAME, THUMBNAIL_SUFFIX, THUMBS_DIR_NAME
from ..errors import OutputDirectoryError
from ..models.asset import AssetPaths
from .hashutils import asset_id


def derive_asset_paths(album: str, filename: str) -> AssetPaths:
    """Map ``(album, filename)`` to its identifier and relative URLs.

    Derived names always *append* a suffix to the complete original filename.
    ``IMG.HEIC`` and ``IMG.HEIC.mov`` therefore end up as ``IMG.HEIC.jpg`` and
    ``IMG.HEIC.mov.jpg`` rather than both collapsing onto ``IMG.jpg``.
    """

    return AssetPaths(
        id=asset_id(album, filename),
        thumbnail=f"{THUMBS_DIR_NAME}/{album}/{filename}{THUMBNAIL_SUFFIX}",
        served=f"{PHOTOS_DIR_NAME}/{album}/{filename}",
    )


def generated_relative_path(album: str, filename: str, suffix: str) -> str:
    """Return ``generated/<album>/<filename><suffix>``."""

    return f"{GENERATED_DIR_NAME}/{album}/{filename}{suffix}"


def resolve_relative(public_dir: Path, relative: str) -> Path:
    """Return the on-disk location of a manifest-relative URL."""

    return public_dir.joinpath(*relative.split("/"))


def ensure_directory(path: Path) -> Path:
    """Create *path* (and parents) if absent and return it."""

    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDirectoryError(f"Unable to create directory {path}: {exc}") from exc
    return path


__all__ = [
    "derive_asset_paths",
    "ensure_directory",
    "generated_relative_path",
    "resolve_relative",
]
