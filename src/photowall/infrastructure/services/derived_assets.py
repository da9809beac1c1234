"""Generation of thumbnails, transcodes and format conversions.

Every artifact is cached by existence: when the target file is already on
disk nothing is regenerated.  With ``regenerate_stale`` enabled an artifact
older than its source is rebuilt as well.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...application.interfaces import IMediaToolchain
from ...config import VIDEO_DELIVERY_SUFFIX, VIDEO_FRAME_OFFSET_SEC
from ...errors import ExternalToolError, ImageEncodeError
from ...utils.logging import get_logger
from ...utils.pathutils import ensure_directory, generated_relative_path, resolve_relative
from .thumbnail_generator import PillowThumbnailGenerator

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class DerivedOutcome:
    """Result of one generation step.

    ``relative`` is the manifest URL of the artifact, or ``None`` when no
    usable artifact exists.  ``created`` is ``True`` only when work was done.
    """

    relative: Optional[str] = None
    created: bool = False


_NO_ASSET = DerivedOutcome()


class DerivedAssetGenerator:
    def __init__(
        self,
        public_dir: Path,
        toolchain: IMediaToolchain,
        encoder: Optional[PillowThumbnailGenerator] = None,
        *,
        frame_offset: float = VIDEO_FRAME_OFFSET_SEC,
        regenerate_stale: bool = False,
    ) -> None:
        self._public_dir = public_dir
        self._toolchain = toolchain
        self._encoder = encoder or PillowThumbnailGenerator()
        self._frame_offset = frame_offset
        self._regenerate_stale = regenerate_stale

    def _is_current(self, target: Path, source: Path) -> bool:
        if not target.exists():
            return False
        if not self._regenerate_stale:
            return True
        try:
            return target.stat().st_mtime >= source.stat().st_mtime
        except OSError:
            return False

    def _target(self, relative: str) -> Path:
        target = resolve_relative(self._public_dir, relative)
        ensure_directory(target.parent)
        return target

    # ------------------------------------------------------------------
    # Video transcode
    # ------------------------------------------------------------------

    def transcode_video(self, album: str, filename: str, source: Path) -> DerivedOutcome:
        """Produce ``generated/<album>/<filename>.mp4`` unless already MP4."""

        if source.suffix.lower() == VIDEO_DELIVERY_SUFFIX:
            return _NO_ASSET

        relative = generated_relative_path(album, filename, VIDEO_DELIVERY_SUFFIX)
        target = self._target(relative)
        if self._is_current(target, source):
            LOGGER.debug("Transcode already present: %s", relative)
            return DerivedOutcome(relative)

        LOGGER.info("Transcoding %s/%s", album, filename)
        try:
            self._toolchain.transcode(source, target)
        except ExternalToolError as exc:
            LOGGER.warning("Transcode failed for %s: %s", source, exc)
            return _NO_ASSET
        LOGGER.info("Transcoded %s", relative)
        return DerivedOutcome(relative, created=True)

    # ------------------------------------------------------------------
    # HEIC -> JPEG
    # ------------------------------------------------------------------

    def convert_heic(self, album: str, filename: str, source: Path) -> DerivedOutcome:
        """Produce ``generated/<album>/<filename>.jpg`` from a HEIC/HEIF source."""

        relative = generated_relative_path(album, filename, ".jpg")
        target = self._target(relative)
        if self._is_current(target, source):
            LOGGER.debug("Converted image already present: %s", relative)
            return DerivedOutcome(relative)

        try:
            self._encoder.convert_to_jpeg(source, target)
        except ImageEncodeError as exc:
            LOGGER.warning("HEIC conversion failed for %s: %s", source, exc)
            return _NO_ASSET
        LOGGER.info("Converted %s", relative)
        return DerivedOutcome(relative, created=True)

    # ------------------------------------------------------------------
    # Thumbnails
    # ------------------------------------------------------------------

    def generate_thumbnail(self, source: Path, relative: str) -> DerivedOutcome:
        """Write the thumbnail of a still image to *relative*."""

        target = self._target(relative)
        if self._is_current(target, source):
            return DerivedOutcome(relative)

        try:
            self._encoder.write_thumbnail(source, target)
        except ImageEncodeError as exc:
            LOGGER.warning("Thumbnail failed for %s: %s", source, exc)
            return _NO_ASSET
        LOGGER.info("Created thumbnail %s", relative)
        return DerivedOutcome(relative, created=True)

    def generate_video_thumbnail(self, source: Path, relative: str) -> DerivedOutcome:
        """Extract a frame from *source* and run it through the image path.

        The intermediate frame lives next to the thumbnail and is removed
        whether or not encoding succeeds.
        """

        target = self._target(relative)
        if self._is_current(target, source):
            return DerivedOutcome(relative)

        fd, tmp_name = tempfile.mkstemp(prefix=".frame-", suffix=".jpg", dir=target.parent)
        os.close(fd)
        frame = Path(tmp_name)
        try:
            self._toolchain.extract_frame(source, frame, self._frame_offset)
            self._encoder.write_thumbnail(frame, target)
        except (ExternalToolError, ImageEncodeError) as exc:
            LOGGER.warning("Video thumbnail failed for %s: %s", source, exc)
            return _NO_ASSET
        finally:
            frame.unlink(missing_ok=True)
        LOGGER.info("Created video thumbnail %s", relative)
        return DerivedOutcome(relative, created=True)


__all__ = ["DerivedAssetGenerator", "DerivedOutcome"]
