from pathlib import Path
import logging

from PIL import Image, ImageOps, UnidentifiedImageError
from pillow_heif import register_heif_opener

from photowall.config import HEIC_JPEG_QUALITY, THUMBNAIL_QUALITY, THUMBNAIL_WIDTH
from photowall.errors import ImageEncodeError

register_heif_opener()

LOGGER = logging.getLogger(__name__)

# 4:2:0 chroma subsampling, the baseline most JPEG encoders default to.
_JPEG_SUBSAMPLING = 2


def _save_jpeg(img: Image.Image, target: Path, **options) -> None:
    """Encode *img* next to *target* and rename it into place."""
    partial = target.with_name(f".{target.name}.part")
    try:
        img.save(partial, "JPEG", **options)
        partial.replace(target)
    finally:
        partial.unlink(missing_ok=True)


class PillowThumbnailGenerator:
    """
    Resizes and re-encodes still images with Pillow. HEIC/HEIF decoding is
    provided by ``pillow-heif``.
    """

    def __init__(
        self,
        width: int = THUMBNAIL_WIDTH,
        quality: int = THUMBNAIL_QUALITY,
        heic_quality: int = HEIC_JPEG_QUALITY,
    ):
        self._width = width
        self._quality = quality
        self._heic_quality = heic_quality

    def write_thumbnail(self, source: Path, target: Path) -> Path:
        """
        Write a JPEG of at most ``width`` pixels wide to *target*. Height
        follows the aspect ratio and smaller sources are never upscaled.
        """
        try:
            with Image.open(source) as img:
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                if img.width > self._width:
                    height = max(1, round(img.height * self._width / img.width))
                    img = img.resize((self._width, height), Image.Resampling.LANCZOS)
                _save_jpeg(
                    img,
                    target,
                    quality=self._quality,
                    optimize=True,
                    progressive=True,
                    subsampling=_JPEG_SUBSAMPLING,
                )
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageEncodeError(f"Unable to create thumbnail from {source}: {exc}") from exc
        return target

    def convert_to_jpeg(self, source: Path, target: Path) -> Path:
        """Decode *source* (typically HEIC) and store it as a full-size JPEG."""
        try:
            with Image.open(source) as img:
                exif = img.getexif()
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                # Pixels are upright now, so the orientation hint must not be
                # applied a second time by viewers.
                exif.pop(0x0112, None)
                _save_jpeg(img, target, quality=self._heic_quality, exif=exif.tobytes())
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageEncodeError(f"Unable to convert {source} to JPEG: {exc}") from exc
        return target
