"""Default configuration values for photowall."""

from __future__ import annotations

from typing import Final

# Extensions accepted by the album scanner.  Matching is case-insensitive and
# the leading dot is part of the value so ``Path.suffix.lower()`` can be
# compared directly.
IMAGE_EXTENSIONS: Final[frozenset[str]] = frozenset({".jpg", ".jpeg", ".png", ".webp"})
HEIC_EXTENSIONS: Final[frozenset[str]] = frozenset({".heic", ".heif"})
VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset({".mov", ".mp4", ".webm"})
ACCEPTED_EXTENSIONS: Final[frozenset[str]] = IMAGE_EXTENSIONS | HEIC_EXTENSIONS | VIDEO_EXTENSIONS

# Layout of the served asset tree.  Every directory lives under the public
# root and the manifest stores URLs relative to it.
PHOTOS_DIR_NAME: Final[str] = "photos"
THUMBS_DIR_NAME: Final[str] = "thumbs"
GENERATED_DIR_NAME: Final[str] = "generated"
DEFAULT_PUBLIC_DIR: Final[str] = "public"
DEFAULT_MANIFEST_PATH: Final[str] = "src/assets/photos.json"
SETTINGS_FILE_NAME: Final[str] = "photowall.json"

THUMBNAIL_SUFFIX: Final[str] = ".jpg"
THUMBNAIL_WIDTH: Final[int] = 400
THUMBNAIL_QUALITY: Final[int] = 80
HEIC_JPEG_QUALITY: Final[int] = 90

# Delivery container for the browser.  Sources already in this format are
# served as-is.
VIDEO_DELIVERY_SUFFIX: Final[str] = ".mp4"
VIDEO_TRANSCODE_ARGS: Final[tuple[str, ...]] = (
    "-c:v", "libx264",
    "-preset", "fast",
    "-crf", "23",
    "-c:a", "aac",
    "-b:a", "128k",
    "-movflags", "+faststart",
)

# The very first frame of phone recordings is frequently black, so video
# thumbnails sample a little way in.
VIDEO_FRAME_OFFSET_SEC: Final[float] = 1.0

PROBE_TIMEOUT_SEC: Final[float] = 60.0
FRAME_TIMEOUT_SEC: Final[float] = 120.0
TRANSCODE_TIMEOUT_SEC: Final[float] = 3600.0
EXIFTOOL_TIMEOUT_SEC: Final[float] = 120.0
# Stills per exiftool invocation; the timeout applies to each batch.
EXIFTOOL_BATCH_SIZE: Final[int] = 50

# Manufacturer tokens removed from the EXIF ``Make`` value before display.
MAKE_SUFFIX_TOKENS: Final[tuple[str, ...]] = ("CORPORATION",)

ASSET_ID_LENGTH: Final[int] = 16
DISPLAY_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M"
