"""Custom exception hierarchy for photowall."""

from __future__ import annotations


class PhotoWallError(Exception):
    """Base class for all custom errors raised by photowall."""


class ExternalToolError(PhotoWallError):
    """Raised when an external tool such as exiftool or ffmpeg fails."""


class ManifestInvalidError(PhotoWallError):
    """Raised when a manifest fails validation against the schema."""


class ManifestWriteError(PhotoWallError):
    """Raised when the manifest cannot be persisted."""


class OutputDirectoryError(PhotoWallError):
    """Raised when an output directory cannot be created."""


class SettingsError(PhotoWallError):
    """Base class for settings related failures."""


class SettingsLoadError(SettingsError):
    """Raised when the settings file cannot be parsed or loaded."""


class SettingsValidationError(SettingsError):
    """Raised when settings data fails schema validation."""


class ImageEncodeError(PhotoWallError):
    """Raised when Pillow cannot decode or re-encode an image."""


class ScanError(PhotoWallError):
    """Raised when the photo root exists but cannot be scanned."""
