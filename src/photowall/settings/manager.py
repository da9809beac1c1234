"""Settings file loading for the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from ..config import SETTINGS_FILE_NAME
from ..errors import PhotoWallError, SettingsLoadError, SettingsValidationError
from ..utils.jsonio import read_json
from .schema import merge_with_defaults


@dataclass(frozen=True)
class PipelineSettings:
    public_dir: Path
    manifest_path: Path
    workers: int
    regenerate_stale: bool
    thumbnail_width: int
    thumbnail_quality: int
    heic_quality: int
    frame_offset: float
    transcode_args: tuple[str, ...]
    probe_timeout: Optional[float]
    frame_timeout: Optional[float]
    transcode_timeout: Optional[float]

    @classmethod
    def from_mapping(cls, data: dict[str, Any], base_dir: Path) -> "PipelineSettings":
        """Build settings from a merged mapping; relative paths resolve against *base_dir*."""

        return cls(
            public_dir=base_dir / data["public_dir"],
            manifest_path=base_dir / data["manifest_path"],
            workers=data["workers"],
            regenerate_stale=data["regenerate_stale"],
            thumbnail_width=data["thumbnail"]["width"],
            thumbnail_quality=data["thumbnail"]["quality"],
            heic_quality=data["heic"]["quality"],
            frame_offset=float(data["video"]["frame_offset"]),
            transcode_args=tuple(data["video"]["transcode_args"]),
            probe_timeout=data["timeouts"]["probe"],
            frame_timeout=data["timeouts"]["frame"],
            transcode_timeout=data["timeouts"]["transcode"],
        )


def default_settings_path(base_dir: Path) -> Path:
    return base_dir / SETTINGS_FILE_NAME


def load_settings(path: Path | None = None, *, base_dir: Path | None = None) -> PipelineSettings:
    """Load the settings JSON, falling back to defaults when the file is absent.

    An explicitly requested *path* must exist.
    """

    base = base_dir or Path.cwd()
    explicit = path is not None
    path = path or default_settings_path(base)

    payload = None
    if path.exists():
        try:
            payload = read_json(path)
        except PhotoWallError as exc:
            raise SettingsLoadError(str(exc)) from exc
    elif explicit:
        raise SettingsLoadError(f"Settings file not found: {path}")

    try:
        data = merge_with_defaults(payload)
    except ValueError as exc:
        raise SettingsValidationError(f"Invalid settings in {path}: {exc}") from exc
    return PipelineSettings.from_mapping(data, base)
