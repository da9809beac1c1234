"""Data model shared by the scanner, the extractors and the manifest."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..utils.formatting import (
    format_aperture,
    format_display_time,
    format_file_size,
    format_focal_length,
    format_shutter_speed,
    format_timestamp,
)


class MediaKind(str, Enum):
    IMAGE = "image"
    HEIC = "heic"
    VIDEO = "video"

    @property
    def manifest_type(self) -> str:
        """The front-end only distinguishes still images from videos."""

        return "video" if self is MediaKind.VIDEO else "image"


@dataclass(frozen=True)
class AssetPaths:
    """Stable identity and default URLs of one source file."""

    id: str
    thumbnail: str
    served: str


@dataclass
class ImageMetadata:
    """Normalised embedded metadata of a still image."""

    captured_at: Optional[datetime] = None
    width: Optional[int] = None
    height: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    iso: Optional[int] = None
    focal_length: Optional[float] = None
    f_number: Optional[float] = None
    exposure_time: Optional[float] = None
    gps: Optional[Tuple[float, float]] = None
    has_embedded: bool = False

    def to_exif(self) -> Dict[str, Any]:
        """Return the manifest ``exif`` bag, empty when nothing was embedded."""

        if not self.has_embedded:
            return {}
        return {
            "make": self.make or "",
            "model": self.model or "",
            "iso": self.iso,
            "focal": format_focal_length(self.focal_length),
            "fstop": format_aperture(self.f_number),
            "shutter": format_shutter_speed(self.exposure_time),
            "gps": {"lat": self.gps[0], "lng": self.gps[1]} if self.gps else None,
        }


@dataclass
class VideoMetadata:
    """Probe results of a video, with rotation already applied."""

    width: int = 0
    height: int = 0
    duration: float = 0.0
    captured_at: Optional[datetime] = None


@dataclass
class MediaAsset:
    id: str
    source: Path
    album: str
    kind: MediaKind
    name: str
    captured_at: datetime
    size_bytes: int
    url: str
    thumbnail: str
    width: int = 0
    height: int = 0
    exif: Dict[str, Any] = field(default_factory=dict)
    duration: Optional[float] = None

    @property
    def size(self) -> str:
        return format_file_size(self.size_bytes)

    def to_record(self) -> Dict[str, Any]:
        """Return the JSON object consumed by the front-end."""

        record: Dict[str, Any] = {
            "id": self.id,
            "url": self.url,
            "thumb": self.thumbnail,
            "name": self.name,
            "category": self.album,
            "date": format_timestamp(self.captured_at),
            "displayTime": format_display_time(self.captured_at),
            "size": self.size,
            "width": self.width,
            "height": self.height,
            "type": self.kind.manifest_type,
            "exif": self.exif,
        }
        if self.kind is MediaKind.VIDEO:
            record["duration"] = self.duration or 0.0
        return record


@dataclass
class ScanResult:
    """Accumulator returned by a scan over the photo root."""

    assets: List[MediaAsset] = field(default_factory=list)
    errors: List[Tuple[Path, str]] = field(default_factory=list)
    skipped_albums: List[str] = field(default_factory=list)
    thumbnails_created: int = 0
    videos_transcoded: int = 0
    images_converted: int = 0

    @property
    def total_processed(self) -> int:
        """Files seen; a degraded file has both an asset and an error."""

        return len({asset.source for asset in self.assets} | {path for path, _ in self.errors})
