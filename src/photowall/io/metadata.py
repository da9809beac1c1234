"""Metadata readers for still images and video clips."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from fractions import Fraction
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from dateutil.parser import isoparse
from dateutil.tz import gettz
from PIL import Image, UnidentifiedImageError
from pillow_heif import register_heif_opener

from ..application.interfaces import IMediaToolchain
from ..config import MAKE_SUFFIX_TOKENS
from ..errors import ExternalToolError
from ..models.asset import ImageMetadata, VideoMetadata
from ..utils.logging import get_logger

register_heif_opener()

LOGGER = get_logger(__name__)

_EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

# Pillow tag ids (TIFF/EXIF/GPS).
_TAG_MAKE = 0x010F
_TAG_MODEL = 0x0110
_TAG_ORIENTATION = 0x0112
_TAG_DATETIME = 0x0132
_IFD_EXIF = 0x8769
_IFD_GPS = 0x8825
_EXIF_EXPOSURE_TIME = 0x829A
_EXIF_F_NUMBER = 0x829D
_EXIF_ISO = 0x8827
_EXIF_DATETIME_ORIGINAL = 0x9003
_EXIF_DATETIME_DIGITIZED = 0x9004
_EXIF_OFFSET_TIME_ORIGINAL = 0x9011
_EXIF_OFFSET_TIME_DIGITIZED = 0x9012
_EXIF_FOCAL_LENGTH = 0x920A
_EXIF_PIXEL_X = 0xA002
_EXIF_PIXEL_Y = 0xA003
_GPS_LATITUDE_REF = 1
_GPS_LATITUDE = 2
_GPS_LONGITUDE_REF = 3
_GPS_LONGITUDE = 4

# Orientation flags 5-8 describe a 90 or 270 degree rotation.
_TRANSPOSED_ORIENTATIONS = {5, 6, 7, 8}


def _local_tz():
    return gettz() or datetime.now().astimezone().tzinfo or timezone.utc


def _coerce_decimal(value: Any) -> Optional[float]:
    """Return ``value`` as a floating point number when possible."""

    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        # Pillow's ``IFDRational`` and ``Fraction`` both support ``float()``.
        number = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    # A 0/0 rational reads back as NaN.
    return number if math.isfinite(number) else None


def _coerce_fractional(value: Any) -> Optional[float]:
    """Return ``value`` as ``float`` while accepting rational strings."""

    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        candidate = candidate.replace("−", "-").replace("–", "-").replace("—", "-")
        for match in re.finditer(r"-?\d+(?:/\d+|\.\d+)?", candidate):
            token = match.group(0)
            try:
                if "/" in token:
                    return float(Fraction(token))
                return float(token)
            except (ValueError, ZeroDivisionError):
                continue
        return None
    return _coerce_decimal(value)


def _coerce_dimension(value: Any) -> Optional[int]:
    number = _coerce_decimal(value)
    if number is None or number <= 0:
        return None
    return int(number)


def _pick_string(*candidates: Any) -> Optional[str]:
    """Return the first non-empty string from ``candidates``."""

    for candidate in candidates:
        if isinstance(candidate, bytes):
            candidate = candidate.decode("utf-8", "ignore")
        if isinstance(candidate, str):
            normalized = candidate.strip().strip("\x00").strip()
            if normalized:
                return normalized
    return None


def _first_number(*candidates: Any) -> Optional[float]:
    for candidate in candidates:
        value = _coerce_fractional(candidate)
        if value is not None:
            return value
    return None


def _extract_group(metadata: Dict[str, Any], group_name: str) -> Dict[str, Any]:
    """Return an ExifTool group mapping from either nested or flattened layouts."""

    group = metadata.get(group_name)
    if isinstance(group, dict):
        return group

    prefix = f"{group_name}:"
    return {
        key[len(prefix) :]: value
        for key, value in metadata.items()
        if isinstance(key, str) and key.startswith(prefix)
    }


def _parse_exif_datetime(value: Any, offset: Any = None) -> Optional[datetime]:
    """Parse ``YYYY:MM:DD HH:MM:SS`` (optionally with an offset) into an aware datetime."""

    text = _pick_string(value)
    if text is None:
        return None
    if len(text) > 19:
        # Composite SubSec values look like ``2023:01:02 10:00:00.123+01:00``.
        head, _, tail = text.partition(" ")
        try:
            parsed = isoparse(f"{head.replace(':', '-')}T{tail}")
        except (TypeError, ValueError):
            parsed = None
        if parsed is not None and parsed.tzinfo is not None:
            return parsed
    try:
        parsed = datetime.strptime(text[:19], _EXIF_DATETIME_FORMAT)
    except ValueError:
        return None

    tz_info = None
    offset_text = _pick_string(offset)
    if offset_text:
        if len(offset_text) == 5 and offset_text[0] in "+-":
            offset_text = f"{offset_text[:3]}:{offset_text[3:]}"
        try:
            tz_info = datetime.strptime(offset_text, "%z").tzinfo
        except ValueError:
            tz_info = None
    return parsed.replace(tzinfo=tz_info or _local_tz())


def clean_make(make: Optional[str]) -> Optional[str]:
    """Strip corporate suffix tokens such as ``CORPORATION`` from a make."""

    if make is None:
        return None
    for token in MAKE_SUFFIX_TOKENS:
        make = make.replace(token, "")
    return make.strip() or None


def clean_model(model: Optional[str], make: Optional[str]) -> Optional[str]:
    """Drop a duplicated manufacturer prefix (``Canon Canon EOS R5``)."""

    if model is None:
        return None
    model = model.strip()
    if make and model.lower().startswith(make.lower()):
        model = model[len(make) :].strip()
    return model or None


def _gps_pair(lat: Optional[float], lon: Optional[float]) -> Optional[Tuple[float, float]]:
    if lat is None or lon is None:
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return lat, lon


# ----------------------------------------------------------------------
# ExifTool payloads
# ----------------------------------------------------------------------


def _extract_gps_from_exiftool(meta: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """Extract decimal GPS coordinates from ExifTool's metadata payload."""

    composite = _extract_group(meta, "Composite")
    pair = _gps_pair(
        _coerce_decimal(composite.get("GPSLatitude")),
        _coerce_decimal(composite.get("GPSLongitude")),
    )
    if pair is not None:
        return pair

    gps_group = _extract_group(meta, "GPS")
    lat = _coerce_decimal(gps_group.get("GPSLatitude"))
    lon = _coerce_decimal(gps_group.get("GPSLongitude"))
    if lat is None or lon is None:
        return None
    if str(gps_group.get("GPSLatitudeRef", "N")).upper().startswith("S"):
        lat = -abs(lat)
    if str(gps_group.get("GPSLongitudeRef", "E")).upper().startswith("W"):
        lon = -abs(lon)
    return lat, lon


def _extract_datetime_from_exiftool(meta: Dict[str, Any]) -> Optional[datetime]:
    """Prefer the original capture tag, then the create date."""

    composite = _extract_group(meta, "Composite")
    exif_ifd = _extract_group(meta, "ExifIFD")
    ifd0 = _extract_group(meta, "IFD0")
    xmp = _extract_group(meta, "XMP-exif") or _extract_group(meta, "XMP")

    candidates = (
        (composite.get("SubSecDateTimeOriginal"), None),
        (exif_ifd.get("DateTimeOriginal"), exif_ifd.get("OffsetTimeOriginal")),
        (xmp.get("DateTimeOriginal"), None),
        (composite.get("SubSecCreateDate"), None),
        (exif_ifd.get("CreateDate"), exif_ifd.get("OffsetTimeDigitized")),
        (ifd0.get("ModifyDate"), exif_ifd.get("OffsetTime")),
    )
    for value, offset in candidates:
        parsed = _parse_exif_datetime(value, offset)
        if parsed is not None:
            return parsed
    return None


def image_meta_from_exiftool(metadata: Dict[str, Any]) -> ImageMetadata:
    """Normalise one ExifTool ``-g1 -n -json`` record."""

    info = ImageMetadata()
    ifd0 = _extract_group(metadata, "IFD0")
    exif_ifd = _extract_group(metadata, "ExifIFD")
    composite = _extract_group(metadata, "Composite")
    file_group = _extract_group(metadata, "File")

    info.width = _coerce_dimension(exif_ifd.get("ExifImageWidth")) or _coerce_dimension(
        file_group.get("ImageWidth")
    )
    info.height = _coerce_dimension(exif_ifd.get("ExifImageHeight")) or _coerce_dimension(
        file_group.get("ImageHeight")
    )
    orientation = _coerce_decimal(ifd0.get("Orientation"))
    if orientation is not None and int(orientation) in _TRANSPOSED_ORIENTATIONS and info.width and info.height:
        info.width, info.height = info.height, info.width

    info.captured_at = _extract_datetime_from_exiftool(metadata)
    info.make = clean_make(_pick_string(ifd0.get("Make"), metadata.get("Make")))
    info.model = clean_model(_pick_string(ifd0.get("Model"), metadata.get("Model")), info.make)

    iso = _first_number(exif_ifd.get("ISO"), composite.get("ISO"))
    info.iso = int(round(iso)) if iso is not None else None
    info.f_number = _first_number(exif_ifd.get("FNumber"), composite.get("Aperture"))
    info.exposure_time = _first_number(exif_ifd.get("ExposureTime"), composite.get("ShutterSpeed"))
    info.focal_length = _first_number(exif_ifd.get("FocalLength"), composite.get("FocalLength"))
    info.gps = _extract_gps_from_exiftool(metadata)
    info.has_embedded = _has_camera_data(info)
    return info


# ----------------------------------------------------------------------
# Pillow fallback
# ----------------------------------------------------------------------


def _gps_coordinate(value: Any, ref: Any) -> Optional[float]:
    """Convert a ``(deg, min, sec)`` rational triple into signed degrees."""

    if not isinstance(value, (tuple, list)) or len(value) != 3:
        return None
    parts = [_coerce_decimal(part) for part in value]
    if any(part is None for part in parts):
        return None
    degrees, minutes, seconds = parts
    decimal = degrees + minutes / 60.0 + seconds / 3600.0
    ref_text = _pick_string(ref) or ""
    if ref_text.upper() in {"S", "W"}:
        decimal = -decimal
    return decimal


def _image_meta_from_pillow(path: Path) -> ImageMetadata:
    info = ImageMetadata()
    with Image.open(path) as img:
        exif = img.getexif()
        exif_ifd = exif.get_ifd(_IFD_EXIF)
        gps_ifd = exif.get_ifd(_IFD_GPS)

        info.width = _coerce_dimension(exif_ifd.get(_EXIF_PIXEL_X)) or img.width or None
        info.height = _coerce_dimension(exif_ifd.get(_EXIF_PIXEL_Y)) or img.height or None
        orientation = exif.get(_TAG_ORIENTATION)
        if orientation in _TRANSPOSED_ORIENTATIONS and info.width and info.height:
            info.width, info.height = info.height, info.width

        info.captured_at = (
            _parse_exif_datetime(
                exif_ifd.get(_EXIF_DATETIME_ORIGINAL), exif_ifd.get(_EXIF_OFFSET_TIME_ORIGINAL)
            )
            or _parse_exif_datetime(
                exif_ifd.get(_EXIF_DATETIME_DIGITIZED), exif_ifd.get(_EXIF_OFFSET_TIME_DIGITIZED)
            )
            or _parse_exif_datetime(exif.get(_TAG_DATETIME))
        )
        info.make = clean_make(_pick_string(exif.get(_TAG_MAKE)))
        info.model = clean_model(_pick_string(exif.get(_TAG_MODEL)), info.make)

        iso = exif_ifd.get(_EXIF_ISO)
        if isinstance(iso, (tuple, list)):
            iso = iso[0] if iso else None
        iso_value = _coerce_decimal(iso)
        info.iso = int(round(iso_value)) if iso_value is not None else None
        info.f_number = _coerce_decimal(exif_ifd.get(_EXIF_F_NUMBER))
        info.exposure_time = _coerce_decimal(exif_ifd.get(_EXIF_EXPOSURE_TIME))
        info.focal_length = _coerce_decimal(exif_ifd.get(_EXIF_FOCAL_LENGTH))
        info.gps = _gps_pair(
            _gps_coordinate(gps_ifd.get(_GPS_LATITUDE), gps_ifd.get(_GPS_LATITUDE_REF)),
            _gps_coordinate(gps_ifd.get(_GPS_LONGITUDE), gps_ifd.get(_GPS_LONGITUDE_REF)),
        )
    info.has_embedded = _has_camera_data(info)
    return info


def _has_camera_data(info: ImageMetadata) -> bool:
    return any(
        value is not None
        for value in (
            info.captured_at,
            info.make,
            info.model,
            info.iso,
            info.f_number,
            info.exposure_time,
            info.focal_length,
            info.gps,
        )
    )


def _merge_missing(primary: ImageMetadata, fallback: ImageMetadata) -> ImageMetadata:
    for name in (
        "captured_at",
        "width",
        "height",
        "make",
        "model",
        "iso",
        "focal_length",
        "f_number",
        "exposure_time",
        "gps",
    ):
        if getattr(primary, name) is None:
            setattr(primary, name, getattr(fallback, name))
    primary.has_embedded = primary.has_embedded or fallback.has_embedded
    return primary


def read_image_meta(path: Path, metadata: Optional[Dict[str, Any]] = None) -> ImageMetadata:
    """Return normalised metadata for a still image (JPEG, PNG, WebP, HEIC).

    ``metadata`` is a pre-fetched ExifTool record.  Pillow fills in whatever
    it lacks (or everything, when ExifTool is unavailable).  Unreadable files
    produce an empty :class:`ImageMetadata`, never an exception.
    """

    info = image_meta_from_exiftool(metadata) if isinstance(metadata, dict) else ImageMetadata()

    if info.has_embedded and info.width and info.height:
        return info

    LOGGER.debug("Opening %s with Pillow to backfill metadata", path)
    try:
        fallback = _image_meta_from_pillow(path)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        LOGGER.warning("Unable to read image metadata for %s: %s", path, exc)
        return info
    return _merge_missing(info, fallback)


# ----------------------------------------------------------------------
# Video
# ----------------------------------------------------------------------


def _stream_rotation(stream: Dict[str, Any]) -> Optional[float]:
    """Return the display rotation of a video stream in degrees."""

    tags = stream.get("tags") if isinstance(stream.get("tags"), dict) else {}
    for key in ("rotate", "js_rotate"):
        value = _coerce_decimal(tags.get(key))
        if value is not None:
            return value

    side_data = stream.get("side_data_list")
    if isinstance(side_data, list):
        for entry in side_data:
            if isinstance(entry, dict):
                value = _coerce_decimal(entry.get("rotation"))
                if value is not None:
                    return value
    return None


def is_quarter_turn(rotation: Optional[float]) -> bool:
    """``True`` for rotations of +-90 or +-270 degrees, within one degree."""

    if rotation is None:
        return False
    normalised = rotation % 360
    return abs(normalised - 90) < 1 or abs(normalised - 270) < 1


def _parse_creation_time(tags: Iterable[Any]) -> Optional[datetime]:
    for tag_map in tags:
        if not isinstance(tag_map, dict):
            continue
        value = tag_map.get("creation_time") or tag_map.get("com.apple.quicktime.creationdate")
        if not isinstance(value, str) or not value.strip():
            continue
        try:
            parsed = isoparse(value.strip())
        except (TypeError, ValueError):
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        # Containers without a real timestamp report the MP4 epoch.
        if parsed.year <= 1970:
            continue
        return parsed
    return None


def video_meta_from_probe(probe: Dict[str, Any]) -> VideoMetadata:
    """Normalise an ffprobe ``show_format``/``show_streams`` payload."""

    info = VideoMetadata()
    fmt = probe.get("format") if isinstance(probe.get("format"), dict) else {}
    streams = probe.get("streams") if isinstance(probe.get("streams"), list) else []

    video_stream = next(
        (s for s in streams if isinstance(s, dict) and s.get("codec_type") == "video"),
        None,
    )
    if video_stream is not None:
        width = _coerce_dimension(video_stream.get("width")) or 0
        height = _coerce_dimension(video_stream.get("height")) or 0
        # Phones store landscape pixel buffers plus a display rotation hint.
        if is_quarter_turn(_stream_rotation(video_stream)):
            width, height = height, width
        info.width, info.height = width, height

    duration = _coerce_decimal(fmt.get("duration"))
    if duration is None and video_stream is not None:
        duration = _coerce_decimal(video_stream.get("duration"))
    info.duration = duration or 0.0

    info.captured_at = _parse_creation_time(
        [fmt.get("tags"), *(s.get("tags") for s in streams if isinstance(s, dict))]
    )
    return info


def read_video_meta(path: Path, toolchain: IMediaToolchain) -> VideoMetadata:
    """Probe *path*; a failing probe yields zeroed dimensions and duration."""

    try:
        probe = toolchain.probe(path)
    except ExternalToolError as exc:
        LOGGER.warning("Could not probe %s: %s", path, exc)
        return VideoMetadata()
    if not isinstance(probe, dict):
        return VideoMetadata()
    return video_meta_from_probe(probe)


__all__ = [
    "clean_make",
    "clean_model",
    "image_meta_from_exiftool",
    "is_quarter_turn",
    "read_image_meta",
    "read_video_meta",
    "video_meta_from_probe",
]
