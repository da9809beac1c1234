"""Display formatting for manifest fields."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional

from dateutil.parser import isoparse

from ..config import DISPLAY_TIME_FORMAT

_SIZE_UNITS = ("B", "KB", "MB", "GB")
_PLACEHOLDER = "-"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _trim_number(value: float) -> str:
    """Render *value* without a trailing ``.0`` (``2.0`` -> ``2``)."""

    return f"{value:g}"


def format_file_size(num_bytes: int) -> str:
    """Return a base-1024 human readable size such as ``1.5 KB``."""

    if num_bytes <= 0:
        return "0 B"
    value = float(num_bytes)
    index = 0
    while value >= 1024 and index < len(_SIZE_UNITS) - 1:
        value /= 1024
        index += 1
    return f"{_trim_number(round(value, 2))} {_SIZE_UNITS[index]}"


def format_shutter_speed(exposure_time: Optional[float]) -> str:
    """Return ``<n>s`` for exposures of a second or longer, else ``1/<n>``."""

    if exposure_time is None or not math.isfinite(exposure_time) or exposure_time <= 0:
        return _PLACEHOLDER
    if exposure_time >= 1:
        return f"{_trim_number(exposure_time)}s"
    return f"1/{_round_half_up(1 / exposure_time)}"


def format_aperture(f_number: Optional[float]) -> str:
    if f_number is None or not math.isfinite(f_number) or f_number <= 0:
        return _PLACEHOLDER
    return f"f/{_trim_number(f_number)}"


def format_focal_length(focal_length: Optional[float]) -> str:
    if focal_length is None or not math.isfinite(focal_length) or focal_length <= 0:
        return _PLACEHOLDER
    return f"{_round_half_up(focal_length)}mm"


def format_timestamp(value: datetime) -> str:
    """Return *value* as a UTC ISO-8601 string with millisecond precision."""

    if value.tzinfo is None:
        value = value.astimezone()
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 manifest timestamp, returning ``None`` when invalid."""

    try:
        parsed = isoparse(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def format_display_time(value: datetime) -> str:
    """Return the local ``YYYY-MM-DD HH:MM`` label used by the timeline."""

    return value.astimezone().strftime(DISPLAY_TIME_FORMAT)


__all__ = [
    "format_aperture",
    "format_display_time",
    "format_file_size",
    "format_focal_length",
    "format_shutter_speed",
    "format_timestamp",
    "parse_timestamp",
]
