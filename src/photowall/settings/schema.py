"""Schema helpers for the pipeline settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator

from ..config import (
    DEFAULT_MANIFEST_PATH,
    DEFAULT_PUBLIC_DIR,
    FRAME_TIMEOUT_SEC,
    HEIC_JPEG_QUALITY,
    PROBE_TIMEOUT_SEC,
    THUMBNAIL_QUALITY,
    THUMBNAIL_WIDTH,
    TRANSCODE_TIMEOUT_SEC,
    VIDEO_FRAME_OFFSET_SEC,
    VIDEO_TRANSCODE_ARGS,
)

_QUALITY = {"type": "integer", "minimum": 1, "maximum": 100}
_TIMEOUT = {"type": ["number", "null"], "exclusiveMinimum": 0}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "photowall/settings.schema.json",
    "type": "object",
    "properties": {
        "public_dir": {"type": "string", "minLength": 1},
        "manifest_path": {"type": "string", "minLength": 1},
        "workers": {"type": "integer", "minimum": 0},
        "regenerate_stale": {"type": "boolean"},
        "thumbnail": {
            "type": "object",
            "properties": {
                "width": {"type": "integer", "minimum": 16},
                "quality": _QUALITY,
            },
            "additionalProperties": False,
        },
        "heic": {
            "type": "object",
            "properties": {"quality": _QUALITY},
            "additionalProperties": False,
        },
        "video": {
            "type": "object",
            "properties": {
                "frame_offset": {"type": "number", "minimum": 0},
                "transcode_args": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": False,
        },
        "timeouts": {
            "type": "object",
            "properties": {
                "probe": _TIMEOUT,
                "frame": _TIMEOUT,
                "transcode": _TIMEOUT,
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "public_dir": DEFAULT_PUBLIC_DIR,
    "manifest_path": DEFAULT_MANIFEST_PATH,
    "workers": 1,
    "regenerate_stale": False,
    "thumbnail": {"width": THUMBNAIL_WIDTH, "quality": THUMBNAIL_QUALITY},
    "heic": {"quality": HEIC_JPEG_QUALITY},
    "video": {
        "frame_offset": VIDEO_FRAME_OFFSET_SEC,
        "transcode_args": list(VIDEO_TRANSCODE_ARGS),
    },
    "timeouts": {
        "probe": PROBE_TIMEOUT_SEC,
        "frame": FRAME_TIMEOUT_SEC,
        "transcode": TRANSCODE_TIMEOUT_SEC,
    },
}

_VALIDATOR = Draft202012Validator(SETTINGS_SCHEMA)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = _merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


def merge_with_defaults(payload: dict[str, Any] | None) -> dict[str, Any]:
    """Validate *payload* and return it merged over :data:`DEFAULT_SETTINGS`.

    ``ValueError`` describes the first schema violation.
    """

    data = deepcopy(DEFAULT_SETTINGS)
    if payload is None:
        return data
    error = next(iter(_VALIDATOR.iter_errors(payload)), None)
    if error is not None:
        location = ".".join(str(part) for part in error.path) or "<root>"
        raise ValueError(f"{location}: {error.message}")
    return _merge(data, deepcopy(payload))
