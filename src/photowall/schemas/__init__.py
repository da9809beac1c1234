"""JSON schema for the published manifest."""

from __future__ import annotations

from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from ..errors import ManifestInvalidError

MANIFEST_RECORD_SCHEMA: Dict[str, Any] = {
    "$id": "photowall/manifest-record.schema.json",
    "type": "object",
    "required": [
        "id",
        "url",
        "thumb",
        "name",
        "category",
        "date",
        "size",
        "width",
        "height",
        "type",
        "exif",
    ],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "url": {"type": "string", "minLength": 1},
        "thumb": {"type": "string", "minLength": 1},
        "name": {"type": "string"},
        "category": {"type": "string"},
        "date": {"type": "string", "minLength": 1},
        "displayTime": {"type": "string"},
        "size": {"type": "string", "pattern": r"^\d+(\.\d+)? (B|KB|MB|GB)$"},
        "width": {"type": "integer", "minimum": 0},
        "height": {"type": "integer", "minimum": 0},
        "type": {"enum": ["image", "video"]},
        "duration": {"type": "number", "minimum": 0},
        "exif": {"type": "object"},
    },
    "additionalProperties": True,
}

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$id": "photowall/manifest.schema.json",
    "type": "array",
    "items": MANIFEST_RECORD_SCHEMA,
}

_VALIDATOR = Draft202012Validator(MANIFEST_SCHEMA)


def validate_manifest(records: List[Dict[str, Any]]) -> None:
    """Raise :class:`ManifestInvalidError` when *records* violate the schema."""

    error = next(iter(sorted(_VALIDATOR.iter_errors(records), key=lambda e: list(e.path))), None)
    if error is not None:
        location = "/".join(str(part) for part in error.path) or "<root>"
        raise ManifestInvalidError(f"Manifest invalid at {location}: {error.message}")


__all__ = ["MANIFEST_RECORD_SCHEMA", "MANIFEST_SCHEMA", "validate_manifest"]
