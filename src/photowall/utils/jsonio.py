"""JSON persistence helpers."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from ..errors import ManifestWriteError, PhotoWallError


def read_json(path: Path) -> Any:
    """Return the decoded JSON payload stored at *path*."""

    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except json.JSONDecodeError as exc:
        raise PhotoWallError(f"Invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise PhotoWallError(f"Unable to read {path}: {exc}") from exc


def write_json(path: Path, data: Any, *, indent: int = 2) -> None:
    """Atomically replace *path* with the JSON encoding of *data*.

    The payload is written to a temporary file in the destination directory
    and renamed into place, so readers never observe a partial document.
    Non-finite floats are rejected since browsers cannot parse them.
    """

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ManifestWriteError(f"Unable to create {path.parent}: {exc}") from exc

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=indent, ensure_ascii=False, allow_nan=False)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        tmp_path.replace(path)
    except (OSError, TypeError, ValueError) as exc:
        tmp_path.unlink(missing_ok=True)
        raise ManifestWriteError(f"Unable to write {path}: {exc}") from exc


__all__ = ["read_json", "write_json"]
