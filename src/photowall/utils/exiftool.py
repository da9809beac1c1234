"""Batch-oriented helpers for invoking the :command:`exiftool` CLI."""

from __future__ import annotations

import json
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import EXIFTOOL_TIMEOUT_SEC
from ..errors import ExternalToolError


def get_metadata_batch(
    paths: List[Path], *, timeout: Optional[float] = EXIFTOOL_TIMEOUT_SEC
) -> List[Dict[str, Any]]:
    """Return metadata for *paths* by launching a single ``exiftool`` process.

    The file list is passed through an argument file (``-@``) so long albums
    do not hit command-line length limits and non-ASCII names survive intact.

    Raises
    ------
    ExternalToolError
        Raised when the ``exiftool`` executable is missing, times out or exits
        with a non-zero status code.
    """

    executable = shutil.which("exiftool")
    if executable is None:
        raise ExternalToolError(
            "exiftool executable not found. Install it from https://exiftool.org/ "
            "and ensure it is available on PATH."
        )

    if not paths:
        return []

    with tempfile.NamedTemporaryFile(mode="w", encoding="utf-8", delete=False) as tmp_arg_file:
        for path in paths:
            tmp_arg_file.write(path.as_posix() + "\n")
        tmp_arg_path = tmp_arg_file.name

    try:
        cmd = [
            executable,
            "-n",  # numeric values: decimal GPS, rational exposure as float
            "-g1",  # keep group information (e.g. ExifIFD, GPS) in the payload
            "-json",
            "-charset",
            "filename=utf8",
            "-@",
            tmp_arg_path,
        ]

        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                check=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout,
            )
            stdout = process.stdout
        except FileNotFoundError as exc:
            raise ExternalToolError(f"Failed to execute exiftool: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(f"exiftool timed out after {timeout}s") from exc
        except subprocess.CalledProcessError as exc:
            stderr = exc.stderr.strip() if exc.stderr else "unknown error"
            # exiftool exits non-zero when any single file in the batch is
            # unreadable but still prints JSON for the rest.
            if not exc.stdout:
                raise ExternalToolError(f"ExifTool failed with an error: {stderr}") from exc
            stdout = exc.stdout

        try:
            payload = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise ExternalToolError(f"Failed to parse JSON output from ExifTool: {exc}") from exc
        return payload if isinstance(payload, list) else []

    finally:
        try:
            os.remove(tmp_arg_path)
        except OSError:
            pass


__all__ = ["get_metadata_batch"]
