"""Lightweight wrappers around the ``ffmpeg`` toolchain."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..config import FRAME_TIMEOUT_SEC, PROBE_TIMEOUT_SEC, TRANSCODE_TIMEOUT_SEC, VIDEO_TRANSCODE_ARGS
from ..errors import ExternalToolError

_FFMPEG_LOG_LEVEL = "error"


def _run_command(
    command: Sequence[str], *, timeout: Optional[float] = None
) -> subprocess.CompletedProcess[bytes]:
    """Execute *command* and return the completed process."""

    try:
        process = subprocess.run(
            list(command),
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.DEVNULL,
            timeout=timeout,
        )
    except FileNotFoundError as exc:  # pragma: no cover - depends on environment
        raise ExternalToolError(f"{command[0]} executable not found on PATH") from exc
    except subprocess.TimeoutExpired as exc:
        raise ExternalToolError(f"{command[0]} timed out after {timeout:.0f}s") from exc
    return process


def _stderr_text(process: subprocess.CompletedProcess[bytes]) -> str:
    return (process.stderr or b"").decode("utf-8", "ignore").strip() or "unknown error"


def extract_video_frame(
    source: Path,
    destination: Path,
    *,
    at: float = 0.0,
    timeout: Optional[float] = FRAME_TIMEOUT_SEC,
) -> Path:
    """Write a single JPEG frame sampled at *at* seconds into *destination*.

    Clips shorter than *at* produce no frame with an input seek, so the
    extraction is retried once from the first frame in that case.
    """

    def _command(offset: float) -> list[str]:
        command = [
            "ffmpeg",
            "-hide_banner",
            "-loglevel",
            _FFMPEG_LOG_LEVEL,
            "-nostdin",
            "-y",
        ]
        if offset > 0:
            command += ["-ss", f"{offset:.3f}"]
        command += [
            "-i",
            str(source),
            "-an",
            "-frames:v",
            "1",
            "-f",
            "image2",
            "-vcodec",
            "mjpeg",
            "-q:v",
            "2",
            str(destination),
        ]
        return command

    offsets = [max(at, 0.0)]
    if offsets[0] > 0:
        offsets.append(0.0)

    stderr = "unknown error"
    for offset in offsets:
        process = _run_command(_command(offset), timeout=timeout)
        if process.returncode == 0 and destination.exists() and destination.stat().st_size > 0:
            return destination
        stderr = _stderr_text(process)
        destination.unlink(missing_ok=True)
    raise ExternalToolError(f"ffmpeg failed to extract frame from {source}: {stderr}")


def transcode_video(
    source: Path,
    destination: Path,
    *,
    arguments: Sequence[str] = VIDEO_TRANSCODE_ARGS,
    timeout: Optional[float] = TRANSCODE_TIMEOUT_SEC,
) -> Path:
    """Encode *source* into an MP4 container at *destination*.

    The encoder writes to a hidden sibling first and the result is renamed
    into place, so an interrupted run never leaves a truncated file behind
    that a later run would mistake for a finished transcode.
    """

    partial = destination.with_name(f".{destination.name}.part")
    command = [
        "ffmpeg",
        "-hide_banner",
        "-loglevel",
        _FFMPEG_LOG_LEVEL,
        "-nostdin",
        "-y",
        "-i",
        str(source),
        *arguments,
        "-f",
        "mp4",
        str(partial),
    ]
    try:
        process = _run_command(command, timeout=timeout)
        if process.returncode != 0 or not partial.exists() or partial.stat().st_size == 0:
            raise ExternalToolError(f"ffmpeg failed to transcode {source}: {_stderr_text(process)}")
        partial.replace(destination)
    finally:
        partial.unlink(missing_ok=True)
    return destination


def probe_media(source: Path, *, timeout: Optional[float] = PROBE_TIMEOUT_SEC) -> Dict[str, Any]:
    """Return ffprobe metadata for *source*.

    The JSON structure mirrors ffprobe's ``show_format`` and ``show_streams``
    output. ``ExternalToolError`` is raised when the toolchain is unavailable or
    returns an error.
    """

    command = [
        "ffprobe",
        "-hide_banner",
        "-loglevel",
        _FFMPEG_LOG_LEVEL,
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        str(source),
    ]

    process = _run_command(command, timeout=timeout)
    if process.returncode != 0 or not process.stdout:
        raise ExternalToolError(f"ffprobe failed to inspect {source}: {_stderr_text(process)}")
    try:
        return json.loads(process.stdout.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ExternalToolError("ffprobe returned invalid JSON output") from exc


__all__ = ["extract_video_frame", "probe_media", "transcode_video"]
