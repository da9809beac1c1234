from pathlib import Path
from typing import Any, Dict, Optional, Sequence
import logging

from photowall.application.interfaces import IMediaToolchain
from photowall.config import (
    FRAME_TIMEOUT_SEC,
    PROBE_TIMEOUT_SEC,
    TRANSCODE_TIMEOUT_SEC,
    VIDEO_TRANSCODE_ARGS,
)
from photowall.utils.ffmpeg import extract_video_frame, probe_media, transcode_video

LOGGER = logging.getLogger(__name__)


class FFmpegToolchain(IMediaToolchain):
    """
    Media toolchain backed by the ``ffmpeg`` and ``ffprobe`` executables.
    Each invocation is bounded by its own timeout.
    """

    def __init__(
        self,
        transcode_args: Sequence[str] = VIDEO_TRANSCODE_ARGS,
        probe_timeout: Optional[float] = PROBE_TIMEOUT_SEC,
        frame_timeout: Optional[float] = FRAME_TIMEOUT_SEC,
        transcode_timeout: Optional[float] = TRANSCODE_TIMEOUT_SEC,
    ):
        self._transcode_args = tuple(transcode_args)
        self._probe_timeout = probe_timeout
        self._frame_timeout = frame_timeout
        self._transcode_timeout = transcode_timeout

    def transcode(self, source: Path, destination: Path) -> Path:
        LOGGER.debug("ffmpeg transcode %s -> %s", source, destination)
        return transcode_video(
            source,
            destination,
            arguments=self._transcode_args,
            timeout=self._transcode_timeout,
        )

    def extract_frame(self, source: Path, destination: Path, offset: float) -> Path:
        return extract_video_frame(source, destination, at=offset, timeout=self._frame_timeout)

    def probe(self, source: Path) -> Dict[str, Any]:
        return probe_media(source, timeout=self._probe_timeout)
