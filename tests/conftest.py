import struct
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from photowall.application.interfaces import IMediaToolchain, IMetadataProvider  # noqa: E402
from photowall.errors import ExternalToolError  # noqa: E402


def make_jpeg(path: Path, size=(800, 600), color="red", exif: Optional[bytes] = None) -> Path:
    """Write a real JPEG so Pillow-based code paths run for real."""
    path.parent.mkdir(parents=True, exist_ok=True)
    options = {"exif": exif} if exif is not None else {}
    Image.new("RGB", size, color).save(path, "JPEG", **options)
    return path


_ASCII = 2
_LONG = 4
_RATIONAL = 5


def rational(tag: int, *pairs) -> tuple:
    """An IFD entry holding unsigned rationals given as ``(numerator, denominator)``."""

    payload = b"".join(struct.pack("<II", num, den) for num, den in pairs)
    return tag, _RATIONAL, len(pairs), payload


def ascii_tag(tag: int, text: str) -> tuple:
    payload = text.encode("ascii") + b"\0"
    return tag, _ASCII, len(payload), payload


def _ifd(entries, offset: int) -> bytes:
    data_offset = offset + 2 + 12 * len(entries) + 4
    head = struct.pack("<H", len(entries))
    data = b""
    for tag, typ, count, payload in sorted(entries):
        if len(payload) <= 4:
            value = payload.ljust(4, b"\0")
        else:
            value = struct.pack("<I", data_offset + len(data))
            data += payload
        head += struct.pack("<HHI", tag, typ, count) + value
    return head + struct.pack("<I", 0) + data


def exif_bytes(exif_entries=(), gps_entries=()) -> bytes:
    """Hand-assemble a little-endian APP1 EXIF block.

    Lets tests reproduce what cameras actually write, including rationals
    with a zero denominator.
    """

    ifd0_size = 2 + 12 * 2 + 4
    exif_offset = 8 + ifd0_size
    exif_ifd = _ifd(list(exif_entries), exif_offset)
    gps_offset = exif_offset + len(exif_ifd)
    gps_ifd = _ifd(list(gps_entries), gps_offset)
    ifd0 = _ifd(
        [
            (0x8769, _LONG, 1, struct.pack("<I", exif_offset)),
            (0x8825, _LONG, 1, struct.pack("<I", gps_offset)),
        ],
        8,
    )
    return b"Exif\0\0" + b"II" + struct.pack("<HI", 42, 8) + ifd0 + exif_ifd + gps_ifd


class FakeToolchain(IMediaToolchain):
    """Records calls instead of launching ffmpeg."""

    def __init__(self, probe_result: Optional[Dict[str, Any]] = None, fail: bool = False):
        self.probe_result = probe_result or {
            "format": {"duration": "3.5"},
            "streams": [{"codec_type": "video", "width": 1920, "height": 1080}],
        }
        self.fail = fail
        self.transcode_calls: List[Path] = []
        self.frame_calls: List[tuple] = []
        self.probe_calls: List[Path] = []

    def transcode(self, source: Path, destination: Path) -> Path:
        self.transcode_calls.append(source)
        if self.fail:
            raise ExternalToolError("encoder exploded")
        destination.write_bytes(b"fake mp4 " + source.name.encode())
        return destination

    def extract_frame(self, source: Path, destination: Path, offset: float) -> Path:
        self.frame_calls.append((source, offset))
        if self.fail:
            raise ExternalToolError("no frame")
        make_jpeg(destination, size=(1280, 720), color="blue")
        return destination

    def probe(self, source: Path) -> Dict[str, Any]:
        self.probe_calls.append(source)
        if self.fail:
            raise ExternalToolError("probe failed")
        return self.probe_result


class FakeMetadataProvider(IMetadataProvider):
    def __init__(self, payloads: Optional[List[Dict[str, Any]]] = None):
        self.payloads = payloads or []
        self.requests: List[List[Path]] = []

    def get_metadata_batch(self, paths: List[Path]) -> List[Dict[str, Any]]:
        self.requests.append(list(paths))
        return self.payloads


@pytest.fixture()
def toolchain() -> FakeToolchain:
    return FakeToolchain()


@pytest.fixture()
def metadata_provider() -> FakeMetadataProvider:
    return FakeMetadataProvider()


@pytest.fixture()
def public_dir(tmp_path: Path) -> Path:
    """A ``public/`` tree with an empty ``photos/`` root."""
    root = tmp_path / "public"
    (root / "photos").mkdir(parents=True)
    return root


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """``configure_logging`` detaches the package logger; undo that per test."""

    import logging

    yield
    logger = logging.getLogger("photowall")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
