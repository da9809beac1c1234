"""Tests for cached generation of thumbnails, transcodes and conversions."""

from __future__ import annotations

import os
from pathlib import Path

from PIL import Image

from photowall.infrastructure.services.derived_assets import DerivedAssetGenerator, DerivedOutcome

from conftest import FakeToolchain, make_jpeg


def _generator(public_dir: Path, toolchain: FakeToolchain, **kwargs) -> DerivedAssetGenerator:
    return DerivedAssetGenerator(public_dir, toolchain, **kwargs)


def test_transcode_is_cached_by_existence(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = public_dir / "photos" / "Trip" / "clip.MOV"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"mov")
    generator = _generator(public_dir, toolchain)

    first = generator.transcode_video("Trip", "clip.MOV", source)
    second = generator.transcode_video("Trip", "clip.MOV", source)

    assert first == DerivedOutcome("generated/Trip/clip.MOV.mp4", created=True)
    assert second == DerivedOutcome("generated/Trip/clip.MOV.mp4", created=False)
    assert len(toolchain.transcode_calls) == 1
    assert (public_dir / "generated" / "Trip" / "clip.MOV.mp4").exists()


def test_mp4_sources_are_served_directly(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = public_dir / "photos" / "Trip" / "clip.MP4"
    outcome = _generator(public_dir, toolchain).transcode_video("Trip", "clip.MP4", source)
    assert outcome.relative is None
    assert toolchain.transcode_calls == []


def test_failed_transcode_yields_no_asset(public_dir: Path) -> None:
    toolchain = FakeToolchain(fail=True)
    source = public_dir / "photos" / "Trip" / "clip.webm"
    outcome = _generator(public_dir, toolchain).transcode_video("Trip", "clip.webm", source)
    assert outcome == DerivedOutcome()


def test_thumbnail_is_created_once(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = make_jpeg(public_dir / "photos" / "Trip" / "a.jpg")
    generator = _generator(public_dir, toolchain)

    first = generator.generate_thumbnail(source, "thumbs/Trip/a.jpg.jpg")
    target = public_dir / "thumbs" / "Trip" / "a.jpg.jpg"
    stamp = target.stat().st_mtime_ns
    second = generator.generate_thumbnail(source, "thumbs/Trip/a.jpg.jpg")

    assert first.created and not second.created
    assert target.stat().st_mtime_ns == stamp


def test_stale_thumbnail_is_rebuilt_when_requested(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = make_jpeg(public_dir / "photos" / "Trip" / "a.jpg")
    generator = _generator(public_dir, toolchain, regenerate_stale=True)
    generator.generate_thumbnail(source, "thumbs/Trip/a.jpg.jpg")

    target = public_dir / "thumbs" / "Trip" / "a.jpg.jpg"
    old = target.stat().st_mtime - 100
    os.utime(target, (old, old))

    assert generator.generate_thumbnail(source, "thumbs/Trip/a.jpg.jpg").created
    # Without the flag an outdated thumbnail is kept.
    os.utime(target, (old, old))
    assert not _generator(public_dir, toolchain).generate_thumbnail(source, "thumbs/Trip/a.jpg.jpg").created


def test_video_thumbnail_uses_frame_and_cleans_up(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = public_dir / "photos" / "Trip" / "clip.mov"
    generator = _generator(public_dir, toolchain, frame_offset=2.5)

    outcome = generator.generate_video_thumbnail(source, "thumbs/Trip/clip.mov.jpg")

    assert outcome.created
    assert toolchain.frame_calls == [(source, 2.5)]
    thumb_dir = public_dir / "thumbs" / "Trip"
    assert [p.name for p in thumb_dir.iterdir()] == ["clip.mov.jpg"]
    with Image.open(thumb_dir / "clip.mov.jpg") as img:
        assert img.size == (400, 225)


def test_failed_frame_extraction_leaves_nothing_behind(public_dir: Path) -> None:
    toolchain = FakeToolchain(fail=True)
    source = public_dir / "photos" / "Trip" / "clip.mov"

    outcome = _generator(public_dir, toolchain).generate_video_thumbnail(source, "thumbs/Trip/clip.mov.jpg")

    assert outcome == DerivedOutcome()
    assert list((public_dir / "thumbs" / "Trip").iterdir()) == []


def test_heic_conversion_is_cached(public_dir: Path, toolchain: FakeToolchain) -> None:
    # Pillow sniffs content, so JPEG bytes stand in for a HEIC payload.
    source = make_jpeg(public_dir / "photos" / "Trip" / "IMG.HEIC")
    generator = _generator(public_dir, toolchain)

    first = generator.convert_heic("Trip", "IMG.HEIC", source)
    second = generator.convert_heic("Trip", "IMG.HEIC", source)

    assert first == DerivedOutcome("generated/Trip/IMG.HEIC.jpg", created=True)
    assert second == DerivedOutcome("generated/Trip/IMG.HEIC.jpg", created=False)


def test_failed_heic_conversion(public_dir: Path, toolchain: FakeToolchain) -> None:
    source = public_dir / "photos" / "Trip" / "bad.heic"
    source.parent.mkdir(parents=True)
    source.write_bytes(b"nope")
    outcome = _generator(public_dir, toolchain).convert_heic("Trip", "bad.heic", source)
    assert outcome == DerivedOutcome()
    assert not (public_dir / "generated" / "Trip" / "bad.heic.jpg").exists()
