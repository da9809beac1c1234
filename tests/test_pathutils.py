"""Tests for stable identifiers and derived asset naming."""

from __future__ import annotations

from pathlib import Path

import pytest

from photowall.errors import OutputDirectoryError
from photowall.utils import pathutils
from photowall.utils.hashutils import asset_id
from photowall.utils.pathutils import derive_asset_paths, ensure_directory, generated_relative_path


def test_asset_id_is_deterministic() -> None:
    first = derive_asset_paths("Trips", "IMG_0001.JPG")
    second = derive_asset_paths("Trips", "IMG_0001.JPG")
    assert first == second
    assert len(first.id) == 16


def test_asset_id_depends_on_album_and_filename() -> None:
    assert asset_id("a", "x.jpg") != asset_id("b", "x.jpg")
    assert asset_id("a", "x.jpg") != asset_id("a", "y.jpg")
    # The separator keeps "a/b" + "c" distinct from "a" + "b/c".
    assert asset_id("ab", "c.jpg") != asset_id("a", "bc.jpg")


def test_thumbnail_names_never_collide() -> None:
    names = ["a.jpg", "a.jpeg", "a.JPG", "a.HEIC.mov", "a.HEIC"]
    thumbs = {derive_asset_paths("album", name).thumbnail for name in names}
    assert len(thumbs) == len(names)


def test_thumbnail_appends_suffix() -> None:
    paths = derive_asset_paths("Summer", "IMG.HEIC.mov")
    assert paths.thumbnail == "thumbs/Summer/IMG.HEIC.mov.jpg"
    assert paths.served == "photos/Summer/IMG.HEIC.mov"


def test_generated_path_appends_suffix() -> None:
    assert generated_relative_path("Summer", "clip.MOV", ".mp4") == "generated/Summer/clip.MOV.mp4"


def test_ensure_directory_is_idempotent(tmp_path: Path) -> None:
    target = tmp_path / "a" / "b"
    ensure_directory(target)
    ensure_directory(target)
    assert target.is_dir()


def test_ensure_directory_reports_failure(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(OutputDirectoryError):
        pathutils.ensure_directory(blocker / "child")
