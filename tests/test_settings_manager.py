import json
from pathlib import Path

import pytest

from photowall.config import THUMBNAIL_WIDTH, VIDEO_TRANSCODE_ARGS
from photowall.errors import SettingsLoadError, SettingsValidationError
from photowall.settings import load_settings


def test_defaults_when_file_absent(tmp_path: Path) -> None:
    settings = load_settings(base_dir=tmp_path)
    assert settings.public_dir == tmp_path / "public"
    assert settings.manifest_path == tmp_path / "src" / "assets" / "photos.json"
    assert settings.thumbnail_width == THUMBNAIL_WIDTH
    assert settings.transcode_args == tuple(VIDEO_TRANSCODE_ARGS)
    assert settings.workers == 1
    assert settings.regenerate_stale is False


def test_partial_file_is_merged_over_defaults(tmp_path: Path) -> None:
    (tmp_path / "photowall.json").write_text(
        json.dumps({"workers": 4, "thumbnail": {"width": 320}, "timeouts": {"transcode": None}}),
        encoding="utf-8",
    )
    settings = load_settings(base_dir=tmp_path)
    assert settings.workers == 4
    assert settings.thumbnail_width == 320
    assert settings.thumbnail_quality == 80
    assert settings.transcode_timeout is None
    assert settings.probe_timeout == 60


def test_explicit_missing_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(SettingsLoadError):
        load_settings(tmp_path / "missing.json", base_dir=tmp_path)


def test_invalid_json_is_an_error(tmp_path: Path) -> None:
    path = tmp_path / "photowall.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        load_settings(path, base_dir=tmp_path)


@pytest.mark.parametrize(
    "payload",
    [
        {"workers": -1},
        {"thumbnail": {"quality": 0}},
        {"unknown": True},
        {"video": {"transcode_args": "-crf 23"}},
    ],
)
def test_schema_violations(tmp_path: Path, payload) -> None:
    path = tmp_path / "photowall.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        load_settings(path, base_dir=tmp_path)
