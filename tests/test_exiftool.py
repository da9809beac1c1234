import json
import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from photowall.errors import ExternalToolError
from photowall.infrastructure.services.metadata_provider import ExifToolMetadataProvider
from photowall.utils.exiftool import get_metadata_batch


def test_get_metadata_batch_uses_arg_file_with_posix_paths():
    mock_path = MagicMock(spec=Path)
    mock_path.as_posix.return_value = "D:/folder/file.jpg"
    seen = {}

    def check_arg_file(cmd, **kwargs):
        assert cmd[-2] == "-@"
        assert "-n" in cmd and "-g1" in cmd and "-json" in cmd
        with open(cmd[-1], "r", encoding="utf-8") as handle:
            seen["content"] = handle.read()
        seen["arg_file"] = cmd[-1]
        return subprocess.CompletedProcess(cmd, 0, stdout='[{"SourceFile": "D:/folder/file.jpg"}]', stderr="")

    with patch("shutil.which", return_value="/usr/bin/exiftool"), patch(
        "subprocess.run", side_effect=check_arg_file
    ):
        payload = get_metadata_batch([mock_path])

    assert payload == [{"SourceFile": "D:/folder/file.jpg"}]
    assert seen["content"] == "D:/folder/file.jpg\n"
    assert not Path(seen["arg_file"]).exists()


def test_missing_executable():
    with patch("shutil.which", return_value=None):
        with pytest.raises(ExternalToolError, match="not found"):
            get_metadata_batch([Path("a.jpg")])


def test_partial_failure_still_returns_output():
    records = [{"SourceFile": "a.jpg"}]

    def failing_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(1, cmd, output=json.dumps(records), stderr="Error: File not found - b.jpg")

    with patch("shutil.which", return_value="/usr/bin/exiftool"), patch("subprocess.run", side_effect=failing_run):
        assert get_metadata_batch([Path("a.jpg"), Path("b.jpg")]) == records


def test_hard_failure_raises():
    def failing_run(cmd, **kwargs):
        raise subprocess.CalledProcessError(2, cmd, output="", stderr="boom")

    with patch("shutil.which", return_value="/usr/bin/exiftool"), patch("subprocess.run", side_effect=failing_run):
        with pytest.raises(ExternalToolError, match="boom"):
            get_metadata_batch([Path("a.jpg")])


def test_provider_degrades_and_remembers_missing_tool():
    provider = ExifToolMetadataProvider()
    with patch("shutil.which", return_value=None) as which:
        assert provider.get_metadata_batch([Path("a.jpg")]) == []
        assert provider.get_metadata_batch([Path("b.jpg")]) == []
    assert which.call_count == 1


def test_provider_skips_empty_batches():
    with patch("shutil.which") as which:
        assert ExifToolMetadataProvider().get_metadata_batch([]) == []
    which.assert_not_called()
