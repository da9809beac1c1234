from datetime import datetime, timedelta, timezone

from photowall.utils.formatting import (
    format_aperture,
    format_file_size,
    format_focal_length,
    format_shutter_speed,
    format_timestamp,
    parse_timestamp,
)


def test_file_size() -> None:
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(1024 * 1024) == "1 MB"
    assert format_file_size(int(2.5 * 1024 ** 3)) == "2.5 GB"


def test_file_size_caps_at_gigabytes() -> None:
    assert format_file_size(2048 * 1024 ** 3) == "2048 GB"


def test_shutter_speed() -> None:
    assert format_shutter_speed(0.005) == "1/200"
    assert format_shutter_speed(1 / 60) == "1/60"
    assert format_shutter_speed(2) == "2s"
    assert format_shutter_speed(1.0) == "1s"
    assert format_shutter_speed(None) == "-"


def test_aperture_and_focal_length() -> None:
    assert format_aperture(1.8) == "f/1.8"
    assert format_aperture(2.0) == "f/2"
    assert format_aperture(None) == "-"
    assert format_focal_length(4.25) == "4mm"
    assert format_focal_length(23.5) == "24mm"
    assert format_focal_length(None) == "-"


def test_timestamp_round_trip() -> None:
    value = datetime(2023, 1, 2, 10, 30, tzinfo=timezone(timedelta(hours=2)))
    text = format_timestamp(value)
    assert text == "2023-01-02T08:30:00.000Z"
    assert parse_timestamp(text) == value


def test_parse_timestamp_rejects_garbage() -> None:
    assert parse_timestamp("not a date") is None


def test_non_finite_values_render_as_placeholder() -> None:
    nan = float("nan")
    assert format_shutter_speed(nan) == "-"
    assert format_aperture(nan) == "-"
    assert format_focal_length(float("inf")) == "-"
