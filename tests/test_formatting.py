from __future__ import annotations

from datetime import datetime, timedelta, timezone

from helping_erlc.formatting import (
    clamp_text,
    discord_timestamp,
    elapsed_ms,
    format_duration,
    format_message,
    normalize_identity,
)


def test_format_duration_truncates():
    assert format_duration(0) == "0h 0m 0s"
    assert format_duration(999) == "0h 0m 0s"
    assert format_duration(25 * 60 * 1000) == "0h 25m 0s"
    assert format_duration(3 * 3600 * 1000 + 61 * 1000 + 999) == "3h 1m 1s"


def test_format_duration_clamps_negative():
    assert format_duration(-5000) == "0h 0m 0s"


def test_normalize_identity():
    assert normalize_identity("  RoViewer123 ") == "roviewer123"


def test_elapsed_ms_never_negative():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert elapsed_ms(start, start + timedelta(seconds=1, microseconds=1500)) == 1001
    assert elapsed_ms(start, start - timedelta(seconds=1)) == 0


def test_discord_timestamp():
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert discord_timestamp(moment) == "<t:1704067200:F>"


def test_clamp_text_and_format_message():
    assert clamp_text("short") == "short"
    clamped = clamp_text("x" * 3000)
    assert len(clamped) == 1900
    assert clamped.endswith("…")
    assert format_message(["a", None, "b"]) == "a\nb"
