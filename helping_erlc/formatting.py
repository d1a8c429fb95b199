"""Identity normalisation and text formatting helpers."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

_MAX_MESSAGE_LENGTH = 1900


def normalize_identity(value: str) -> str:
    """Case-insensitive key for a platform username."""

    return value.strip().lower()


def elapsed_ms(start: datetime, end: datetime) -> int:
    """Whole milliseconds from ``start`` to ``end``; never negative."""

    return max(0, (end - start) // timedelta(milliseconds=1))


def format_duration(ms: int) -> str:
    """Render a millisecond duration as ``"Xh Ym Zs"`` (truncating)."""

    total_seconds = max(0, int(ms)) // 1000
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h {minutes}m {seconds}s"


def discord_timestamp(moment: datetime, style: str = "F") -> str:
    return f"<t:{int(moment.timestamp())}:{style}>"


def mention(user_id: str) -> str:
    return f"<@{user_id}>"


def clamp_text(text: str, limit: int = _MAX_MESSAGE_LENGTH) -> str:
    """Ensure Discord-compatible message length."""

    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


def format_message(lines: Iterable[str], limit: int = _MAX_MESSAGE_LENGTH) -> str:
    """Join message lines and clamp to Discord limits."""

    message = "\n".join(line for line in lines if line is not None)
    return clamp_text(message, limit)


__all__ = [
    "normalize_identity",
    "elapsed_ms",
    "format_duration",
    "discord_timestamp",
    "mention",
    "clamp_text",
    "format_message",
]
