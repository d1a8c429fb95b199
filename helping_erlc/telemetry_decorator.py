"""Discord command telemetry decorator."""
from __future__ import annotations

import functools
import time
from typing import Any, Callable, Tuple

from .telemetry import get_telemetry


def _event_ids(event: Any) -> Tuple[str, str, str]:
    """Actor, guild and channel ids for a message or interaction."""

    # Interactions carry ``user``; messages carry ``author``.
    actor = getattr(event, "user", None) or getattr(event, "author", None)
    guild = getattr(event, "guild", None)
    channel_id = getattr(getattr(event, "channel", None), "id", None)
    return (
        str(actor.id) if actor is not None else "unknown",
        str(guild.id) if guild is not None else "dm",
        str(channel_id) if channel_id is not None else "dm",
    )


def track_command(func: Callable) -> Callable:
    """Record usage, duration and failures of a dispatcher handler.

    The wrapped coroutine must take a ``discord.Message`` or
    ``discord.Interaction`` right after ``self``. Its name minus the
    ``_handle_`` prefix becomes the metric name.
    """

    command_name = func.__name__.removeprefix("_handle_")

    @functools.wraps(func)
    async def wrapper(self, event: Any, *args, **kwargs) -> Any:
        telemetry = get_telemetry()
        actor_id, guild_id, channel_id = _event_ids(event)
        started = time.perf_counter()
        success = False
        try:
            result = await func(self, event, *args, **kwargs)
            success = True
            return result
        except Exception as exc:
            telemetry.track_error(
                type(exc).__name__, command=command_name, actor_id=actor_id, error_details=str(exc)
            )
            raise
        finally:
            telemetry.track_command(
                command_name,
                actor_id,
                guild_id,
                success=success,
                duration_ms=(time.perf_counter() - started) * 1000,
                channel_id=channel_id,
            )

    return wrapper
