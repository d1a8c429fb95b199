"""Channel routing for the bot's log channels.

Log channels are located by name inside a guild rather than by id, so the
same configuration works for every server the bot is invited to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import discord

from ...config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelRouter:
    """Names of the category and text channels the bot posts into."""

    category: str
    command_logs: str
    join_logs: str
    shift_logs: str
    punishment_logs: str

    @staticmethod
    def from_settings(settings: Settings) -> "ChannelRouter":
        return ChannelRouter(
            category=settings.category_name,
            command_logs=settings.command_logs_channel,
            join_logs=settings.join_logs_channel,
            shift_logs=settings.shift_logs_channel,
            punishment_logs=settings.punishment_logs_channel,
        )

    @property
    def log_channels(self) -> Dict[str, str]:
        return {
            "Command Logs": self.command_logs,
            "Join Logs": self.join_logs,
            "Shift Logs": self.shift_logs,
            "Punishment Logs": self.punishment_logs,
        }

    def find_category(self, guild: Any) -> Optional[Any]:
        wanted = self.category.lower()
        return discord.utils.find(lambda c: c.name.lower() == wanted, guild.categories)

    @staticmethod
    def find_text_channel(guild: Optional[Any], name: str) -> Optional[Any]:
        if guild is None:
            return None
        return discord.utils.get(guild.text_channels, name=name)


__all__ = ["ChannelRouter"]
