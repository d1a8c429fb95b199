"""Discord adapter: channel routing, embed builders and the command dispatcher."""

from __future__ import annotations

from .bot import ChannelRouter
from .dispatcher import CommandDispatcher

__all__ = ["ChannelRouter", "CommandDispatcher"]
