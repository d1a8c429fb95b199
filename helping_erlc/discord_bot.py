"""Discord bot entry point for Helping ERLC."""
from __future__ import annotations

import atexit
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import discord
from discord.ext import commands

from .adapters.discord import ChannelRouter, CommandDispatcher
from .audit import AuditLogClient
from .config import Settings, get_settings
from .roblox import RobloxDirectory
from .scheduler import PanelRefreshScheduler
from .service import StaffService
from .telemetry import get_telemetry

logger = logging.getLogger(__name__)


def build_bot(
    settings: Optional[Settings] = None,
    intents: Optional[discord.Intents] = None,
) -> commands.Bot:
    settings = settings or get_settings()
    if intents is None:
        intents = discord.Intents.default()
        intents.message_content = True
    bot = commands.Bot(
        command_prefix=settings.command_prefix,
        intents=intents,
        help_command=None,
    )
    service = StaffService(leaderboard_size=settings.leaderboard_size)
    setattr(bot, "state_service", service)
    executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="helping-erlc-http")
    dispatcher = CommandDispatcher(
        service,
        settings,
        router=ChannelRouter.from_settings(settings),
        directory=RobloxDirectory(
            settings.roblox_lookup_url,
            settings.roblox_profile_url,
            timeout=settings.http_timeout,
            executor=executor,
        ),
        audit=AuditLogClient(settings.audit_url, timeout=settings.http_timeout, executor=executor),
        client=bot,
    )
    refresher = PanelRefreshScheduler(
        dispatcher.refresh_panel, interval_seconds=settings.panel_refresh_seconds
    )
    dispatcher.refresher = refresher
    setattr(bot, "dispatcher", dispatcher)

    def _shutdown() -> None:  # pragma: no cover - process shutdown hook
        refresher.shutdown()
        executor.shutdown(wait=False)
        get_telemetry().flush()

    atexit.register(_shutdown)

    @bot.event
    async def on_ready() -> None:
        logger.info("Helping ERLC connected as %s", bot.user)
        refresher.start()

    @bot.event
    async def on_message(message: discord.Message) -> None:
        try:
            await dispatcher.handle_message(message)
        except Exception:
            logger.exception("Error handling message %s", message.id)

    @bot.event
    async def on_interaction(interaction: discord.Interaction) -> None:
        try:
            await dispatcher.handle_interaction(interaction)
        except Exception:
            logger.exception("Error handling interaction %s", interaction.id)

    return bot


def main() -> None:
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    token = os.environ.get("DISCORD_TOKEN")
    if not token:
        raise RuntimeError("DISCORD_TOKEN environment variable must be set")
    bot = build_bot()
    bot.run(token, log_handler=None)


__all__ = ["build_bot", "main"]
