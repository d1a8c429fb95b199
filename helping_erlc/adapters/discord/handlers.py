"""Discord channel helpers: log-channel posts and one-time provisioning."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import discord

from .bot import ChannelRouter

logger = logging.getLogger(__name__)


async def _post_to_named_channel(
    guild: Optional[Any],
    channel_name: str,
    content: Optional[str] = None,
    *,
    embed: Optional[discord.Embed] = None,
    purpose: str,
) -> bool:
    """Send to a text channel located by name, if the guild has one."""

    channel = ChannelRouter.find_text_channel(guild, channel_name)
    if channel is None:
        logger.debug("Skipping %s post; channel %s not found", purpose, channel_name)
        return False
    try:
        await channel.send(content=content, embed=embed)
    except discord.HTTPException:
        logger.exception("Failed to send %s message", purpose)
        return False
    return True


async def _ensure_category(guild: Any, router: ChannelRouter) -> Any:
    category = router.find_category(guild)
    if category is None:
        category = await guild.create_category(router.category)
        logger.info("Created category %s in guild %s", router.category, guild.id)
    return category


async def ensure_log_channels(guild: Any, router: ChannelRouter) -> Dict[str, Any]:
    """Create the bot category and log channels that do not exist yet.

    Returns the channels keyed by their display label. Safe to call repeatedly.
    """

    category = await _ensure_category(guild, router)
    channels: Dict[str, Any] = {}
    for label, name in router.log_channels.items():
        channel = discord.utils.get(category.text_channels, name=name)
        if channel is None:
            channel = await guild.create_text_channel(name, category=category)
            logger.info("Created channel #%s in guild %s", name, guild.id)
        channels[label] = channel
    return channels


__all__ = ["_post_to_named_channel", "ensure_log_channels"]
