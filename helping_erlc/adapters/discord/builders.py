"""Embed, view and modal builders for the Discord surface."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Sequence, Tuple

import discord

from ...commands import API_KEY_INPUT, API_KEY_MODAL, OPEN_API_KEY_MODAL, DutyAction
from ...config import Settings
from ...formatting import clamp_text, discord_timestamp, format_duration, format_message, mention
from ...models import DutySnapshot, LeaderboardEntry, PunishmentRecord, ShiftSummary

logger = logging.getLogger(__name__)

_EMBED_DESCRIPTION_LIMIT = 4000

HELP_TEXT = format_message(
    [
        "Thank you for using Helping ERLC! The main inspiration was the bot 'erm'.",
        "",
        "**Command List:**",
        "`.ping` - Check bot latency.",
        "`.setup` - Set up the bot (API key and channels).",
        "`.duty manage` - Manage your shift (start, break, end).",
        "`.duty leaderboard` - View the duty leaderboard.",
        "`.duty active` - See which staff are currently on duty.",
        "`.punish RobloxUsername type reason` - Punish a Roblox user.",
        "`.search RobloxUsername` - Search punishments for a Roblox user.",
    ]
)


def simple_embed(description: str, color: int) -> discord.Embed:
    return discord.Embed(description=description, color=color, timestamp=discord.utils.utcnow())


def error_embed(title: str, description: str, settings: Settings) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=settings.color("error"),
        timestamp=discord.utils.utcnow(),
    )


def _add_shift_fields(embed: discord.Embed, snapshot: DutySnapshot) -> None:
    embed.add_field(name="Started:", value=discord_timestamp(snapshot.shift_started_at), inline=False)
    embed.add_field(name="Breaks:", value=format_duration(snapshot.total_break_ms), inline=True)
    embed.add_field(name="Elapsed Time:", value=format_duration(snapshot.effective_work_ms), inline=True)


def duty_panel_view(snapshot: Optional[DutySnapshot]) -> discord.ui.View:
    view = discord.ui.View(timeout=None)
    if snapshot is None:
        view.add_item(
            discord.ui.Button(
                label="On Duty", style=discord.ButtonStyle.success, custom_id=DutyAction.ON.value
            )
        )
        return view
    toggle_label = "End Break" if snapshot.on_break else "Toggle Break"
    view.add_item(
        discord.ui.Button(
            label=toggle_label, style=discord.ButtonStyle.primary, custom_id=DutyAction.TOGGLE.value
        )
    )
    view.add_item(
        discord.ui.Button(
            label="Off Duty", style=discord.ButtonStyle.danger, custom_id=DutyAction.OFF.value
        )
    )
    view.add_item(
        discord.ui.Button(
            label="Refresh", style=discord.ButtonStyle.secondary, custom_id=DutyAction.REFRESH.value
        )
    )
    return view


def duty_panel_embed(snapshot: Optional[DutySnapshot], settings: Settings) -> discord.Embed:
    if snapshot is None:
        return discord.Embed(
            title="Duty Management",
            description="You are currently **not on duty**. Press **On Duty** to start your shift.",
            color=settings.color("warning"),
        )
    embed = discord.Embed(
        title="Current Shift",
        description="On Break" if snapshot.on_break else "Shift Started",
        color=settings.color("success"),
        timestamp=discord.utils.utcnow(),
    )
    _add_shift_fields(embed, snapshot)
    return embed


def shift_ended_embed(summary: ShiftSummary, settings: Settings) -> discord.Embed:
    embed = discord.Embed(
        title="Shift Ended",
        description="Your shift has ended.",
        color=settings.color("error"),
        timestamp=discord.utils.utcnow(),
    )
    _add_shift_fields(embed, summary.snapshot)
    embed.add_field(
        name="Total On Record:", value=format_duration(summary.leaderboard_total_ms), inline=False
    )
    return embed


def leaderboard_embed(entries: Sequence[LeaderboardEntry], settings: Settings) -> discord.Embed:
    embed = discord.Embed(
        title="Duty Leaderboard",
        color=settings.color("leaderboard"),
        timestamp=discord.utils.utcnow(),
    )
    if not entries:
        embed.description = "No duty records yet."
        return embed
    lines = [
        f"**#{entry.rank}** {mention(entry.actor_id)} - {format_duration(entry.total_ms)}"
        for entry in entries
    ]
    embed.description = format_message(lines, _EMBED_DESCRIPTION_LIMIT)
    return embed


def active_duty_embed(snapshots: Iterable[DutySnapshot], settings: Settings) -> discord.Embed:
    lines = []
    for snapshot in snapshots:
        status = " (on break)" if snapshot.on_break else ""
        lines.append(
            f"{mention(snapshot.actor_id)} - Online for: {format_duration(snapshot.effective_work_ms)}{status}"
        )
    if not lines:
        return simple_embed("No staff are currently on duty.", settings.color("error"))
    return discord.Embed(
        title="Active Duty Staff",
        description=format_message(lines, _EMBED_DESCRIPTION_LIMIT),
        color=settings.color("success"),
        timestamp=discord.utils.utcnow(),
    )


def _profile_value(profile_url: Optional[str]) -> str:
    return f"[View Profile]({profile_url})" if profile_url else "Not found"


def punishment_embed(
    record: PunishmentRecord, profile_url: Optional[str], settings: Settings
) -> discord.Embed:
    embed = discord.Embed(
        title="Punishment Executed",
        color=settings.color("error"),
        timestamp=record.issued_at,
    )
    embed.add_field(name="Roblox Username", value=record.subject_name, inline=True)
    embed.add_field(name="Type", value=record.kind.value, inline=True)
    embed.add_field(name="Reason", value=record.reason, inline=False)
    embed.add_field(name="Moderator", value=mention(record.issuer_id), inline=True)
    embed.add_field(name="Roblox Profile", value=_profile_value(profile_url), inline=False)
    return embed


def search_embed(
    subject: str,
    records: Sequence[PunishmentRecord],
    profile_url: Optional[str],
    settings: Settings,
) -> discord.Embed:
    if not records:
        return error_embed(
            "No Records Found",
            f"No punishment records found for Roblox username: {subject}",
            settings,
        )
    embed = discord.Embed(
        title=f"Punishment Records for {subject}",
        color=settings.color("info"),
        timestamp=discord.utils.utcnow(),
    )
    if profile_url:
        embed.add_field(name="Roblox Profile", value=_profile_value(profile_url), inline=False)
    blocks = [
        f"**#{index}** - Type: {record.kind.value}\n"
        f"Reason: {record.reason}\n"
        f"Moderator: {mention(record.issuer_id)}\n"
        f"Time: {discord_timestamp(record.issued_at)}"
        for index, record in enumerate(records, start=1)
    ]
    embed.description = clamp_text("\n\n".join(blocks), _EMBED_DESCRIPTION_LIMIT)
    return embed


def setup_prompt(router_names: Sequence[str], category: str, settings: Settings) -> Tuple[discord.Embed, discord.ui.View]:
    channel_lines = "\n".join(f"   - **{name}**" for name in router_names)
    embed = discord.Embed(
        title="ERLC Setup",
        description=(
            "Click the button below to provide your ERLC API key. Once provided, the bot will:\n"
            "• Log commands via the ERLC API\n"
            f"• Create the following channels under a **{category}** category:\n"
            f"{channel_lines}"
        ),
        color=settings.color("info"),
        timestamp=discord.utils.utcnow(),
    )
    view = discord.ui.View(timeout=None)
    view.add_item(
        discord.ui.Button(
            label="Enter API Key", style=discord.ButtonStyle.primary, custom_id=OPEN_API_KEY_MODAL
        )
    )
    return embed, view


def setup_complete_embed(channels: Dict[str, Any], guild: Any, settings: Settings) -> discord.Embed:
    embed = discord.Embed(
        title="Setup Complete",
        description="Channels have been created and command logs will now be sent to the ERLC API.",
        color=settings.color("success"),
        timestamp=discord.utils.utcnow(),
    )
    for label, channel in channels.items():
        embed.add_field(name=label, value=getattr(channel, "mention", str(channel)), inline=True)
    icon = getattr(guild, "icon", None)
    embed.set_footer(text="ERLC Setup", icon_url=icon.url if icon else None)
    return embed


ApiKeyCallback = Callable[[discord.Interaction, str], Awaitable[None]]


class ApiKeyModal(discord.ui.Modal, title="ERLC API Key"):
    """Collects the ER:LC API key and hands it to ``on_key``."""

    api_key: discord.ui.TextInput = discord.ui.TextInput(
        label="ERLC API Key",
        custom_id=API_KEY_INPUT,
        placeholder="Paste your server key",
        required=True,
        max_length=200,
    )

    def __init__(self, on_key: ApiKeyCallback) -> None:
        super().__init__(custom_id=API_KEY_MODAL)
        self._on_key = on_key

    async def on_submit(self, interaction: discord.Interaction) -> None:
        await self._on_key(interaction, self.api_key.value)


__all__ = [
    "HELP_TEXT",
    "ApiKeyModal",
    "active_duty_embed",
    "duty_panel_embed",
    "duty_panel_view",
    "error_embed",
    "leaderboard_embed",
    "punishment_embed",
    "search_embed",
    "setup_complete_embed",
    "setup_prompt",
    "shift_ended_embed",
    "simple_embed",
]
