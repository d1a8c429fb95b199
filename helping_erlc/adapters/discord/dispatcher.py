"""Routes chat messages and button presses to the staff service."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Set

import discord

from ...audit import AuditLogClient
from ...commands import (
    DutyAction,
    DutyActive,
    DutyButton,
    DutyLeaderboardRequest,
    DutyManage,
    MalformedCommandError,
    OpenApiKeyModal,
    Ping,
    Punish,
    Search,
    Setup,
    parse_button,
    parse_command,
)
from ...config import Settings
from ...duty import NotOnDutyError
from ...formatting import mention
from ...ledger import InvalidPunishmentKindError
from ...roblox import RobloxDirectory
from ...scheduler import PanelRefreshScheduler
from ...service import StaffService
from ...telemetry import get_telemetry
from ...telemetry_decorator import track_command
from . import builders
from .bot import ChannelRouter
from .handlers import _post_to_named_channel, ensure_log_channels

logger = logging.getLogger(__name__)

_ERROR_TITLES = {
    "punish": "Punish Command Error",
    "search": "Search Command Error",
    "duty": "Duty Command Error",
}


class CommandDispatcher:
    """Translates Discord events into :class:`StaffService` calls and renders the result."""

    def __init__(
        self,
        service: StaffService,
        settings: Settings,
        *,
        router: Optional[ChannelRouter] = None,
        directory: Optional[RobloxDirectory] = None,
        audit: Optional[AuditLogClient] = None,
        refresher: Optional[PanelRefreshScheduler] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.service = service
        self.settings = settings
        self.router = router or ChannelRouter.from_settings(settings)
        self.directory = directory or RobloxDirectory(
            settings.roblox_lookup_url, settings.roblox_profile_url, timeout=settings.http_timeout
        )
        self.audit = audit or AuditLogClient(settings.audit_url, timeout=settings.http_timeout)
        self.refresher = refresher
        self.client = client
        self._panels: Dict[str, Any] = {}
        self._background: Set[asyncio.Task] = set()

    # Entry points --------------------------------------------------------

    async def handle_message(self, message: Any) -> None:
        if message.author.bot:
            return
        self._forward_to_audit_log(message)
        try:
            intent = parse_command(message.content, self.settings.command_prefix)
        except MalformedCommandError as exc:
            self._record_rejection(exc, exc.command, message.author.id)
            await message.reply(
                embed=builders.error_embed(
                    _ERROR_TITLES.get(exc.command, "Command Error"), exc.usage, self.settings
                )
            )
            return
        if intent is None:
            return

        if isinstance(intent, Ping):
            await self._handle_ping(message)
        elif isinstance(intent, Setup):
            await self._handle_setup(message)
        elif isinstance(intent, DutyManage):
            await self._handle_duty_manage(message)
        elif isinstance(intent, DutyLeaderboardRequest):
            await self._handle_duty_leaderboard(message)
        elif isinstance(intent, DutyActive):
            await self._handle_duty_active(message)
        elif isinstance(intent, Punish):
            await self._handle_punish(message, intent)
        elif isinstance(intent, Search):
            await self._handle_search(message, intent)
        else:  # pragma: no cover - parse_command returns a closed set
            raise TypeError(f"Unhandled command intent {intent!r}")

    async def handle_interaction(self, interaction: Any) -> None:
        if interaction.type != discord.InteractionType.component:
            return
        data = interaction.data or {}
        intent = parse_button(data.get("custom_id"))
        if intent is None:
            return

        if isinstance(intent, DutyButton):
            await self._handle_duty_button(interaction, intent.action)
        elif isinstance(intent, OpenApiKeyModal):
            await self._handle_open_api_key_modal(interaction)
        else:  # pragma: no cover - parse_button returns a closed set
            raise TypeError(f"Unhandled button intent {intent!r}")

    # Prefix commands -----------------------------------------------------

    @track_command
    async def _handle_ping(self, message: Any) -> None:
        reply = await message.reply(embed=builders.simple_embed("Pong!", self.settings.color("success")))
        latency_ms = int((reply.created_at - message.created_at).total_seconds() * 1000)
        gateway_ms = round(getattr(self.client, "latency", 0.0) * 1000)
        await reply.edit(
            embed=builders.simple_embed(
                f"Pong! Latency: {latency_ms}ms | API Latency: {gateway_ms}ms",
                self.settings.color("success"),
            )
        )

    @track_command
    async def _handle_setup(self, message: Any) -> None:
        if not await self._require_guild(message):
            return
        embed, view = builders.setup_prompt(
            list(self.router.log_channels.values()), self.router.category, self.settings
        )
        await message.reply(embed=embed, view=view)
        await ensure_log_channels(message.guild, self.router)
        try:
            await message.author.send(builders.HELP_TEXT)
        except discord.HTTPException:
            logger.warning("Could not send setup DM to %s", message.author.id)

    @track_command
    async def _handle_duty_manage(self, message: Any) -> None:
        if not await self._require_guild(message):
            return
        actor_id = str(message.author.id)
        snapshot = self.service.duty_status(actor_id)
        embed = builders.duty_panel_embed(snapshot, self.settings)
        view = builders.duty_panel_view(snapshot)
        logger.debug("Updating duty panel for %s", actor_id)
        existing = self._panels.get(actor_id)
        if existing is not None:
            try:
                await existing.edit(embed=embed, view=view)
                return
            except discord.NotFound:
                logger.info("Duty panel for %s was deleted; posting a new one", actor_id)
            except discord.HTTPException:
                logger.exception("Error editing duty panel for %s", actor_id)
        self._panels[actor_id] = await message.reply(embed=embed, view=view)

    @track_command
    async def _handle_duty_leaderboard(self, message: Any) -> None:
        if not await self._require_guild(message):
            return
        entries = self.service.top_staff(self.settings.leaderboard_size)
        await message.reply(embed=builders.leaderboard_embed(entries, self.settings))

    @track_command
    async def _handle_duty_active(self, message: Any) -> None:
        if not await self._require_guild(message):
            return
        snapshots = self.service.active_shifts()
        await message.reply(embed=builders.active_duty_embed(snapshots, self.settings))

    @track_command
    async def _handle_punish(self, message: Any, intent: Punish) -> None:
        try:
            record = self.service.punish(
                intent.subject, intent.kind, intent.reason, str(message.author.id)
            )
        except InvalidPunishmentKindError as exc:
            self._record_rejection(exc, "punish", message.author.id)
            await message.reply(embed=builders.error_embed("Punish Command Error", str(exc), self.settings))
            return
        profile_url = await self._profile_link(intent.subject)
        embed = builders.punishment_embed(record, profile_url, self.settings)
        await message.reply(embed=embed)
        await _post_to_named_channel(
            message.guild, self.router.punishment_logs, embed=embed.copy(), purpose="punishment-log"
        )

    @track_command
    async def _handle_search(self, message: Any, intent: Search) -> None:
        records = self.service.search(intent.subject)
        profile_url = await self._profile_link(intent.subject) if records else None
        await message.reply(
            embed=builders.search_embed(intent.subject, records, profile_url, self.settings)
        )

    # Buttons and modals --------------------------------------------------

    @track_command
    async def _handle_duty_button(self, interaction: Any, action: DutyAction) -> None:
        actor_id = str(interaction.user.id)
        if action is DutyAction.ON:
            snapshot = self.service.go_on_duty(actor_id)
            if self.refresher is not None:
                self.refresher.schedule(actor_id)
        elif action is DutyAction.TOGGLE:
            try:
                snapshot = self.service.toggle_break(actor_id)
            except NotOnDutyError as exc:
                await self._reject_interaction(interaction, exc)
                return
            note = "has started a break." if snapshot.on_break else "has ended their break."
            await _post_to_named_channel(
                interaction.guild,
                self.router.shift_logs,
                f"{mention(actor_id)} {note}",
                purpose="shift-log",
            )
        elif action is DutyAction.OFF:
            await self._end_shift(interaction, actor_id)
            return
        else:
            snapshot = self.service.duty_status(actor_id)

        embed = builders.duty_panel_embed(snapshot, self.settings)
        view = builders.duty_panel_view(snapshot)
        await self._mirror_panel(interaction, actor_id, embed, view)
        await interaction.response.edit_message(embed=embed, view=view)

    async def _end_shift(self, interaction: Any, actor_id: str) -> None:
        try:
            summary = self.service.go_off_duty(actor_id)
        except NotOnDutyError as exc:
            await self._reject_interaction(interaction, exc)
            return
        if self.refresher is not None:
            self.refresher.cancel(actor_id)
        final = builders.shift_ended_embed(summary, self.settings)
        await self._mirror_panel(interaction, actor_id, final, None)
        self._panels.pop(actor_id, None)
        await _post_to_named_channel(
            interaction.guild,
            self.router.shift_logs,
            f"{mention(actor_id)} has ended their shift.",
            embed=final.copy(),
            purpose="shift-log",
        )
        await interaction.response.edit_message(embed=final, view=None)

    @track_command
    async def _handle_open_api_key_modal(self, interaction: Any) -> None:
        await interaction.response.send_modal(builders.ApiKeyModal(self.handle_api_key))

    async def handle_api_key(self, interaction: Any, api_key: str) -> None:
        if interaction.guild is None:
            await interaction.response.send_message(
                embed=builders.error_embed(
                    "Setup Error", "This command can only be used in a server.", self.settings
                ),
                ephemeral=True,
            )
            return
        try:
            self.service.store_api_key(api_key)
        except ValueError as exc:
            await interaction.response.send_message(
                embed=builders.error_embed("Setup Error", str(exc), self.settings), ephemeral=True
            )
            return
        channels = await ensure_log_channels(interaction.guild, self.router)
        await interaction.response.send_message(
            embed=builders.setup_complete_embed(channels, interaction.guild, self.settings),
            ephemeral=True,
        )

    # Panel refresh -------------------------------------------------------

    async def refresh_panel(self, actor_id: str) -> bool:
        """Re-render a tracked panel; ``False`` once the shift has closed."""

        snapshot = self.service.duty_status(actor_id)
        if snapshot is None:
            return False
        panel = self._panels.get(actor_id)
        if panel is None:
            return True
        try:
            await panel.edit(
                embed=builders.duty_panel_embed(snapshot, self.settings),
                view=builders.duty_panel_view(snapshot),
            )
        except discord.NotFound:
            self._panels.pop(actor_id, None)
        except discord.HTTPException:
            logger.exception("Error refreshing duty panel for %s", actor_id)
        return True

    # Helpers -------------------------------------------------------------

    async def _mirror_panel(
        self, interaction: Any, actor_id: str, embed: discord.Embed, view: Optional[discord.ui.View]
    ) -> None:
        """Keep the tracked panel in sync when the button was pressed elsewhere."""

        source = getattr(interaction, "message", None)
        panel = self._panels.get(actor_id)
        if panel is None:
            if source is not None and view is not None:
                self._panels[actor_id] = source
            return
        if source is not None and getattr(source, "id", None) == getattr(panel, "id", None):
            return
        try:
            await panel.edit(embed=embed, view=view)
        except discord.HTTPException:
            logger.warning("Could not update tracked duty panel for %s", actor_id)

    async def _require_guild(self, message: Any) -> bool:
        if message.guild is not None:
            return True
        await message.reply(
            embed=builders.simple_embed(
                "This command can only be used in a server.", self.settings.color("error")
            )
        )
        return False

    async def _reject_interaction(self, interaction: Any, exc: Exception) -> None:
        self._record_rejection(exc, "duty_button", interaction.user.id)
        await interaction.response.send_message(
            embed=builders.simple_embed(str(exc), self.settings.color("error")), ephemeral=True
        )

    async def _profile_link(self, username: str) -> Optional[str]:
        try:
            return await self.directory.lookup(username)
        except Exception:
            logger.exception("Roblox profile lookup crashed for %s", username)
            return None

    def _forward_to_audit_log(self, message: Any) -> None:
        api_key = self.service.api_key
        if not api_key or not message.content.startswith(self.settings.command_prefix):
            return
        timestamp = self.service.clock.now().isoformat()
        task = asyncio.create_task(
            self.audit.submit(api_key, message.content, str(message.author.id), timestamp)
        )
        self._background.add(task)
        task.add_done_callback(self._audit_task_done)

    def _audit_task_done(self, task: asyncio.Task) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Audit log forwarding failed", exc_info=exc)

    @staticmethod
    def _record_rejection(exc: Exception, command: str, actor_id: Any) -> None:
        logger.info("Rejected %s from %s: %s", command, actor_id, exc)
        get_telemetry().track_error(
            type(exc).__name__, command=command, actor_id=str(actor_id), error_details=str(exc)
        )


__all__ = ["CommandDispatcher"]
