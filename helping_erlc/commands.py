"""Parsing of prefix commands and component ids into typed intents."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

PUNISH_USAGE = "Usage: `.punish RobloxUsername type reason`"
SEARCH_USAGE = "Usage: `.search RobloxUsername`"
DUTY_USAGE = "Usage: `.duty manage`, `.duty leaderboard` or `.duty active`"

OPEN_API_KEY_MODAL = "open_erc_api_modal"
API_KEY_MODAL = "apiKeyModal"
API_KEY_INPUT = "erc_api_input"


class MalformedCommandError(ValueError):
    """Raised when a command lacks required arguments."""

    def __init__(self, command: str, usage: str) -> None:
        super().__init__(usage)
        self.command = command
        self.usage = usage


class DutyAction(str, Enum):
    ON = "duty_on"
    TOGGLE = "duty_toggle"
    OFF = "duty_off"
    REFRESH = "duty_refresh"


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class Setup:
    pass


@dataclass(frozen=True)
class DutyManage:
    pass


@dataclass(frozen=True)
class DutyLeaderboardRequest:
    pass


@dataclass(frozen=True)
class DutyActive:
    pass


@dataclass(frozen=True)
class Punish:
    subject: str
    kind: str
    reason: str


@dataclass(frozen=True)
class Search:
    subject: str


@dataclass(frozen=True)
class DutyButton:
    action: DutyAction


@dataclass(frozen=True)
class OpenApiKeyModal:
    pass


CommandIntent = Union[Ping, Setup, DutyManage, DutyLeaderboardRequest, DutyActive, Punish, Search]
ButtonIntent = Union[DutyButton, OpenApiKeyModal]

_DUTY_SUBCOMMANDS = {
    "manage": DutyManage,
    "leaderboard": DutyLeaderboardRequest,
    "active": DutyActive,
}


def parse_command(content: str, prefix: str = ".") -> Optional[CommandIntent]:
    """Translate a chat message into an intent.

    Returns ``None`` for messages that are not one of our commands and raises
    :class:`MalformedCommandError` when a known command is missing arguments.
    """

    text = content.strip()
    if not text.startswith(prefix):
        return None
    args = text.split()
    name = args[0][len(prefix):].lower()

    if name == "ping" and len(args) == 1:
        return Ping()
    if name == "setup" and len(args) == 1:
        return Setup()
    if name == "duty":
        if len(args) != 2 or args[1].lower() not in _DUTY_SUBCOMMANDS:
            raise MalformedCommandError("duty", DUTY_USAGE)
        return _DUTY_SUBCOMMANDS[args[1].lower()]()
    if name == "punish":
        if len(args) < 4:
            raise MalformedCommandError("punish", PUNISH_USAGE)
        return Punish(subject=args[1], kind=args[2], reason=" ".join(args[3:]))
    if name == "search":
        if len(args) < 2:
            raise MalformedCommandError("search", SEARCH_USAGE)
        return Search(subject=args[1])
    return None


def parse_button(custom_id: Optional[str]) -> Optional[ButtonIntent]:
    if custom_id == OPEN_API_KEY_MODAL:
        return OpenApiKeyModal()
    try:
        return DutyButton(DutyAction(custom_id))
    except ValueError:
        return None


__all__ = [
    "API_KEY_INPUT",
    "API_KEY_MODAL",
    "ButtonIntent",
    "CommandIntent",
    "DUTY_USAGE",
    "DutyAction",
    "DutyActive",
    "DutyButton",
    "DutyLeaderboardRequest",
    "DutyManage",
    "MalformedCommandError",
    "OPEN_API_KEY_MODAL",
    "OpenApiKeyModal",
    "PUNISH_USAGE",
    "Ping",
    "Punish",
    "SEARCH_USAGE",
    "Search",
    "Setup",
    "parse_button",
    "parse_command",
]
