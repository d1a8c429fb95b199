"""Helping ERLC: duty tracking and punishment records for ER:LC staff teams."""

from .commands import MalformedCommandError
from .duty import NotOnDutyError
from .ledger import InvalidPunishmentKindError
from .service import StaffService

__all__ = [
    "InvalidPunishmentKindError",
    "MalformedCommandError",
    "NotOnDutyError",
    "StaffService",
]
