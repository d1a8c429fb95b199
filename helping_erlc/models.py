"""Core data models for Helping ERLC."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class DutyState(str, Enum):
    OFF = "off"
    ON_DUTY = "on_duty"
    ON_BREAK = "on_break"


class PunishmentKind(str, Enum):
    WARNING = "warning"
    KICK = "kick"
    BAN = "ban"
    BOLO = "bolo"


@dataclass
class DutySession:
    """An open shift. Mutated only by :class:`~helping_erlc.duty.DutySessionStore`."""

    actor_id: str
    shift_started_at: datetime
    break_accumulated_ms: int = 0
    on_break: bool = False
    break_started_at: Optional[datetime] = None

    @property
    def state(self) -> DutyState:
        return DutyState.ON_BREAK if self.on_break else DutyState.ON_DUTY


@dataclass(frozen=True)
class DutySnapshot:
    """Point-in-time projection of a duty session."""

    actor_id: str
    shift_started_at: datetime
    on_break: bool
    total_shift_ms: int
    total_break_ms: int
    effective_work_ms: int


@dataclass(frozen=True)
class ShiftSummary:
    """Final figures for a closed shift."""

    snapshot: DutySnapshot
    leaderboard_total_ms: int

    @property
    def actor_id(self) -> str:
        return self.snapshot.actor_id

    @property
    def effective_work_ms(self) -> int:
        return self.snapshot.effective_work_ms


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    actor_id: str
    total_ms: int


@dataclass(frozen=True)
class PunishmentRecord:
    subject_key: str
    subject_name: str
    kind: PunishmentKind
    reason: str
    issuer_id: str
    issued_at: datetime


__all__ = [
    "DutyState",
    "PunishmentKind",
    "DutySession",
    "DutySnapshot",
    "ShiftSummary",
    "LeaderboardEntry",
    "PunishmentRecord",
]
