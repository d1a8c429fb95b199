"""High-level staff service tying duty tracking and punishments together."""
from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from .clock import Clock, SystemClock
from .duty import DutyLeaderboard, DutySessionStore, NotOnDutyError
from .ledger import InvalidPunishmentKindError, PunishmentLedger
from .models import DutySnapshot, DutyState, LeaderboardEntry, PunishmentRecord, ShiftSummary

logger = logging.getLogger(__name__)


class StaffService:
    """Process-wide owner of duty sessions, the leaderboard and the ledger."""

    NotOnDutyError = NotOnDutyError
    InvalidPunishmentKindError = InvalidPunishmentKindError

    def __init__(self, clock: Optional[Clock] = None, leaderboard_size: int = 10) -> None:
        self.clock = clock or SystemClock()
        self.leaderboard = DutyLeaderboard()
        self.sessions = DutySessionStore(self.leaderboard, clock=self.clock)
        self.ledger = PunishmentLedger(clock=self.clock)
        self.leaderboard_size = leaderboard_size
        self._api_key: Optional[str] = None

    # Duty --------------------------------------------------------------

    def go_on_duty(self, actor_id: str) -> DutySnapshot:
        return self.sessions.go_on_duty(actor_id)

    def toggle_break(self, actor_id: str) -> DutySnapshot:
        return self.sessions.toggle_break(actor_id)

    def go_off_duty(self, actor_id: str) -> ShiftSummary:
        return self.sessions.go_off_duty(actor_id)

    def duty_status(self, actor_id: str) -> Optional[DutySnapshot]:
        """Current shift for ``actor_id`` or ``None`` when off duty."""

        return self.sessions.query(actor_id)

    def duty_state(self, actor_id: str) -> DutyState:
        return self.sessions.state_of(actor_id)

    def active_shifts(self) -> List[DutySnapshot]:
        return self.sessions.active()

    def top_staff(self, limit: Optional[int] = None) -> List[LeaderboardEntry]:
        return self.leaderboard.top(limit if limit is not None else self.leaderboard_size)

    # Punishments -------------------------------------------------------

    def punish(self, subject: str, kind: str, reason: str, issuer_id: str) -> PunishmentRecord:
        return self.ledger.append(subject, kind, reason, issuer_id)

    def search(self, subject: str) -> Tuple[PunishmentRecord, ...]:
        return self.ledger.query(subject)

    # Setup -------------------------------------------------------------

    @property
    def api_key(self) -> Optional[str]:
        return self._api_key

    def store_api_key(self, api_key: str) -> None:
        cleaned = api_key.strip()
        if not cleaned:
            raise ValueError("API key must not be empty")
        self._api_key = cleaned
        logger.info("ERLC API key stored; command logging enabled")

    def reset(self) -> None:
        self.sessions.reset()
        self.leaderboard.reset()
        self.ledger.reset()
        self._api_key = None


__all__ = ["StaffService"]
