"""Duty session state machine and cumulative leaderboard.

Each actor is either off duty (no session), on duty, or on break. Elapsed
figures are always recomputed from the stored timestamps, so a panel that
refreshes late or irregularly still shows the right totals.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Dict, List, Optional

from .clock import Clock, SystemClock
from .formatting import elapsed_ms
from .models import DutySession, DutySnapshot, DutyState, LeaderboardEntry, ShiftSummary

logger = logging.getLogger(__name__)


class NotOnDutyError(RuntimeError):
    """Raised when a break or off-duty transition targets an actor with no shift."""

    def __init__(self, actor_id: str) -> None:
        super().__init__("You are not on duty.")
        self.actor_id = actor_id


class DutyLeaderboard:
    """Cumulative effective work time per actor, in milliseconds."""

    def __init__(self) -> None:
        self._totals: Dict[str, int] = {}
        self._lock = threading.Lock()

    def record(self, actor_id: str, effective_work_ms: int) -> int:
        """Add a completed shift to ``actor_id`` and return the new total."""

        if effective_work_ms < 0:
            raise ValueError("effective_work_ms must be non-negative")
        with self._lock:
            total = self._totals.get(actor_id, 0) + int(effective_work_ms)
            self._totals[actor_id] = total
        return total

    def get(self, actor_id: str) -> int:
        with self._lock:
            return self._totals.get(actor_id, 0)

    def top(self, limit: int = 10) -> List[LeaderboardEntry]:
        """Actors by cumulative time, descending; ties keep first-recorded order."""

        with self._lock:
            items = list(self._totals.items())
        ranked = sorted(items, key=lambda item: item[1], reverse=True)
        return [
            LeaderboardEntry(rank=index, actor_id=actor_id, total_ms=total)
            for index, (actor_id, total) in enumerate(ranked[: max(0, limit)], start=1)
        ]

    def __len__(self) -> int:
        return len(self._totals)

    def reset(self) -> None:
        with self._lock:
            self._totals.clear()


class DutySessionStore:
    """Owns every open :class:`DutySession`, at most one per actor."""

    def __init__(
        self,
        leaderboard: Optional[DutyLeaderboard] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.leaderboard = leaderboard if leaderboard is not None else DutyLeaderboard()
        self._clock = clock if clock is not None else SystemClock()
        self._sessions: Dict[str, DutySession] = {}
        self._lock = threading.Lock()

    # Transitions -----------------------------------------------------------

    def go_on_duty(self, actor_id: str) -> DutySnapshot:
        """Open a shift; an existing shift is left untouched."""

        with self._lock:
            now = self._clock.now()
            session = self._sessions.get(actor_id)
            if session is None:
                session = DutySession(actor_id=actor_id, shift_started_at=now)
                self._sessions[actor_id] = session
                logger.info("Actor %s went on duty", actor_id)
            return self._project(session, now)

    def toggle_break(self, actor_id: str) -> DutySnapshot:
        """Start a break when working, end it when already on break."""

        with self._lock:
            session = self._require(actor_id)
            now = self._clock.now()
            if session.on_break:
                self._end_break(session, now)
                logger.info("Actor %s ended their break", actor_id)
            else:
                session.on_break = True
                session.break_started_at = now
                logger.info("Actor %s started a break", actor_id)
            return self._project(session, now)

    def go_off_duty(self, actor_id: str) -> ShiftSummary:
        """Close the shift and fold its effective time into the leaderboard."""

        with self._lock:
            session = self._require(actor_id)
            now = self._clock.now()
            if session.on_break:
                self._end_break(session, now)
            snapshot = self._project(session, now)
            del self._sessions[actor_id]
        total = self.leaderboard.record(actor_id, snapshot.effective_work_ms)
        logger.info(
            "Actor %s went off duty after %d ms effective work", actor_id, snapshot.effective_work_ms
        )
        return ShiftSummary(snapshot=snapshot, leaderboard_total_ms=total)

    # Queries ---------------------------------------------------------------

    def query(self, actor_id: str) -> Optional[DutySnapshot]:
        """Live projection of the open shift, or ``None`` when off duty."""

        with self._lock:
            session = self._sessions.get(actor_id)
            if session is None:
                return None
            return self._project(session, self._clock.now())

    def state_of(self, actor_id: str) -> DutyState:
        with self._lock:
            session = self._sessions.get(actor_id)
            return DutyState.OFF if session is None else session.state

    def active(self) -> List[DutySnapshot]:
        """Live projections of every open shift, oldest first."""

        with self._lock:
            now = self._clock.now()
            return [self._project(session, now) for session in self._sessions.values()]

    def __contains__(self, actor_id: object) -> bool:
        return actor_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def reset(self) -> None:
        with self._lock:
            self._sessions.clear()

    # Internals -------------------------------------------------------------

    def _require(self, actor_id: str) -> DutySession:
        session = self._sessions.get(actor_id)
        if session is None:
            raise NotOnDutyError(actor_id)
        return session

    @staticmethod
    def _end_break(session: DutySession, now: datetime) -> None:
        if session.break_started_at is not None:
            session.break_accumulated_ms += elapsed_ms(session.break_started_at, now)
        session.on_break = False
        session.break_started_at = None

    @staticmethod
    def _project(session: DutySession, now: datetime) -> DutySnapshot:
        total_shift = elapsed_ms(session.shift_started_at, now)
        total_break = session.break_accumulated_ms
        if session.on_break and session.break_started_at is not None:
            total_break += elapsed_ms(session.break_started_at, now)
        total_break = min(total_break, total_shift)
        return DutySnapshot(
            actor_id=session.actor_id,
            shift_started_at=session.shift_started_at,
            on_break=session.on_break,
            total_shift_ms=total_shift,
            total_break_ms=total_break,
            effective_work_ms=max(0, total_shift - total_break),
        )


__all__ = ["NotOnDutyError", "DutyLeaderboard", "DutySessionStore"]
