"""Append-only punishment ledger keyed by Roblox username."""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional, Tuple

from .clock import Clock, SystemClock
from .formatting import normalize_identity
from .models import PunishmentKind, PunishmentRecord

logger = logging.getLogger(__name__)


class InvalidPunishmentKindError(ValueError):
    """Raised for a punishment type outside :class:`PunishmentKind`."""

    def __init__(self, kind: str) -> None:
        valid = ", ".join(k.value for k in PunishmentKind)
        super().__init__(f"Invalid punishment type. Valid types: {valid}.")
        self.kind = kind


def parse_punishment_kind(kind: str) -> PunishmentKind:
    try:
        return PunishmentKind(kind.strip().lower())
    except ValueError:
        raise InvalidPunishmentKindError(kind) from None


class PunishmentLedger:
    """Records are appended per subject and never rewritten."""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()
        self._records: Dict[str, List[PunishmentRecord]] = {}
        self._lock = threading.Lock()

    def append(
        self,
        subject_username: str,
        kind: str,
        reason: str,
        issuer_id: str,
    ) -> PunishmentRecord:
        key = normalize_identity(subject_username)
        if not key:
            raise ValueError("Subject username must not be empty")
        record = PunishmentRecord(
            subject_key=key,
            subject_name=subject_username.strip(),
            kind=parse_punishment_kind(kind),
            reason=reason.strip(),
            issuer_id=issuer_id,
            issued_at=self._clock.now(),
        )
        with self._lock:
            self._records.setdefault(key, []).append(record)
        logger.info("Recorded %s for %s issued by %s", record.kind.value, key, issuer_id)
        return record

    def query(self, subject_username: str) -> Tuple[PunishmentRecord, ...]:
        """History for a subject in the order it was recorded."""

        key = normalize_identity(subject_username)
        with self._lock:
            return tuple(self._records.get(key, ()))

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())

    def reset(self) -> None:
        with self._lock:
            self._records.clear()


__all__ = ["InvalidPunishmentKindError", "PunishmentLedger", "parse_punishment_kind"]
