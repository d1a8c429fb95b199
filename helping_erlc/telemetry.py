"""Command telemetry for Helping ERLC.

Handlers and HTTP collaborators record metric events into an in-memory
buffer, which is written to a SQLite ``metrics`` table in batches.
"""
from __future__ import annotations

import json
import logging
import os
import sqlite3
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

TELEMETRY_DB_ENV = "HELPING_ERLC_TELEMETRY_DB"
FLUSH_BATCH_SIZE = 100
FLUSH_INTERVAL_SECONDS = 60.0

_SCHEMA = """
CREATE TABLE IF NOT EXISTS metrics (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp REAL NOT NULL,
    metric_type TEXT NOT NULL,
    name TEXT NOT NULL,
    value REAL NOT NULL,
    tags TEXT,
    metadata TEXT
);
CREATE INDEX IF NOT EXISTS idx_metrics_type_name ON metrics(metric_type, name);
"""

_INSERT = (
    "INSERT INTO metrics (timestamp, metric_type, name, value, tags, metadata) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)


class MetricType(Enum):
    COMMAND_USAGE = "command_usage"
    ERROR_RATE = "error_rate"
    PERFORMANCE = "performance"


@dataclass
class MetricEvent:
    timestamp: float
    metric_type: MetricType
    name: str
    value: float
    tags: Dict[str, str] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def as_row(self) -> Tuple[float, str, str, float, str, str]:
        return (
            self.timestamp,
            self.metric_type.value,
            self.name,
            self.value,
            json.dumps(self.tags),
            json.dumps(self.metadata),
        )


class TelemetryCollector:
    """Buffers metric events and persists them to SQLite.

    Events arrive from the event loop and from executor threads, so the
    buffer is guarded by a lock. A failed write puts the batch back.
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        if db_path is None:
            db_path = Path(os.environ.get(TELEMETRY_DB_ENV, "telemetry.db"))
        self.db_path = Path(db_path)
        self._metrics_buffer: List[MetricEvent] = []
        self._lock = threading.Lock()
        self._last_flush = time.monotonic()
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(_SCHEMA)

    def track_command(
        self,
        command_name: str,
        actor_id: str,
        guild_id: str,
        success: bool = True,
        duration_ms: Optional[float] = None,
        channel_id: Optional[str] = None,
    ) -> None:
        """Track one prefix command or button press."""
        tags = {"actor_id": actor_id, "guild_id": guild_id, "success": str(success)}
        if channel_id:
            tags["channel_id"] = channel_id
        metadata = {} if duration_ms is None else {"duration_ms": duration_ms}
        self.record(MetricType.COMMAND_USAGE, command_name, 1.0, tags, metadata)

    def track_error(
        self,
        error_type: str,
        command: Optional[str] = None,
        actor_id: Optional[str] = None,
        error_details: Optional[str] = None,
    ) -> None:
        tags = {key: value for key, value in (("command", command), ("actor_id", actor_id)) if value}
        metadata = {"error_details": error_details} if error_details else {}
        self.record(MetricType.ERROR_RATE, error_type, 1.0, tags, metadata)

    def track_performance(
        self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None
    ) -> None:
        self.record(
            MetricType.PERFORMANCE, operation, duration_ms, dict(tags or {}), {"unit": "milliseconds"}
        )

    def record(
        self,
        metric_type: MetricType,
        name: str,
        value: float,
        tags: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = MetricEvent(time.time(), metric_type, name, float(value), tags or {}, metadata or {})
        with self._lock:
            self._metrics_buffer.append(event)
            due = (
                len(self._metrics_buffer) >= FLUSH_BATCH_SIZE
                or time.monotonic() - self._last_flush > FLUSH_INTERVAL_SECONDS
            )
        if due:
            self.flush()

    def flush(self) -> int:
        """Write buffered events; returns how many reached the database."""
        with self._lock:
            pending, self._metrics_buffer = self._metrics_buffer, []
            self._last_flush = time.monotonic()
        if not pending:
            return 0
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.executemany(_INSERT, [event.as_row() for event in pending])
        except sqlite3.Error:
            logger.exception("Failed to flush %d metrics to %s", len(pending), self.db_path)
            with self._lock:
                self._metrics_buffer[:0] = pending
            return 0
        logger.debug("Flushed %d metrics to %s", len(pending), self.db_path)
        return len(pending)


_telemetry: Optional[TelemetryCollector] = None
_telemetry_lock = threading.Lock()


def get_telemetry() -> TelemetryCollector:
    """Process-wide collector, created on first use."""
    global _telemetry
    with _telemetry_lock:
        if _telemetry is None:
            _telemetry = TelemetryCollector()
        return _telemetry


@contextmanager
def track_duration(operation: str, tags: Optional[Dict[str, str]] = None) -> Iterator[None]:
    """Record how long the block took, plus an error event if it raised."""
    telemetry = get_telemetry()
    started = time.perf_counter()
    try:
        yield
    except Exception as exc:
        telemetry.track_error(type(exc).__name__, command=operation, error_details=str(exc))
        raise
    finally:
        telemetry.track_performance(operation, (time.perf_counter() - started) * 1000, tags)
