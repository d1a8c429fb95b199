"""Periodic duty panel refresh jobs."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[str], Awaitable[bool]]


class PanelRefreshScheduler:
    """One interval job per open shift, removed when the shift closes.

    The callback receives the actor id and returns ``False`` once there is
    nothing left to refresh, at which point the job cancels itself.
    """

    def __init__(self, refresh: RefreshCallback, interval_seconds: float = 30.0) -> None:
        self._refresh = refresh
        self._interval = interval_seconds
        self._scheduler = AsyncIOScheduler()
        self._started = False

    @staticmethod
    def job_id(actor_id: str) -> str:
        return f"duty-refresh-{actor_id}"

    def start(self) -> None:
        if self._started:
            return
        self._scheduler.start()
        self._started = True
        logger.info("Panel refresh scheduler started (every %ss)", self._interval)

    def schedule(self, actor_id: str) -> None:
        """Begin refreshing ``actor_id``'s panel; rescheduling replaces the job."""

        self._scheduler.add_job(
            self._tick,
            "interval",
            seconds=self._interval,
            id=self.job_id(actor_id),
            args=[actor_id],
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )

    def cancel(self, actor_id: str) -> None:
        try:
            self._scheduler.remove_job(self.job_id(actor_id))
        except JobLookupError:
            logger.debug("No refresh job registered for %s", actor_id)

    def is_scheduled(self, actor_id: str) -> bool:
        return self._scheduler.get_job(self.job_id(actor_id)) is not None

    async def _tick(self, actor_id: str) -> None:
        try:
            keep = await self._refresh(actor_id)
        except Exception:  # pragma: no cover - logged, job stays registered
            logger.exception("Duty panel refresh failed for %s", actor_id)
            return
        if not keep:
            self.cancel(actor_id)

    def shutdown(self) -> None:
        if self._started:
            self._scheduler.shutdown(wait=False)
            self._started = False


__all__ = ["PanelRefreshScheduler", "AsyncIOScheduler"]
