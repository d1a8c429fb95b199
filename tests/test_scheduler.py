"""Tests for duty panel refresh scheduling."""
from __future__ import annotations

import pytest
from apscheduler.jobstores.base import JobLookupError

from helping_erlc import scheduler as scheduler_module


class FakeScheduler:
    def __init__(self):
        self.jobs = {}
        self.started = False
        self.shut_down = False

    def add_job(self, func, trigger, **kwargs):
        self.jobs[kwargs["id"]] = (func, trigger, kwargs)

    def remove_job(self, job_id):
        if job_id not in self.jobs:
            raise JobLookupError(job_id)
        del self.jobs[job_id]

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def start(self):
        self.started = True

    def shutdown(self, wait=True):
        self.shut_down = True


@pytest.fixture
def fake_scheduler(monkeypatch):
    instances = []

    def factory():
        instance = FakeScheduler()
        instances.append(instance)
        return instance

    monkeypatch.setattr(scheduler_module, "AsyncIOScheduler", factory)
    return instances


def test_schedule_registers_interval_job(fake_scheduler):
    async def refresh(actor_id):
        return True

    refresher = scheduler_module.PanelRefreshScheduler(refresh, interval_seconds=15)
    refresher.start()
    refresher.schedule("42")
    refresher.schedule("42")

    fake = fake_scheduler[0]
    assert fake.started is True
    assert list(fake.jobs) == ["duty-refresh-42"]
    _, trigger, kwargs = fake.jobs["duty-refresh-42"]
    assert trigger == "interval"
    assert kwargs["seconds"] == 15
    assert kwargs["args"] == ["42"]
    assert refresher.is_scheduled("42")


def test_cancel_is_safe_when_missing(fake_scheduler):
    async def refresh(actor_id):
        return True

    refresher = scheduler_module.PanelRefreshScheduler(refresh)
    refresher.schedule("1")
    refresher.cancel("1")
    refresher.cancel("1")
    assert not refresher.is_scheduled("1")


@pytest.mark.asyncio
async def test_tick_cancels_job_once_shift_closed(fake_scheduler):
    open_shifts = {"7"}

    async def refresh(actor_id):
        return actor_id in open_shifts

    refresher = scheduler_module.PanelRefreshScheduler(refresh)
    refresher.schedule("7")

    await refresher._tick("7")
    assert refresher.is_scheduled("7")

    open_shifts.clear()
    await refresher._tick("7")
    assert not refresher.is_scheduled("7")


def test_shutdown_only_after_start(fake_scheduler):
    async def refresh(actor_id):
        return True

    refresher = scheduler_module.PanelRefreshScheduler(refresh)
    refresher.shutdown()
    assert fake_scheduler[0].shut_down is False
    refresher.start()
    refresher.shutdown()
    assert fake_scheduler[0].shut_down is True
