"""Tests for the duty session state machine and leaderboard."""
from __future__ import annotations

import pytest

from helping_erlc.duty import DutyLeaderboard, DutySessionStore, NotOnDutyError
from helping_erlc.models import DutyState

MINUTE_MS = 60 * 1000


@pytest.fixture
def store(clock):
    return DutySessionStore(clock=clock)


def test_go_on_duty_twice_keeps_original_session(store, clock):
    first = store.go_on_duty("alice")
    clock.advance(minutes=3)
    second = store.go_on_duty("alice")

    assert len(store) == 1
    assert second.shift_started_at == first.shift_started_at
    assert second.total_shift_ms == 3 * MINUTE_MS


def test_break_and_off_duty_scenario(store, clock):
    store.go_on_duty("alice")
    clock.advance(minutes=10)
    assert store.toggle_break("alice").on_break is True
    assert store.state_of("alice") is DutyState.ON_BREAK
    clock.advance(minutes=5)
    assert store.toggle_break("alice").on_break is False
    clock.advance(minutes=15)

    summary = store.go_off_duty("alice")

    assert summary.snapshot.total_break_ms == 5 * MINUTE_MS
    assert summary.effective_work_ms == 25 * MINUTE_MS
    assert summary.leaderboard_total_ms == 25 * MINUTE_MS
    assert store.leaderboard.get("alice") == 25 * MINUTE_MS
    assert store.state_of("alice") is DutyState.OFF
    assert "alice" not in store


def test_off_duty_while_on_break_folds_open_break(store, clock):
    store.go_on_duty("bob")
    clock.advance(minutes=20)
    store.toggle_break("bob")
    clock.advance(minutes=10)

    summary = store.go_off_duty("bob")

    assert summary.snapshot.total_break_ms == 10 * MINUTE_MS
    assert summary.effective_work_ms == 20 * MINUTE_MS
    assert summary.snapshot.on_break is False


def test_query_projects_open_break_without_mutation(store, clock):
    store.go_on_duty("carol")
    clock.advance(minutes=4)
    store.toggle_break("carol")
    clock.advance(minutes=2)

    first = store.query("carol")
    second = store.query("carol")
    clock.advance(minutes=1)
    third = store.query("carol")

    assert first == second
    assert first.total_break_ms == 2 * MINUTE_MS
    assert first.effective_work_ms == 4 * MINUTE_MS
    assert third.total_shift_ms >= first.total_shift_ms
    assert third.total_break_ms == 3 * MINUTE_MS
    assert third.effective_work_ms == 4 * MINUTE_MS


@pytest.mark.parametrize("operation", ["toggle_break", "go_off_duty"])
def test_transitions_from_off_raise_and_leave_state_unchanged(store, operation):
    with pytest.raises(NotOnDutyError):
        getattr(store, operation)("dave")

    assert len(store) == 0
    assert len(store.leaderboard) == 0
    assert store.query("dave") is None


def test_query_from_off_returns_none(store, clock):
    assert store.query("dave") is None
    store.go_on_duty("dave")
    clock.advance(minutes=1)
    store.go_off_duty("dave")
    assert store.query("dave") is None
    assert store.state_of("dave") is DutyState.OFF


def test_off_duty_without_break_start_keeps_accumulated_break(store, clock):
    store.go_on_duty("ivan")
    clock.advance(minutes=10)
    store.toggle_break("ivan")
    clock.advance(minutes=2)
    store.toggle_break("ivan")
    session = store._sessions["ivan"]
    session.on_break = True
    session.break_started_at = None
    clock.advance(minutes=3)

    summary = store.go_off_duty("ivan")

    assert summary.snapshot.total_break_ms == 2 * MINUTE_MS
    assert summary.effective_work_ms == 13 * MINUTE_MS


def test_shared_leaderboard_receives_closed_shifts(clock):
    board = DutyLeaderboard()
    store = DutySessionStore(board, clock=clock)
    assert store.leaderboard is board

    store.go_on_duty("judy")
    clock.advance(minutes=25)
    store.go_off_duty("judy")

    assert board.get("judy") == 25 * MINUTE_MS


def test_clock_going_backwards_never_yields_negative_time(store, clock):
    store.go_on_duty("erin")
    clock.advance(minutes=-5)

    snapshot = store.query("erin")
    assert snapshot.total_shift_ms == 0
    assert 0 <= snapshot.effective_work_ms <= snapshot.total_shift_ms

    summary = store.go_off_duty("erin")
    assert summary.effective_work_ms == 0
    assert store.leaderboard.get("erin") == 0


def test_effective_time_bounded_by_shift_time(store, clock):
    store.go_on_duty("frank")
    for _ in range(3):
        clock.advance(seconds=37)
        store.toggle_break("frank")
        snapshot = store.query("frank")
        assert 0 <= snapshot.effective_work_ms <= snapshot.total_shift_ms


def test_active_lists_open_sessions_in_start_order(store, clock):
    store.go_on_duty("a")
    clock.advance(seconds=1)
    store.go_on_duty("b")
    store.go_on_duty("c")
    store.go_off_duty("b")

    assert [snapshot.actor_id for snapshot in store.active()] == ["a", "c"]


def test_leaderboard_is_additive_across_sessions(store, clock):
    durations = [7, 12, 30]
    for minutes in durations:
        store.go_on_duty("gina")
        clock.advance(minutes=minutes)
        store.go_off_duty("gina")

    assert store.leaderboard.get("gina") == sum(durations) * MINUTE_MS


def test_leaderboard_top_orders_descending_with_stable_ties():
    board = DutyLeaderboard()
    board.record("first", 100)
    board.record("second", 300)
    board.record("third", 100)
    board.record("fourth", 50)

    top = board.top(3)

    assert [entry.actor_id for entry in top] == ["second", "first", "third"]
    assert [entry.rank for entry in top] == [1, 2, 3]


def test_leaderboard_rejects_negative_time():
    board = DutyLeaderboard()
    with pytest.raises(ValueError):
        board.record("x", -1)
    assert board.get("x") == 0


def test_reset_clears_sessions(store):
    store.go_on_duty("henry")
    store.reset()
    assert store.state_of("henry") is DutyState.OFF
