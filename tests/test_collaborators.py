"""Tests for the Roblox directory and ER:LC audit log clients."""
from __future__ import annotations

import http.client
import json
import urllib.error

import pytest

from helping_erlc.audit import AuditLogClient
from helping_erlc.roblox import RobloxDirectory
from helping_erlc.telemetry import MetricType, get_telemetry


class DummyResponse:
    def __init__(self, payload, status: int = 200):
        self._payload = payload
        self.status = status

    def read(self) -> bytes:
        if isinstance(self._payload, bytes):
            return self._payload
        return json.dumps(self._payload).encode("utf-8")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


def test_profile_url_resolves_id(monkeypatch):
    seen = {}

    def fake_urlopen(request, timeout=None):
        seen["url"] = request.full_url
        seen["timeout"] = timeout
        return DummyResponse({"Id": 1234, "Username": "RoViewer123"})

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    directory = RobloxDirectory("http://roblox.test/lookup", "http://roblox.test/users/{user_id}", timeout=2.0)

    assert directory.profile_url("Ro Viewer") == "http://roblox.test/users/1234"
    assert seen["url"] == "http://roblox.test/lookup?username=Ro+Viewer"
    assert seen["timeout"] == 2.0


@pytest.mark.parametrize("payload", [{}, {"Id": None}, [], b"not json"])
def test_profile_url_missing_user(monkeypatch, payload):
    monkeypatch.setattr("urllib.request.urlopen", lambda request, timeout=None: DummyResponse(payload))
    assert RobloxDirectory().profile_url("ghost") is None


def test_profile_url_network_failure(monkeypatch):
    def fail(request, timeout=None):
        raise urllib.error.URLError("offline")

    monkeypatch.setattr("urllib.request.urlopen", fail)
    assert RobloxDirectory().profile_url("anyone") is None


@pytest.mark.asyncio
async def test_lookup_runs_off_loop(monkeypatch):
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: DummyResponse({"Id": 9})
    )
    assert await RobloxDirectory().lookup("someone") == "https://www.roblox.com/users/9/profile"


def test_audit_log_posts_command(monkeypatch):
    captured = {}

    def fake_urlopen(request, timeout=None):
        captured["request"] = request
        return DummyResponse({"ok": True})

    monkeypatch.setattr("urllib.request.urlopen", fake_urlopen)
    client = AuditLogClient("http://erlc.test/log")

    assert client.log_command("key-1", ".duty active", "42", "2024-01-01T00:00:00+00:00") is True
    request = captured["request"]
    assert request.get_method() == "POST"
    assert request.get_header("Authorization") == "Bearer key-1"
    assert json.loads(request.data) == {
        "type": "command",
        "command": ".duty active",
        "userId": "42",
        "timestamp": "2024-01-01T00:00:00+00:00",
    }


def test_audit_log_failures_are_swallowed(monkeypatch):
    def http_error(request, timeout=None):
        raise urllib.error.HTTPError(request.full_url, 401, "Unauthorized", {}, None)

    monkeypatch.setattr("urllib.request.urlopen", http_error)
    assert AuditLogClient().log_command("bad", ".ping", "1", "now") is False

    def offline(request, timeout=None):
        raise urllib.error.URLError("offline")

    monkeypatch.setattr("urllib.request.urlopen", offline)
    assert AuditLogClient().log_command("key", ".ping", "1", "now") is False


@pytest.mark.asyncio
async def test_audit_submit(monkeypatch):
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: DummyResponse({}, status=500)
    )
    assert await AuditLogClient().submit("key", ".ping", "1", "now") is False


def test_profile_url_undecodable_body(monkeypatch):
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: DummyResponse(b"\xff\xfe")
    )
    assert RobloxDirectory().profile_url("anyone") is None


def test_profile_url_bad_status_line(monkeypatch):
    def garbage(request, timeout=None):
        raise http.client.BadStatusLine("garbage")

    monkeypatch.setattr("urllib.request.urlopen", garbage)
    assert RobloxDirectory().profile_url("anyone") is None


@pytest.mark.parametrize(
    "error", [http.client.BadStatusLine("garbage"), ValueError("Invalid header value")]
)
def test_audit_log_protocol_errors_are_swallowed(monkeypatch, error):
    def broken(request, timeout=None):
        raise error

    monkeypatch.setattr("urllib.request.urlopen", broken)
    assert AuditLogClient().log_command("key", ".ping", "1", "now") is False


def test_lookup_and_audit_record_timings(monkeypatch):
    monkeypatch.setattr(
        "urllib.request.urlopen", lambda request, timeout=None: DummyResponse({"Id": 3})
    )
    RobloxDirectory().profile_url("someone")
    AuditLogClient().log_command("key", ".ping", "1", "now")

    events = get_telemetry()._metrics_buffer
    timed = [event.name for event in events if event.metric_type is MetricType.PERFORMANCE]
    assert timed == ["roblox_lookup", "audit_log"]


def test_failed_lookup_records_error(monkeypatch):
    def offline(request, timeout=None):
        raise urllib.error.URLError("offline")

    monkeypatch.setattr("urllib.request.urlopen", offline)
    RobloxDirectory().profile_url("someone")

    errors = [
        event for event in get_telemetry()._metrics_buffer
        if event.metric_type is MetricType.ERROR_RATE
    ]
    assert [event.name for event in errors] == ["URLError"]
    assert errors[0].tags["command"] == "roblox_lookup"
