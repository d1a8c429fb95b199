"""Outbound command logging to the ER:LC API."""
from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .telemetry import track_duration

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_URL = "https://api.policeroleplay.community/for-developers/access-requests"


class AuditLogClient:
    """Posts command events; failures are logged and never raised."""

    def __init__(
        self,
        endpoint: str = DEFAULT_AUDIT_URL,
        *,
        timeout: float = 5.0,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._executor = executor

    def log_command(self, api_key: str, command: str, actor_id: str, timestamp: str) -> bool:
        body = {
            "type": "command",
            "command": command,
            "userId": actor_id,
            "timestamp": timestamp,
        }
        request = urllib.request.Request(
            self._endpoint,
            data=json.dumps(body).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            method="POST",
        )
        try:
            with track_duration("audit_log"):
                with urllib.request.urlopen(request, timeout=self._timeout) as response:
                    status = getattr(response, "status", 200)
        except urllib.error.HTTPError as exc:
            logger.error("Failed to log command to ERLC API: %s %s", exc.code, exc.reason)
            return False
        except (urllib.error.URLError, OSError, http.client.HTTPException, ValueError):
            logger.exception("Error logging command to ERLC API")
            return False
        if status >= 400:
            logger.error("Failed to log command to ERLC API: HTTP %s", status)
            return False
        return True

    async def submit(self, api_key: str, command: str, actor_id: str, timestamp: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self.log_command, api_key, command, actor_id, timestamp
        )


__all__ = ["AuditLogClient"]
