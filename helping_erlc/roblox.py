"""Roblox profile lookups for punishment embeds."""
from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from .telemetry import track_duration

logger = logging.getLogger(__name__)

DEFAULT_LOOKUP_URL = "https://api.roblox.com/users/get-by-username"
DEFAULT_PROFILE_URL = "https://www.roblox.com/users/{user_id}/profile"


class RobloxDirectory:
    """Resolves usernames to profile links. Every failure reads as "no profile"."""

    def __init__(
        self,
        lookup_url: str = DEFAULT_LOOKUP_URL,
        profile_url: str = DEFAULT_PROFILE_URL,
        *,
        timeout: float = 5.0,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._lookup_url = lookup_url
        self._profile_url = profile_url
        self._timeout = timeout
        self._executor = executor

    def profile_url(self, username: str) -> Optional[str]:
        query = urllib.parse.urlencode({"username": username})
        request = urllib.request.Request(
            f"{self._lookup_url}?{query}",
            headers={"Accept": "application/json"},
        )
        try:
            with track_duration("roblox_lookup"):
                with urllib.request.urlopen(request, timeout=self._timeout) as response:
                    payload = json.loads(response.read().decode("utf-8"))
        except (urllib.error.URLError, OSError, http.client.HTTPException):
            logger.warning("Roblox lookup failed for %s", username, exc_info=True)
            return None
        except ValueError:
            logger.warning("Roblox lookup returned an unreadable body for %s", username)
            return None
        user_id = payload.get("Id") if isinstance(payload, dict) else None
        if not user_id:
            return None
        return self._profile_url.format(user_id=user_id)

    async def lookup(self, username: str) -> Optional[str]:
        """Run :meth:`profile_url` without blocking the event loop."""

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.profile_url, username)


__all__ = ["RobloxDirectory"]
