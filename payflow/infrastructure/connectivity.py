"""Connectivity Monitor — tracks whether the host currently reports network access.

Invariants:
    - is_online() never raises; it returns the last known state
    - refresh() maps any transport failure to offline (never propagates)

Design Decisions:
    - Flag + optional HEAD probe: without a probe URL the flag is driven by
      set_online() (online/offline events from the host), which mirrors how a
      browser exposes connectivity
"""

import logging

import httpx

logger = logging.getLogger(__name__)


class ConnectivityMonitor:
    """Last-known connectivity state, optionally refreshed by an HTTP probe."""

    def __init__(
        self,
        online: bool = True,
        probe_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 2.0,
    ):
        self._online = online
        self.probe_url = probe_url
        self._client = client
        self.timeout_seconds = timeout_seconds

    def is_online(self) -> bool:
        return self._online

    def set_online(self, online: bool) -> None:
        if online != self._online:
            logger.info("Connectivity changed: %s", "online" if online else "offline")
        self._online = online

    async def refresh(self) -> bool:
        """Probe the configured URL and update the flag. No-op without a probe."""
        if not self.probe_url:
            return self._online
        try:
            if self._client is not None:
                response = await self._client.head(
                    self.probe_url, timeout=self.timeout_seconds,
                )
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.head(self.probe_url)
            self.set_online(response.status_code < 500)
        except httpx.HTTPError as e:
            logger.warning(f"Connectivity probe failed: {e}")
            self.set_online(False)
        return self._online
