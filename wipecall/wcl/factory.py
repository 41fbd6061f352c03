"""Shared WCL client factory: one Auth, one httpx pool."""

import httpx

from wipecall.wcl.auth import WCLAuth
from wipecall.wcl.client import WCLClient
from wipecall.wcl.source import WCLSource


class WCLFactory:
    """Creates WCLClient / WCLSource instances that share auth and HTTP pool."""

    def __init__(self, settings) -> None:
        self._auth = WCLAuth.from_settings(settings)
        self._api_url = settings.wcl.api_url
        self._timeout = settings.wcl.timeout
        self._max_event_pages = settings.wcl.max_event_pages
        self._pool: httpx.AsyncClient | None = None

    async def start(self) -> None:
        """Open the shared HTTP connection pool."""
        self._pool = httpx.AsyncClient(timeout=self._timeout)

    async def stop(self) -> None:
        """Close the shared HTTP connection pool."""
        if self._pool:
            await self._pool.aclose()
            self._pool = None

    def client(self) -> WCLClient:
        return WCLClient(
            self._auth,
            api_url=self._api_url,
            timeout=self._timeout,
            http_client=self._pool,
        )

    def source(self) -> WCLSource:
        """A fresh source; its per-report metadata cache lives as long as it does."""
        return WCLSource(self.client(), max_event_pages=self._max_event_pages)
