import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from wipecall.wcl.auth import WCLAuth, is_server_error, return_last_outcome

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://www.warcraftlogs.com/api/v2/client"

MAX_ATTEMPTS = 4


class WCLAPIError(Exception):
    """Raised when the WCL GraphQL API returns errors."""


class WCLClient:
    """Async GraphQL client for WCL API v2.

    Owns its HTTP pool unless one is passed in (see WCLFactory).
    """

    def __init__(
        self,
        auth: WCLAuth,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._auth = auth
        self._api_url = api_url
        self._timeout = timeout
        self._http = http_client
        self._owns_http = http_client is None

    async def __aenter__(self) -> "WCLClient":
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout)
        return self

    async def __aexit__(self, *exc: object) -> None:
        if self._owns_http and self._http:
            await self._http.aclose()
            self._http = None

    async def query(
        self,
        graphql_query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query and return its ``data`` payload.

        5xx responses and network errors are retried with exponential backoff;
        other HTTP errors raise immediately.
        """
        if self._http is None:
            raise RuntimeError("Use WCLClient as an async context manager")

        body: dict[str, Any] = {"query": graphql_query}
        if variables:
            body["variables"] = variables

        response = await self._post(body)
        if response.status_code == 401:
            # Token revoked or expired early; retry once with a fresh one
            self._auth.invalidate()
            response = await self._post(body)
        response.raise_for_status()

        result = response.json()
        if result.get("errors"):
            messages = "; ".join(e.get("message", "unknown error") for e in result["errors"])
            raise WCLAPIError(messages)
        return result["data"]

    @retry(
        retry=(
            retry_if_result(is_server_error)
            | retry_if_exception_type((httpx.ConnectError, httpx.ReadTimeout))
        ),
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=2, min=2, max=60),
        retry_error_callback=return_last_outcome,
    )
    async def _post(self, body: dict[str, Any]) -> httpx.Response:
        token = await self._auth.get_token(self._http)
        response = await self._http.post(
            self._api_url,
            json=body,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
        )
        if is_server_error(response):
            logger.warning("WCL server error %d, retrying", response.status_code)
        return response
