"""HTTP client service with timeouts and shared connection pooling."""

from typing import Any

import httpx
import structlog

log = structlog.stdlib.get_logger()

# Domain-restricted Web API keys are accepted from localhost
DEFAULT_HEADERS = {
    "User-Agent": "steam-library-cli/0.1.0",
    "Referer": "http://localhost/",
    "Origin": "http://localhost",
}


class HttpClientService:
    """Thin async HTTP client shared by all Steam requests.

    A failed request raises; callers decide whether that is fatal or just
    means "no data". Requests are never retried.
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_connections: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            timeout: Request timeout in seconds
            max_connections: Connection pool size (at least 3, one per concurrent lookup kind)
            transport: Optional transport override, used by tests
        """
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=DEFAULT_HEADERS,
            follow_redirects=True,
            limits=httpx.Limits(
                max_keepalive_connections=max(3, max_connections),
                max_connections=max(3, max_connections),
            ),
            transport=transport,
        )

        log.debug("HTTP client service initialized", timeout=timeout, max_connections=max_connections)

    def set_cookies(self, cookies: dict[str, str], domain: str) -> None:
        """Add cookies that are only sent to requests for ``domain``."""
        for name, value in cookies.items():
            self._client.cookies.set(name, value, domain=domain)

    async def get(
        self,
        url: str,
        params: dict[str, str | int] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a GET request.

        Raises:
            httpx.HTTPStatusError: On a non-success status
            httpx.RequestError: On transport failures and timeouts
        """
        log.debug("Making HTTP GET request", url=url)

        try:
            response = await self._client.get(url, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            log.debug(
                "HTTP GET request failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

        log.debug("HTTP GET request successful", url=url, status_code=response.status_code)
        return response

    async def get_json(
        self,
        url: str,
        params: dict[str, str | int] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make a GET request and decode the JSON body.

        Raises:
            httpx.HTTPError: If the request fails
            ValueError: If the body is not valid JSON
        """
        response = await self.get(url, params=params, headers=headers)
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._client.aclose()
        log.debug("HTTP client closed")

