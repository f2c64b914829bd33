"""Shared async HTTP client for upstream calls.

This is the transport collaborator: TLS, connection pooling and timeouts are
all httpx's concern. Nothing here retries.
"""

from typing import Any, Optional

import httpx

_USER_AGENT = "geetest-relay/1.0"


class HttpClient:
    """Thin async wrapper around httpx.AsyncClient with a configurable timeout.

    ``transport`` is passed straight to httpx so tests can plug in an
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": _USER_AGENT},
        )

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.get(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
