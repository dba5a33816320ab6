"""Shared async HTTP client for outbound calls to verification services."""

from typing import Any

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0


class HttpClient:
    """Async wrapper around httpx.AsyncClient with a fixed per-call timeout.

    One instance is created per application and shared by every submission;
    httpx.AsyncClient is safe to use from concurrent tasks.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout)

    async def post(self, url: str, **kwargs: Any) -> httpx.Response:
        return await self._client.post(url, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
