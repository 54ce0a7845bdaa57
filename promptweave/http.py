"""External API-call collaborator for api_call steps.

HttpApiCaller reuses a single pooled httpx.AsyncClient instead of opening a
new connection per step. Non-2xx responses raise ExternalServiceError.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx
from loguru import logger

from promptweave.errors import ExternalServiceError, raise_for_status


class ApiCaller(ABC):
    """Abstract base class for the external API-call capability."""

    @abstractmethod
    async def call(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Perform a request and return the decoded response body."""
        ...

    async def close(self) -> None:
        return None


class ConnectionPool:
    """Lazily created async HTTP client with connection limits."""

    def __init__(
        self,
        max_connections: int = 10,
        max_keepalive: int = 20,
        timeout: float = 30.0,
    ) -> None:
        self._max_connections = max_connections
        self._max_keepalive = max_keepalive
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def get_client(self) -> httpx.AsyncClient:
        """Get or create the pooled HTTP client."""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    limits = httpx.Limits(
                        max_connections=self._max_connections,
                        max_keepalive_connections=self._max_keepalive,
                    )
                    self._client = httpx.AsyncClient(
                        limits=limits,
                        timeout=httpx.Timeout(self._timeout),
                    )
                    logger.debug(
                        "Created HTTP connection pool (max_connections={}, max_keepalive={})",
                        self._max_connections,
                        self._max_keepalive,
                    )
        return self._client

    async def close(self) -> None:
        """Close the connection pool."""
        async with self._lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None
                logger.debug("Closed HTTP connection pool")


class HttpApiCaller(ApiCaller):
    """httpx-backed ApiCaller.

    Dict and list bodies are sent as JSON; strings are sent verbatim.
    JSON responses are decoded, anything else is returned as text.
    """

    def __init__(self, pool: ConnectionPool | None = None) -> None:
        self._pool = pool or ConnectionPool()

    async def call(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        client = await self._pool.get_client()
        kwargs: dict[str, Any] = {"headers": headers or {}}
        if isinstance(body, (dict, list)):
            kwargs["json"] = body
        elif body is not None:
            kwargs["content"] = str(body)

        logger.debug("API call: {} {}", method.upper(), url)
        try:
            response = await client.request(method.upper(), url, **kwargs)
        except httpx.HTTPError as exc:
            raise ExternalServiceError(
                f"[http] {type(exc).__name__} calling {url}: {exc}",
                service="http",
                hint="Check that the URL is reachable.",
            ) from exc

        raise_for_status(response.status_code, "http", f"{method.upper()} {url}", response.text)

        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.text

    async def close(self) -> None:
        await self._pool.close()
