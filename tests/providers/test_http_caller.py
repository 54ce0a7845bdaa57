"""Tests for the pooled httpx API caller."""

from __future__ import annotations

import json

import httpx
import pytest

from promptweave.errors import ExternalServiceError
from promptweave.http import ConnectionPool, HttpApiCaller


def _caller(handler) -> HttpApiCaller:
    pool = ConnectionPool()
    pool._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpApiCaller(pool)


class TestHttpApiCaller:
    @pytest.mark.asyncio
    async def test_json_body_and_response(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["auth"] = request.headers.get("authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": 7})

        caller = _caller(handler)
        result = await caller.call("post", "https://api.test/items", {"Authorization": "Bearer t"}, {"a": 1})
        await caller.close()

        assert result == {"id": 7}
        assert seen == {"method": "POST", "auth": "Bearer t", "body": {"a": 1}}

    @pytest.mark.asyncio
    async def test_text_response(self):
        caller = _caller(lambda request: httpx.Response(200, text="plain"))
        assert await caller.call("GET", "https://api.test/ping") == "plain"
        await caller.close()

    @pytest.mark.asyncio
    async def test_error_status_raises(self):
        caller = _caller(lambda request: httpx.Response(404, text="gone"))

        with pytest.raises(ExternalServiceError) as exc_info:
            await caller.call("GET", "https://api.test/missing")
        await caller.close()

        assert exc_info.value.status_code == 404
        assert "gone" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        caller = _caller(handler)
        with pytest.raises(ExternalServiceError, match="ConnectError"):
            await caller.call("GET", "https://api.test/down")
        await caller.close()


class TestConnectionPool:
    @pytest.mark.asyncio
    async def test_client_reused_until_closed(self):
        pool = ConnectionPool(max_connections=2, max_keepalive=1, timeout=5.0)
        first = await pool.get_client()
        assert await pool.get_client() is first

        await pool.close()
        second = await pool.get_client()
        assert second is not first
        await pool.close()
