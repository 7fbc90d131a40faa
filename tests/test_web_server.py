"""Tests for the HTTP surface."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiohttp import test_utils

from ledgerbot.query.models import MessageResult, QueryResponse, ResponseCategory
from ledgerbot.state import QueryCache
from ledgerbot.web_server import WebServer


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    mock.resolve_query = AsyncMock(
        return_value=QueryResponse(
            success=True,
            category=ResponseCategory.GENERAL,
            data=MessageResult(intent="help"),
            human_text="How can I help?",
            elapsed_ms=3.5,
        )
    )
    mock.cache = QueryCache()
    return mock


@pytest.mark.asyncio
async def test_health(orchestrator):
    async with test_utils.TestClient(test_utils.TestServer(WebServer(orchestrator).app)) as client:
        for path in ("/", "/health"):
            response = await client.get(path)
            assert response.status == 200
            assert await response.json() == {"status": "healthy", "service": "ledgerbot"}


@pytest.mark.asyncio
async def test_query(orchestrator):
    async with test_utils.TestClient(test_utils.TestServer(WebServer(orchestrator).app)) as client:
        response = await client.post(
            "/api/query", json={"text": " help ", "tenant_id": "tenant-1", "channel_id": "C1"}
        )

        assert response.status == 200
        body = await response.json()
        assert body["human_text"] == "How can I help?"
        assert body["category"] == "general"
        assert body["data"] == {"kind": "message", "intent": "help", "detail": {}}

    request = orchestrator.resolve_query.call_args[0][0]
    assert request.text == "help"
    assert request.tenant_id == "tenant-1"
    assert request.conversation_key == "C1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "kwargs,error",
    [
        ({"data": "not json"}, "Request body must be JSON"),
        ({"json": ["help"]}, "Request body must be a JSON object"),
        ({"json": {"text": "help"}}, "Both text and tenant_id are required"),
        ({"json": {"text": "  ", "tenant_id": "tenant-1"}}, "Both text and tenant_id are required"),
    ],
)
async def test_query_rejects_bad_requests(orchestrator, kwargs, error):
    async with test_utils.TestClient(test_utils.TestServer(WebServer(orchestrator).app)) as client:
        response = await client.post("/api/query", **kwargs)

        assert response.status == 400
        assert (await response.json())["error"] == error
    orchestrator.resolve_query.assert_not_called()


@pytest.mark.asyncio
async def test_cache_clear(orchestrator):
    orchestrator.cache.put("tenant-1", "bank balance", None, "a")
    orchestrator.cache.put("tenant-1", "total sales", None, "b")
    orchestrator.cache.put("tenant-2", "bank balance", None, "c")

    async with test_utils.TestClient(test_utils.TestServer(WebServer(orchestrator).app)) as client:
        response = await client.post("/api/cache/clear", json={"tenant_id": "tenant-1"})
        assert await response.json() == {"status": "cleared", "removed": 2}
        assert orchestrator.cache.get("tenant-2", "bank balance") is not None

        response = await client.post("/api/cache/clear")
        assert await response.json() == {"status": "cleared", "removed": 1}
        assert len(orchestrator.cache) == 0
