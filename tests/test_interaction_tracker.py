"""Tests for the fire-and-forget interaction tracker."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from agentflow.services.interaction_tracker import InteractionTracker

ENDPOINT = "https://app.agentflow.test/api/widget-interaction"


class TestSend:
    @pytest.mark.asyncio
    async def test_posts_beacon_body(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(202, json={"success": True})

        tracker = InteractionTracker(ENDPOINT, transport=httpx.MockTransport(handler))
        assert await tracker.send("af_live_123", "telegram") is True

        assert captured["url"] == ENDPOINT
        body = captured["body"]
        assert body["apiKey"] == "af_live_123"
        assert body["platform"] == "telegram"
        assert body["action"] == "widget_click"
        assert "T" in body["timestamp"]

    @pytest.mark.asyncio
    async def test_non_2xx_is_swallowed(self):
        tracker = InteractionTracker(
            ENDPOINT, transport=httpx.MockTransport(lambda request: httpx.Response(500))
        )
        assert await tracker.send("af_live_123", "whatsapp") is False

    @pytest.mark.asyncio
    async def test_network_error_is_swallowed(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        tracker = InteractionTracker(ENDPOINT, transport=httpx.MockTransport(handler))
        assert await tracker.send("af_live_123", "whatsapp") is False

    @pytest.mark.asyncio
    async def test_never_retries(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        tracker = InteractionTracker(ENDPOINT, transport=httpx.MockTransport(handler))
        await tracker.send("af_live_123", "whatsapp")
        assert len(calls) == 1


class TestFire:
    @pytest.mark.asyncio
    async def test_returns_before_request_completes(self):
        release = asyncio.Event()

        async def handler(request):
            await release.wait()
            return httpx.Response(202)

        tracker = InteractionTracker(ENDPOINT, transport=httpx.MockTransport(handler))
        task = tracker.fire("af_live_123", "instagram")

        assert not task.done()
        assert tracker.pending == 1

        release.set()
        assert await task is True
        await asyncio.sleep(0)
        assert tracker.pending == 0
