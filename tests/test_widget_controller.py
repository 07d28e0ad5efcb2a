"""Tests for the server-side widget lifecycle."""

from __future__ import annotations

import asyncio
import base64
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from agentflow.models.widget import WidgetConfig
from agentflow.services.interaction_tracker import InteractionTracker
from agentflow.services.platforms import INSTAGRAM, TELEGRAM, WHATSAPP
from agentflow.services.widget_codec import encode_config
from agentflow.services.widget_controller import BUBBLE_ID, WidgetController, position_styles


def _encoded_tag(**fields) -> dict:
    fields.setdefault("api_key", "af_live_123")
    return {"data-agent-config": encode_config(WidgetConfig(**fields))}


class TestPositionStyles:
    @pytest.mark.parametrize(
        "position, expected",
        [
            ("bottom-right", {"bottom": "20px", "right": "20px"}),
            ("bottom-left", {"bottom": "20px", "left": "20px"}),
            ("top-right", {"top": "20px", "right": "20px"}),
            ("top-left", {"top": "20px", "left": "20px"}),
        ],
    )
    def test_each_corner(self, position, expected):
        assert position_styles(position) == expected

    @pytest.mark.parametrize("position", ["center", "", None, 42])
    def test_unknown_position_falls_back_to_bottom_right(self, position):
        assert position_styles(position) == {"bottom": "20px", "right": "20px"}


class TestMount:
    def test_renders_button_at_configured_corner(self):
        controller = WidgetController(WHATSAPP)
        widget = controller.mount([_encoded_tag(position="top-left", color="#123456")])

        assert widget is not None
        assert widget.element_id == "agentflow-whatsapp-widget"
        assert widget.styles["top"] == "20px"
        assert widget.styles["left"] == "20px"
        assert widget.styles["background"] == "#123456"

    def test_legacy_tag_with_unknown_position(self):
        controller = WidgetController(TELEGRAM)
        widget = controller.mount([{"data-agent-id": "k1", "data-position": "sideways"}])
        assert widget.styles["bottom"] == "20px"
        assert widget.styles["right"] == "20px"

    def test_corrupted_payload_renders_nothing(self):
        controller = WidgetController(WHATSAPP)
        assert controller.mount([{"data-agent-config": "not*base64!"}]) is None
        assert controller.widget is None
        assert controller.render_html() == ""
        assert "Invalid encoded configuration" in controller.error

    def test_deeply_nested_payload_renders_nothing(self):
        controller = WidgetController(WHATSAPP)
        payload = base64.b64encode(b"[" * 100000).decode("ascii")
        assert controller.mount([{"data-agent-config": payload}]) is None
        assert controller.widget is None
        assert "Invalid encoded configuration" in controller.error

    def test_missing_configuration_renders_nothing(self):
        controller = WidgetController(WHATSAPP)
        assert controller.mount([{"src": "analytics.js"}]) is None
        assert controller.error == "No widget configuration found"

    def test_instagram_button_uses_brand_gradient(self):
        widget = WidgetController(INSTAGRAM).mount([_encoded_tag(color="#000000")])
        assert widget.styles["background"].startswith("linear-gradient")


class TestWelcomeBubble:
    def test_showing_twice_yields_one_bubble(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([_encoded_tag(welcome_message="Hello!")])

        first = controller.show_welcome_bubble()
        second = controller.show_welcome_bubble()

        assert first is second
        assert controller.render_html().count(f'id="{BUBBLE_ID}"') == 1

    def test_bubble_sits_above_the_button(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([_encoded_tag(position="bottom-left")])
        bubble = controller.show_welcome_bubble()
        assert bubble.styles["bottom"] == "90px"
        assert bubble.styles["left"] == "20px"

    def test_no_bubble_without_widget(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([])
        assert controller.show_welcome_bubble() is None

    def test_message_is_escaped(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([_encoded_tag(welcome_message="<b>hi</b>")])
        controller.show_welcome_bubble()
        html = controller.render_html()
        assert "&lt;b&gt;hi&lt;/b&gt;" in html
        assert "<b>hi</b>" not in html

    def test_dismiss_allows_showing_again(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([_encoded_tag()])
        first = controller.show_welcome_bubble()
        controller.dismiss_welcome_bubble()
        assert controller.bubble is None
        assert controller.show_welcome_bubble() is not first

    @pytest.mark.asyncio
    async def test_scheduled_bubble_shows_then_auto_hides(self):
        controller = WidgetController(WHATSAPP)
        controller.mount([_encoded_tag()])

        task = asyncio.create_task(controller.schedule_welcome_bubble(delay=0.01, auto_hide=0.2))
        await asyncio.sleep(0.05)
        assert controller.bubble is not None
        await task
        assert controller.bubble is None


class TestClick:
    @pytest.mark.asyncio
    async def test_opens_deep_link_and_fires_tracker(self):
        opened = []
        tracker = MagicMock(spec=InteractionTracker)
        controller = WidgetController(WHATSAPP, tracker=tracker, opener=opened.append)
        controller.mount([_encoded_tag(whatsapp_number="+1 (555) 123-4567", welcome_message="Hi there")])

        url = await controller.click()

        assert url == "https://wa.me/15551234567?text=Hi%20there"
        assert opened == [url]
        tracker.fire.assert_called_once_with("af_live_123", "whatsapp")

    @pytest.mark.asyncio
    async def test_telegram_without_username_opens_generic_link(self):
        opened = []
        controller = WidgetController(TELEGRAM, opener=opened.append)
        controller.mount([_encoded_tag()])
        await controller.click()
        assert opened == ["https://t.me/"]

    @pytest.mark.asyncio
    async def test_failing_tracker_does_not_block_navigation(self):
        opened = []
        release = asyncio.Event()

        async def hanging_then_failing(request):
            await release.wait()
            raise httpx.ConnectError("network down", request=request)

        tracker = InteractionTracker(
            "https://app.agentflow.test/api/widget-interaction",
            transport=httpx.MockTransport(hanging_then_failing),
        )
        controller = WidgetController(WHATSAPP, tracker=tracker, opener=opened.append)
        controller.mount([_encoded_tag()])

        url = await asyncio.wait_for(controller.click(), timeout=1)

        assert opened == [url]
        assert tracker.pending == 1

        release.set()
        for _ in range(20):
            if tracker.pending == 0:
                break
            await asyncio.sleep(0.01)
        assert tracker.pending == 0

    @pytest.mark.asyncio
    async def test_rejecting_tracker_raises_nothing(self):
        opened = []
        tracker = InteractionTracker("https://app.agentflow.test/api/widget-interaction")
        tracker.send = AsyncMock(return_value=False)
        controller = WidgetController(WHATSAPP, tracker=tracker, opener=opened.append)
        controller.mount([_encoded_tag()])

        await controller.click()
        await asyncio.sleep(0.01)

        assert len(opened) == 1
        assert tracker.pending == 0

    @pytest.mark.asyncio
    async def test_click_without_widget_is_a_no_op(self):
        opener = MagicMock()
        controller = WidgetController(WHATSAPP, opener=opener)
        controller.mount([{"data-agent-config": "@@@"}])
        assert await controller.click() is None
        opener.assert_not_called()
