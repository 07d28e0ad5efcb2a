"""Server-side widget lifecycle

Mirrors what the served platform script does in the browser so the dashboard
can preview a snippet and site owners can diagnose one. A controller belongs
to a single page render and owns all of its state.
"""
from dataclasses import dataclass
from html import escape
from typing import Callable, Dict, Iterable, Mapping, Optional
import asyncio
import logging

from agentflow.models.widget import WidgetConfig, WidgetPosition
from agentflow.services.errors import WidgetError
from agentflow.services.interaction_tracker import InteractionTracker
from agentflow.services.platforms import PlatformAdapter
from agentflow.services.widget_codec import load_config

logger = logging.getLogger(__name__)

WELCOME_DELAY_SECONDS = 2.0
WELCOME_AUTO_HIDE_SECONDS = 8.0
EDGE_OFFSET = "20px"
BUBBLE_OFFSET = "90px"

BUTTON_ID = "agentflow-{platform}-widget"
BUBBLE_ID = "agentflow-welcome-message"
STYLE_ID = "agentflow-animations"

ANIMATION_CSS = (
    "@keyframes slideUp { from { transform: translateY(20px); opacity: 0; } "
    "to { transform: translateY(0); opacity: 1; } }"
)


def position_styles(position: object, vertical_offset: str = EDGE_OFFSET) -> Dict[str, str]:
    """CSS offsets pinning an element to the configured corner"""
    corner = WidgetPosition.coerce(position).value
    vertical, horizontal = corner.split("-")
    return {vertical: vertical_offset, horizontal: EDGE_OFFSET}


def _css(styles: Mapping[str, str]) -> str:
    return "; ".join(f"{key}: {value}" for key, value in styles.items())


@dataclass
class RenderedWidget:
    """Launcher button as rendered for one config"""
    element_id: str
    config: WidgetConfig
    styles: Dict[str, str]
    icon_svg: str


@dataclass
class WelcomeBubble:
    element_id: str
    message: str
    styles: Dict[str, str]


class WidgetController:
    """Owns the launcher, the welcome bubble and the style singleton for one page"""

    def __init__(
        self,
        adapter: PlatformAdapter,
        tracker: Optional[InteractionTracker] = None,
        opener: Optional[Callable[[str], None]] = None,
    ):
        self.adapter = adapter
        self.tracker = tracker
        self.opener = opener
        self.widget: Optional[RenderedWidget] = None
        self.bubble: Optional[WelcomeBubble] = None
        self.style_injected = False
        self.error: Optional[str] = None

    @property
    def config(self) -> Optional[WidgetConfig]:
        return self.widget.config if self.widget else None

    def mount(self, script_tags: Iterable[Mapping[str, str]]) -> Optional[RenderedWidget]:
        """
        Locate and decode the config, then render the launcher

        Any configuration failure leaves the page without a widget.
        """
        try:
            config = load_config(script_tags, self.adapter)
        except WidgetError as e:
            self.error = str(e)
            logger.error(f"AgentFlow {self.adapter.label} widget not rendered: {e}")
            return None

        styles = {
            "position": "fixed",
            **position_styles(config.position),
            "width": "60px",
            "height": "60px",
            "background": self.adapter.background_for(config.color),
            "border-radius": "50%",
            "box-shadow": "0 4px 12px rgba(0,0,0,0.15)",
            "cursor": "pointer",
            "z-index": "1000",
            "display": "flex",
            "align-items": "center",
            "justify-content": "center",
        }
        self.widget = RenderedWidget(
            element_id=BUTTON_ID.format(platform=self.adapter.name),
            config=config,
            styles=styles,
            icon_svg=self.adapter.icon_svg,
        )
        return self.widget

    def show_welcome_bubble(self) -> Optional[WelcomeBubble]:
        """Render the welcome bubble; a no-op while one is already shown"""
        if self.widget is None:
            return None
        if self.bubble is not None:
            return self.bubble

        self.style_injected = True
        self.bubble = WelcomeBubble(
            element_id=BUBBLE_ID,
            message=self.widget.config.welcome_message,
            styles={
                "position": "fixed",
                **position_styles(self.widget.config.position, BUBBLE_OFFSET),
                "max-width": "280px",
                "z-index": "999",
            },
        )
        return self.bubble

    def dismiss_welcome_bubble(self) -> None:
        self.bubble = None

    async def schedule_welcome_bubble(
        self,
        delay: float = WELCOME_DELAY_SECONDS,
        auto_hide: float = WELCOME_AUTO_HIDE_SECONDS,
    ) -> None:
        """Show the bubble after ``delay`` and remove it after ``auto_hide``"""
        await asyncio.sleep(delay)
        bubble = self.show_welcome_bubble()
        if bubble is None:
            return
        await asyncio.sleep(auto_hide)
        if self.bubble is bubble:
            self.bubble = None

    def deep_link(self) -> Optional[str]:
        if self.widget is None:
            return None
        return self.adapter.build_deep_link(self.widget.config)

    async def click(self) -> Optional[str]:
        """
        Hand off to the messaging platform

        The opener runs before anything is awaited; the beacon is detached so
        neither its latency nor its failure can reach the navigation.
        """
        url = self.deep_link()
        if url is None:
            return None

        if self.opener is not None:
            self.opener(url)
        if self.tracker is not None:
            self.tracker.fire(self.widget.config.api_key, self.adapter.name)
        return url

    def render_html(self) -> str:
        """Markup of the widget as the browser script would insert it"""
        if self.widget is None:
            return ""

        parts = []
        if self.style_injected:
            parts.append(f'<style id="{STYLE_ID}">{ANIMATION_CSS}</style>')
        parts.append(
            f'<div id="{self.widget.element_id}">'
            f'<a class="agentflow-chat-button" href="{escape(self.deep_link(), quote=True)}" '
            f'target="_blank" rel="noopener" title="Chat on {escape(self.adapter.label)}" '
            f'style="{escape(_css(self.widget.styles), quote=True)}">'
            f"{self.widget.icon_svg}</a></div>"
        )
        if self.bubble is not None:
            parts.append(
                f'<div id="{self.bubble.element_id}" '
                f'style="{escape(_css(self.bubble.styles), quote=True)}">'
                f"{escape(self.bubble.message)}</div>"
            )
        return "\n".join(parts)
