"""Messaging platform adapters for the widget launcher

Every platform widget shares the same lifecycle; an adapter only carries the
branding and the deep-link rules for its platform.
"""
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import quote
import re

from agentflow.models.widget import WidgetConfig
from agentflow.services.errors import UnknownPlatformError
from agentflow.services import icons

DEFAULT_CLICK_MESSAGE = "Hi! I need help."

# Same unescaped set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


@dataclass(frozen=True)
class PlatformAdapter:
    """Branding and deep-link rules for one messaging platform"""
    name: str
    label: str
    brand_color: str
    icon_path: str
    identifier_field: str
    legacy_identifier_attribute: str
    link_base: str
    fallback_url: str
    message_param: Optional[str] = None
    fallback_message_param: Optional[str] = None
    digits_only: bool = False
    button_background: Optional[str] = None

    @property
    def script_name(self) -> str:
        return f"{self.name}-widget.js"

    @property
    def icon_svg(self) -> str:
        return icons.icon_svg(self.icon_path)

    def background_for(self, color: Optional[str]) -> str:
        """CSS background of the launcher button"""
        if self.button_background:
            return self.button_background
        return color or self.brand_color

    def identifier(self, config: WidgetConfig) -> Optional[str]:
        """Platform routing target from the config, normalized"""
        value = getattr(config, self.identifier_field, None)
        if not value:
            return None
        value = str(value).strip()
        if self.digits_only:
            value = re.sub(r"[^0-9]", "", value)
        return value or None

    def build_deep_link(self, config: WidgetConfig) -> str:
        """Universal link that opens the platform chat with this agent"""
        message = encode_uri_component(config.welcome_message or DEFAULT_CLICK_MESSAGE)
        target = self.identifier(config)

        if target:
            url = f"{self.link_base}{encode_uri_component(target)}"
            if self.message_param:
                url = f"{url}?{self.message_param}={message}"
            return url

        if self.fallback_message_param:
            return f"{self.fallback_url}?{self.fallback_message_param}={message}"
        return self.fallback_url

    def to_script_options(self) -> Dict[str, object]:
        """Adapter fields the browser script needs, JSON-serializable"""
        return {
            "name": self.name,
            "label": self.label,
            "brandColor": self.brand_color,
            "buttonBackground": self.button_background,
            "iconSvg": self.icon_svg,
            "identifierField": self.identifier_field,
            "identifierAttribute": self.legacy_identifier_attribute,
            "linkBase": self.link_base,
            "messageParam": self.message_param,
            "fallbackUrl": self.fallback_url,
            "fallbackMessageParam": self.fallback_message_param,
            "digitsOnly": self.digits_only,
            "defaultMessage": DEFAULT_CLICK_MESSAGE,
        }


WHATSAPP = PlatformAdapter(
    name="whatsapp",
    label="WhatsApp",
    brand_color="#25D366",
    icon_path=icons.WHATSAPP_ICON_PATH,
    identifier_field="whatsapp_number",
    legacy_identifier_attribute="data-whatsapp-number",
    link_base="https://wa.me/",
    message_param="text",
    fallback_url="https://web.whatsapp.com/send",
    fallback_message_param="text",
    digits_only=True,
)

TELEGRAM = PlatformAdapter(
    name="telegram",
    label="Telegram",
    brand_color="#0088cc",
    icon_path=icons.TELEGRAM_ICON_PATH,
    identifier_field="telegram_username",
    legacy_identifier_attribute="data-telegram-username",
    link_base="https://t.me/",
    message_param="start",
    fallback_url="https://t.me/",
)

FACEBOOK_MESSENGER = PlatformAdapter(
    name="facebook-messenger",
    label="Messenger",
    brand_color="#0084FF",
    icon_path=icons.FACEBOOK_MESSENGER_ICON_PATH,
    identifier_field="facebook_page_id",
    legacy_identifier_attribute="data-facebook-page-id",
    link_base="https://m.me/",
    fallback_url="https://www.messenger.com/",
)

INSTAGRAM = PlatformAdapter(
    name="instagram",
    label="Instagram",
    brand_color="#E4405F",
    icon_path=icons.INSTAGRAM_ICON_PATH,
    identifier_field="instagram_business_id",
    legacy_identifier_attribute="data-instagram-business-id",
    link_base="https://ig.me/m/",
    fallback_url="https://www.instagram.com/",
    button_background=(
        "linear-gradient(45deg, #f09433 0%, #e6683c 25%, #dc2743 50%, "
        "#cc2366 75%, #bc1888 100%)"
    ),
)

DISCORD = PlatformAdapter(
    name="discord",
    label="Discord",
    brand_color="#5865F2",
    icon_path=icons.DISCORD_ICON_PATH,
    identifier_field="discord_guild_id",
    legacy_identifier_attribute="data-discord-guild-id",
    link_base="https://discord.gg/",
    fallback_url="https://discord.com/",
)

PLATFORMS: Dict[str, PlatformAdapter] = {
    adapter.name: adapter
    for adapter in (WHATSAPP, TELEGRAM, FACEBOOK_MESSENGER, INSTAGRAM, DISCORD)
}

_ALIASES = {
    "messenger": "facebook-messenger",
    "facebook": "facebook-messenger",
    "fb-messenger": "facebook-messenger",
    "ig": "instagram",
    "wa": "whatsapp",
    # /widget/agentflow-widget.js predates per-platform scripts
    "agentflow": "whatsapp",
}


def get_platform(name: Optional[str]) -> PlatformAdapter:
    """Look up an adapter by platform name or alias"""
    key = (name or "").strip().lower()
    key = _ALIASES.get(key, key)
    adapter = PLATFORMS.get(key)
    if adapter is None:
        raise UnknownPlatformError(name or "")
    return adapter
