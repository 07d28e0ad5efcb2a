"""Widget-related Pydantic models"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from enum import Enum


DEFAULT_WELCOME_MESSAGE = "Hi! How can I help you today?"


class WidgetPosition(str, Enum):
    """Screen corner the launcher button is pinned to"""
    BOTTOM_RIGHT = "bottom-right"
    BOTTOM_LEFT = "bottom-left"
    TOP_RIGHT = "top-right"
    TOP_LEFT = "top-left"

    @classmethod
    def coerce(cls, value: Any) -> "WidgetPosition":
        """Map any value onto a known corner, bottom-right when unrecognized"""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.BOTTOM_RIGHT


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WidgetConfig(CamelModel):
    """Canonical widget configuration decoded from an embed snippet"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    api_key: str = Field(..., min_length=1, description="Per-agent embed identifier")
    position: WidgetPosition = WidgetPosition.BOTTOM_RIGHT
    color: Optional[str] = None
    welcome_message: str = DEFAULT_WELCOME_MESSAGE

    # Platform routing targets
    whatsapp_number: Optional[str] = None
    whatsapp_mode: Optional[str] = None
    telegram_username: Optional[str] = None
    facebook_page_id: Optional[str] = None
    instagram_business_id: Optional[str] = None
    discord_guild_id: Optional[str] = None
    discord_channel_id: Optional[str] = None

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("apiKey must not be blank")
        return v

    @field_validator("position", mode="before")
    @classmethod
    def coerce_position(cls, v: Any) -> WidgetPosition:
        return WidgetPosition.coerce(v)

    @field_validator("welcome_message", mode="before")
    @classmethod
    def default_welcome_message(cls, v: Any) -> str:
        if not isinstance(v, str) or not v.strip():
            return DEFAULT_WELCOME_MESSAGE
        return v

    @field_validator("color", mode="before")
    @classmethod
    def drop_non_string_color(cls, v: Any) -> Optional[str]:
        return v if isinstance(v, str) and v else None

    @field_validator(
        "whatsapp_number",
        "telegram_username",
        "facebook_page_id",
        "instagram_business_id",
        "discord_guild_id",
        "discord_channel_id",
        mode="before",
    )
    @classmethod
    def stringify_identifier(cls, v: Any) -> Optional[str]:
        # Phone numbers and page ids often arrive as JSON numbers
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, float) and v.is_integer():
            return str(int(v))
        if isinstance(v, (int, float)):
            return str(v)
        return v

    def to_payload(self) -> Dict[str, Any]:
        """JSON shape embedded in the snippet"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class AgentRecord(BaseModel):
    """Slice of the agents table the widget layer reads"""
    model_config = ConfigDict(extra="ignore")

    id: Any
    name: str = "Assistant"
    status: str = "active"
    api_key: Optional[str] = None
    widget_position: Optional[str] = "bottom-right"
    widget_color: Optional[str] = None
    welcome_message: Optional[str] = DEFAULT_WELCOME_MESSAGE
    whatsapp_number: Optional[str] = None
    whatsapp_mode: Optional[str] = "web"
    telegram_username: Optional[str] = None
    facebook_page_id: Optional[str] = None
    instagram_business_id: Optional[str] = None
    discord_guild_id: Optional[str] = None
    discord_channel_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class EmbedCode(BaseModel):
    """Both embed snippet variants for one agent"""
    legacy_embed_code: str
    secure_embed_code: str


class EmbedAgentSummary(CamelModel):
    """Agent fields echoed back alongside the embed code"""
    id: Any
    name: str
    widget_position: str
    widget_color: Optional[str] = None
    welcome_message: Optional[str] = None


class EmbedCodeResponse(CamelModel):
    """Embed code endpoint response"""
    platform: str
    script_url: str
    secure_embed_code: str
    legacy_embed_code: str
    agent: EmbedAgentSummary


class PublicWidgetConfig(CamelModel):
    """Widget configuration exposed to embedded scripts (PUBLIC)"""
    welcome_message: Optional[str] = None
    widget_color: Optional[str] = None
    widget_position: str = "bottom-right"
    whatsapp_number: Optional[str] = None
    whatsapp_mode: Optional[str] = None


class WidgetInteractionRequest(CamelModel):
    """Click beacon posted by widget scripts"""
    api_key: str = Field(..., min_length=1)
    platform: str = Field(..., min_length=1, max_length=32)
    action: str = Field("widget_click", max_length=64)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class WidgetInteractionResponse(BaseModel):
    """Beacon acknowledgement"""
    success: bool = True


class WidgetDiagnosticsRequest(BaseModel):
    """One script tag's attributes pasted by a site owner"""
    platform: str = "whatsapp"
    attributes: Dict[str, str] = Field(default_factory=dict)


class WidgetDiagnosticsResponse(CamelModel):
    """Outcome of decoding a snippet the way the browser script would"""
    valid: bool
    source: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    deep_link: Optional[str] = None
    error: Optional[str] = None


class WidgetPreviewClickResponse(CamelModel):
    """Result of clicking the launcher in the dashboard preview"""
    platform: str
    deep_link: str
