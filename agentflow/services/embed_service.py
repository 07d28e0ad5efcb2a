"""Embed snippet generation for agent widgets"""
from html import escape
from typing import Dict

from agentflow.models.widget import AgentRecord, EmbedCode, WidgetConfig, WidgetPosition
from agentflow.services.errors import ConfigurationError
from agentflow.services.platforms import PlatformAdapter
from agentflow.services.widget_codec import (
    AGENT_ID_ATTRIBUTE,
    COLOR_ATTRIBUTE,
    ENCODED_ATTRIBUTE,
    POSITION_ATTRIBUTE,
    WELCOME_ATTRIBUTE,
    encode_config,
)


def script_url(script_base_url: str, adapter: PlatformAdapter) -> str:
    return f"{script_base_url.rstrip('/')}/widget/{adapter.script_name}"


def build_widget_config(agent: AgentRecord, adapter: PlatformAdapter) -> WidgetConfig:
    """
    Derive the widget config for one platform from an agent record

    Raises:
        ConfigurationError: agent has no embed api key yet
    """
    if not agent.api_key or not agent.api_key.strip():
        raise ConfigurationError()

    values = {
        "api_key": agent.api_key,
        "position": WidgetPosition.coerce(agent.widget_position),
        "color": agent.widget_color or adapter.brand_color,
        "welcome_message": agent.welcome_message,
    }
    identifier = getattr(agent, adapter.identifier_field, None)
    if identifier:
        values[adapter.identifier_field] = identifier
    if adapter.name == "whatsapp":
        values["whatsapp_mode"] = agent.whatsapp_mode or "web"
    if adapter.name == "discord" and agent.discord_channel_id:
        values["discord_channel_id"] = agent.discord_channel_id

    return WidgetConfig(**values)


def _script_tag(src: str, attributes: Dict[str, str]) -> str:
    rendered = "".join(
        f' {name}="{escape(value, quote=True)}"' for name, value in attributes.items()
    )
    return f'<script async src="{escape(src, quote=True)}"{rendered}></script>'


def generate_embed_code(agent: AgentRecord, adapter: PlatformAdapter, script_base_url: str) -> EmbedCode:
    """
    Produce both embed snippet variants for an agent

    The legacy snippet carries one plaintext attribute per field. The encoded
    snippet carries the whole config as base64 JSON in ``data-agent-config``;
    it is obfuscated, not encrypted.

    Args:
        agent: Agent record from the agent store
        adapter: Target messaging platform
        script_base_url: Origin serving ``/widget/<platform>-widget.js``

    Returns:
        EmbedCode with ``legacy_embed_code`` and ``secure_embed_code``

    Raises:
        ConfigurationError: agent lacks an api key
    """
    config = build_widget_config(agent, adapter)
    src = script_url(script_base_url, adapter)

    legacy_attributes = {
        AGENT_ID_ATTRIBUTE: config.api_key,
        POSITION_ATTRIBUTE: config.position.value,
        COLOR_ATTRIBUTE: config.color or adapter.brand_color,
        WELCOME_ATTRIBUTE: config.welcome_message,
    }
    identifier = getattr(config, adapter.identifier_field, None)
    if identifier:
        legacy_attributes[adapter.legacy_identifier_attribute] = identifier

    legacy_embed_code = (
        f"<!-- AgentFlow {adapter.label} Widget (Legacy) -->\n"
        f"{_script_tag(src, legacy_attributes)}\n"
        "<!-- End AgentFlow Widget -->"
    )
    secure_embed_code = (
        f"<!-- AgentFlow {adapter.label} Widget -->\n"
        f"{_script_tag(src, {ENCODED_ATTRIBUTE: encode_config(config)})}\n"
        "<!-- End AgentFlow Widget -->"
    )

    return EmbedCode(
        legacy_embed_code=legacy_embed_code,
        secure_embed_code=secure_embed_code,
    )
