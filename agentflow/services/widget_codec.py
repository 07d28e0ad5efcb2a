"""Widget configuration codec

An embed snippet carries its configuration one of two ways: individual
plaintext ``data-*`` attributes (legacy) or a single ``data-agent-config``
attribute holding base64-encoded JSON. Both resolve to one ``WidgetConfig``.

Base64 here is transport encoding only. Anyone who can view the host page can
read the payload, so it must never hold secrets.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, Literal, Mapping, Union
import base64
import binascii
import json
import logging
import re

from pydantic import ValidationError

from agentflow.models.widget import WidgetConfig, DEFAULT_WELCOME_MESSAGE
from agentflow.services.errors import ConfigurationMissing, ConfigurationDecodeError
from agentflow.services.platforms import PlatformAdapter

logger = logging.getLogger(__name__)

ENCODED_ATTRIBUTE = "data-agent-config"
AGENT_ID_ATTRIBUTE = "data-agent-id"
POSITION_ATTRIBUTE = "data-position"
COLOR_ATTRIBUTE = "data-color"
WELCOME_ATTRIBUTE = "data-welcome-msg"

_ATOB_WHITESPACE = re.compile(r"[\t\n\f\r ]")


@dataclass(frozen=True)
class LegacySource:
    fields: Dict[str, str] = field(default_factory=dict)
    kind: Literal["legacy"] = "legacy"


@dataclass(frozen=True)
class EncodedSource:
    payload: str
    kind: Literal["encoded"] = "encoded"


ConfigSource = Union[LegacySource, EncodedSource]


def encode_config(config: WidgetConfig) -> str:
    """Serialize a config to compact JSON and base64-encode it"""
    raw = json.dumps(config.to_payload(), separators=(",", ":"), ensure_ascii=False)
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def _atob(payload: str) -> bytes:
    """Base64 decode with the browser's atob rules: ASCII whitespace ignored, padding optional"""
    text = _ATOB_WHITESPACE.sub("", payload)
    if len(text) % 4 == 1:
        raise binascii.Error("Incorrect base64 length")
    return base64.b64decode(text + "=" * (-len(text) % 4), validate=True)


def decode_config(payload: str) -> WidgetConfig:
    """
    Decode a ``data-agent-config`` value

    Raises:
        ConfigurationDecodeError: payload is not base64, not a JSON object,
            or does not describe a valid config
    """
    try:
        raw = _atob(payload)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, ValueError, TypeError, AttributeError, RecursionError) as e:
        raise ConfigurationDecodeError(f"Invalid encoded configuration: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationDecodeError("Encoded configuration must be a JSON object")

    try:
        return WidgetConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationDecodeError(f"Invalid encoded configuration: {e}") from e


def locate_config_source(script_tags: Iterable[Mapping[str, str]]) -> ConfigSource:
    """
    Pick the configuration source from the page's script tags

    The most recently inserted tag carrying either attribute wins. Within that
    tag the encoded payload takes precedence over legacy attributes.

    Raises:
        ConfigurationMissing: no tag carries a widget configuration
    """
    candidates = [
        tag for tag in script_tags
        if ENCODED_ATTRIBUTE in tag or AGENT_ID_ATTRIBUTE in tag
    ]
    if not candidates:
        raise ConfigurationMissing("No widget configuration found")

    tag = candidates[-1]
    payload = tag.get(ENCODED_ATTRIBUTE)
    if payload:
        return EncodedSource(payload=payload)
    return LegacySource(fields=dict(tag))


def resolve_config(source: ConfigSource, adapter: PlatformAdapter) -> WidgetConfig:
    """Turn either source kind into the canonical config"""
    if source.kind == "encoded":
        return decode_config(source.payload)

    fields = source.fields
    agent_id = (fields.get(AGENT_ID_ATTRIBUTE) or "").strip()
    if not agent_id:
        raise ConfigurationMissing("Missing agent configuration")

    values = {
        "api_key": agent_id,
        "position": fields.get(POSITION_ATTRIBUTE) or "bottom-right",
        "color": fields.get(COLOR_ATTRIBUTE) or adapter.brand_color,
        "welcome_message": fields.get(WELCOME_ATTRIBUTE) or DEFAULT_WELCOME_MESSAGE,
    }
    identifier = fields.get(adapter.legacy_identifier_attribute)
    if identifier:
        values[adapter.identifier_field] = identifier

    try:
        return WidgetConfig(**values)
    except ValidationError as e:
        raise ConfigurationDecodeError(f"Invalid legacy configuration: {e}") from e


def load_config(script_tags: Iterable[Mapping[str, str]], adapter: PlatformAdapter) -> WidgetConfig:
    """Locate and decode in one step, as the browser script does on load"""
    return resolve_config(locate_config_source(script_tags), adapter)
