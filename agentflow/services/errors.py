"""Widget configuration errors"""


class WidgetError(Exception):
    """Base class for widget configuration and delivery failures"""


class ConfigurationError(WidgetError):
    """Agent record cannot produce an embed snippet"""

    def __init__(self, message: str = "Cannot generate embed code until the agent is fully configured"):
        super().__init__(message)


class ConfigurationMissing(WidgetError):
    """No script tag carries a recognizable widget configuration"""


class ConfigurationDecodeError(WidgetError):
    """Encoded widget configuration is not valid base64 JSON"""


class UnknownPlatformError(WidgetError):
    """No widget adapter registered for the requested platform"""

    def __init__(self, platform: str):
        self.platform = platform
        super().__init__(f"Unsupported widget platform: {platform}")
