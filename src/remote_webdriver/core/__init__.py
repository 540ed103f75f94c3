"""
Core module - Data models, errors and protocol constants.
"""
from remote_webdriver.core.models import (
    OS,
    Build,
    Capabilities,
    Cookie,
    Point,
    SessionInfo,
    Size,
    Status,
)
from remote_webdriver.core.errors import (
    CommandCancelledError,
    ProtocolError,
    ReplyDecodeError,
    TransportError,
    WebDriverError,
)
from remote_webdriver.core.constants import DEFAULT_EXECUTOR, JSON_MIME_TYPE, By, Keys, MouseButton

__all__ = [
    "OS",
    "Build",
    "Capabilities",
    "Cookie",
    "Point",
    "SessionInfo",
    "Size",
    "Status",
    "CommandCancelledError",
    "ProtocolError",
    "ReplyDecodeError",
    "TransportError",
    "WebDriverError",
    "DEFAULT_EXECUTOR",
    "JSON_MIME_TYPE",
    "By",
    "Keys",
    "MouseButton",
]
