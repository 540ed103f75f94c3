"""
Remote WebDriver - An async client for the Selenium JSON wire protocol.

This package drives a browser hosted by a remote WebDriver server: it turns
method calls into HTTP commands and decodes the server's reply envelopes,
including its error envelope.

Usage:
    from remote_webdriver import By, WebDriver

    async with WebDriver({"browserName": "firefox"}) as wd:
        await wd.get("https://example.com")
        links = await wd.find_elements(By.TAG_NAME, "a")
        await links[0].click()

Cancellation:
    from remote_webdriver import CancellationToken

    wd.set_cancellation(CancellationToken.with_timeout(30))
    # Commands issued after the deadline raise CommandCancelledError and the
    # remote session is deleted.
"""
from remote_webdriver.webdriver import WebDriver, new_remote
from remote_webdriver.element import WebElement
from remote_webdriver.core.constants import DEFAULT_EXECUTOR, By, Keys, MouseButton
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
from remote_webdriver.protocol.cancellation import CancellationToken
from remote_webdriver.protocol.executor import CommandExecutor, ExecutorConfig, setup_logging
from remote_webdriver.protocol.patches import Base64Stream

__version__ = "0.1.0"

__all__ = [
    # Main API
    "WebDriver",
    "WebElement",
    "new_remote",
    # Transport
    "CommandExecutor",
    "ExecutorConfig",
    "CancellationToken",
    "setup_logging",
    # Models
    "Capabilities",
    "Cookie",
    "Size",
    "Point",
    "Status",
    "Build",
    "OS",
    "SessionInfo",
    "Base64Stream",
    # Constants
    "By",
    "Keys",
    "MouseButton",
    "DEFAULT_EXECUTOR",
    # Errors
    "WebDriverError",
    "TransportError",
    "CommandCancelledError",
    "ProtocolError",
    "ReplyDecodeError",
    # Version
    "__version__",
]
