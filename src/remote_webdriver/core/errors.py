"""
Remote WebDriver Error Taxonomy - Exception classes for wire protocol commands.

Every failure of a single command surfaces as one of these exceptions. None of
them is retried by the client and none of them invalidates the process; the
caller decides whether to keep using the session or tear it down.
"""
from typing import Optional


class WebDriverError(Exception):
    """Base exception for all remote WebDriver errors."""

    def __init__(self, message: str, session_id: Optional[str] = None,
                 command: Optional[str] = None, **context):
        super().__init__(message)
        self.message = message
        self.session_id = session_id
        self.command = command
        self.context = context

    def __str__(self):
        parts = [self.message]
        if self.session_id:
            parts.append(f"session_id={self.session_id}")
        if self.command:
            parts.append(f"command={self.command}")
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"context=({context_str})")
        return " | ".join(parts)


class TransportError(WebDriverError):
    """Raised on connection, TLS, timeout or redirect-limit failures."""

    def __init__(self, message: str, timeout: Optional[float] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class CommandCancelledError(WebDriverError):
    """Raised when the driver's cancellation token fired around a command."""

    def __init__(self, message: str = "cancelled", reason: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason


class ProtocolError(WebDriverError):
    """
    Raised when the server replies with a non-success envelope.

    ``message`` is the decoded ``<category> - "<backend message>"`` text.
    """

    def __init__(self, message: str, status: Optional[int] = None,
                 category: Optional[str] = None, backend_message: str = "",
                 raw_message: Optional[str] = None,
                 http_status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
        self.category = category
        self.backend_message = backend_message
        self.raw_message = raw_message
        self.http_status = http_status


class ReplyDecodeError(WebDriverError):
    """Raised when a reply is not the JSON (or shape) the command expected."""

    def __init__(self, message: str, http_status: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.http_status = http_status
