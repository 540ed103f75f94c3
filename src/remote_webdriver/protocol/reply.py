"""
Reply envelope decoding.

Every server reply is wrapped in ``{"sessionId": ..., "status": ..., "value": ...}``.
A failing reply carries ``{"message": ...}`` in its value, and some servers put
another JSON document, ``{"errorMessage": ...}``, inside that message. Each of
the two nested decodes is optional and tried independently.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional, Union

from remote_webdriver.core.errors import ProtocolError, ReplyDecodeError
from remote_webdriver.protocol.status import SUCCESS, error_category


@dataclass
class Reply:
    """A decoded reply envelope."""

    session_id: str
    status: int
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS


@dataclass
class ReplyFailure:
    """The error half of a decoded envelope."""

    status: int
    category: str
    backend_message: str = ""
    raw_message: Optional[str] = None

    @property
    def message(self) -> str:
        return f"{self.category} - {json.dumps(self.backend_message, ensure_ascii=False)}"

    def to_error(self, **kwargs) -> ProtocolError:
        return ProtocolError(
            self.message,
            status=self.status,
            category=self.category,
            backend_message=self.backend_message,
            raw_message=self.raw_message,
            **kwargs,
        )


def decode_reply(body: Union[bytes, str]) -> Reply:
    """
    Parse a reply envelope.

    Raises:
        ReplyDecodeError: If the body is not JSON or not a JSON object.
    """
    try:
        data = json.loads(body)
    except (ValueError, TypeError) as e:
        raise ReplyDecodeError(f"malformed reply: {e}") from e

    if not isinstance(data, dict):
        raise ReplyDecodeError(f"malformed reply: expected an object, got {type(data).__name__}")

    status = data.get("status") or SUCCESS
    if not isinstance(status, int) or isinstance(status, bool):
        raise ReplyDecodeError(f"malformed reply: non-integer status {status!r}")

    session_id = data.get("sessionId")
    return Reply(
        session_id=session_id if isinstance(session_id, str) else "",
        status=status,
        value=data.get("value"),
    )


def extract_message(value: Any) -> Optional[str]:
    """Return ``value.message`` when the failure value has that shape."""
    if isinstance(value, dict):
        message = value.get("message")
        if isinstance(message, str):
            return message
    return None


def extract_backend_message(message: str) -> Optional[str]:
    """Return ``errorMessage`` from a message that is itself a JSON document."""
    try:
        inner = json.loads(message)
    except ValueError:
        return None
    if isinstance(inner, dict):
        backend = inner.get("errorMessage")
        if isinstance(backend, str):
            return backend
    return None


def decode_failure(reply: Reply) -> ReplyFailure:
    """Describe a failing envelope; never raises."""
    raw_message = extract_message(reply.value)
    backend_message = None
    if raw_message:
        backend_message = extract_backend_message(raw_message)

    return ReplyFailure(
        status=reply.status,
        category=error_category(reply.status),
        backend_message=backend_message or "",
        raw_message=raw_message,
    )
