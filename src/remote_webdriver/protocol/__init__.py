"""
Protocol Module - Wire protocol executor, reply decoding and session management.
"""
from remote_webdriver.protocol.cancellation import CancellationToken
from remote_webdriver.protocol.executor import CommandExecutor, ExecutorConfig, setup_logging
from remote_webdriver.protocol.patches import Base64Stream, parse_cookie_expiry
from remote_webdriver.protocol.reply import (
    Reply,
    ReplyFailure,
    decode_failure,
    decode_reply,
    extract_backend_message,
    extract_message,
)
from remote_webdriver.protocol.session import Session
from remote_webdriver.protocol.status import ERROR_CODES, SUCCESS, error_category

__all__ = [
    "CancellationToken",
    "CommandExecutor",
    "ExecutorConfig",
    "setup_logging",
    "Base64Stream",
    "parse_cookie_expiry",
    "Reply",
    "ReplyFailure",
    "decode_failure",
    "decode_reply",
    "extract_backend_message",
    "extract_message",
    "Session",
    "ERROR_CODES",
    "SUCCESS",
    "error_category",
]
