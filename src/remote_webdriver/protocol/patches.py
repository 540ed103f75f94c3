"""
Client-side fixes for server replies that generic decoding gets wrong.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from typing import Any, List, Optional

from remote_webdriver.core.errors import ReplyDecodeError
from remote_webdriver.core.models import Cookie

logger = logging.getLogger("remote_webdriver")


def _tolerant_number(value: Any) -> Optional[float]:
    """Accept JSON numbers and numeric strings, reject everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


def _expiry_field(entry: Any) -> Any:
    if not isinstance(entry, dict):
        return None
    for key, value in entry.items():
        if isinstance(key, str) and key.lower() == "expiry":
            return value
    return None


def parse_cookie_expiry(cookies: List[Cookie], raw_value: Any) -> None:
    """
    Fill ``Cookie.expiry`` from the raw ``value`` of a get-cookies reply.

    Entries are matched by position. A raw value that is not a list leaves every
    expiry untouched; an entry without a usable expiry leaves that cookie alone.
    """
    if not isinstance(raw_value, list):
        logger.debug("Cookie expiry re-parse skipped: reply value is not a list")
        return

    for cookie, entry in zip(cookies, raw_value):
        expiry = _tolerant_number(_expiry_field(entry))
        if expiry is None:
            continue
        cookie.expiry = int(math.floor(expiry))


class Base64Stream(io.RawIOBase):
    """
    Lazily decode a base64 string as a readable binary stream.

    The string is decoded in bounded chunks as it is read. The stream is single
    pass: it cannot be rewound or seeked.
    """

    CHUNK_SIZE = 16 * 1024

    def __init__(self, data: str):
        super().__init__()
        self._data = data
        self._pos = 0
        self._carry = ""
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        while not self._pending and self._pos < len(self._data):
            self._pending = self._decode_next_chunk()
        if not self._pending and self._carry:
            raise ReplyDecodeError(f"malformed base64 data: {len(self._carry)} trailing characters")

        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def _decode_next_chunk(self) -> bytes:
        end = min(self._pos + self.CHUNK_SIZE, len(self._data))
        text = self._carry + self._data[self._pos:end].replace("\r", "").replace("\n", "")
        self._pos = end

        usable = len(text) - len(text) % 4
        self._carry = text[usable:]
        try:
            return base64.b64decode(text[:usable], validate=True)
        except binascii.Error as e:
            raise ReplyDecodeError(f"malformed base64 data: {e}") from e
