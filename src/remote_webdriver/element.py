"""
Element handles - Opaque references to DOM nodes living in a remote session.

On the wire an element is ``{"ELEMENT": "<id>"}``. A ``WebElement`` keeps only
that id and a weak reference to its session; every element command is sent
through a path template that carries both ids, and nothing about the DOM node
is cached client-side.
"""
from __future__ import annotations

import weakref
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from remote_webdriver.core.constants import By
from remote_webdriver.core.errors import ReplyDecodeError, WebDriverError
from remote_webdriver.core.models import Point, Size

if TYPE_CHECKING:
    from remote_webdriver.protocol.reply import Reply
    from remote_webdriver.protocol.session import Session

ELEMENT_KEY = "ELEMENT"

FIND_ELEMENT = "/session/{session_id}/element"
FIND_CHILD_ELEMENT = "/session/{session_id}/element/{element_id}/element"


# =============================================================================
# Reply value helpers
# =============================================================================

def read_value(reply: Optional["Reply"], what: str) -> Any:
    if reply is None:
        raise ReplyDecodeError(f"{what}: reply had no body")
    return reply.value


def expect_str(value: Any, what: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ReplyDecodeError(f"{what}: expected a string, got {type(value).__name__}")
    return value


def expect_bool(value: Any, what: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ReplyDecodeError(f"{what}: expected a boolean, got {type(value).__name__}")
    return value


def expect_str_list(value: Any, what: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ReplyDecodeError(f"{what}: expected a list of strings")
    return value


def expect_dict(value: Any, what: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ReplyDecodeError(f"{what}: expected an object, got {type(value).__name__}")
    return value


def expect_list(value: Any, what: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ReplyDecodeError(f"{what}: expected a list, got {type(value).__name__}")
    return value


# =============================================================================
# Element reference encoding
# =============================================================================

def is_element_reference(value: Any) -> bool:
    return (
        isinstance(value, dict)
        and len(value) == 1
        and isinstance(value.get(ELEMENT_KEY), str)
    )


def decode_element(session: "Session", value: Any) -> WebElement:
    """Decode a single ``{"ELEMENT": id}`` value."""
    if not is_element_reference(value):
        raise ReplyDecodeError(
            f"malformed element reference: {value!r}",
            session_id=session.id or None,
        )
    return WebElement(session, value[ELEMENT_KEY])


def decode_elements(session: "Session", value: Any) -> List[WebElement]:
    """Decode an ordered list of element references."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ReplyDecodeError(
            f"malformed element list: {value!r}",
            session_id=session.id or None,
        )
    return [decode_element(session, item) for item in value]


def encode_script_args(value: Any) -> Any:
    """Replace every ``WebElement`` inside ``value`` with its wire reference."""
    if isinstance(value, WebElement):
        return value.to_wire()
    if isinstance(value, (list, tuple)):
        return [encode_script_args(item) for item in value]
    if isinstance(value, dict):
        return {key: encode_script_args(item) for key, item in value.items()}
    return value


def decode_script_result(session: "Session", value: Any) -> Any:
    """Turn element references returned by a script back into handles."""
    if is_element_reference(value):
        return WebElement(session, value[ELEMENT_KEY])
    if isinstance(value, list):
        return [decode_script_result(session, item) for item in value]
    if isinstance(value, dict):
        return {key: decode_script_result(session, item) for key, item in value.items()}
    return value


async def find(session: "Session", template: str, by: str, value: str,
               element_id: Optional[str] = None, plural: bool = False) -> Any:
    """Send a find command and return the raw reply value."""
    suffix = "s" if plural else ""
    reply = await session.command(
        "POST",
        template + suffix,
        {"using": by, "value": value},
        element_id=element_id,
    )
    return read_value(reply, "find element")


# =============================================================================
# WebElement
# =============================================================================

class WebElement:
    """A handle to a DOM node in a remote session."""

    def __init__(self, session: "Session", element_id: str):
        self._session_ref = weakref.ref(session)
        self.id = element_id

    def __repr__(self) -> str:
        return f"WebElement(id={self.id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, WebElement):
            return NotImplemented
        return self.id == other.id and self._session_ref() is other._session_ref()

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def session(self) -> "Session":
        session = self._session_ref()
        if session is None:
            raise WebDriverError(f"session of element {self.id} no longer exists")
        return session

    @property
    def session_id(self) -> str:
        return self.session.id

    def to_wire(self) -> Dict[str, str]:
        return {ELEMENT_KEY: self.id}

    async def _void(self, path: str, payload: Any = None) -> None:
        await self.session.execute(
            "POST", "/session/{session_id}/element/{element_id}" + path, payload,
            element_id=self.id,
        )

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        reply = await self.session.command(
            "GET", "/session/{session_id}/element/{element_id}" + path,
            element_id=self.id, params=params,
        )
        return read_value(reply, f"element {path}")

    # Manipulation

    async def click(self) -> None:
        await self._void("/click")

    async def send_keys(self, keys: str) -> None:
        """Type ``keys`` into the element, one entry per character."""
        await self._void("/value", {"value": list(keys)})

    async def submit(self) -> None:
        await self._void("/submit")

    async def clear(self) -> None:
        await self._void("/clear")

    async def move_to(self, x_offset: int, y_offset: int) -> None:
        """Move the mouse to an offset relative to this element."""
        await self.session.execute(
            "POST",
            "/session/{session_id}/moveto",
            {"element": self.id, "xoffset": x_offset, "yoffset": y_offset},
        )

    # Finding

    async def find_element(self, by: str, value: str) -> WebElement:
        session = self.session
        raw = await find(session, FIND_CHILD_ELEMENT, by, value, element_id=self.id)
        return decode_element(session, raw)

    async def find_elements(self, by: str, value: str) -> List[WebElement]:
        session = self.session
        raw = await find(session, FIND_CHILD_ELEMENT, by, value, element_id=self.id, plural=True)
        return decode_elements(session, raw)

    async def q(self, selector: str) -> WebElement:
        """Shortcut for ``find_element(By.CSS_SELECTOR, selector)``."""
        return await self.find_element(By.CSS_SELECTOR, selector)

    async def q_all(self, selector: str) -> List[WebElement]:
        """Shortcut for ``find_elements(By.CSS_SELECTOR, selector)``."""
        return await self.find_elements(By.CSS_SELECTOR, selector)

    # Properties

    async def tag_name(self) -> str:
        return expect_str(await self._get("/name"), "tag name")

    async def text(self) -> str:
        return expect_str(await self._get("/text"), "text")

    async def is_selected(self) -> bool:
        return expect_bool(await self._get("/selected"), "selected")

    async def is_enabled(self) -> bool:
        return expect_bool(await self._get("/enabled"), "enabled")

    async def is_displayed(self) -> bool:
        return expect_bool(await self._get("/displayed"), "displayed")

    async def get_attribute(self, name: str) -> str:
        return expect_str(await self._get("/attribute/{name}", {"name": name}), "attribute")

    async def location(self) -> Point:
        return Point.from_dict(expect_dict(await self._get("/location"), "location"))

    async def location_in_view(self) -> Point:
        """Location once scrolled into view; meant for generating native events."""
        return Point.from_dict(expect_dict(await self._get("/location_in_view"), "location"))

    async def size(self) -> Size:
        return Size.from_dict(expect_dict(await self._get("/size"), "size"))

    async def css_property(self, name: str) -> str:
        return expect_str(await self._get("/css/{name}", {"name": name}), "css property")
