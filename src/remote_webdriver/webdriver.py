"""
WebDriver - Async client for a remote JSON wire protocol server.

Each method maps to one protocol command: a path template plus a JSON payload.
Failures raise ``WebDriverError`` subclasses; nothing is retried.

Usage:
    async with WebDriver({"browserName": "firefox"}) as wd:
        await wd.get("https://example.com")
        heading = await wd.q("h1")
        print(await heading.text())
"""
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, List, Optional, Sequence

from remote_webdriver.core.constants import By
from remote_webdriver.core.models import (
    Capabilities,
    Cookie,
    Point,
    SessionInfo,
    Size,
    Status,
)
from remote_webdriver.element import (
    FIND_ELEMENT,
    WebElement,
    decode_element,
    decode_elements,
    decode_script_result,
    encode_script_args,
    expect_bool,
    expect_dict,
    expect_list,
    expect_str,
    expect_str_list,
    find,
    read_value,
)
from remote_webdriver.protocol.cancellation import CancellationToken
from remote_webdriver.protocol.executor import CommandExecutor, ExecutorConfig
from remote_webdriver.protocol.patches import Base64Stream, parse_cookie_expiry
from remote_webdriver.protocol.session import Session

logger = logging.getLogger("remote_webdriver")

CURRENT_WINDOW = "current"


class WebDriver:
    """
    A remote browser session.

    Usage:
        wd = await new_remote({"browserName": "chrome"}, "http://localhost:4444/wd/hub")
        try:
            await wd.get("https://example.com")
        finally:
            await wd.quit()
            await wd.aclose()
    """

    def __init__(
        self,
        capabilities: Optional[Capabilities] = None,
        config: Optional[ExecutorConfig] = None,
        executor: Optional[CommandExecutor] = None,
    ):
        """
        Initialize the driver. No request is made until ``start``/``new_session``.

        Args:
            capabilities: Desired capabilities sent when the session is created.
            config: Executor configuration; ignored when ``executor`` is given.
            executor: A shared executor. The driver will not close it.
        """
        self._owns_executor = executor is None
        self.executor = executor or CommandExecutor(config)
        self._session = Session(self.executor, capabilities)

    async def __aenter__(self) -> WebDriver:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            await self.quit()
        finally:
            await self.aclose()

    async def start(self) -> str:
        """Create the remote session."""
        return await self.new_session()

    async def aclose(self) -> None:
        """Release the HTTP client if this driver created it."""
        if self._owns_executor:
            await self.executor.aclose()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def session_id(self) -> str:
        return self._session.id

    def set_cancellation(self, token: CancellationToken) -> None:
        """Abort (and tear down) once ``token`` fires; checked around every command."""
        self._session.set_cancellation(token)

    # =========================================================================
    # Command helpers
    # =========================================================================

    async def _void(self, template: str, payload: Any = None, **params: Any) -> None:
        await self._session.execute("POST", template, payload, params=params or None)

    async def _delete(self, template: str, **params: Any) -> None:
        await self._session.execute("DELETE", template, params=params or None)

    async def _get(self, template: str, **params: Any) -> Any:
        reply = await self._session.command("GET", template, params=params or None)
        return read_value(reply, template)

    async def _string(self, template: str) -> str:
        return expect_str(await self._get(template), template)

    async def _strings(self, template: str) -> List[str]:
        return expect_str_list(await self._get(template), template)

    async def _bool(self, template: str) -> bool:
        return expect_bool(await self._get(template), template)

    async def void_execute(self, template: str, params: Any = None) -> None:
        """POST an arbitrary command; ``template`` may use ``{session_id}``."""
        await self._void(template, params)

    # =========================================================================
    # Server and session
    # =========================================================================

    async def status(self) -> Status:
        return Status.from_dict(expect_dict(await self._get("/status"), "status"))

    async def sessions(self) -> List[SessionInfo]:
        value = expect_list(await self._get("/sessions"), "sessions")
        return [SessionInfo.from_dict(expect_dict(item, "session")) for item in value]

    async def new_session(self) -> str:
        return await self._session.new_session()

    async def capabilities(self) -> Capabilities:
        value = await self._get("/session/{session_id}")
        return dict(expect_dict(value, "capabilities")) if value is not None else {}

    async def quit(self) -> None:
        """End the session. Safe to call more than once."""
        await self._session.quit()

    async def set_timeout(self, timeout_type: str, ms: int) -> None:
        """Set a timeout; ``timeout_type`` is "script", "implicit" or "page load"."""
        await self._void("/session/{session_id}/timeouts", {"type": timeout_type, "ms": ms})

    async def set_async_script_timeout(self, ms: int) -> None:
        await self._void("/session/{session_id}/timeouts/async_script", {"ms": ms})

    async def set_implicit_wait_timeout(self, ms: int) -> None:
        await self._void("/session/{session_id}/timeouts/implicit_wait", {"ms": ms})

    # IME

    async def available_engines(self) -> List[str]:
        return await self._strings("/session/{session_id}/ime/available_engines")

    async def active_engine(self) -> str:
        return await self._string("/session/{session_id}/ime/active_engine")

    async def is_engine_activated(self) -> bool:
        return await self._bool("/session/{session_id}/ime/activated")

    async def deactivate_engine(self) -> None:
        await self._void("/session/{session_id}/ime/deactivate")

    async def activate_engine(self, engine: str) -> None:
        await self._void("/session/{session_id}/ime/activate", {"engine": engine})

    # =========================================================================
    # Windows, frames and navigation
    # =========================================================================

    async def current_window_handle(self) -> str:
        return await self._string("/session/{session_id}/window_handle")

    async def window_handles(self) -> List[str]:
        return await self._strings("/session/{session_id}/window_handles")

    async def current_url(self) -> str:
        return await self._string("/session/{session_id}/url")

    async def get(self, url: str) -> None:
        """Navigate to ``url``."""
        await self._void("/session/{session_id}/url", {"url": url})

    async def forward(self) -> None:
        await self._void("/session/{session_id}/forward")

    async def back(self) -> None:
        await self._void("/session/{session_id}/back")

    async def refresh(self) -> None:
        await self._void("/session/{session_id}/refresh")

    async def title(self) -> str:
        return await self._string("/session/{session_id}/title")

    async def page_source(self) -> str:
        return await self._string("/session/{session_id}/source")

    async def close(self) -> None:
        """Close the current window."""
        await self._delete("/session/{session_id}/window")

    async def switch_window(self, name: str = "") -> None:
        await self._void("/session/{session_id}/window", {"name": name or CURRENT_WINDOW})

    async def close_window(self, name: str = "") -> None:
        # The protocol only closes the current window; switch first to close another.
        await self._delete("/session/{session_id}/window")

    async def window_size(self, name: str = "") -> Size:
        value = await self._get("/session/{session_id}/window/{name}/size", name=name or CURRENT_WINDOW)
        return Size.from_dict(expect_dict(value, "window size"))

    async def window_position(self, name: str = "") -> Point:
        value = await self._get("/session/{session_id}/window/{name}/position", name=name or CURRENT_WINDOW)
        return Point.from_dict(expect_dict(value, "window position"))

    async def resize_window(self, name: str, to: Size) -> None:
        await self._void(
            "/session/{session_id}/window/{name}/size",
            to.to_dict(),
            name=name or CURRENT_WINDOW,
        )

    async def switch_frame(self, frame: Any) -> None:
        """Switch to a frame by name, id, index or ``WebElement``."""
        await self._void("/session/{session_id}/frame", {"id": encode_script_args(frame)})

    async def switch_frame_parent(self) -> None:
        await self._void("/session/{session_id}/frame/parent")

    # =========================================================================
    # Elements
    # =========================================================================

    async def find_element(self, by: str, value: str) -> WebElement:
        raw = await find(self._session, FIND_ELEMENT, by, value)
        return decode_element(self._session, raw)

    async def find_elements(self, by: str, value: str) -> List[WebElement]:
        raw = await find(self._session, FIND_ELEMENT, by, value, plural=True)
        return decode_elements(self._session, raw)

    async def q(self, selector: str) -> WebElement:
        """Shortcut for ``find_element(By.CSS_SELECTOR, selector)``."""
        return await self.find_element(By.CSS_SELECTOR, selector)

    async def q_all(self, selector: str) -> List[WebElement]:
        """Shortcut for ``find_elements(By.CSS_SELECTOR, selector)``."""
        return await self.find_elements(By.CSS_SELECTOR, selector)

    async def active_element(self) -> WebElement:
        return decode_element(self._session, await self._get("/session/{session_id}/element/active"))

    # =========================================================================
    # Cookies
    # =========================================================================

    async def get_cookies(self) -> List[Cookie]:
        value = expect_list(await self._get("/session/{session_id}/cookie"), "cookies")
        cookies = [Cookie.from_dict(expect_dict(item, "cookie")) for item in value]
        parse_cookie_expiry(cookies, value)
        return cookies

    async def add_cookie(self, cookie: Cookie) -> None:
        await self._void("/session/{session_id}/cookie", {"cookie": cookie.to_dict()})

    async def delete_all_cookies(self) -> None:
        await self._delete("/session/{session_id}/cookie")

    async def delete_cookie(self, name: str) -> None:
        await self._delete("/session/{session_id}/cookie/{name}", name=name)

    # =========================================================================
    # Mouse and keyboard
    # =========================================================================

    async def click(self, button: int) -> None:
        """Click at the current mouse position; ``button`` is a ``MouseButton``."""
        await self._void("/session/{session_id}/click", {"button": button})

    async def double_click(self) -> None:
        await self._void("/session/{session_id}/doubleclick")

    async def button_down(self) -> None:
        await self._void("/session/{session_id}/buttondown")

    async def button_up(self) -> None:
        await self._void("/session/{session_id}/buttonup")

    async def send_modifier(self, modifier: str, is_down: bool) -> None:
        """Press or release one of ``Keys.SHIFT``, ``CONTROL``, ``ALT`` or ``META``."""
        await self._void("/session/{session_id}/modifier", {"value": modifier, "isdown": is_down})

    # =========================================================================
    # Alerts
    # =========================================================================

    async def dismiss_alert(self) -> None:
        await self._void("/session/{session_id}/dismiss_alert")

    async def accept_alert(self) -> None:
        await self._void("/session/{session_id}/accept_alert")

    async def alert_text(self) -> str:
        return await self._string("/session/{session_id}/alert_text")

    async def set_alert_text(self, text: str) -> None:
        await self._void("/session/{session_id}/alert_text", {"text": text})

    # =========================================================================
    # Scripts and screenshots
    # =========================================================================

    async def _exec_script(self, script: str, args: Optional[Sequence[Any]], suffix: str) -> Any:
        payload = {"script": script, "args": encode_script_args(list(args or []))}
        reply = await self._session.command("POST", "/session/{session_id}/execute" + suffix, payload)
        return decode_script_result(self._session, read_value(reply, "execute"))

    async def execute_script(self, script: str, args: Optional[Sequence[Any]] = None) -> Any:
        """
        Run ``script`` in the page and return its result.

        ``WebElement`` arguments, at any nesting depth, are sent as element
        references, and element references in the result come back as
        ``WebElement`` handles.
        """
        return await self._exec_script(script, args, "")

    async def execute_script_async(self, script: str, args: Optional[Sequence[Any]] = None) -> Any:
        return await self._exec_script(script, args, "_async")

    async def screenshot(self) -> Base64Stream:
        """
        Capture the page as PNG.

        Returns:
            A single-pass binary stream decoding the server's base64 payload.
        """
        data = await self._string("/session/{session_id}/screenshot")
        return Base64Stream(data)


async def new_remote(
    capabilities: Optional[Capabilities] = None,
    executor_url: str = "",
    config: Optional[ExecutorConfig] = None,
) -> WebDriver:
    """Create a driver and start its session in one step."""
    config = config or ExecutorConfig()
    if executor_url:
        config = replace(config, executor_url=executor_url)
    wd = WebDriver(capabilities, config=config)
    try:
        await wd.start()
    except Exception:
        await wd.aclose()
        raise
    logger.debug(f"Remote driver ready at {config.executor_url}")
    return wd
