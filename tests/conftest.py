"""
Pytest configuration and shared fixtures.

Most tests talk to ``FakeWireServer``, an in-memory JSON wire protocol server
mounted on ``httpx.MockTransport``. It records every request it receives so
tests can assert on call counts, headers and payloads.
"""
import base64
import json
import os
import re
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

# Add the src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from remote_webdriver.protocol.executor import CommandExecutor, ExecutorConfig  # noqa: E402
from remote_webdriver.webdriver import WebDriver  # noqa: E402

BASE_URL = "http://wire.test/wd/hub"
COOKIE_EXPIRY = 1700003600
SCREENSHOT_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 8


# =============================================================================
# Fake wire protocol server
# =============================================================================

@dataclass
class FakeElement:
    id: str
    tag: str = "div"
    text: str = ""
    displayed: bool = True
    selected: bool = False
    enabled: bool = True
    attributes: Dict[str, str] = field(default_factory=dict)
    css: Dict[str, str] = field(default_factory=dict)
    location: Tuple[int, int] = (8, 16)
    size: Tuple[int, int] = (120, 24)
    checkbox: bool = False


@dataclass
class FakeSession:
    id: str
    capabilities: Dict[str, Any]
    history: List[str] = field(default_factory=lambda: ["about:blank"])
    position: int = 0
    windows: Dict[str, Dict[str, float]] = field(
        default_factory=lambda: {"current": {"width": 1280.0, "height": 720.0}}
    )
    cookies: List[Dict[str, Any]] = field(default_factory=list)
    elements: Dict[str, FakeElement] = field(default_factory=dict)
    # (parent element id or None, using, value) -> element ids
    selectors: Dict[Tuple[Optional[str], str, str], List[str]] = field(default_factory=dict)
    timeouts: Dict[str, int] = field(default_factory=dict)
    alert: Optional[str] = None
    frame: Any = None

    @property
    def url(self) -> str:
        return self.history[self.position]


class FakeWireServer:
    """A small in-memory JSON wire protocol server."""

    SCREENSHOT = SCREENSHOT_BYTES
    COOKIE_EXPIRY = COOKIE_EXPIRY

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.sessions: Dict[str, FakeSession] = {}
        self.overrides: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.scripts: Dict[str, Callable[[List[Any]], Any]] = {
            "return arguments[0] + arguments[1]": lambda args: args[0] + args[1],
        }
        self.script_calls: List[Dict[str, Any]] = []
        self.on_request: Optional[Callable[[httpx.Request], None]] = None
        self._next_id = 0
        self._routes = [
            ("GET", r"/status", self._status),
            ("GET", r"/sessions", self._list_sessions),
            ("POST", r"/session", self._create_session),
            ("GET", r"/session/(?P<s>[^/]+)", self._capabilities),
            ("DELETE", r"/session/(?P<s>[^/]+)", self._delete_session),
            ("POST", r"/session/(?P<s>[^/]+)/timeouts(?:/(?P<kind>\w+))?", self._set_timeout),
            ("GET", r"/session/(?P<s>[^/]+)/window_handle", lambda s, m, b: "current"),
            ("GET", r"/session/(?P<s>[^/]+)/window_handles", lambda s, m, b: list(s.windows)),
            ("GET", r"/session/(?P<s>[^/]+)/url", lambda s, m, b: s.url),
            ("POST", r"/session/(?P<s>[^/]+)/url", self._navigate),
            ("POST", r"/session/(?P<s>[^/]+)/back", self._back),
            ("POST", r"/session/(?P<s>[^/]+)/forward", self._forward),
            ("POST", r"/session/(?P<s>[^/]+)/refresh", lambda s, m, b: None),
            ("GET", r"/session/(?P<s>[^/]+)/title", lambda s, m, b: f"Title of {s.url}"),
            ("GET", r"/session/(?P<s>[^/]+)/source", lambda s, m, b: f"<html>{s.url}</html>"),
            ("GET", r"/session/(?P<s>[^/]+)/window/(?P<name>[^/]+)/size", self._window_size),
            ("POST", r"/session/(?P<s>[^/]+)/window/(?P<name>[^/]+)/size", self._resize_window),
            ("GET", r"/session/(?P<s>[^/]+)/window/(?P<name>[^/]+)/position", lambda s, m, b: {"x": 0, "y": 0}),
            ("POST", r"/session/(?P<s>[^/]+)/frame", self._switch_frame),
            ("POST", r"/session/(?P<s>[^/]+)/frame/parent", lambda s, m, b: None),
            ("GET", r"/session/(?P<s>[^/]+)/cookie", lambda s, m, b: s.cookies),
            ("POST", r"/session/(?P<s>[^/]+)/cookie", self._add_cookie),
            ("DELETE", r"/session/(?P<s>[^/]+)/cookie", self._delete_all_cookies),
            ("DELETE", r"/session/(?P<s>[^/]+)/cookie/(?P<name>[^/]+)", self._delete_cookie),
            ("POST", r"/session/(?P<s>[^/]+)/execute(?:_async)?", self._execute),
            ("GET", r"/session/(?P<s>[^/]+)/screenshot",
             lambda s, m, b: base64.b64encode(SCREENSHOT_BYTES).decode("ascii")),
            ("GET", r"/session/(?P<s>[^/]+)/alert_text", self._alert_text),
            ("POST", r"/session/(?P<s>[^/]+)/alert_text", self._set_alert_text),
            ("POST", r"/session/(?P<s>[^/]+)/(?:accept|dismiss)_alert", self._close_alert),
            ("POST", r"/session/(?P<s>[^/]+)/(?:click|doubleclick|buttondown|buttonup|moveto|modifier)",
             lambda s, m, b: None),
            ("GET", r"/session/(?P<s>[^/]+)/element/active", lambda s, m, b: {"ELEMENT": "el-q"}),
            ("POST", r"/session/(?P<s>[^/]+)/element(?P<plural>s)?", self._find),
            ("POST", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/element(?P<plural>s)?", self._find),
            ("POST", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/click", self._click),
            ("POST", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/value", self._send_keys),
            ("POST", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/(?:clear|submit)", self._element_void),
            ("GET", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/(?P<prop>\w+)", self._element_property),
            ("GET", r"/session/(?P<s>[^/]+)/element/(?P<e>[^/]+)/(?P<prop>attribute|css)/(?P<name>[^/]+)",
             self._element_property),
        ]

    # -- plumbing ------------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def route(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        """Override a single path (relative to the executor URL)."""
        self.overrides[(method, path)] = handler

    def requests_for(self, method: str, path_suffix: str = "") -> List[httpx.Request]:
        return [
            r for r in self.requests
            if r.method == method and r.url.path.endswith(path_suffix)
        ]

    @staticmethod
    def envelope(value: Any = None, status: int = 0, session_id: str = "", http_status: int = 200) -> httpx.Response:
        return httpx.Response(
            http_status,
            json={"sessionId": session_id, "status": status, "value": value},
        )

    @staticmethod
    def failure(status: int, message: str = "", http_status: int = 500, session_id: str = "") -> httpx.Response:
        value = {"message": json.dumps({"errorMessage": message})} if message else {"message": ""}
        return FakeWireServer.envelope(value, status=status, session_id=session_id, http_status=http_status)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            self.on_request(request)

        path = request.url.path
        prefix = httpx.URL(BASE_URL).path
        if path.startswith(prefix):
            path = path[len(prefix):]

        override = self.overrides.get((request.method, path))
        if override is not None:
            return override(request)

        body = json.loads(request.content) if request.content else None
        for method, pattern, handler in self._routes:
            if method != request.method:
                continue
            match = re.fullmatch(pattern, path)
            if match is None:
                continue
            session = None
            session_key = match.groupdict().get("s")
            if session_key is not None:
                session = self.sessions.get(session_key)
                if session is None:
                    return self.failure(6, f"no session {session_key}", http_status=404)
            result = handler(session, match, body)
            if isinstance(result, httpx.Response):
                return result
            return self.envelope(result, session_id=session.id if session else "")

        return self.failure(9, f"unknown command {request.method} {path}", http_status=404)

    # -- session -------------------------------------------------------------

    def _status(self, session, match, body):
        return {
            "build": {"version": "2.53.1", "revision": "a36b8b1", "time": "2016-06-30"},
            "os": {"arch": "amd64", "name": "Linux", "version": "6.1"},
        }

    def _list_sessions(self, session, match, body):
        return [{"id": s.id, "capabilities": s.capabilities} for s in self.sessions.values()]

    def _create_session(self, session, match, body):
        self._next_id += 1
        session_id = f"session-{self._next_id}"
        capabilities = dict((body or {}).get("desiredCapabilities") or {})
        self.sessions[session_id] = fake = FakeSession(session_id, capabilities)
        self._populate(fake)
        return self.envelope(capabilities, session_id=session_id)

    def _capabilities(self, session, match, body):
        return session.capabilities

    def _delete_session(self, session, match, body):
        del self.sessions[session.id]
        return None

    def _set_timeout(self, session, match, body):
        session.timeouts[match.group("kind") or body["type"]] = body["ms"]
        return None

    def _populate(self, session: FakeSession) -> None:
        """A page with a list, a search form, a checkbox and a hidden input."""
        elements = [
            FakeElement("el-body", tag="body"),
            FakeElement("el-list", tag="ol", attributes={"class": "list"}),
            FakeElement("el-foo", tag="li", text="foo"),
            FakeElement("el-bar", tag="li", text="bar"),
            FakeElement("el-q", tag="input", attributes={"name": "q"}),
            FakeElement("el-submit", tag="input", attributes={"type": "submit"}, css={"color": "red"}),
            FakeElement("el-chuk", tag="input", checkbox=True, attributes={"type": "checkbox"}),
            FakeElement("el-hidden", tag="input", displayed=False, attributes={"type": "hidden"}),
        ]
        session.elements = {e.id: e for e in elements}
        session.selectors = {
            (None, "tag name", "body"): ["el-body"],
            (None, "css selector", "ol.list"): ["el-list"],
            (None, "css selector", "ol.list li"): ["el-foo", "el-bar"],
            ("el-list", "css selector", "li"): ["el-foo", "el-bar"],
            ("el-body", "css selector", "ol.list li"): ["el-foo", "el-bar"],
            (None, "name", "q"): ["el-q"],
            (None, "id", "submit"): ["el-submit"],
            (None, "id", "chuk"): ["el-chuk"],
            (None, "name", "hidden_name"): ["el-hidden"],
        }
        session.cookies = [
            {"name": f"cookie-{i}", "value": f"value-{i}", "path": "/", "domain": "wire.test",
             "secure": False, "expiry": float(COOKIE_EXPIRY)}
            for i in range(3)
        ]

    # -- navigation and windows ---------------------------------------------

    def _navigate(self, session, match, body):
        del session.history[session.position + 1:]
        session.history.append(body["url"])
        session.position += 1
        return None

    def _back(self, session, match, body):
        session.position = max(0, session.position - 1)
        return None

    def _forward(self, session, match, body):
        session.position = min(len(session.history) - 1, session.position + 1)
        return None

    def _window_size(self, session, match, body):
        size = session.windows.get(match.group("name"))
        if size is None:
            return self.failure(23, "no such window", http_status=404, session_id=session.id)
        return size

    def _resize_window(self, session, match, body):
        session.windows[match.group("name")] = {"width": body["width"], "height": body["height"]}
        return None

    def _switch_frame(self, session, match, body):
        session.frame = body["id"]
        return None

    # -- cookies and alerts --------------------------------------------------

    def _add_cookie(self, session, match, body):
        session.cookies.append(dict(body["cookie"]))
        return None

    def _delete_all_cookies(self, session, match, body):
        session.cookies = []
        return None

    def _delete_cookie(self, session, match, body):
        name = match.group("name")
        session.cookies = [c for c in session.cookies if c["name"] != name]
        return None

    def _alert_text(self, session, match, body):
        if session.alert is None:
            return self.failure(27, "no alert", http_status=404, session_id=session.id)
        return session.alert

    def _set_alert_text(self, session, match, body):
        session.alert = body["text"]
        return None

    def _close_alert(self, session, match, body):
        if session.alert is None:
            return self.failure(27, "no alert", http_status=404, session_id=session.id)
        session.alert = None
        return None

    # -- scripts -------------------------------------------------------------

    def _execute(self, session, match, body):
        self.script_calls.append(body)
        script = self.scripts.get(body["script"])
        if script is None:
            return self.failure(17, "unsupported script", session_id=session.id)
        return script(body["args"])

    # -- elements ------------------------------------------------------------

    def _element(self, session, match) -> FakeElement:
        return session.elements.get(match.group("e"))

    def _find(self, session, match, body):
        parent = match.groupdict().get("e")
        ids = session.selectors.get((parent, body["using"], body["value"]), [])
        if match.group("plural"):
            return [{"ELEMENT": i} for i in ids]
        if not ids:
            return self.failure(7, "Unable to locate element", http_status=404, session_id=session.id)
        return {"ELEMENT": ids[0]}

    def _click(self, session, match, body):
        element = self._element(session, match)
        if element is None:
            return self.failure(10, "stale", http_status=404, session_id=session.id)
        if not element.displayed:
            return self.failure(11, "Element is not currently visible", session_id=session.id)
        if element.checkbox:
            element.selected = not element.selected
        return None

    def _send_keys(self, session, match, body):
        element = self._element(session, match)
        element.attributes["value"] = element.attributes.get("value", "") + "".join(body["value"])
        return None

    def _element_void(self, session, match, body):
        return None

    def _element_property(self, session, match, body):
        element = self._element(session, match)
        if element is None:
            return self.failure(10, "stale", http_status=404, session_id=session.id)
        prop = match.group("prop")
        if prop == "attribute":
            return element.attributes.get(match.group("name"))
        if prop == "css":
            return element.css.get(match.group("name"), "")
        return {
            "name": element.tag,
            "text": element.text,
            "selected": element.selected,
            "enabled": element.enabled,
            "displayed": element.displayed,
            "location": {"x": element.location[0], "y": element.location[1]},
            "location_in_view": {"x": element.location[0], "y": 0},
            "size": {"width": element.size[0], "height": element.size[1]},
        }.get(prop)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def wire_server():
    """A fresh fake server per test."""
    return FakeWireServer()


@pytest.fixture
def executor_config():
    return ExecutorConfig(executor_url=BASE_URL)


@pytest.fixture
async def executor(wire_server, executor_config):
    ex = CommandExecutor(executor_config, transport=wire_server.transport())
    yield ex
    await ex.aclose()


@pytest.fixture
async def driver(executor):
    """A driver with an open session on the fake server."""
    wd = WebDriver({"browserName": "fake"}, executor=executor)
    await wd.start()
    yield wd
    await wd.quit()


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test (requires a WebDriver server)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    for item in items:
        if "integration" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)
        if "slow" in item.nodeid.lower():
            item.add_marker(pytest.mark.slow)
