"""
Remote WebDriver Models - Data classes for values exchanged with the server.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

# Desired/actual browser and driver options exchanged at session creation.
Capabilities = Dict[str, Any]


def _lookup(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Case-insensitive key lookup; servers disagree on ``X`` vs ``x``."""
    if key in data:
        return data[key]
    lowered = key.lower()
    for k, v in data.items():
        if isinstance(k, str) and k.lower() == lowered:
            return v
    return default


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_float(value: Any) -> float:
    if value is None:
        return 0.0
    return float(value)


def _as_bool(value: Any) -> bool:
    # Only a JSON boolean counts; "false" must not read as true.
    return value if isinstance(value, bool) else False


@dataclass
class Size:
    width: float = 0.0
    height: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Size:
        return cls(
            width=_as_float(_lookup(data, "width")),
            height=_as_float(_lookup(data, "height")),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"width": self.width, "height": self.height}


@dataclass
class Point:
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Point:
        return cls(x=_as_float(_lookup(data, "x")), y=_as_float(_lookup(data, "y")))


@dataclass
class Cookie:
    """
    A browser cookie.

    ``expiry`` is seconds since the epoch. It is never read by ``from_dict``;
    servers disagree on its JSON type, so it is filled in afterwards by
    ``parse_cookie_expiry``.
    """

    name: str
    value: str
    path: str = ""
    domain: str = ""
    secure: bool = False
    expiry: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cookie:
        return cls(
            name=_as_str(_lookup(data, "name")),
            value=_as_str(_lookup(data, "value")),
            path=_as_str(_lookup(data, "path")),
            domain=_as_str(_lookup(data, "domain")),
            secure=_as_bool(_lookup(data, "secure")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "path": self.path,
            "domain": self.domain,
            "secure": self.secure,
        }
        if self.expiry:
            data["expiry"] = self.expiry
        return data


@dataclass
class Build:
    version: str = ""
    revision: str = ""
    time: str = ""


@dataclass
class OS:
    arch: str = ""
    name: str = ""
    version: str = ""


@dataclass
class Status:
    """Server build and host information returned by ``/status``."""

    build: Build = field(default_factory=Build)
    os: OS = field(default_factory=OS)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Status:
        build = _lookup(data, "build") or {}
        host = _lookup(data, "os") or {}
        return cls(
            build=Build(
                version=_as_str(_lookup(build, "version")),
                revision=_as_str(_lookup(build, "revision")),
                time=_as_str(_lookup(build, "time")),
            ),
            os=OS(
                arch=_as_str(_lookup(host, "arch")),
                name=_as_str(_lookup(host, "name")),
                version=_as_str(_lookup(host, "version")),
            ),
        )


@dataclass
class SessionInfo:
    """An active session as listed by ``/sessions``."""

    id: str
    capabilities: Capabilities = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SessionInfo:
        return cls(
            id=_as_str(_lookup(data, "id")),
            capabilities=dict(_lookup(data, "capabilities") or {}),
        )

