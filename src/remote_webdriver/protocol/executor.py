"""
Command Executor - Sends one wire protocol command per HTTP request.

The executor owns the HTTP transport policy (headers, redirects, timeouts)
and turns transport and protocol failures into ``WebDriverError`` subclasses.
It never retries: commands such as click or navigate are not idempotent.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from remote_webdriver.core.constants import DEFAULT_EXECUTOR, JSON_MIME_TYPE
from remote_webdriver.core.errors import (
    ProtocolError,
    ReplyDecodeError,
    TransportError,
    WebDriverError,
)
from remote_webdriver.protocol.reply import decode_failure, decode_reply

logger = logging.getLogger("remote_webdriver")


def setup_logging(level: int = logging.INFO, debug: bool = False):
    """Configure logging for the remote WebDriver client."""
    if debug:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)

    logger.setLevel(level)
    if not logger.handlers:
        logger.addHandler(handler)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ExecutorConfig:
    """Transport and diagnostics settings for a CommandExecutor."""

    executor_url: str = DEFAULT_EXECUTOR
    # Covers TCP connect and the TLS handshake.
    connect_timeout: float = 30.0
    request_timeout: float = 60.0
    max_redirects: int = 10
    verbose: bool = False
    trace: bool = False

    @classmethod
    def from_env(cls) -> ExecutorConfig:
        """Build a config from WEBDRIVER_EXECUTOR, WEBDRIVER_VERBOSE and WEBDRIVER_TRACE."""
        return cls(
            executor_url=os.environ.get("WEBDRIVER_EXECUTOR") or DEFAULT_EXECUTOR,
            verbose=_env_flag("WEBDRIVER_VERBOSE"),
            trace=_env_flag("WEBDRIVER_TRACE"),
        )


def _dump_request(request: httpx.Request) -> str:
    lines = [f"{request.method} {request.url}"]
    lines.extend(f"{k}: {v}" for k, v in request.headers.items())
    try:
        body = request.content
    except httpx.RequestNotRead:
        body = b""
    if body:
        lines.extend(["", body.decode("utf-8", errors="replace")])
    return "\n".join(lines)


def _dump_response(response: httpx.Response) -> str:
    lines = [f"{response.http_version} {response.status_code} {response.reason_phrase}"]
    lines.extend(f"{k}: {v}" for k, v in response.headers.items())
    if response.content:
        lines.extend(["", response.text])
    return "\n".join(lines)


class CommandExecutor:
    """HTTP client for the JSON wire protocol."""

    def __init__(
        self,
        config: Optional[ExecutorConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ExecutorConfig()
        self.base_url = self.config.executor_url.rstrip("/")
        self._client = httpx.AsyncClient(
            transport=transport,
            follow_redirects=True,
            max_redirects=self.config.max_redirects,
            timeout=httpx.Timeout(
                self.config.request_timeout,
                connect=self.config.connect_timeout,
            ),
            event_hooks={"request": [self._prepare_request]},
        )

    async def __aenter__(self) -> CommandExecutor:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def _prepare_request(self, request: httpx.Request) -> None:
        # httpx runs request hooks for every hop, so redirected requests get
        # the Accept header re-applied here as well.
        request.headers["Accept"] = JSON_MIME_TYPE
        if self.config.trace:
            logger.debug(f"-> TRACE\n{_dump_request(request)}")

    def url(
        self,
        template: str,
        session_id: str = "",
        element_id: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Expand a path template such as ``/session/{session_id}/element/{element_id}/click``."""
        values: Dict[str, str] = {"session_id": session_id, "element_id": element_id or ""}
        for key, value in (params or {}).items():
            values[key] = quote(str(value), safe="")
        return self.base_url + template.format(**values)

    async def execute(
        self,
        method: str,
        template: str,
        session_id: str = "",
        payload: Any = None,
        *,
        element_id: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """
        Send one command and return the raw reply body.

        Args:
            method: HTTP method (GET, POST or DELETE).
            template: Path template relative to the executor URL.
            session_id: Substituted for ``{session_id}``.
            payload: JSON-serializable body, or None for no body.
            element_id: Substituted for ``{element_id}``.
            params: Extra path parameters, URL-quoted before substitution.

        Returns:
            The reply body for JSON success replies, ``b""`` for non-JSON ones.

        Raises:
            TransportError: The request could not complete.
            ProtocolError: The server reported a failure.
            ReplyDecodeError: The server sent malformed JSON.
        """
        url = self.url(template, session_id, element_id, params)
        command = f"{method} {url}"

        data = b""
        if payload is not None:
            try:
                data = json.dumps(payload).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise WebDriverError(
                    f"cannot encode command payload: {e}",
                    session_id=session_id or None,
                    command=command,
                ) from e

        headers = {"Accept": JSON_MIME_TYPE}
        if method == "POST":
            headers["Content-Type"] = JSON_MIME_TYPE

        if self.config.verbose:
            logger.info(f"-> {method} {url} [{len(data)} bytes]")

        try:
            response = await asyncio.wait_for(
                self._client.request(method, url, content=data or None, headers=headers),
                timeout=self.config.request_timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Command timed out after {self.config.request_timeout}s: {command}")
            raise TransportError(
                f"request timed out after {self.config.request_timeout}s",
                timeout=self.config.request_timeout,
                session_id=session_id or None,
                command=command,
            ) from e
        except httpx.TooManyRedirects as e:
            raise TransportError(
                f"stopped after {self.config.max_redirects} redirects",
                session_id=session_id or None,
                command=command,
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"request timed out: {e}",
                timeout=self.config.request_timeout,
                session_id=session_id or None,
                command=command,
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                f"Command transport error: {command} - {e}",
                extra={"session_id": session_id, "error_type": type(e).__name__},
            )
            raise TransportError(
                f"request failed: {e}",
                session_id=session_id or None,
                command=command,
            ) from e

        return self._classify(response, session_id, command)

    def _classify(self, response: httpx.Response, session_id: str, command: str) -> bytes:
        body = response.content
        content_type = response.headers.get("Content-Type", "")

        if self.config.verbose:
            logger.info(
                f"<- {response.status_code} {response.reason_phrase} ({content_type}) [{len(body)} bytes]"
            )
        if self.config.trace:
            logger.debug(f"<- TRACE\n{_dump_response(response)}")

        if response.status_code >= 400:
            try:
                reply = decode_reply(body)
            except ReplyDecodeError as e:
                raise ReplyDecodeError(
                    f"bad server reply status: {response.status_code} {response.reason_phrase}",
                    http_status=response.status_code,
                    session_id=session_id or None,
                    command=command,
                ) from e
            raise self._protocol_error(reply, response.status_code, session_id, command)

        if content_type.startswith(JSON_MIME_TYPE):
            try:
                reply = decode_reply(body)
            except ReplyDecodeError as e:
                raise ReplyDecodeError(
                    e.message,
                    http_status=response.status_code,
                    session_id=session_id or None,
                    command=command,
                ) from e
            if not reply.ok:
                raise self._protocol_error(reply, response.status_code, session_id, command)
            return body

        # Some commands legitimately reply without a JSON body.
        return b""

    @staticmethod
    def _protocol_error(reply, http_status: int, session_id: str, command: str) -> ProtocolError:
        failure = decode_failure(reply)
        logger.debug(
            f"Command failed: {command} - {failure.message}",
            extra={"session_id": session_id, "status": failure.status},
        )
        return failure.to_error(
            http_status=http_status,
            session_id=session_id or None,
            command=command,
        )
