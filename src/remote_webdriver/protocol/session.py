"""
Session Management - Owns the remote session id and guarantees teardown.

Every command of a driver runs through ``Session.execute``, which checks the
session's cancellation token before sending and after the reply arrives.
A fired token aborts the command and tears the remote session down so an
abandoned caller does not leak a browser on the server.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from remote_webdriver.core.errors import (
    CommandCancelledError,
    ReplyDecodeError,
    WebDriverError,
)
from remote_webdriver.core.models import Capabilities
from remote_webdriver.protocol.cancellation import CancellationToken
from remote_webdriver.protocol.executor import CommandExecutor
from remote_webdriver.protocol.reply import Reply, decode_reply

logger = logging.getLogger("remote_webdriver")


class Session:
    """One server-side session, addressed by its id."""

    def __init__(
        self,
        executor: CommandExecutor,
        capabilities: Optional[Capabilities] = None,
        cancellation: Optional[CancellationToken] = None,
    ):
        self.executor = executor
        self.capabilities: Capabilities = dict(capabilities or {})
        self.cancellation = cancellation or CancellationToken()
        self.id = ""
        # Created on first quit so it binds to the loop that runs it.
        self._quit_lock: Optional[asyncio.Lock] = None
        self._have_quit = False

    @property
    def has_quit(self) -> bool:
        return self._have_quit

    def set_cancellation(self, token: CancellationToken) -> None:
        """Replace the token checked around every command."""
        self.cancellation = token

    async def execute(
        self,
        method: str,
        template: str,
        payload: Any = None,
        *,
        element_id: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> bytes:
        """Run one command against this session and return the raw reply body."""
        if self.cancellation.cancelled:
            raise await self._abandon(method, template)

        try:
            body = await self.executor.execute(
                method,
                template,
                self.id,
                payload,
                element_id=element_id,
                params=params,
            )
        except WebDriverError as e:
            if self.cancellation.cancelled:
                raise await self._abandon(method, template) from e
            raise

        # The caller gave up while the request was in flight: drop the result.
        if self.cancellation.cancelled:
            raise await self._abandon(method, template)
        return body

    async def command(
        self,
        method: str,
        template: str,
        payload: Any = None,
        *,
        element_id: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Optional[Reply]:
        """Run one command and decode its envelope; None when the reply had no body."""
        body = await self.execute(method, template, payload, element_id=element_id, params=params)
        if not body:
            return None
        return decode_reply(body)

    async def _abandon(self, method: str, template: str) -> CommandCancelledError:
        reason = self.cancellation.reason
        logger.info(
            f"Command cancelled ({reason}), tearing down session {self.id or '<none>'}",
            extra={"session_id": self.id, "command": f"{method} {template}"},
        )
        try:
            await self.quit()
        except WebDriverError as e:
            logger.warning(
                f"Best-effort session teardown failed: {e}",
                extra={"session_id": self.id, "error_type": type(e).__name__},
            )
        return CommandCancelledError(
            reason=reason,
            session_id=self.id or None,
            command=f"{method} {template}",
        )

    async def new_session(self) -> str:
        """
        Create the remote session.

        Returns:
            The new session id, also stored as ``self.id``.
        """
        if self.cancellation.cancelled:
            raise await self._abandon("POST", "/session")

        # A session created while the token fired must be stored before the
        # token is checked again, so quit() has an id to delete.
        try:
            body = await self.executor.execute(
                "POST", "/session", "", {"desiredCapabilities": self.capabilities}
            )
        except WebDriverError as e:
            if self.cancellation.cancelled:
                raise await self._abandon("POST", "/session") from e
            raise

        reply = decode_reply(body) if body else None
        if reply is None:
            raise ReplyDecodeError("new session reply had no body", command="POST /session")

        session_id = reply.session_id
        if not session_id and isinstance(reply.value, dict):
            # W3C-style servers report the id inside the value.
            value_id = reply.value.get("sessionId")
            if isinstance(value_id, str):
                session_id = value_id
        if not session_id:
            raise ReplyDecodeError("new session reply carried no session id", command="POST /session")

        self.id = session_id
        logger.info(f"Session created: {session_id}", extra={"session_id": session_id})

        if self.cancellation.cancelled:
            raise await self._abandon("POST", "/session")
        return session_id

    async def quit(self) -> None:
        """
        Delete the remote session.

        Only the first call does anything; later calls return without touching
        the network. Teardown ignores the caller's cancellation token, since it
        is the only path that frees the remote browser.
        """
        if self._quit_lock is None:
            self._quit_lock = asyncio.Lock()
        async with self._quit_lock:
            if self._have_quit:
                return
            self._have_quit = True
            self.cancellation = CancellationToken.never()

            if not self.id:
                logger.debug("Quit without an active session, nothing to delete")
                return

            await self.execute("DELETE", "/session/{session_id}")
            logger.info(f"Session deleted: {self.id}", extra={"session_id": self.id})
            self.id = ""
