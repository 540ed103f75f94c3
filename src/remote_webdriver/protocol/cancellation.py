"""
Cooperative cancellation for driver commands.

A token is checked before a command is sent and again after its reply
arrives. Cancelling never interrupts a request that is already on the wire;
it only makes the client discard the result.
"""
from __future__ import annotations

import time
from typing import Optional


class CancellationToken:
    """A one-way cancel flag with an optional deadline."""

    def __init__(self, deadline: Optional[float] = None, cancellable: bool = True):
        self._deadline = deadline
        self._cancellable = cancellable
        self._reason: Optional[str] = None

    @classmethod
    def never(cls) -> CancellationToken:
        """A token that can never fire."""
        return cls(cancellable=False)

    @classmethod
    def with_timeout(cls, seconds: float) -> CancellationToken:
        """A token that fires once ``seconds`` have elapsed."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = "cancelled") -> None:
        if self._cancellable and self._reason is None:
            self._reason = reason

    @property
    def cancelled(self) -> bool:
        if not self._cancellable:
            return False
        if self._reason is not None:
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "deadline exceeded"
            return True
        return False

    @property
    def reason(self) -> Optional[str]:
        return self._reason if self.cancelled else None

    def __repr__(self) -> str:
        if not self._cancellable:
            return "CancellationToken(never)"
        return f"CancellationToken(cancelled={self.cancelled})"
