"""
Cooperative Cancellation.

A CancellationToken is created once per top-level request and threaded
through every dispatch and state operation. Observers poll
``raise_if_cancelled()`` at their suspension points or ``await wait()``
to race long-running work against the signal.

Child tokens (``token.child()``) are cancelled together with their parent
but can also be cancelled on their own, which lets a single dispatch be
abandoned without affecting its siblings.

Version: 1.0.0
"""

import asyncio
from typing import List, Optional


class OperationCancelledError(Exception):
    """Raised when an operation observes a cancelled token."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Operation was cancelled")
        self.reason = reason


class CancellationToken:
    """
    Cooperative cancellation signal.

    Usage:
        token = CancellationToken()
        task = asyncio.create_task(orchestrator.process_request(..., cancellation=token))
        token.cancel("client disconnected")
    """

    def __init__(self, parent: Optional['CancellationToken'] = None):
        self._event = asyncio.Event()
        self._reason: Optional[str] = None
        self._children: List['CancellationToken'] = []
        if parent is not None:
            parent._children.append(self)
            if parent.is_cancelled:
                self.cancel(parent.reason)

    @classmethod
    def none(cls) -> 'CancellationToken':
        """A token that nobody holds a reference to cancel."""
        return cls()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation to this token and every child token."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()
        for child in self._children:
            child.cancel(reason)

    def child(self) -> 'CancellationToken':
        """Create a token that is cancelled whenever this one is."""
        return CancellationToken(parent=self)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError(self._reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()


def ensure_token(token: Optional[CancellationToken]) -> CancellationToken:
    """Return the given token, or a fresh never-cancelled one."""
    return token if token is not None else CancellationToken.none()
