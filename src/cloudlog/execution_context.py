from __future__ import annotations

import threading
import time
from typing import Optional, Protocol


class CancellationToken(Protocol):
    """
    Anything the Logger can poll for cancellation.

    done() must answer immediately; it is never allowed to wait.
    """

    def done(self) -> bool:
        ...


class SystemContext:
    """
    Cooperative cancellation scope owned by the caller.

    A context is done when it was cancelled, when its deadline has
    passed, or when its parent is done. The Logger only observes it.
    """

    def __init__(
        self,
        *,
        parent: Optional[CancellationToken] = None,
        deadline: Optional[float] = None,
    ):
        self._parent = parent
        self._deadline = deadline          # time.monotonic() value, or None
        self._cancelled = threading.Event()
        self._reason: Optional[str] = None

    @classmethod
    def background(cls) -> "SystemContext":
        """Root context that is never done unless cancelled explicitly."""
        return cls()

    @classmethod
    def with_cancel(cls, parent: Optional[CancellationToken] = None) -> "SystemContext":
        return cls(parent=parent)

    @classmethod
    def with_timeout(
        cls, seconds: float, parent: Optional[CancellationToken] = None
    ) -> "SystemContext":
        return cls(parent=parent, deadline=time.monotonic() + seconds)

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled.is_set():
            self._reason = reason
            self._cancelled.set()

    def done(self) -> bool:
        if self._cancelled.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return True
        return self._parent is not None and self._parent.done()

    @property
    def reason(self) -> Optional[str]:
        """Why the context is done, or None while it is live."""
        if self._cancelled.is_set():
            return self._reason
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return "deadline exceeded"
        if self._parent is not None and self._parent.done():
            return getattr(self._parent, "reason", None) or "parent done"
        return None


def is_done(ctx: Optional[CancellationToken]) -> bool:
    """Single non-blocking poll of a context; None is never done."""
    return ctx is not None and ctx.done()
