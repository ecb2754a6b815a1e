"""Cancellation and deadline token threaded through every command."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import Canceled, DeadlineExceeded, TransportError


class Context:
    """Caller-owned cancellation token with an optional deadline.

    Usage::

        ctx = Context.with_timeout(10)
        client.page_url(ctx=ctx)

        # from another thread
        ctx.cancel()

    A context is safe to share between threads. ``wait()`` returns early as
    soon as the context is canceled.
    """

    def __init__(self, deadline: Optional[float] = None) -> None:
        # deadline is on the time.monotonic() clock
        self._deadline = deadline
        self._canceled = threading.Event()

    @classmethod
    def background(cls) -> "Context":
        """A context that is never done unless canceled."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float) -> "Context":
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    def cancel(self) -> None:
        self._canceled.set()

    @property
    def canceled(self) -> bool:
        return self._canceled.is_set()

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def err(self) -> Optional[TransportError]:
        """The error describing why the context is done, or None while it is live."""
        if self._canceled.is_set():
            return Canceled()
        if self._deadline is not None and time.monotonic() >= self._deadline:
            return DeadlineExceeded()
        return None

    @property
    def done(self) -> bool:
        return self.err() is not None

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``; return True if woken by cancel()."""
        return self._canceled.wait(seconds)
