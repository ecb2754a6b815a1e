"""Fixed-interval polling of a read command until a condition holds."""

from __future__ import annotations

import logging
import time
from typing import Callable, Collection, Optional, TypeVar

from .context import Context
from .errors import ErrorKind, PollTimeoutError, ProtocolError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def poll_until(
    command: Callable[[], T],
    predicate: Callable[[T], bool],
    interval: float,
    max_wait: float,
    *,
    ctx: Optional[Context] = None,
    pending_on: Collection[ErrorKind] = (),
    satisfied_on: Collection[ErrorKind] = (),
) -> Optional[T]:
    """Run ``command`` every ``interval`` seconds until ``predicate`` accepts its result.

    The first attempt is immediate and a satisfying result is returned without
    any further sleep. ``pending_on`` lists error kinds that mean "not yet"
    (e.g. waiting for an element to appear), ``satisfied_on`` lists kinds that
    mean the condition holds (e.g. waiting for an element to go away); in the
    latter case ``None`` is returned. Any other error is raised at once.

    Raises:
        PollTimeoutError: once more than ``max_wait`` seconds have passed
            since the first attempt without the condition holding.
        Canceled / DeadlineExceeded: when ``ctx`` is done, including while
            sleeping between attempts.
    """
    ctx = ctx or Context.background()
    start = time.monotonic()
    attempt = 0

    while True:
        attempt += 1
        try:
            value = command()
        except ProtocolError as e:
            if e.kind in satisfied_on:
                logger.debug("poll satisfied by %s after %d attempt(s)", e.kind.value, attempt)
                return None
            if e.kind not in pending_on:
                raise
            logger.debug("poll attempt %d pending: %s", attempt, e.kind.value)
        else:
            if predicate(value):
                logger.debug("poll satisfied after %d attempt(s)", attempt)
                return value
            logger.debug("poll attempt %d not satisfied", attempt)

        elapsed = time.monotonic() - start
        if elapsed > max_wait:
            raise PollTimeoutError(elapsed)

        ctx.wait(interval)
        err = ctx.err()
        if err is not None:
            raise err

        elapsed = time.monotonic() - start
        if elapsed > max_wait:
            raise PollTimeoutError(elapsed)
