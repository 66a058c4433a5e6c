"""Cancellable execution context bounded by a wall-clock deadline.

The fetch loop runs on a single thread and polls :attr:`ExecutionContext.cancelled`
at the top of every iteration. The only other activity is one timer thread
started by :func:`deadline_context`, which sets the cancellation signal when
the budget is spent. Signalling is one-directional: the timer never touches
loop state.
"""
import threading
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from loguru import logger


class ExecutionContext:
    """Cancellation signal with an optional monotonic deadline.

    Parameters
    ----------
    timeout
        Seconds from construction after which the context counts as
        cancelled. ``None`` means unbounded.
    clock
        Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._clock = clock
        self._event = threading.Event()
        self.deadline = None if timeout is None else clock() + timeout
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "cancelled") -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline is not None and self._clock() >= self.deadline:
            self.cancel("deadline exceeded")
            return True
        return False

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` if there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def wait(self, seconds: float) -> bool:
        """Block up to ``seconds``, capped at the remaining budget.

        Returns ``True`` if the context is cancelled when the wait ends.
        """
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        if seconds > 0:
            self._event.wait(seconds)
        return self.cancelled


@contextmanager
def deadline_context(
    seconds: float,
    clock: Callable[[], float] = time.monotonic,
) -> Iterator[ExecutionContext]:
    """Yield a context that is cancelled once ``seconds`` have elapsed.

    A daemon :class:`threading.Timer` cancels the context when it fires; the
    timer is stopped on every exit path.

    Examples
    --------
    >>> with deadline_context(600) as ctx:
    ...     fetch_and_render_trips(ctx, base_url, sinks=[render_trips])
    """
    ctx = ExecutionContext(timeout=seconds, clock=clock)

    def _expire() -> None:
        logger.info(f"Deadline of {seconds}s reached, cancelling ingestion")
        ctx.cancel("deadline exceeded")

    timer = threading.Timer(seconds, _expire)
    timer.daemon = True
    timer.start()
    try:
        yield ctx
    finally:
        timer.cancel()
