"""Bounded exponential retry loop.

Retries a single operation a fixed number of times with a doubling delay.
Used to make launcher and runtime invocations resilient to transient
failures such as engine warm-up. Unlike the readiness policies, the loop
waits after every failed attempt, the last one included.
"""

import time
from collections.abc import Callable
from threading import Event

from compose_fixture.exceptions import RetryCancelledError


def wait_for(delay: float, cancel: Event | None = None) -> None:
    """Block for ``delay`` seconds, or until ``cancel`` is set.

    Args:
        delay: Seconds to wait.
        cancel: Optional event that interrupts the wait.

    Raises:
        RetryCancelledError: If ``cancel`` is set before or during the wait.
    """
    if cancel is None:
        time.sleep(delay)
        return
    if cancel.wait(delay):
        msg = "retry cancelled"
        raise RetryCancelledError(msg, attempts=0)


def retry_operation[T](
    max_attempts: int,
    base_delay: float,
    operation: Callable[[], T],
    *,
    cancel: Event | None = None,
) -> T:
    """Invoke ``operation`` until it succeeds or attempts run out.

    After each failed attempt the loop waits for the current delay and then
    doubles it.

    Args:
        max_attempts: Maximum number of invocations.
        base_delay: Seconds to wait after the first failure.
        operation: Callable to invoke; any exception counts as a failure.
        cancel: Optional event that aborts the loop while waiting.

    Returns:
        The result of the first successful invocation.

    Raises:
        ValueError: If ``max_attempts`` is not positive.
        RetryCancelledError: If ``cancel`` is set while waiting.
        Exception: The last failure once every attempt has failed.
    """
    if max_attempts <= 0:
        msg = f"max_attempts must be positive, got {max_attempts}"
        raise ValueError(msg)

    delay = base_delay
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            return operation()
        except Exception as e:  # noqa: BLE001
            last_error = e

        try:
            wait_for(delay, cancel)
        except RetryCancelledError:
            msg = f"retry cancelled after {attempt} attempt(s): {last_error}"
            raise RetryCancelledError(msg, attempts=attempt) from last_error
        delay *= 2

    # The loop only falls through after a recorded failure
    assert last_error is not None  # noqa: S101
    raise last_error
