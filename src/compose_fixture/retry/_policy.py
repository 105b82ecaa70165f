"""Retry policies for readiness probing.

A retry policy answers "should I try again, and after how long?" after an
attempt has failed. Policies count attempts, so each instance belongs to a
single retry sequence; construct a fresh one for every sequence.
"""

import random
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

DEFAULT_MIN_DELAY: float = 0.1
DEFAULT_MAX_DELAY: float = 10.0


@runtime_checkable
class RetryPolicy(Protocol):
    """Protocol for retry strategies consulted after a failed attempt."""

    def attempt_again(self, error: BaseException) -> tuple[bool, float]:
        """Decide whether to retry after ``error``.

        Args:
            error: The failure of the most recent attempt.

        Returns:
            Tuple of (retry, seconds to wait before the next attempt).
        """
        ...


@dataclass(slots=True)
class SimpleRetryPolicy:
    """Fixed-interval retry policy.

    Retries exactly ``max_retries`` times, waiting ``wait`` seconds before
    each retry. With ``max_retries=0`` the first failure is final.

    Attributes:
        max_retries: Number of retries allowed after the first attempt.
        wait: Seconds to wait between attempts.
        attempts: Number of times the policy has been consulted.
    """

    max_retries: int
    wait: float
    attempts: int = field(default=0, init=False)

    def attempt_again(self, error: BaseException) -> tuple[bool, float]:  # noqa: ARG002
        """Retry while fewer than ``max_retries`` retries were granted."""
        retry = self.attempts < self.max_retries
        self.attempts += 1
        return retry, self.wait


@dataclass(slots=True)
class ExponentialBackoffRetryPolicy:
    """Exponential backoff retry policy with jitter.

    The wait for attempt ``n`` (0-indexed) is::

        min_delay * 2 ** (n - 1) + uniform(-min_delay / 2, min_delay / 2)

    capped at ``max_delay``. The first wait is therefore below
    ``min_delay``. Non-positive bounds fall back to 0.1s and 10s.

    Attributes:
        max_retries: Number of retries allowed after the first attempt.
        min_delay: Base delay in seconds.
        max_delay: Maximum delay in seconds.
        attempts: Number of times the policy has been consulted.
    """

    max_retries: int
    min_delay: float = DEFAULT_MIN_DELAY
    max_delay: float = DEFAULT_MAX_DELAY
    attempts: int = field(default=0, init=False)

    def attempt_again(self, error: BaseException) -> tuple[bool, float]:  # noqa: ARG002
        """Retry while fewer than ``max_retries`` retries were granted."""
        retry = self.attempts < self.max_retries
        delay = exponential_delay(self.min_delay, self.max_delay, self.attempts)
        self.attempts += 1
        return retry, delay


def exponential_delay(min_delay: float, max_delay: float, attempt: int) -> float:
    """Calculate the jittered exponential delay for an attempt.

    Args:
        min_delay: Base delay in seconds; non-positive means 0.1s.
        max_delay: Upper bound in seconds; non-positive means 10s.
        attempt: Zero-indexed attempt number.

    Returns:
        The delay in seconds, never more than ``max_delay``.
    """
    if min_delay <= 0:
        min_delay = DEFAULT_MIN_DELAY
    if max_delay <= 0:
        max_delay = DEFAULT_MAX_DELAY

    try:
        delay = min_delay * (2.0 ** (attempt - 1))
    except OverflowError:
        return max_delay
    delay += random.random() * min_delay - min_delay / 2  # noqa: S311
    return min(delay, max_delay)
