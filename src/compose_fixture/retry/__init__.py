"""Retry and backoff primitives.

Key Components:
    - RetryPolicy: Protocol consulted after each failed readiness probe
    - SimpleRetryPolicy: Fixed-interval policy
    - ExponentialBackoffRetryPolicy: Jittered exponential policy
    - retry_operation: Bounded doubling-delay loop for a single operation
    - connect: Readiness loop driven by a RetryPolicy
    - wait_for: Cancellable sleep shared by the retry loops

Example:
    >>> from compose_fixture.retry import SimpleRetryPolicy
    >>> policy = SimpleRetryPolicy(max_retries=1, wait=0.5)
    >>> policy.attempt_again(OSError("refused"))
    (True, 0.5)
    >>> policy.attempt_again(OSError("refused"))
    (False, 0.5)
"""

from ._connect import connect
from ._operation import retry_operation, wait_for
from ._policy import (
    DEFAULT_MAX_DELAY,
    DEFAULT_MIN_DELAY,
    ExponentialBackoffRetryPolicy,
    RetryPolicy,
    SimpleRetryPolicy,
    exponential_delay,
)

__all__ = [
    "DEFAULT_MAX_DELAY",
    "DEFAULT_MIN_DELAY",
    "ExponentialBackoffRetryPolicy",
    "RetryPolicy",
    "SimpleRetryPolicy",
    "connect",
    "exponential_delay",
    "retry_operation",
    "wait_for",
]
