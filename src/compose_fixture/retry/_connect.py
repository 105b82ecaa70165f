"""Readiness loop driven by a retry policy."""

from collections.abc import Callable
from threading import Event
from typing import TYPE_CHECKING

from compose_fixture.exceptions import RetryCancelledError, RetryPolicyReusedError

from ._operation import wait_for
from ._policy import RetryPolicy

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def connect(
    policy: RetryPolicy,
    probe: Callable[[], object],
    *,
    cancel: Event | None = None,
    logger: "FilteringBoundLogger | None" = None,
) -> None:
    """Invoke ``probe`` until it succeeds or ``policy`` stops retrying.

    Each time the probe raises, the policy decides whether to try again and
    how long to wait first. The loop holds no shared state, so it may run
    concurrently from several threads.

    Args:
        policy: A fresh retry policy for this sequence.
        probe: Callable that raises while the target is not ready.
        cancel: Optional event that aborts the loop while waiting.
        logger: Optional logger for retry events.

    Raises:
        RetryPolicyReusedError: If ``policy`` has already counted attempts.
        RetryCancelledError: If ``cancel`` is set while waiting.
        Exception: The probe's last failure once the policy declines.
    """
    if getattr(policy, "attempts", 0):
        msg = (
            "retry policy has already been used; "
            "construct a fresh policy for each retry sequence"
        )
        raise RetryPolicyReusedError(msg)

    attempts = 0
    while True:
        attempts += 1
        try:
            _ = probe()
        except Exception as e:
            retry, wait = policy.attempt_again(e)
            if not retry:
                raise
            if logger is not None:
                logger.info("connect_retry", wait=wait, attempt=attempts, error=str(e))
            try:
                wait_for(wait, cancel)
            except RetryCancelledError:
                msg = f"connect cancelled after {attempts} attempt(s): {e}"
                raise RetryCancelledError(msg, attempts=attempts) from e
        else:
            return
