"""Fixed-interval retry bounded by an overall duration budget."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from ..logging import get_logger

_LOGGER = get_logger("hub.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry ``duration`` seconds in total, waiting ``wait`` seconds between attempts.

    A non-positive duration or wait disables retrying.
    """

    duration: float = 0.0
    wait: float = 30.0

    @property
    def enabled(self) -> bool:
        return self.duration > 0 and self.wait > 0


def _always(_: BaseException) -> bool:
    return True


def retrying(
    operation: Callable[[], T],
    policy: RetryPolicy,
    *,
    should_retry: Callable[[BaseException], bool] = _always,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> T:
    """Run ``operation`` until it succeeds or the retry budget is spent.

    Errors rejected by ``should_retry`` propagate immediately. Once the
    deadline has passed the last error propagates unchanged.
    """
    deadline = clock() + policy.duration
    attempt = 0
    while True:
        attempt += 1
        try:
            return operation()
        except Exception as exc:
            if not policy.enabled or not should_retry(exc) or clock() >= deadline:
                raise
            _LOGGER.warning(
                "Retrying operation in %.0f seconds (attempt %d) due to error: %s",
                policy.wait,
                attempt,
                exc,
            )
            sleep(policy.wait)


__all__ = ["RetryPolicy", "retrying"]
