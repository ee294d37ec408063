"""Bounded retry runner.

Runs a zero-argument action up to ``max_extra_attempts + 1`` times, sleeping
between failures according to a pluggable back-off policy. When every attempt
fails the most recent exception is re-raised unchanged.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    stop_after_attempt,
    wait_exponential,
    wait_exponential_jitter,
    wait_fixed,
    wait_none,
)
from tenacity.wait import wait_base

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

BACKOFF_KINDS = ("fixed", "exponential", "jitter", "none")


def build_backoff(kind: str, delay: float = 30.0, max_delay: float = 300.0) -> wait_base:
    """Return a tenacity wait strategy for the named back-off policy."""

    if kind == "fixed":
        return wait_fixed(delay)
    if kind == "exponential":
        return wait_exponential(multiplier=delay, max=max_delay)
    if kind == "jitter":
        return wait_exponential_jitter(initial=delay, max=max_delay)
    if kind == "none":
        return wait_none()
    raise ValueError(f"Unsupported backoff policy: {kind}")


def _log_failed_attempt(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    delay = retry_state.next_action.sleep if retry_state.next_action else 0
    LOGGER.warning(
        "Attempt %s failed (%s), retrying in %.0fs",
        retry_state.attempt_number,
        exc,
        delay,
    )


class RetryRunner:
    """Run an action with a fixed number of extra attempts after the first."""

    def __init__(
        self,
        max_extra_attempts: int,
        backoff: wait_base,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_extra_attempts < 0:
            raise ValueError("max_extra_attempts must be zero or greater")
        self._max_extra_attempts = max_extra_attempts
        self._backoff = backoff
        self._sleep = sleep

    @property
    def max_attempts(self) -> int:
        return self._max_extra_attempts + 1

    def run(self, action: Callable[[], T]) -> T:
        """Invoke ``action`` until it succeeds or the attempts are used up."""

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._backoff,
            sleep=self._sleep,
            before_sleep=_log_failed_attempt,
            reraise=True,
        )
        return retrying(action)
