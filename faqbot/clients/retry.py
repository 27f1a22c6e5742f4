"""Bounded retry policy for transient OpenAI failures."""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from faqbot.config.configuration import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_ERRORS: Tuple[Type[Exception], ...] = (
    APITimeoutError,
    APIConnectionError,
    RateLimitError,
    InternalServerError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to attempt a call and how long to wait in between.

    max_attempts=1 means a single attempt with no retry.
    """

    max_attempts: int = 1
    backoff_seconds: float = 1.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            backoff_seconds=config.backoff_seconds,
            backoff_multiplier=config.backoff_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before the attempt following `attempt` (1-based)."""
        return self.backoff_seconds * (self.backoff_multiplier ** (attempt - 1))


def call_with_retry(
    func: Callable[[], T],
    policy: RetryPolicy,
    description: str,
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """
    Call `func`, retrying transient OpenAI errors according to `policy`.

    Non-transient errors and the last transient error propagate unchanged.

    Args:
        func: Zero-argument callable performing one request.
        policy: Retry policy to apply.
        description: Short label used in log messages.
        sleep: Sleep function, defaults to time.sleep.

    Returns:
        Whatever `func` returns.
    """
    sleep = sleep or time.sleep
    attempt = 1
    while True:
        try:
            return func()
        except TRANSIENT_ERRORS as e:
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{description} failed (attempt {attempt}/{policy.max_attempts}): {e}. "
                f"Retrying in {delay:.1f}s"
            )
            sleep(delay)
            attempt += 1
