"""
Retry Policy - Exponential backoff with failure classification.

Classification:
- NetworkError, RateLimitError      -> BACKOFF (always retried)
- ProviderError with retryable code -> BACKOFF
- everything else                   -> NO_RETRY (propagates immediately)

Delay before retry n (0-indexed) is
    min(initial_delay * backoff_multiplier ** n, max_delay)
unless a RateLimitError carries retry_after, which replaces it.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

from chain_history.exceptions import NetworkError, ProviderError, RateLimitError


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


class RetryEligibility(Enum):
    """Whether a failure is eligible for retry."""
    BACKOFF = "BACKOFF"       # Retry with exponential backoff
    NO_RETRY = "NO_RETRY"     # Propagate immediately


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy settings. Delays in seconds."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retryable_status_codes: frozenset[int] = field(
        default_factory=lambda: DEFAULT_RETRYABLE_STATUS_CODES
    )

    def validate(self) -> list[str]:
        """Return a list of configuration problems (empty if valid)."""
        errors = []
        if self.max_retries < 0:
            errors.append("max_retries must be >= 0")
        if self.initial_delay < 0:
            errors.append("initial_delay must be >= 0")
        if self.max_delay < 0:
            errors.append("max_delay must be >= 0")
        if self.backoff_multiplier < 1:
            errors.append("backoff_multiplier must be >= 1")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_retries": self.max_retries,
            "initial_delay": self.initial_delay,
            "max_delay": self.max_delay,
            "backoff_multiplier": self.backoff_multiplier,
            "retryable_status_codes": sorted(self.retryable_status_codes),
        }


class RetryPolicy:
    """
    Executes an async operation, retrying retryable failures.

    The last failure is re-raised unchanged on exhaustion or on a
    non-retryable failure.
    """

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        name: str = "retry",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or RetryConfig()
        self.name = name
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)

    def classify(self, error: BaseException) -> RetryEligibility:
        """Classify a failure as retryable or fatal."""
        if isinstance(error, (NetworkError, RateLimitError)):
            return RetryEligibility.BACKOFF
        if (
            isinstance(error, ProviderError)
            and error.status_code is not None
            and error.status_code in self.config.retryable_status_codes
        ):
            return RetryEligibility.BACKOFF
        return RetryEligibility.NO_RETRY

    def compute_delay(self, attempt: int, error: Optional[BaseException] = None) -> float:
        """Delay in seconds before retrying after failed attempt `attempt` (0-indexed)."""
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return float(error.retry_after)
        delay = self.config.initial_delay * (self.config.backoff_multiplier ** attempt)
        return min(delay, self.config.max_delay)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """
        Run `operation` with retries.

        Makes at most max_retries + 1 attempts.
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if self.classify(e) is RetryEligibility.NO_RETRY:
                    raise

                if attempt >= self.config.max_retries:
                    self._logger.warning(
                        f"[{self.name}] {description} failed after "
                        f"{attempt + 1} attempts: {e}"
                    )
                    raise

                delay = self.compute_delay(attempt, e)
                self._logger.warning(
                    f"[{self.name}] Retry {attempt + 1}/{self.config.max_retries} "
                    f"for {description} in {delay:.2f}s: {e}"
                )
                await self._sleep(delay)
                attempt += 1
