"""
Rate Limiter - Dual-window token bucket admission control.

Two buckets (short window, long window) refill continuously at
capacity / window. A request is admitted only when both hold at least
one token; admission takes exactly one token from each.

Waiters are kept in an explicit FIFO queue of admission requests, each
with an attached future. A single service task drains the queue in
arrival order, sleeping until the next token is due.
"""

import asyncio
import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Optional

from chain_history.exceptions import RateLimiterFault


logger = logging.getLogger(__name__)


class TokenBucket:
    """
    Continuously refilling token bucket.

    Invariant: 0 <= tokens <= capacity.
    """

    def __init__(
        self,
        capacity: float,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 0:
            raise ValueError("capacity must be >= 0")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.capacity = capacity
        self.window_seconds = window_seconds
        self._clock = clock
        self._tokens = float(capacity)
        self._last_refill = clock()

    @property
    def refill_rate(self) -> float:
        """Tokens per second."""
        return self.capacity / self.window_seconds

    @property
    def tokens(self) -> float:
        self.refill()
        return self._tokens

    def refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._last_refill = now
        if elapsed:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)

    def has_token(self) -> bool:
        self.refill()
        return self._tokens >= 1

    def consume(self) -> None:
        self._tokens = max(0.0, self._tokens - 1)

    def seconds_until_token(self) -> float:
        """Time until one full token is available (inf if it never will be)."""
        self.refill()
        if self._tokens >= 1:
            return 0.0
        if self.refill_rate <= 0:
            return math.inf
        return (1 - self._tokens) / self.refill_rate

    def reset(self) -> None:
        self._tokens = float(self.capacity)
        self._last_refill = self._clock()


@dataclass
class _AdmissionRequest:
    """Pending admission with its completion signal."""
    future: asyncio.Future
    enqueued_at: float
    ticket: int = 0


class RateLimiter:
    """
    FIFO admission control over a short and a long window.

    A capacity of None disables that window. A disabled limiter admits
    unconditionally. If the service loop goes `max_idle_iterations`
    consecutive iterations without admitting anyone, every queued waiter
    is rejected with RateLimiterFault.
    """

    DEFAULT_SHORT_WINDOW = 1.0
    DEFAULT_LONG_WINDOW = 60.0
    MIN_DELAY = 0.01
    MAX_IDLE_ITERATIONS = 1000

    def __init__(
        self,
        requests_per_second: Optional[float] = None,
        requests_per_minute: Optional[float] = None,
        enabled: bool = True,
        short_window: float = DEFAULT_SHORT_WINDOW,
        long_window: float = DEFAULT_LONG_WINDOW,
        max_idle_iterations: int = MAX_IDLE_ITERATIONS,
        min_delay: float = MIN_DELAY,
        clock: Callable[[], float] = time.monotonic,
        name: str = "rate_limiter",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.name = name
        self.enabled = enabled
        self._clock = clock
        self._max_idle_iterations = max_idle_iterations
        self._min_delay = min_delay
        self._logger = logger or logging.getLogger(__name__)

        self._buckets: list[TokenBucket] = []
        if requests_per_second is not None:
            self._buckets.append(TokenBucket(requests_per_second, short_window, clock))
        if requests_per_minute is not None:
            self._buckets.append(TokenBucket(requests_per_minute, long_window, clock))

        self._queue: deque[_AdmissionRequest] = deque()
        self._service_task: Optional[asyncio.Task] = None
        self._tickets = 0

    # ─────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────

    async def acquire(self) -> None:
        """
        Wait until one request may be issued.

        Raises:
            RateLimiterFault: if the admission loop stalls
        """
        if not self.enabled:
            return

        if not self._queue and self._try_consume():
            return

        loop = asyncio.get_running_loop()
        self._tickets += 1
        request = _AdmissionRequest(
            future=loop.create_future(),
            enqueued_at=self._clock(),
            ticket=self._tickets,
        )
        self._queue.append(request)
        self._logger.debug(
            f"[{self.name}] Queued admission #{request.ticket} "
            f"(queue depth={len(self._queue)})"
        )
        self._ensure_service_task()
        await request.future

    def try_acquire(self) -> bool:
        """Admit immediately if possible. Never jumps ahead of queued waiters."""
        if not self.enabled:
            return True
        if self._queue:
            return False
        return self._try_consume()

    def reset(self) -> None:
        """Refill both buckets to capacity."""
        for bucket in self._buckets:
            bucket.reset()

    @property
    def queue_depth(self) -> int:
        return len(self._queue)

    def stats(self) -> dict[str, Any]:
        """Current limiter state."""
        return {
            "name": self.name,
            "enabled": self.enabled,
            "queue_depth": len(self._queue),
            "buckets": [
                {
                    "capacity": b.capacity,
                    "window_seconds": b.window_seconds,
                    "tokens": round(b.tokens, 3),
                }
                for b in self._buckets
            ],
        }

    # ─────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────

    def _can_admit(self) -> bool:
        return all(bucket.has_token() for bucket in self._buckets)

    def _try_consume(self) -> bool:
        if not self._can_admit():
            return False
        for bucket in self._buckets:
            bucket.consume()
        return True

    def _next_delay(self) -> float:
        delay = max((b.seconds_until_token() for b in self._buckets), default=0.0)
        if math.isinf(delay):
            return self._min_delay
        return max(delay, self._min_delay)

    def _ensure_service_task(self) -> None:
        if self._service_task is None or self._service_task.done():
            self._service_task = asyncio.get_running_loop().create_task(
                self._service_queue()
            )

    async def _service_queue(self) -> None:
        idle_iterations = 0
        try:
            while self._queue:
                head = self._queue[0]
                if head.future.done():
                    # Waiter was cancelled while queued
                    self._queue.popleft()
                    continue

                if self._try_consume():
                    self._queue.popleft()
                    head.future.set_result(None)
                    idle_iterations = 0
                    continue

                if idle_iterations >= self._max_idle_iterations:
                    self._reject_all(RateLimiterFault(
                        "Rate limiter stalled: too many iterations without admission. "
                        "Check limiter configuration.",
                        context={
                            "limiter": self.name,
                            "iterations": idle_iterations,
                            "pending": len(self._queue),
                        },
                    ))
                    return

                idle_iterations += 1
                await asyncio.sleep(self._next_delay())
        except Exception as e:
            self._reject_all(RateLimiterFault(
                f"Rate limiter service loop failed: {e}",
                context={"limiter": self.name},
                original_error=e,
            ))
            raise
        finally:
            self._service_task = None

    def _reject_all(self, error: RateLimiterFault) -> None:
        self._logger.error(f"[{self.name}] {error.message} ({len(self._queue)} waiters rejected)")
        while self._queue:
            request = self._queue.popleft()
            if not request.future.done():
                request.future.set_exception(error)

    def __repr__(self) -> str:
        return (
            f"<RateLimiter(name={self.name}, enabled={self.enabled}, "
            f"queue_depth={len(self._queue)})>"
        )
