"""
Base Chain Provider - Abstract interface for transaction history backends.

Each provider owns the wire protocol for one backend together with its
own RateLimiter, RetryPolicy and HTTP client (nothing is shared across
providers). Every HTTP attempt is admitted by the rate limiter first, so
retries consume tokens too.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

import aiohttp

from chain_history.config import RateLimitConfig
from chain_history.http import JsonHttpClient
from chain_history.models import (
    Network,
    PaginatedResponse,
    PaginationOptions,
    Transaction,
)
from chain_history.rate_limiter import RateLimiter
from chain_history.retry import RetryConfig, RetryPolicy


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderMetadata:
    """Static description of a provider."""
    name: str
    display_name: str
    network: Network
    base_url: str
    pagination: str  # "offset" or "cursor"
    requires_api_key: bool = False
    rate_limit_per_second: Optional[float] = None
    rate_limit_per_minute: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "display_name": self.display_name,
            "network": self.network.value,
            "base_url": self.base_url,
            "pagination": self.pagination,
            "requires_api_key": self.requires_api_key,
            "rate_limit_per_second": self.rate_limit_per_second,
            "rate_limit_per_minute": self.rate_limit_per_minute,
        }


class BaseChainProvider(ABC):
    """
    Abstract base class for chain providers.

    Subclasses implement:
    1. get_transactions() - fetch one page and map it to unified records
    2. metadata() - static provider description
    3. validate_config() - list configuration problems
    """

    def __init__(
        self,
        timeout: float,
        rate_limit: RateLimitConfig,
        retry: RetryConfig,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(self.__class__.__module__)
        self._rate_limiter = RateLimiter(
            requests_per_second=rate_limit.requests_per_second,
            requests_per_minute=rate_limit.requests_per_minute,
            enabled=rate_limit.enabled,
            name=f"{self.get_name()}.rate_limiter",
            logger=self._logger,
        )
        self._retry = RetryPolicy(retry, name=self.get_name(), logger=self._logger)
        self._http = JsonHttpClient(
            self.get_name(),
            timeout=timeout,
            session=session,
            logger=self._logger,
        )

    @abstractmethod
    def get_name(self) -> str:
        """Unique identifier for this provider."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether required credentials/endpoint are present."""
        pass

    @abstractmethod
    def metadata(self) -> ProviderMetadata:
        pass

    @abstractmethod
    async def get_transactions(
        self,
        address: str,
        options: PaginationOptions,
    ) -> PaginatedResponse[Transaction]:
        """
        Fetch one page of transactions for an already-normalized address.

        Raises:
            NetworkError, RateLimitError: after retries are exhausted
            ProviderError: if the backend signals a failure
        """
        pass

    @property
    def rate_limiter(self) -> RateLimiter:
        return self._rate_limiter

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    async def _call(
        self,
        send: Callable[[], Awaitable[Any]],
        description: str,
    ) -> Any:
        """Run one logical request: admission + HTTP attempt, retried as a unit."""

        async def attempt() -> Any:
            await self._rate_limiter.acquire()
            return await send()

        return await self._retry.execute(attempt, description)

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close resources."""
        await self._http.close()

    async def __aenter__(self) -> "BaseChainProvider":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.get_name()})>"
