"""
Chain History Exceptions - Structured error taxonomy.

Every error carries a stable machine-readable kind and a context payload
so callers can branch on failures without matching message strings.

Retry semantics:
- ValidationError / ConfigurationError: never retried
- NetworkError / RateLimitError: always retried (RetryPolicy)
- ProviderError: retried only if status_code is configured as retryable
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Stable error kinds exposed to callers."""
    VALIDATION = "VALIDATION_ERROR"
    CONFIGURATION = "CONFIGURATION_ERROR"
    NETWORK = "NETWORK_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    PROVIDER = "PROVIDER_ERROR"
    RATE_LIMITER_FAULT = "RATE_LIMITER_FAULT"


class ChainHistoryError(Exception):
    """Base exception for all chain history errors."""

    kind: ErrorKind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str,
        context: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error
        self.timestamp = datetime.utcnow()

    @property
    def code(self) -> str:
        """Machine-readable error code."""
        return self.kind.value

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "original_error": str(self.original_error) if self.original_error else None,
            "timestamp": self.timestamp.isoformat(),
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.original_error:
            parts.append(f"(caused by: {self.original_error})")
        return " ".join(parts)


class ValidationError(ChainHistoryError):
    """Malformed caller input (address, options). Raised before any I/O."""

    kind = ErrorKind.VALIDATION


class ConfigurationError(ChainHistoryError):
    """Missing or invalid backend credentials / endpoint."""

    kind = ErrorKind.CONFIGURATION

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, context, original_error)
        self.config_key = config_key

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["config_key"] = self.config_key
        return data


class NetworkError(ChainHistoryError):
    """Connectivity failure or request timeout."""

    kind = ErrorKind.NETWORK


class RateLimitError(ChainHistoryError):
    """Remote service refused the request for rate reasons."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        context: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        context = dict(context or {})
        context["retry_after"] = retry_after
        super().__init__(message, context, original_error)
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data["retry_after"] = self.retry_after
        return data


class ProviderError(ChainHistoryError):
    """Remote service signaled a logical failure."""

    kind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        context = dict(context or {})
        context.update({"provider": provider, "status_code": status_code})
        super().__init__(message, context, original_error)
        self.provider = provider
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "provider": self.provider,
            "status_code": self.status_code,
        })
        return data

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.provider:
            parts.append(f"[provider={self.provider}]")
        if self.status_code is not None:
            parts.append(f"[status={self.status_code}]")
        return " ".join(parts)


class RateLimiterFault(ChainHistoryError):
    """
    Internal limiter fault.

    Raised to queued waiters when the admission loop stalls past its
    iteration cap (e.g. a zero-capacity bucket). Not a normal path.
    """

    kind = ErrorKind.RATE_LIMITER_FAULT
