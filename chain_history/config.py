"""
Chain History Configuration - Provider credentials, limits and cache settings.

Credentials are loaded from environment variables (optionally via a
.env file). A network without credentials is simply left unconfigured.
All durations are in seconds.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from chain_history.exceptions import ConfigurationError
from chain_history.logging_utils import mask_value
from chain_history.retry import RetryConfig


PROVIDER_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

SOLANA_COMMITMENTS = ("processed", "confirmed", "finalized")


def _provider_retry() -> RetryConfig:
    return RetryConfig(retryable_status_codes=PROVIDER_RETRYABLE_STATUS_CODES)


@dataclass
class RateLimitConfig:
    """Dual-window admission limits. None disables a window."""
    requests_per_second: Optional[float] = None
    requests_per_minute: Optional[float] = None
    enabled: bool = True

    def validate(self) -> list[str]:
        errors = []
        if self.requests_per_second is not None and self.requests_per_second <= 0:
            errors.append("requests_per_second must be > 0")
        if self.requests_per_minute is not None and self.requests_per_minute <= 0:
            errors.append("requests_per_minute must be > 0")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "requests_per_second": self.requests_per_second,
            "requests_per_minute": self.requests_per_minute,
            "enabled": self.enabled,
        }


@dataclass
class CacheConfig:
    """Query cache settings."""
    enabled: bool = False
    ttl: float = 30.0
    max_size: int = 100

    def validate(self) -> list[str]:
        errors = []
        if self.ttl <= 0:
            errors.append("cache ttl must be > 0")
        if self.max_size < 1:
            errors.append("cache max_size must be >= 1")
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "ttl": self.ttl,
            "max_size": self.max_size,
        }


@dataclass
class EthereumProviderConfig:
    """Etherscan account API settings."""
    api_key: str
    api_url: str = "https://api.etherscan.io/v2/api"
    chain_id: int = 1
    timeout: float = 30.0
    rate_limit: RateLimitConfig = field(
        default_factory=lambda: RateLimitConfig(requests_per_second=4, requests_per_minute=300)
    )
    retry: RetryConfig = field(default_factory=_provider_retry)

    def validate(self) -> list[str]:
        errors = []
        if not self.api_key or not str(self.api_key).strip():
            errors.append("Etherscan api_key is required")
        if not self.api_url:
            errors.append("Etherscan api_url is required")
        if self.timeout <= 0:
            errors.append("Etherscan timeout must be > 0")
        errors.extend(self.rate_limit.validate())
        errors.extend(self.retry.validate())
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "api_key": mask_value(self.api_key) if self.api_key else None,
            "api_url": self.api_url,
            "chain_id": self.chain_id,
            "timeout": self.timeout,
            "rate_limit": self.rate_limit.to_dict(),
            "retry": self.retry.to_dict(),
        }


@dataclass
class SolanaProviderConfig:
    """Solana JSON-RPC settings."""
    rpc_url: str
    timeout: float = 30.0
    commitment: str = "confirmed"
    rate_limit: RateLimitConfig = field(
        default_factory=lambda: RateLimitConfig(requests_per_second=10, requests_per_minute=600)
    )
    retry: RetryConfig = field(default_factory=_provider_retry)

    def validate(self) -> list[str]:
        errors = []
        if not self.rpc_url or not str(self.rpc_url).strip():
            errors.append("Solana rpc_url is required")
        if self.timeout <= 0:
            errors.append("Solana timeout must be > 0")
        if self.commitment not in SOLANA_COMMITMENTS:
            errors.append(
                f"Solana commitment must be one of {', '.join(SOLANA_COMMITMENTS)}"
            )
        errors.extend(self.rate_limit.validate())
        errors.extend(self.retry.validate())
        return errors

    def to_dict(self) -> dict[str, Any]:
        return {
            "rpc_url": self.rpc_url,
            "timeout": self.timeout,
            "commitment": self.commitment,
            "rate_limit": self.rate_limit.to_dict(),
            "retry": self.retry.to_dict(),
        }


@dataclass
class ChainHistoryConfig:
    """Top-level configuration. A None provider config leaves that network unconfigured."""
    ethereum: Optional[EthereumProviderConfig] = None
    solana: Optional[SolanaProviderConfig] = None
    cache: CacheConfig = field(default_factory=CacheConfig)

    def validate(self) -> None:
        """
        Validate every section.

        Raises:
            ConfigurationError: listing all problems found
        """
        errors = []
        if self.ethereum is not None:
            errors.extend(self.ethereum.validate())
        if self.solana is not None:
            errors.extend(self.solana.validate())
        errors.extend(self.cache.validate())
        if errors:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                context={"errors": errors},
            )

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "ChainHistoryConfig":
        """
        Build configuration from environment variables.

        Reads ETHERSCAN_API_KEY, ETHERSCAN_API_URL, SOLANA_RPC_URL,
        SOLANA_COMMITMENT, CHAIN_HISTORY_CACHE_ENABLED,
        CHAIN_HISTORY_CACHE_TTL, CHAIN_HISTORY_CACHE_MAX_SIZE and
        CHAIN_HISTORY_TIMEOUT. Values already set in the process
        environment win over the .env file.
        """
        load_dotenv(env_file)

        timeout = _env_float("CHAIN_HISTORY_TIMEOUT", 30.0)

        ethereum = None
        api_key = os.environ.get("ETHERSCAN_API_KEY")
        if api_key:
            ethereum = EthereumProviderConfig(
                api_key=api_key,
                api_url=os.environ.get("ETHERSCAN_API_URL") or EthereumProviderConfig.api_url,
                timeout=timeout,
            )

        solana = None
        rpc_url = os.environ.get("SOLANA_RPC_URL")
        if rpc_url:
            solana = SolanaProviderConfig(
                rpc_url=rpc_url,
                timeout=timeout,
                commitment=os.environ.get("SOLANA_COMMITMENT") or SolanaProviderConfig.commitment,
            )

        cache = CacheConfig(
            enabled=_env_bool("CHAIN_HISTORY_CACHE_ENABLED", False),
            ttl=_env_float("CHAIN_HISTORY_CACHE_TTL", CacheConfig.ttl),
            max_size=_env_int("CHAIN_HISTORY_CACHE_MAX_SIZE", CacheConfig.max_size),
        )

        return cls(ethereum=ethereum, solana=solana, cache=cache)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ethereum": self.ethereum.to_dict() if self.ethereum else None,
            "solana": self.solana.to_dict() if self.solana else None,
            "cache": self.cache.to_dict(),
        }


# ─────────────────────────────────────────────────────────────
# Environment parsing
# ─────────────────────────────────────────────────────────────

def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be a number, got {raw!r}",
            config_key=name,
            original_error=e,
        ) from e


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}",
            config_key=name,
            original_error=e,
        ) from e
