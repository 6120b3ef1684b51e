"""
Chain History Package - Unified transaction history for Ethereum and Solana.

Features:
- Network auto-detection from address format
- One transaction shape across chains (tagged by network)
- Dual-window FIFO rate limiting per provider
- Exponential backoff retry for transient failures
- Optional in-memory query cache with per-address invalidation

Quick Start:
    from chain_history import (
        ChainHistoryClient,
        ChainHistoryConfig,
        EthereumProviderConfig,
        SolanaProviderConfig,
        CacheConfig,
    )

    async def recent_activity():
        config = ChainHistoryConfig(
            ethereum=EthereumProviderConfig(api_key="YOUR_KEY"),
            solana=SolanaProviderConfig(rpc_url="https://api.mainnet-beta.solana.com"),
            cache=CacheConfig(enabled=True),
        )

        async with ChainHistoryClient(config) as client:
            page = await client.get_transactions(
                "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0",
                {"limit": 25},
            )
            for tx in page.data:
                print(tx.hash, tx.status.value, tx.timestamp)

            if page.pagination.has_more:
                page = await client.get_transactions(
                    "0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0",
                    {"limit": 25, "page": 2},
                )

Pagination:
- Ethereum: offset pages (`page`, 1-based)
- Solana: cursor (`cursor` = last signature of the previous page)
- start_time / end_time (ms) filter a fetched page; they do not page further
"""

from chain_history.adapters import BaseChainAdapter, EthereumAdapter, SolanaAdapter
from chain_history.cache import BoundedTTLCache, QueryCache, TransactionCacheKey
from chain_history.client import ChainHistoryClient
from chain_history.config import (
    CacheConfig,
    ChainHistoryConfig,
    EthereumProviderConfig,
    RateLimitConfig,
    SolanaProviderConfig,
)
from chain_history.exceptions import (
    ChainHistoryError,
    ConfigurationError,
    ErrorKind,
    NetworkError,
    ProviderError,
    RateLimitError,
    RateLimiterFault,
    ValidationError,
)
from chain_history.http import JsonHttpClient
from chain_history.models import (
    CacheEntry,
    EthereumTransaction,
    Network,
    PaginatedResponse,
    PaginationMetadata,
    PaginationOptions,
    SolanaInstruction,
    SolanaTransaction,
    TokenBalance,
    Transaction,
    TransactionStatus,
    get_network_name,
    is_ethereum_transaction,
    is_network,
    is_solana_transaction,
    is_supported_network,
)
from chain_history.providers import (
    BaseChainProvider,
    EtherscanProvider,
    ProviderMetadata,
    SolanaRpcProvider,
)
from chain_history.rate_limiter import RateLimiter, TokenBucket
from chain_history.retry import RetryConfig, RetryEligibility, RetryPolicy
from chain_history.validation import (
    detect_network,
    is_valid_ethereum_address,
    is_valid_solana_public_key,
    normalize_address,
    normalize_ethereum_address,
    normalize_solana_public_key,
    validate_address_for_network,
)


__all__ = [
    # Client
    "ChainHistoryClient",
    # Config
    "ChainHistoryConfig",
    "EthereumProviderConfig",
    "SolanaProviderConfig",
    "CacheConfig",
    "RateLimitConfig",
    "RetryConfig",
    # Models
    "Network",
    "TransactionStatus",
    "Transaction",
    "EthereumTransaction",
    "SolanaTransaction",
    "SolanaInstruction",
    "TokenBalance",
    "PaginationOptions",
    "PaginationMetadata",
    "PaginatedResponse",
    "CacheEntry",
    "is_ethereum_transaction",
    "is_solana_transaction",
    "is_network",
    "is_supported_network",
    "get_network_name",
    # Validation
    "is_valid_ethereum_address",
    "is_valid_solana_public_key",
    "detect_network",
    "validate_address_for_network",
    "normalize_address",
    "normalize_ethereum_address",
    "normalize_solana_public_key",
    # Exceptions
    "ErrorKind",
    "ChainHistoryError",
    "ValidationError",
    "ConfigurationError",
    "NetworkError",
    "RateLimitError",
    "ProviderError",
    "RateLimiterFault",
    # Infrastructure
    "RateLimiter",
    "TokenBucket",
    "RetryPolicy",
    "RetryEligibility",
    "BoundedTTLCache",
    "QueryCache",
    "TransactionCacheKey",
    "JsonHttpClient",
    # Providers / adapters
    "BaseChainProvider",
    "ProviderMetadata",
    "EtherscanProvider",
    "SolanaRpcProvider",
    "BaseChainAdapter",
    "EthereumAdapter",
    "SolanaAdapter",
]
