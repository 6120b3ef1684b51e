"""
Chain History Client - Unified entry point over all configured networks.

Detects the network from the address format, routes to the matching
adapter and, when enabled, serves repeated queries from the QueryCache.

Usage:
    config = ChainHistoryConfig.from_env()
    async with ChainHistoryClient(config) as client:
        page = await client.get_transactions("0x742d...", {"limit": 10})
        for tx in page.data:
            print(tx.hash, tx.status.value)
"""

import logging
import time
from typing import Any, Callable, Optional, Union

import aiohttp

from chain_history.adapters.base import BaseChainAdapter
from chain_history.adapters.ethereum import EthereumAdapter
from chain_history.adapters.solana import SolanaAdapter
from chain_history.cache import QueryCache
from chain_history.config import ChainHistoryConfig
from chain_history.exceptions import ChainHistoryError, ConfigurationError, ValidationError
from chain_history.logging_utils import get_component_logger
from chain_history.models import (
    EthereumTransaction,
    Network,
    PaginatedResponse,
    PaginationOptions,
    SolanaTransaction,
    Transaction,
    get_network_name,
)
from chain_history.providers.etherscan import EtherscanProvider
from chain_history.providers.solana_rpc import SolanaRpcProvider
from chain_history.validation import detect_network, validate_address_for_network


logger = logging.getLogger(__name__)

OptionsLike = Union[PaginationOptions, dict[str, Any], None]


class ChainHistoryClient:
    """
    Facade over the per-network adapters.

    Only networks with a provider configuration get an adapter; calls for
    any other network raise ConfigurationError. The query cache, when
    enabled, is shared by every call made through this instance.
    """

    def __init__(
        self,
        config: Optional[ChainHistoryConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or ChainHistoryConfig()
        self.config.validate()
        self._logger = logger or logging.getLogger(__name__)

        self._adapters: dict[Network, BaseChainAdapter] = {}
        if self.config.ethereum is not None:
            provider = EtherscanProvider(
                self.config.ethereum,
                session=session,
                logger=get_component_logger(logger, "etherscan", "chain_history.providers.etherscan"),
            )
            self._adapters[Network.ETHEREUM_MAINNET] = EthereumAdapter(
                provider,
                logger=get_component_logger(logger, "ethereum", "chain_history.adapters.ethereum"),
            )
        if self.config.solana is not None:
            provider = SolanaRpcProvider(
                self.config.solana,
                session=session,
                logger=get_component_logger(logger, "solana_rpc", "chain_history.providers.solana_rpc"),
            )
            self._adapters[Network.SOLANA_MAINNET] = SolanaAdapter(
                provider,
                logger=get_component_logger(logger, "solana", "chain_history.adapters.solana"),
            )

        self._cache: Optional[QueryCache] = None
        if self.config.cache.enabled:
            self._cache = QueryCache(
                default_ttl=self.config.cache.ttl,
                max_size=self.config.cache.max_size,
                clock=clock,
                logger=get_component_logger(logger, "cache", "chain_history.cache"),
            )
            self._logger.debug(
                f"[chain_history] Query cache enabled "
                f"(ttl={self.config.cache.ttl}s, max_size={self.config.cache.max_size})"
            )

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def get_transactions(
        self,
        address: str,
        options: OptionsLike = None,
    ) -> PaginatedResponse[Transaction]:
        """
        Fetch a page of transactions, detecting the network from the address.

        Raises:
            ValidationError: if the address matches no supported format
            ConfigurationError: if the detected network is not configured
        """
        network = detect_network(address)
        if network is None:
            self._logger.error(f"[chain_history] Unable to detect network for address {address!r}")
            raise ValidationError(
                "Unable to detect network from address format. "
                "Expected a 0x-prefixed Ethereum address or a base58 Solana public key.",
                context={"address": address},
            )
        return await self._fetch(network, address, options)

    async def get_ethereum_transactions(
        self,
        address: str,
        options: OptionsLike = None,
    ) -> PaginatedResponse[EthereumTransaction]:
        """Fetch Ethereum transactions without network detection."""
        return await self._fetch(Network.ETHEREUM_MAINNET, address, options)

    async def get_solana_transactions(
        self,
        public_key: str,
        options: OptionsLike = None,
    ) -> PaginatedResponse[SolanaTransaction]:
        """Fetch Solana transactions without network detection."""
        return await self._fetch(Network.SOLANA_MAINNET, public_key, options)

    async def _fetch(
        self,
        network: Network,
        address: str,
        options: OptionsLike,
    ) -> PaginatedResponse[Transaction]:
        try:
            opts = PaginationOptions.coerce(options)
            opts.validate()
            validate_address_for_network(address, network)

            adapter = self._adapters.get(network)
            if adapter is None:
                raise ConfigurationError(
                    f"{get_network_name(network)} provider is not configured",
                    config_key=network.value,
                    context={"address": address, "network": network.value},
                )

            if self._cache is not None:
                cached = self._cache.get(network, address, opts)
                if cached is not None:
                    self._logger.debug(f"[chain_history] Cache hit for {network.value}:{address}")
                    return cached

            response = await adapter.get_transactions(address, opts)

            if self._cache is not None:
                self._cache.set(network, address, opts, response)

        except ChainHistoryError as e:
            self._logger.error(
                f"[chain_history] Failed to fetch {get_network_name(network)} "
                f"transactions for {address}: {e}"
            )
            raise

        self._logger.info(
            f"[chain_history] Fetched {len(response.data)} "
            f"{get_network_name(network)} transactions for {address}"
        )
        return response

    # ─────────────────────────────────────────────────────────────
    # Cache management
    # ─────────────────────────────────────────────────────────────

    def invalidate_cache(self, network: Network, address: str) -> None:
        """Drop every cached page for one address. No-op when caching is off."""
        if self._cache is None:
            return
        removed = self._cache.invalidate(network, address)
        self._logger.debug(
            f"[chain_history] Invalidated {removed} cached pages for {network.value}:{address}"
        )

    def clear_cache(self) -> None:
        if self._cache is None:
            return
        self._cache.clear()
        self._logger.debug("[chain_history] Cache cleared")

    def get_cache_stats(self) -> Optional[dict[str, Any]]:
        """Cache statistics, or None when caching is disabled."""
        return self._cache.stats() if self._cache is not None else None

    # ─────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────

    def is_network_configured(self, network: Network) -> bool:
        adapter = self._adapters.get(network)
        return adapter is not None and adapter.provider.is_configured()

    def get_configured_networks(self) -> list[Network]:
        return [n for n in self._adapters if self.is_network_configured(n)]

    def get_config(self) -> dict[str, Any]:
        """Configuration snapshot with credentials masked."""
        return self.config.to_dict()

    # ─────────────────────────────────────────────────────────────
    # Lifecycle
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Close provider HTTP sessions this client created."""
        for adapter in self._adapters.values():
            await adapter.provider.close()

    async def __aenter__(self) -> "ChainHistoryClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        networks = ", ".join(n.value for n in self._adapters)
        return f"<ChainHistoryClient(networks=[{networks}], cache={self._cache is not None})>"
