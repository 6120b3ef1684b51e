"""
Providers package - Wire protocol implementations per backend.
"""

from chain_history.providers.base import BaseChainProvider, ProviderMetadata
from chain_history.providers.etherscan import EtherscanProvider
from chain_history.providers.solana_rpc import SolanaRpcProvider


__all__ = [
    "BaseChainProvider",
    "ProviderMetadata",
    "EtherscanProvider",
    "SolanaRpcProvider",
]
