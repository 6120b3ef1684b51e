"""
Adapters package - Per-network validation and filtering.
"""

from chain_history.adapters.base import BaseChainAdapter
from chain_history.adapters.ethereum import EthereumAdapter
from chain_history.adapters.solana import SolanaAdapter


__all__ = [
    "BaseChainAdapter",
    "EthereumAdapter",
    "SolanaAdapter",
]
