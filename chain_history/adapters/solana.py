"""Solana adapter - base58 public keys, case preserved."""

import logging
from typing import Optional

from chain_history.adapters.base import BaseChainAdapter
from chain_history.models import Network, SolanaTransaction
from chain_history.providers.solana_rpc import SolanaRpcProvider


class SolanaAdapter(BaseChainAdapter[SolanaTransaction]):
    """Adapter over SolanaRpcProvider (cursor pagination, page ignored)."""

    network = Network.SOLANA_MAINNET

    def __init__(
        self,
        provider: SolanaRpcProvider,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(provider, logger)
