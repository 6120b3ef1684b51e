"""Ethereum adapter - hex addresses, case-folded before the fetch."""

import logging
from typing import Optional

from chain_history.adapters.base import BaseChainAdapter
from chain_history.models import EthereumTransaction, Network
from chain_history.providers.etherscan import EtherscanProvider


class EthereumAdapter(BaseChainAdapter[EthereumTransaction]):
    """Adapter over EtherscanProvider (offset pagination, cursor ignored)."""

    network = Network.ETHEREUM_MAINNET

    def __init__(
        self,
        provider: EtherscanProvider,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(provider, logger)
