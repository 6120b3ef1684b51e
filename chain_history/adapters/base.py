"""
Base Chain Adapter - Validation and filtering around one provider.

Every adapter:
1. Validates options and the address before any network call
2. Normalizes the address for its network
3. Delegates the page fetch to its provider (time range stripped)
4. Filters the page by timestamp, inclusive on both bounds

Filtering happens after the fetch, so a page may hold fewer than `limit`
items while has_more/next_cursor still describe the unfiltered upstream
page.
"""

import logging
from abc import ABC
from typing import Any, Generic, Optional, TypeVar, Union

from chain_history.exceptions import ValidationError
from chain_history.models import (
    Network,
    PaginatedResponse,
    PaginationOptions,
)
from chain_history.providers.base import BaseChainProvider
from chain_history.validation import normalize_address, validate_address_for_network


logger = logging.getLogger(__name__)

TxT = TypeVar("TxT")


class BaseChainAdapter(ABC, Generic[TxT]):
    """Adapter bound to one network and one provider."""

    network: Network

    def __init__(
        self,
        provider: BaseChainProvider,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self._logger = logger or logging.getLogger(self.__class__.__module__)

    @property
    def name(self) -> str:
        return f"{self.network.value}-adapter"

    def validate_address(self, address: Any) -> bool:
        """True if address is valid for this adapter's network."""
        try:
            validate_address_for_network(address, self.network)
        except ValidationError:
            return False
        return True

    def detect_network(self, address: Any) -> Optional[Network]:
        return self.network if self.validate_address(address) else None

    def normalize_address(self, address: str) -> str:
        return normalize_address(address, self.network)

    async def get_transactions(
        self,
        address: str,
        options: Union[PaginationOptions, dict[str, Any], None] = None,
    ) -> PaginatedResponse[TxT]:
        """
        Fetch one page of transactions for an address.

        Raises:
            ValidationError: before any network call, on bad address/options
        """
        opts = PaginationOptions.coerce(options)
        opts.validate()
        normalized = self.normalize_address(address)

        response = await self.provider.get_transactions(normalized, opts.without_time_range())

        data = self.filter_by_time(response.data, opts)
        if len(data) != len(response.data):
            self._logger.debug(
                f"[{self.name}] Time range kept {len(data)}/{len(response.data)} "
                f"transactions for {normalized}"
            )
        return PaginatedResponse(data=data, pagination=response.pagination)

    @staticmethod
    def filter_by_time(
        transactions: tuple[TxT, ...],
        options: PaginationOptions,
    ) -> tuple[TxT, ...]:
        """Keep transactions with start_time <= timestamp <= end_time."""
        start, end = options.start_time, options.end_time
        if start is None and end is None:
            return transactions
        return tuple(
            tx for tx in transactions
            if (start is None or tx.timestamp >= start)
            and (end is None or tx.timestamp <= end)
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(network={self.network.value}, provider={self.provider.get_name()})>"
