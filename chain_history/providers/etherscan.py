"""
Etherscan Provider - Offset-paged account history via the Etherscan V2 API.

Endpoint: GET <api_url>?chainid=1&module=account&action=txlist&...

Envelope: {"status": "1"|"0", "message": str, "result": list | str}
- status "0" + "No transactions found" -> empty page (not an error)
- rate limit message                    -> RateLimitError (retried)
- any other status "0"                  -> ProviderError
"""

import logging
from typing import Any, Optional

import aiohttp

from chain_history.config import EthereumProviderConfig
from chain_history.exceptions import ConfigurationError, ProviderError, RateLimitError
from chain_history.models import (
    DEFAULT_PAGE_LIMIT,
    EthereumTransaction,
    Network,
    PaginatedResponse,
    PaginationMetadata,
    PaginationOptions,
    TransactionStatus,
)
from chain_history.providers.base import BaseChainProvider, ProviderMetadata


logger = logging.getLogger(__name__)

PROVIDER_NAME = "Etherscan"
NO_TRANSACTIONS = "No transactions found"


class EtherscanProvider(BaseChainProvider):
    """
    Etherscan account/txlist provider.

    Pagination is offset-style: `page` (1-based) and `limit` records per
    page, newest first. Etherscan does not report a reliable total, so
    has_more is true iff a full page came back.
    """

    def __init__(
        self,
        config: EthereumProviderConfig,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError(
                f"Invalid Etherscan configuration: {'; '.join(errors)}",
                config_key="ethereum",
                context={"errors": errors},
            )
        self.config = config
        super().__init__(
            timeout=config.timeout,
            rate_limit=config.rate_limit,
            retry=config.retry,
            session=session,
            logger=logger,
        )

    def get_name(self) -> str:
        return "etherscan"

    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    @staticmethod
    def validate_config(config: EthereumProviderConfig) -> list[str]:
        """Return configuration problems (empty if valid)."""
        return config.validate()

    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            name=self.get_name(),
            display_name="Etherscan",
            network=Network.ETHEREUM_MAINNET,
            base_url=self.config.api_url,
            pagination="offset",
            requires_api_key=True,
            rate_limit_per_second=self.config.rate_limit.requests_per_second,
            rate_limit_per_minute=self.config.rate_limit.requests_per_minute,
        )

    async def get_transactions(
        self,
        address: str,
        options: PaginationOptions,
    ) -> PaginatedResponse[EthereumTransaction]:
        limit = options.limit or DEFAULT_PAGE_LIMIT
        page = options.page or 1

        params = {
            "chainid": str(self.config.chain_id),
            "module": "account",
            "action": "txlist",
            "address": address,
            "startblock": "0",
            "endblock": "99999999",
            "page": str(page),
            "offset": str(limit),
            "sort": "desc",
            "apikey": self.config.api_key,
        }

        async def send() -> Optional[list[dict[str, Any]]]:
            response = await self._http.request_json("GET", self.config.api_url, params=params)
            return self._unwrap(response, address)

        records = await self._call(send, f"txlist {address} page={page}")

        if records is None:
            self._logger.debug(f"[{self.get_name()}] No transactions for {address}")
            return PaginatedResponse(
                data=(),
                pagination=PaginationMetadata(
                    has_more=False,
                    page=page,
                    total_pages=0,
                    total=0,
                ),
            )

        transactions = tuple(self._map_record(record, address) for record in records)
        has_more = len(transactions) == limit

        self._logger.info(
            f"[{self.get_name()}] Fetched {len(transactions)} transactions "
            f"for {address} (page={page})"
        )
        return PaginatedResponse(
            data=transactions,
            pagination=PaginationMetadata(
                has_more=has_more,
                page=page,
                total_pages=None if has_more else page,
            ),
        )

    def _unwrap(self, response: Any, address: str) -> Optional[list[dict[str, Any]]]:
        """
        Unwrap the Etherscan envelope.

        Returns the raw record list, or None for a well-formed empty result.
        """
        if not isinstance(response, dict):
            raise ProviderError(
                "Unexpected response format from Etherscan API",
                provider=PROVIDER_NAME,
                context={"address": address, "response": str(response)[:500]},
            )

        status = str(response.get("status", "0"))
        message = str(response.get("message", ""))
        result = response.get("result")

        if status == "0":
            detail = result if isinstance(result, str) else message
            if NO_TRANSACTIONS.lower() in f"{detail} {message}".lower():
                return None
            if "rate limit" in detail.lower() or "rate limit" in message.lower():
                raise RateLimitError(
                    f"Etherscan rate limit exceeded: {detail}",
                    context={"address": address},
                )
            raise ProviderError(
                f"Etherscan API error: {detail}",
                provider=PROVIDER_NAME,
                context={"address": address, "response": response},
            )

        if not isinstance(result, list):
            raise ProviderError(
                "Unexpected response format from Etherscan API",
                provider=PROVIDER_NAME,
                context={"address": address, "response": response},
            )

        return result

    def _map_record(self, record: Any, address: str) -> EthereumTransaction:
        try:
            return self._transform(record)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(
                f"Malformed Etherscan transaction record: {e!r}",
                provider=PROVIDER_NAME,
                context={"address": address, "record": record},
                original_error=e,
            ) from e

    def _transform(self, tx: dict[str, Any]) -> EthereumTransaction:
        """Map a raw txlist record to EthereumTransaction."""
        failed = tx.get("isError") == "1" or tx.get("txreceipt_status") == "0"
        gas_used = _to_int(tx.get("gasUsed"))
        gas_price = _to_int(tx.get("gasPrice"))
        input_data = tx.get("input") or None

        return EthereumTransaction(
            hash=tx["hash"],
            block_number=int(tx["blockNumber"]),
            timestamp=int(tx["timeStamp"]) * 1000,
            status=TransactionStatus.FAILED if failed else TransactionStatus.SUCCESS,
            from_address=tx.get("from", ""),
            to_address=tx.get("to") or None,
            value=int(tx.get("value") or 0),
            fee=gas_used * gas_price if gas_used is not None and gas_price is not None else None,
            gas_used=gas_used,
            gas_price=gas_price,
            gas_limit=_to_int(tx.get("gas")),
            nonce=_to_int(tx.get("nonce")),
            input=input_data,
            is_contract_interaction=bool(
                tx.get("contractAddress") or (input_data and input_data != "0x")
            ),
            method_id=tx.get("methodId") or None,
            function_name=tx.get("functionName") or None,
        )


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)
