"""
Solana RPC Provider - Cursor-paged account history via JSON-RPC.

Two phases per page:
1. getSignaturesForAddress(address, {limit, before, commitment})
2. getTransaction(signature, {encoding: "jsonParsed", ...}) per signature,
   issued concurrently and re-assembled in signature order.

A signature whose detail resolves to null (e.g. pruned history) is
dropped from the page. has_more is true iff a full page of signatures
came back; next_cursor is then the last signature of the page.
"""

import asyncio
import itertools
import logging
import time
from typing import Any, Optional

import aiohttp

from chain_history.config import SolanaProviderConfig
from chain_history.exceptions import ConfigurationError, ProviderError
from chain_history.models import (
    DEFAULT_PAGE_LIMIT,
    Network,
    PaginatedResponse,
    PaginationMetadata,
    PaginationOptions,
    SolanaInstruction,
    SolanaTransaction,
    TokenBalance,
    TransactionStatus,
)
from chain_history.providers.base import BaseChainProvider, ProviderMetadata


logger = logging.getLogger(__name__)

PROVIDER_NAME = "Solana RPC"


class SolanaRpcProvider(BaseChainProvider):
    """JSON-RPC provider for Solana account history."""

    def __init__(
        self,
        config: SolanaProviderConfig,
        session: Optional[aiohttp.ClientSession] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        errors = self.validate_config(config)
        if errors:
            raise ConfigurationError(
                f"Invalid Solana configuration: {'; '.join(errors)}",
                config_key="solana",
                context={"errors": errors},
            )
        self.config = config
        self._request_ids = itertools.count(1)
        super().__init__(
            timeout=config.timeout,
            rate_limit=config.rate_limit,
            retry=config.retry,
            session=session,
            logger=logger,
        )

    def get_name(self) -> str:
        return "solana_rpc"

    def is_configured(self) -> bool:
        return bool(self.config.rpc_url)

    @staticmethod
    def validate_config(config: SolanaProviderConfig) -> list[str]:
        """Return configuration problems (empty if valid)."""
        return config.validate()

    def metadata(self) -> ProviderMetadata:
        return ProviderMetadata(
            name=self.get_name(),
            display_name="Solana JSON-RPC",
            network=Network.SOLANA_MAINNET,
            base_url=self.config.rpc_url,
            pagination="cursor",
            requires_api_key=False,
            rate_limit_per_second=self.config.rate_limit.requests_per_second,
            rate_limit_per_minute=self.config.rate_limit.requests_per_minute,
        )

    # ─────────────────────────────────────────────────────────────
    # Fetching
    # ─────────────────────────────────────────────────────────────

    async def get_transactions(
        self,
        address: str,
        options: PaginationOptions,
    ) -> PaginatedResponse[SolanaTransaction]:
        limit = options.limit or DEFAULT_PAGE_LIMIT

        query: dict[str, Any] = {"limit": limit, "commitment": self.config.commitment}
        if options.cursor:
            query["before"] = options.cursor

        signatures = await self._rpc("getSignaturesForAddress", [address, query]) or []

        if not signatures:
            return PaginatedResponse(
                data=(),
                pagination=PaginationMetadata(has_more=False),
            )

        try:
            signature_ids = [sig["signature"] for sig in signatures]
        except (KeyError, TypeError) as e:
            raise ProviderError(
                "Malformed getSignaturesForAddress result",
                provider=PROVIDER_NAME,
                context={"address": address, "result": str(signatures)[:500]},
                original_error=e,
            ) from e

        details = await self._get_transactions(signature_ids)

        transactions = []
        for sig_info, detail in zip(signatures, details):
            if detail is None:
                self._logger.warning(
                    f"[{self.get_name()}] No detail for signature "
                    f"{sig_info['signature']}, dropping"
                )
                continue
            transactions.append(self._map_record(sig_info, detail, address))

        has_more = len(signatures) == limit
        self._logger.info(
            f"[{self.get_name()}] Fetched {len(transactions)} transactions for {address}"
        )
        return PaginatedResponse(
            data=tuple(transactions),
            pagination=PaginationMetadata(
                has_more=has_more,
                next_cursor=signature_ids[-1] if has_more else None,
            ),
        )

    async def _get_transactions(self, signatures: list[str]) -> list[Optional[dict[str, Any]]]:
        """
        Fetch details concurrently, in signature order.

        The first failure cancels and awaits the remaining fetches.
        """
        tasks = [asyncio.ensure_future(self._get_transaction(sig)) for sig in signatures]
        try:
            return await asyncio.gather(*tasks)
        except Exception:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _get_transaction(self, signature: str) -> Optional[dict[str, Any]]:
        return await self._rpc("getTransaction", [
            signature,
            {
                "encoding": "jsonParsed",
                "commitment": self.config.commitment,
                "maxSupportedTransactionVersion": 0,
            },
        ])

    async def _rpc(self, method: str, params: list[Any]) -> Any:
        """One JSON-RPC call: admitted, retried, envelope unwrapped."""

        async def send() -> Any:
            payload = {
                "jsonrpc": "2.0",
                "id": next(self._request_ids),
                "method": method,
                "params": params,
            }
            response = await self._http.request_json("POST", self.config.rpc_url, json=payload)
            return self._unwrap(response, method)

        return await self._call(send, method)

    def _unwrap(self, response: Any, method: str) -> Any:
        if not isinstance(response, dict):
            raise ProviderError(
                "Unexpected response format from Solana RPC",
                provider=PROVIDER_NAME,
                context={"method": method, "response": str(response)[:500]},
            )

        error = response.get("error")
        if error:
            code = error.get("code") if isinstance(error, dict) else None
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ProviderError(
                f"Solana RPC error: {message}",
                provider=PROVIDER_NAME,
                status_code=code,
                context={"method": method, "error": error},
            )

        if "result" not in response:
            raise ProviderError(
                "Unexpected response format from Solana RPC",
                provider=PROVIDER_NAME,
                context={"method": method, "response": response},
            )

        return response["result"]

    # ─────────────────────────────────────────────────────────────
    # Transformation
    # ─────────────────────────────────────────────────────────────

    def _map_record(
        self,
        sig_info: dict[str, Any],
        detail: Any,
        address: str,
    ) -> SolanaTransaction:
        try:
            return self._transform(sig_info, detail)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderError(
                f"Malformed Solana transaction record: {e!r}",
                provider=PROVIDER_NAME,
                context={
                    "address": address,
                    "signature": sig_info.get("signature"),
                    "record": str(detail)[:500],
                },
                original_error=e,
            ) from e

    def _transform(
        self,
        sig_info: dict[str, Any],
        detail: dict[str, Any],
    ) -> SolanaTransaction:
        """Map a signature record plus its detail to SolanaTransaction."""
        meta = detail.get("meta") or {}
        message = (detail.get("transaction") or {}).get("message") or {}

        account_keys = tuple(_account_key(key) for key in message.get("accountKeys", []))

        failed = bool(sig_info.get("err")) or bool(meta.get("err"))
        block_time = sig_info.get("blockTime") or detail.get("blockTime")
        timestamp = int(block_time) * 1000 if block_time else int(time.time() * 1000)

        fee = meta.get("fee")
        return SolanaTransaction(
            signature=sig_info["signature"],
            slot=int(sig_info.get("slot", detail.get("slot", 0))),
            timestamp=timestamp,
            status=TransactionStatus.FAILED if failed else TransactionStatus.SUCCESS,
            fee_payer=account_keys[0] if account_keys else "",
            account_keys=account_keys,
            fee=int(fee) if fee is not None else None,
            gas_used=meta.get("computeUnitsConsumed"),
            instructions=tuple(
                _instruction(ix, account_keys) for ix in message.get("instructions", [])
            ),
            token_balances=_token_balances(meta),
            recent_blockhash=message.get("recentBlockhash"),
            memo=sig_info.get("memo"),
        )


def _account_key(key: Any) -> str:
    # jsonParsed returns {"pubkey": ..., "signer": ..., "writable": ...}
    if isinstance(key, dict):
        return key.get("pubkey", "")
    return str(key)


def _instruction(ix: dict[str, Any], account_keys: tuple[str, ...]) -> SolanaInstruction:
    accounts = []
    for account in ix.get("accounts", []) or []:
        if isinstance(account, int):
            accounts.append(account_keys[account] if 0 <= account < len(account_keys) else "")
        else:
            accounts.append(str(account))
    return SolanaInstruction(
        program_id=ix.get("programId", ""),
        accounts=tuple(accounts),
        data=ix.get("data"),
    )


def _token_balances(meta: dict[str, Any]) -> tuple[TokenBalance, ...]:
    """Pair pre/post token balances by accountIndex."""
    pre = {b["accountIndex"]: b for b in meta.get("preTokenBalances") or []}
    post = {b["accountIndex"]: b for b in meta.get("postTokenBalances") or []}

    balances = []
    for index in sorted(set(pre) | set(post)):
        before = pre.get(index)
        after = post.get(index)
        source = before or after
        balances.append(TokenBalance(
            account_index=index,
            mint=source.get("mint", ""),
            owner=source.get("owner"),
            pre_balance=_amount(before),
            post_balance=_amount(after),
        ))
    return tuple(balances)


def _amount(balance: Optional[dict[str, Any]]) -> Optional[str]:
    if balance is None:
        return None
    return (balance.get("uiTokenAmount") or {}).get("amount")
