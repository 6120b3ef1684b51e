"""
Chain History Data Models - Unified transaction view across chains.

Transaction is a closed union of two variants, discriminated by the
immutable `network` field. Variants share common fields by convention,
not by inheritance, so cross-variant field access is a type error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar, Union

from chain_history.exceptions import ValidationError


T = TypeVar("T")


class Network(Enum):
    """Supported blockchain networks."""
    ETHEREUM_MAINNET = "ethereum-mainnet"
    SOLANA_MAINNET = "solana-mainnet"


NETWORK_NAMES: dict[Network, str] = {
    Network.ETHEREUM_MAINNET: "Ethereum Mainnet",
    Network.SOLANA_MAINNET: "Solana Mainnet",
}


class TransactionStatus(Enum):
    """Transaction execution status."""
    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


# ─────────────────────────────────────────────────────────────
# Variant-specific detail records
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SolanaInstruction:
    """Single instruction of a Solana transaction."""
    program_id: str
    accounts: tuple[str, ...] = ()
    data: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "program_id": self.program_id,
            "accounts": list(self.accounts),
            "data": self.data,
        }


@dataclass(frozen=True)
class TokenBalance:
    """SPL token balance delta for one account."""
    account_index: int
    mint: str
    owner: Optional[str] = None
    pre_balance: Optional[str] = None
    post_balance: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_index": self.account_index,
            "mint": self.mint,
            "owner": self.owner,
            "pre_balance": self.pre_balance,
            "post_balance": self.post_balance,
        }


# ─────────────────────────────────────────────────────────────
# Transaction variants
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class EthereumTransaction:
    """Transaction on the hex-address network (Etherscan-backed)."""
    network: Network = field(default=Network.ETHEREUM_MAINNET, init=False)

    hash: str
    block_number: int
    timestamp: int  # milliseconds
    status: TransactionStatus
    from_address: str
    to_address: Optional[str]  # None for contract creation
    value: int  # wei

    fee: Optional[int] = None  # wei
    gas_used: Optional[int] = None
    gas_price: Optional[int] = None
    gas_limit: Optional[int] = None
    nonce: Optional[int] = None
    input: Optional[str] = None
    is_contract_interaction: bool = False
    method_id: Optional[str] = None
    function_name: Optional[str] = None

    @property
    def position(self) -> int:
        """Chain-native position marker."""
        return self.block_number

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "network": self.network.value,
            "hash": self.hash,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.value),
            "fee": str(self.fee) if self.fee is not None else None,
            "gas_used": str(self.gas_used) if self.gas_used is not None else None,
            "gas_price": str(self.gas_price) if self.gas_price is not None else None,
            "gas_limit": str(self.gas_limit) if self.gas_limit is not None else None,
            "nonce": self.nonce,
            "input": self.input,
            "is_contract_interaction": self.is_contract_interaction,
            "method_id": self.method_id,
            "function_name": self.function_name,
        }


@dataclass(frozen=True)
class SolanaTransaction:
    """Transaction on the base-encoded-key network (JSON-RPC-backed)."""
    network: Network = field(default=Network.SOLANA_MAINNET, init=False)

    signature: str
    slot: int
    timestamp: int  # milliseconds
    status: TransactionStatus
    fee_payer: str
    account_keys: tuple[str, ...]

    fee: Optional[int] = None  # lamports
    gas_used: Optional[int] = None  # compute units consumed
    instructions: tuple[SolanaInstruction, ...] = ()
    token_balances: tuple[TokenBalance, ...] = ()
    recent_blockhash: Optional[str] = None
    memo: Optional[str] = None

    @property
    def hash(self) -> str:
        """Identity string shared with the other variant."""
        return self.signature

    @property
    def block_number(self) -> int:
        return self.slot

    @property
    def position(self) -> int:
        """Chain-native position marker."""
        return self.slot

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "network": self.network.value,
            "hash": self.signature,
            "signature": self.signature,
            "slot": self.slot,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "fee": str(self.fee) if self.fee is not None else None,
            "gas_used": str(self.gas_used) if self.gas_used is not None else None,
            "fee_payer": self.fee_payer,
            "account_keys": list(self.account_keys),
            "instructions": [ix.to_dict() for ix in self.instructions],
            "token_balances": [tb.to_dict() for tb in self.token_balances],
            "recent_blockhash": self.recent_blockhash,
            "memo": self.memo,
        }


Transaction = Union[EthereumTransaction, SolanaTransaction]


def is_ethereum_transaction(transaction: Transaction) -> bool:
    return transaction.network is Network.ETHEREUM_MAINNET


def is_solana_transaction(transaction: Transaction) -> bool:
    return transaction.network is Network.SOLANA_MAINNET


def is_network(value: Any) -> bool:
    """Check if value is a Network or one of its string values."""
    if isinstance(value, Network):
        return True
    return isinstance(value, str) and value in {n.value for n in Network}


def is_supported_network(network: Network) -> bool:
    return network in NETWORK_NAMES


def get_network_name(network: Network) -> str:
    """Human-readable network name."""
    return NETWORK_NAMES.get(network, "Unknown Network")


# ─────────────────────────────────────────────────────────────
# Pagination
# ─────────────────────────────────────────────────────────────

DEFAULT_PAGE_LIMIT = 100


def _is_int(value: Any) -> bool:
    # bool is an int subclass
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class PaginationOptions:
    """
    Query options for a transaction page.

    `page` only applies to offset-paged backends and `cursor` only to
    cursor-paged ones; the other is ignored. Time bounds are inclusive
    millisecond timestamps applied after fetch.
    """
    limit: int = DEFAULT_PAGE_LIMIT
    page: Optional[int] = None
    cursor: Optional[str] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None

    @classmethod
    def coerce(
        cls,
        options: Union["PaginationOptions", dict[str, Any], None],
    ) -> "PaginationOptions":
        """Accept an options object, a plain mapping, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        known = {"limit", "page", "cursor", "start_time", "end_time"}
        unknown = set(options) - known
        if unknown:
            raise ValidationError(
                f"Unknown pagination options: {sorted(unknown)}",
                context={"options": dict(options)},
            )
        values = {k: v for k, v in options.items() if v is not None}
        return cls(**values)

    def validate(self) -> None:
        """Validate option values. Raises ValidationError."""
        context = {"options": self.to_dict()}
        if not _is_int(self.limit) or self.limit < 1:
            raise ValidationError("limit must be a positive integer", context=context)
        if self.page is not None and (not _is_int(self.page) or self.page < 1):
            raise ValidationError("page must be an integer >= 1", context=context)
        if self.cursor is not None and (not isinstance(self.cursor, str) or not self.cursor):
            raise ValidationError("cursor must be a non-empty string", context=context)
        for name in ("start_time", "end_time"):
            value = getattr(self, name)
            if value is not None and (not _is_int(value) or value < 0):
                raise ValidationError(
                    f"{name} must be a non-negative integer (milliseconds)",
                    context=context,
                )
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.start_time > self.end_time
        ):
            raise ValidationError("start_time must not be after end_time", context=context)

    def without_time_range(self) -> "PaginationOptions":
        """Copy carrying only the fields a backend understands."""
        return PaginationOptions(limit=self.limit, page=self.page, cursor=self.cursor)

    def to_dict(self) -> dict[str, Any]:
        return {
            "limit": self.limit,
            "page": self.page,
            "cursor": self.cursor,
            "start_time": self.start_time,
            "end_time": self.end_time,
        }


@dataclass(frozen=True)
class PaginationMetadata:
    """Pagination state returned alongside a page."""
    has_more: bool
    page: Optional[int] = None
    total_pages: Optional[int] = None
    next_cursor: Optional[str] = None
    total: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_more": self.has_more,
            "page": self.page,
            "total_pages": self.total_pages,
            "next_cursor": self.next_cursor,
            "total": self.total,
        }


@dataclass(frozen=True)
class PaginatedResponse(Generic[T]):
    """A page of items plus its pagination metadata."""
    data: tuple[T, ...]
    pagination: PaginationMetadata

    def __len__(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [item.to_dict() for item in self.data],
            "pagination": self.pagination.to_dict(),
        }


# ─────────────────────────────────────────────────────────────
# Cache
# ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable cache entry. Replaced, never mutated."""
    value: T
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    def age_seconds(self, now: float) -> float:
        return now - self.created_at
