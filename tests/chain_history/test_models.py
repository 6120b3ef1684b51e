"""
Model Tests.

TEST CATEGORIES:
- Transaction variants and type guards
- Pagination options coercion and validation
- Serialization
- Error taxonomy
"""

import dataclasses

import pytest

from chain_history import (
    CacheEntry,
    EthereumTransaction,
    Network,
    PaginatedResponse,
    PaginationMetadata,
    PaginationOptions,
    ProviderError,
    RateLimitError,
    SolanaTransaction,
    TransactionStatus,
    ValidationError,
    get_network_name,
    is_ethereum_transaction,
    is_network,
    is_solana_transaction,
    is_supported_network,
)


def make_eth_tx(**overrides) -> EthereumTransaction:
    values = dict(
        hash="0x" + "ab" * 32,
        block_number=100,
        timestamp=1_609_459_200_000,
        status=TransactionStatus.SUCCESS,
        from_address="0x" + "1" * 40,
        to_address="0x" + "2" * 40,
        value=10**18,
        fee=21000 * 20 * 10**9,
    )
    values.update(overrides)
    return EthereumTransaction(**values)


def make_sol_tx(**overrides) -> SolanaTransaction:
    values = dict(
        signature="sig1",
        slot=200,
        timestamp=1_609_459_200_000,
        status=TransactionStatus.FAILED,
        fee_payer="payer",
        account_keys=("payer", "program"),
        fee=5000,
    )
    values.update(overrides)
    return SolanaTransaction(**values)


# ============================================================
# TRANSACTION VARIANTS
# ============================================================

class TestTransactionVariants:
    """Tests for the tagged transaction union."""

    def test_network_tag_fixed(self):
        """Test each variant carries its own network tag."""
        assert make_eth_tx().network is Network.ETHEREUM_MAINNET
        assert make_sol_tx().network is Network.SOLANA_MAINNET

    def test_network_not_settable(self):
        """Test the tag cannot be passed in."""
        with pytest.raises(TypeError):
            EthereumTransaction(network=Network.SOLANA_MAINNET, **{
                f.name: getattr(make_eth_tx(), f.name)
                for f in dataclasses.fields(EthereumTransaction) if f.init
            })

    def test_immutable(self):
        """Test transactions are frozen."""
        tx = make_eth_tx()
        with pytest.raises(dataclasses.FrozenInstanceError):
            tx.value = 0

    def test_type_guards(self):
        eth, sol = make_eth_tx(), make_sol_tx()
        assert is_ethereum_transaction(eth) and not is_solana_transaction(eth)
        assert is_solana_transaction(sol) and not is_ethereum_transaction(sol)

    def test_solana_shared_accessors(self):
        """Test hash/block_number aliases on the Solana variant."""
        sol = make_sol_tx()
        assert sol.hash == "sig1"
        assert sol.block_number == 200
        assert sol.position == 200

    def test_to_dict_amounts_as_strings(self):
        """Test wei and lamport amounts serialize as strings."""
        eth = make_eth_tx().to_dict()
        assert eth["value"] == str(10**18)
        assert eth["network"] == "ethereum-mainnet"
        assert eth["status"] == "success"

        sol = make_sol_tx().to_dict()
        assert sol["fee"] == "5000"
        assert sol["hash"] == sol["signature"] == "sig1"
        assert sol["status"] == "failed"

    @pytest.mark.parametrize("tx", [make_eth_tx(), make_sol_tx()])
    def test_to_dict_covers_every_field(self, tx):
        """Test no declared field is left out of serialization."""
        renamed = {"from_address": "from", "to_address": "to"}
        keys = set(tx.to_dict())
        for f in dataclasses.fields(tx):
            assert renamed.get(f.name, f.name) in keys


class TestNetworkHelpers:
    """Tests for network helper functions."""

    def test_is_network(self):
        assert is_network(Network.SOLANA_MAINNET)
        assert is_network("ethereum-mainnet")
        assert not is_network("bitcoin-mainnet")
        assert not is_network(None)

    def test_names(self):
        assert get_network_name(Network.ETHEREUM_MAINNET) == "Ethereum Mainnet"
        assert get_network_name(Network.SOLANA_MAINNET) == "Solana Mainnet"
        assert is_supported_network(Network.SOLANA_MAINNET)


# ============================================================
# PAGINATION
# ============================================================

class TestPaginationOptions:
    """Tests for PaginationOptions."""

    def test_coerce_none(self):
        opts = PaginationOptions.coerce(None)
        assert opts.limit == 100
        assert opts.page is None

    def test_coerce_dict_drops_none(self):
        """Test None values fall back to defaults."""
        opts = PaginationOptions.coerce({"limit": None, "page": 2})
        assert opts.limit == 100
        assert opts.page == 2

    def test_coerce_unknown_key(self):
        with pytest.raises(ValidationError, match="Unknown pagination options"):
            PaginationOptions.coerce({"limt": 10})

    def test_coerce_passthrough(self):
        opts = PaginationOptions(limit=5)
        assert PaginationOptions.coerce(opts) is opts

    @pytest.mark.parametrize("options", [
        {"limit": 0},
        {"limit": -1},
        {"limit": True},
        {"limit": 1.5},
        {"page": 0},
        {"page": True},
        {"cursor": ""},
        {"start_time": 10, "end_time": 5},
        {"start_time": "1609459200000"},
        {"end_time": 1000.0},
        {"start_time": False},
        {"start_time": -1},
    ])
    def test_validate_rejects(self, options):
        """Test malformed options raise ValidationError."""
        with pytest.raises(ValidationError):
            PaginationOptions(**options).validate()

    def test_validate_accepts(self):
        PaginationOptions(limit=1, page=1, cursor="abc", start_time=5, end_time=5).validate()

    def test_without_time_range(self):
        opts = PaginationOptions(limit=10, page=3, cursor="c", start_time=1, end_time=2)
        stripped = opts.without_time_range()
        assert stripped == PaginationOptions(limit=10, page=3, cursor="c")


class TestPaginatedResponse:
    """Tests for PaginatedResponse."""

    def test_len_and_to_dict(self):
        page = PaginatedResponse(
            data=(make_eth_tx(),),
            pagination=PaginationMetadata(has_more=False, page=1, total_pages=1),
        )
        assert len(page) == 1
        data = page.to_dict()
        assert data["pagination"]["has_more"] is False
        assert data["data"][0]["hash"] == "0x" + "ab" * 32


class TestCacheEntry:
    """Tests for CacheEntry expiry."""

    def test_expiry_boundary(self):
        """Test an entry is expired exactly at its expiry time."""
        entry = CacheEntry(value="v", created_at=10.0, expires_at=40.0)
        assert not entry.is_expired(39.999)
        assert entry.is_expired(40.0)
        assert entry.age_seconds(25.0) == 15.0


# ============================================================
# ERRORS
# ============================================================

class TestErrors:
    """Tests for the error taxonomy."""

    def test_rate_limit_error_context(self):
        error = RateLimitError("slow down", retry_after=5)
        assert error.code == "RATE_LIMIT_ERROR"
        assert error.context["retry_after"] == 5
        assert error.to_dict()["retry_after"] == 5

    def test_provider_error_str(self):
        error = ProviderError("boom", provider="Etherscan", status_code=502)
        text = str(error)
        assert "ProviderError: boom" in text
        assert "[provider=Etherscan]" in text
        assert "[status=502]" in text
        assert error.to_dict()["status_code"] == 502
