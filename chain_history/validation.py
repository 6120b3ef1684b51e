"""
Address validation, normalization and network detection.

Hex addresses are case-insensitive and normalize to lowercase.
Base58 public keys are case-sensitive and normalize to themselves.
"""

import re
from typing import Any, Optional

from chain_history.exceptions import ValidationError
from chain_history.models import Network


ETHEREUM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")

# Base58 alphabet excludes 0, O, I and l
SOLANA_PUBLIC_KEY_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_ethereum_address(address: Any) -> bool:
    """0x followed by 40 hex characters, any case."""
    if not isinstance(address, str) or not address:
        return False
    return ETHEREUM_ADDRESS_RE.match(address) is not None


def is_valid_solana_public_key(public_key: Any) -> bool:
    """32-44 characters from the base58 alphabet."""
    if not isinstance(public_key, str) or not public_key:
        return False
    return SOLANA_PUBLIC_KEY_RE.match(public_key) is not None


def detect_network(address: Any) -> Optional[Network]:
    """Detect network from address format, None if unrecognized."""
    if is_valid_ethereum_address(address):
        return Network.ETHEREUM_MAINNET
    if is_valid_solana_public_key(address):
        return Network.SOLANA_MAINNET
    return None


def validate_address_for_network(address: Any, network: Network) -> None:
    """
    Validate an address against a specific network.

    Raises:
        ValidationError: carrying the offending input
    """
    if not isinstance(address, str) or not address:
        raise ValidationError(
            "Address must be a non-empty string",
            context={"address": address, "network": getattr(network, "value", network)},
        )

    if network is Network.ETHEREUM_MAINNET:
        if not is_valid_ethereum_address(address):
            raise ValidationError(
                "Invalid Ethereum address format. "
                "Expected 0x followed by 40 hexadecimal characters.",
                context={"address": address, "network": network.value},
            )
    elif network is Network.SOLANA_MAINNET:
        if not is_valid_solana_public_key(address):
            raise ValidationError(
                "Invalid Solana public key format. "
                "Expected base58 encoded string (32-44 characters).",
                context={"address": address, "network": network.value},
            )
    else:
        raise ValidationError(
            "Unsupported network",
            context={"address": address, "network": getattr(network, "value", network)},
        )


def normalize_ethereum_address(address: str) -> str:
    validate_address_for_network(address, Network.ETHEREUM_MAINNET)
    return address.lower()


def normalize_solana_public_key(public_key: str) -> str:
    validate_address_for_network(public_key, Network.SOLANA_MAINNET)
    return public_key


def normalize_address(address: str, network: Network) -> str:
    """Validate and normalize an address for the given network."""
    if network is Network.ETHEREUM_MAINNET:
        return normalize_ethereum_address(address)
    if network is Network.SOLANA_MAINNET:
        return normalize_solana_public_key(address)
    raise ValidationError(
        "Unsupported network",
        context={"address": address, "network": getattr(network, "value", network)},
    )
