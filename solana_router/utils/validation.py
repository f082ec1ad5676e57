"""Validation utilities for the Solana router.

This module provides cheap, network-free checks for Solana addresses and
transaction signatures, plus helpers for pulling them out of free text.
"""

import re
from typing import List, Optional

import base58
from solders.pubkey import Pubkey

from solana_router.constants import (
    PUBKEY_MAX_LENGTH,
    PUBKEY_MIN_LENGTH,
    SIGNATURE_MAX_LENGTH,
    SIGNATURE_MIN_LENGTH,
)
from solana_router.utils.errors import InvalidInputError

BASE58_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")

# Solana public key validation pattern (base58 format)
PUBKEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

SIGNATURE_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{87,88}$")

# Whole base58 tokens of address or signature length embedded in text
_EMBEDDED_PATTERN = re.compile(
    r"(?<![1-9A-HJ-NP-Za-km-z])"
    r"([1-9A-HJ-NP-Za-km-z]{87,88}|[1-9A-HJ-NP-Za-km-z]{32,44})"
    r"(?![1-9A-HJ-NP-Za-km-z])"
)


def is_base58(value: str) -> bool:
    """Check that a string only uses the base58 alphabet."""
    return bool(value) and isinstance(value, str) and bool(BASE58_PATTERN.match(value))


def validate_public_key(pubkey: str) -> bool:
    """Validate a Solana public key.

    Args:
        pubkey: The public key to validate

    Returns:
        True if the public key is valid, False otherwise
    """
    if not pubkey or not isinstance(pubkey, str):
        return False
    return bool(PUBKEY_PATTERN.match(pubkey))


def validate_transaction_signature(signature: str) -> bool:
    """Validate a Solana transaction signature.

    Args:
        signature: The transaction signature to validate

    Returns:
        True if the signature is valid, False otherwise
    """
    if not signature or not isinstance(signature, str):
        return False
    return bool(SIGNATURE_PATTERN.match(signature))


def looks_like_signature(value: str) -> bool:
    """Length-band check only; the caller has already verified the alphabet."""
    return SIGNATURE_MIN_LENGTH <= len(value) <= SIGNATURE_MAX_LENGTH


def looks_like_pubkey(value: str) -> bool:
    return PUBKEY_MIN_LENGTH <= len(value) <= PUBKEY_MAX_LENGTH


def require_address(address: str, field_name: str = "address") -> str:
    """Validate a Solana address and raise an exception if invalid.

    Args:
        address: The address to validate
        field_name: Name of the field for the error message

    Returns:
        The address, stripped of surrounding whitespace

    Raises:
        InvalidInputError: If the address is invalid
    """
    candidate = address.strip() if isinstance(address, str) else address
    if not validate_public_key(candidate):
        raise InvalidInputError(f"Invalid Solana {field_name}: {address}", value=str(address))
    return candidate


def require_signature(signature: str, field_name: str = "signature") -> str:
    """Validate a transaction signature and raise an exception if invalid."""
    candidate = signature.strip() if isinstance(signature, str) else signature
    if not validate_transaction_signature(candidate):
        raise InvalidInputError(f"Invalid transaction {field_name}: {signature}", value=str(signature))
    return candidate


def is_off_curve(address: str) -> Optional[bool]:
    """Report whether an address lies off the ed25519 curve.

    Program-derived addresses are always off-curve; keypair addresses are on it.

    Returns:
        True or False, or None when the address does not decode to 32 bytes
    """
    try:
        raw = base58.b58decode(address)
    except ValueError:
        return None
    if len(raw) != 32:
        return None
    return not Pubkey(raw).is_on_curve()


def extract_addresses(text: str) -> List[str]:
    """Pull address- or signature-shaped tokens out of free text, in order.

    Args:
        text: Free text that may mention addresses

    Returns:
        Unique candidates in order of first appearance
    """
    if not text:
        return []
    seen: List[str] = []
    for match in _EMBEDDED_PATTERN.finditer(text):
        candidate = match.group(1)
        if candidate not in seen:
            seen.append(candidate)
    return seen
