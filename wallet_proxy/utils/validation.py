"""Validation utilities for the wallet proxy.

This module provides utilities for validating Solana-specific data.
"""

import math
import re
from typing import Optional, Union

import base58

from wallet_proxy.utils.errors import InvalidPublicKeyError, ValidationError

# Solana public key validation pattern (base58 format)
PUBKEY_PATTERN = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def validate_public_key(pubkey: Optional[str]) -> bool:
    """Validate a Solana public key.

    Args:
        pubkey: The public key to validate

    Returns:
        True if the key is base58 and decodes to 32 bytes, False otherwise
    """
    if not pubkey or not isinstance(pubkey, str):
        return False
    if not PUBKEY_PATTERN.match(pubkey):
        return False
    try:
        return len(base58.b58decode(pubkey)) == 32
    except ValueError:
        return False


def require_param(value: Optional[str], field_name: str) -> str:
    """Return a trimmed, non-empty query parameter or raise a caller input error.

    Raises:
        ValidationError: If the parameter is missing or empty
    """
    if value is None or not value.strip():
        raise ValidationError(f"{field_name} is required", details={"field": field_name})
    return value.strip()


def require_address(address: Optional[str], field_name: str = "address") -> str:
    """Return a trimmed, validated address or raise a caller input error.

    Raises:
        ValidationError: If the address is missing or empty
        InvalidPublicKeyError: If the address is not a valid public key
    """
    address = require_param(address, field_name)
    if not validate_public_key(address):
        raise InvalidPublicKeyError(address, field_name)
    return address


def parse_number(value: Optional[str], default: Union[int, float], cast=float) -> Union[int, float]:
    """Lenient numeric query parsing: blank or unparseable input gives ``default``."""
    if value is None or not value.strip():
        return default
    try:
        number = float(value)
    except ValueError:
        return default
    if not math.isfinite(number):
        return default
    return cast(number)


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp an integer into [lower, upper]."""
    return max(lower, min(upper, value))


def sanitize_min_usd(min_usd: Optional[float]) -> float:
    """Treat missing, negative or non-finite USD thresholds as no threshold."""
    if min_usd is None or not math.isfinite(min_usd) or min_usd < 0:
        return 0.0
    return float(min_usd)
