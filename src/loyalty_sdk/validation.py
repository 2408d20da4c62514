"""
Address and amount validation.

Pure, synchronous checks run before any network interaction so that
malformed input never reaches the node.
"""

from __future__ import annotations

import re
from typing import Any

from eth_hash.auto import keccak

from .errors import InvalidAddressError, InvalidAmountError, ZeroAddressRecipientError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1

_HEX_ADDRESS = re.compile(r"0x[0-9a-fA-F]{40}")
# Decimal digits in MAX_UINT256
_MAX_AMOUNT_DIGITS = 78


def to_checksum_address(address: str) -> str:
    """Convert a hex address to EIP-55 checksummed format."""
    addr = address.lower().replace("0x", "")
    addr_hash = keccak(addr.encode("utf-8")).hex()
    result = "0x"
    for i, c in enumerate(addr):
        if c in "abcdef":
            result += c.upper() if int(addr_hash[i], 16) >= 8 else c
        else:
            result += c
    return result


def is_address(value: Any) -> bool:
    """
    Check whether a value is a well-formed account address.

    Accepts all-lowercase and all-uppercase hex bodies without a checksum.
    Mixed-case input must carry a valid EIP-55 checksum.
    """
    if not isinstance(value, str) or not _HEX_ADDRESS.fullmatch(value):
        return False
    body = value[2:]
    if body == body.lower() or body == body.upper():
        return True
    return to_checksum_address(value) == value


def validate_address(address: Any) -> str:
    """Return the checksummed address or raise InvalidAddressError."""
    if not is_address(address):
        raise InvalidAddressError(address)
    return to_checksum_address(address)


def validate_recipient(address: Any) -> str:
    """Like validate_address, but the zero address is also rejected."""
    checksummed = validate_address(address)
    if int(checksummed, 16) == 0:
        raise ZeroAddressRecipientError()
    return checksummed


def validate_amount(value: Any) -> int:
    """
    Return the amount as an int or raise InvalidAmountError.

    Decimal integer strings are accepted. Floats and bools are not, since
    token amounts must stay exact beyond 64-bit range.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    if isinstance(value, str):
        text = value.strip()
        if not re.fullmatch(r"-?[0-9]+", text):
            raise InvalidAmountError(value)
        # int() refuses very long strings; anything this long is out of range anyway.
        if len(text.lstrip("-").lstrip("0")) > _MAX_AMOUNT_DIGITS:
            raise InvalidAmountError(value, "Value exceeds uint256 range")
        value = int(text)
    if not isinstance(value, int):
        raise InvalidAmountError(value)
    if value < 0:
        raise InvalidAmountError(value, "Value must be a positive number")
    if value > MAX_UINT256:
        raise InvalidAmountError(value, "Value exceeds uint256 range")
    return value
