"""Address validation and exact integer/decimal conversions.

Raw chain amounts stay Python ints end to end; decimal strings are produced
only here, at the formatting boundary.
"""

import re
from decimal import Decimal, localcontext
from typing import Any

from web3 import Web3

from walletmcp.errors import ValidationError

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
DIGITS_PATTERN = re.compile(r"[0-9]+")
# 0x followed only by hex digits; anything else is a symbol
HEX_IDENTIFIER_PATTERN = re.compile(r"0[xX][0-9a-fA-F]*")

MAX_UINT160 = 2**160 - 1
MAX_UINT256 = 2**256 - 1


def normalize_hex_prefix(value: str) -> str:
    return "0x" + value[2:] if value.startswith("0X") else value


def is_hex_identifier(value: Any) -> bool:
    """True for identifiers shaped like an address attempt rather than a symbol."""
    return isinstance(value, str) and bool(HEX_IDENTIFIER_PATTERN.fullmatch(value.strip()))


def is_valid_address(value: Any) -> bool:
    """Check for a 20-byte hex address with a valid checksum if mixed-case."""
    if not isinstance(value, str):
        return False
    value = normalize_hex_prefix(value)
    if not ADDRESS_PATTERN.match(value):
        return False
    return Web3.is_address(value)


def require_address(value: Any, field: str = "address") -> str:
    """Validate and return the checksummed form.

    Raises:
        ValidationError: if the value is not a well-formed address
    """
    if not is_valid_address(value):
        raise ValidationError(f"Invalid {field}: {value!r}")
    return Web3.to_checksum_address(normalize_hex_prefix(value))


def parse_uint(value: Any, field: str, max_value: int = MAX_UINT256) -> int:
    """Parse a nonnegative integer given as int or decimal string."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and DIGITS_PATTERN.fullmatch(value.strip()):
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{field} must be a nonnegative integer, got {value!r}")
    if parsed < 0 or parsed > max_value:
        raise ValidationError(f"{field} out of range: {parsed}")
    return parsed


def format_units(raw: int, decimals: int) -> str:
    """Format raw / 10**decimals exactly, trimming trailing zeros.

    Examples:
        format_units(123456, 3) -> "123.456"
        format_units(10**18, 18) -> "1"
        format_units(123, 0) -> "123"
    """
    if decimals < 0:
        raise ValueError("decimals must be nonnegative")
    negative = raw < 0
    whole, frac = divmod(abs(raw), 10**decimals)
    text = str(whole)
    if decimals:
        frac_text = str(frac).rjust(decimals, "0").rstrip("0")
        if frac_text:
            text = f"{text}.{frac_text}"
    return f"-{text}" if negative else text


def parse_units(text: str, decimals: int) -> int:
    """Inverse of format_units: exact decimal string back to a raw int."""
    with localcontext() as ctx:
        ctx.prec = len(text) + decimals + 2
        scaled = Decimal(text).scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{text} has more than {decimals} fractional digits")
    return int(scaled)
