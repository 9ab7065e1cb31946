"""
Hex string helpers.

Numeric transaction fields travel as `0x`-prefixed hex strings. The canonical
form has no leading zeros, with zero written as `0x0`.
"""

import string
from typing import Union

from ethtx.errors import EncodingError

HEX_DIGITS = frozenset(string.hexdigits)

BLOCK_TAGS = ("latest", "earliest", "pending", "safe", "finalized")


def remove_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value


def is_hex(value: str, allow_empty: bool = False) -> bool:
    """
    Check whether a string is hex, with or without the `0x` prefix.

    Args:
        value: String to check
        allow_empty: Accept `0x` / `` (used for byte payloads)
    """
    if not isinstance(value, str):
        return False
    digits = remove_hex_prefix(value)
    if not digits:
        return allow_empty
    return all(c in HEX_DIGITS for c in digits)


def to_hex(value: Union[int, str]) -> str:
    """
    Convert an int, decimal string or hex string to canonical hex.

    Raises:
        EncodingError: If the value is negative or not a number
    """
    if isinstance(value, bool):
        raise EncodingError(f"Not a numeric value: {value!r}")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        number = hex_to_int(value) if value.startswith(("0x", "0X")) else _parse_decimal(value)
    else:
        raise EncodingError(f"Not a numeric value: {value!r}")

    if number < 0:
        raise EncodingError(f"Negative values are not supported: {value!r}")
    return hex(number)


def hex_to_int(value: str) -> int:
    """Parse a hex string (prefix optional) into an int."""
    if not is_hex(value):
        raise EncodingError(f"Invalid hex value: {value!r}")
    return int(remove_hex_prefix(value), 16)


def hex_to_bytes(value: str) -> bytes:
    """
    Decode a hex string into raw bytes.

    Odd-length input is left-padded with a single zero nibble.
    """
    if not is_hex(value, allow_empty=True):
        raise EncodingError(f"Invalid hex data: {value!r}")
    digits = remove_hex_prefix(value)
    if len(digits) % 2:
        digits = "0" + digits
    return bytes.fromhex(digits)


def data_to_bytes(value: str) -> bytes:
    """
    Decode a byte payload such as call data. Unlike `hex_to_bytes`, odd-length
    input is rejected since padding would change the payload.
    """
    if not is_hex(value, allow_empty=True):
        raise EncodingError(f"Invalid hex data: {value!r}")
    digits = remove_hex_prefix(value)
    if len(digits) % 2:
        raise EncodingError(f"Hex data must have an even number of digits: {value!r}")
    return bytes.fromhex(digits)


def is_hex_data(value: str) -> bool:
    """True for a `0x`-prefixed, even-length hex payload (`0x` included)."""
    return (
        isinstance(value, str)
        and value.startswith(("0x", "0X"))
        and is_hex(value, allow_empty=True)
        and len(value) % 2 == 0
    )


def strip_leading_zeros(value: str) -> str:
    digits = remove_hex_prefix(value).lstrip("0")
    return "0x" + (digits or "0")


def pad_hex(value: str, length: int) -> str:
    return "0x" + remove_hex_prefix(value).rjust(length, "0")


def format_block_identifier(block: Union[int, str]) -> str:
    """
    Format a block number or tag for a JSON-RPC call.

    Tags and hex strings pass through; integers and decimal strings are hex-encoded.
    """
    if isinstance(block, str):
        if block in BLOCK_TAGS or block.startswith("0x"):
            return block
    return to_hex(block)


def _parse_decimal(value: str) -> int:
    text = value.strip()
    if not (text.isascii() and text.isdigit()):
        raise EncodingError(f"Not a numeric value: {value!r}")
    return int(text)
