"""
Account address derivation and EIP-55 checksum encoding.
"""

import re

from ethtx.crypto.digest import keccak256
from ethtx.errors import ValidationError

ADDRESS_LENGTH = 20
PUBLIC_KEY_LENGTH = 64

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_valid_address(address: str) -> bool:
    """True for `0x` followed by exactly 40 hex characters, in any case."""
    return isinstance(address, str) and _ADDRESS_RE.fullmatch(address) is not None


def derive_address(public_key: bytes) -> str:
    """
    Derive the account address from an uncompressed public key.

    Args:
        public_key: 64-byte x || y coordinates (a leading 0x04 byte is dropped)

    Returns:
        Lowercase `0x` address
    """
    if len(public_key) == PUBLIC_KEY_LENGTH + 1 and public_key[0] == 0x04:
        public_key = public_key[1:]
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise ValidationError(
            f"Public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}"
        )
    return "0x" + keccak256(public_key)[-ADDRESS_LENGTH:].hex()


def to_checksum_address(address: str) -> str:
    """
    Mixed-case EIP-55 form of an address.

    A letter is uppercased when the matching nibble of keccak(lowercase hex) is >= 8.
    """
    lowered = address.lower()
    if not lowered.startswith("0x"):
        lowered = "0x" + lowered
    if not is_valid_address(lowered):
        raise ValidationError(f"Invalid address: {address!r}")

    hex_address = lowered[2:]
    digest = keccak256(hex_address.encode("ascii")).hex()

    return "0x" + "".join(
        char.upper() if char.isalpha() and int(digest[i], 16) >= 8 else char
        for i, char in enumerate(hex_address)
    )


def is_valid_checksum_address(address: str) -> bool:
    if not is_valid_address(address):
        return False
    return to_checksum_address(address) == address


def address_to_bytes(address: str) -> bytes:
    """Raw 20 bytes of a well-formed address."""
    if not is_valid_address(address):
        raise ValidationError(f"Invalid address: {address!r}")
    return bytes.fromhex(address[2:])


def same_address(a: str, b: str) -> bool:
    return a.lower() == b.lower()
