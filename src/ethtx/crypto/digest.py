"""
Keccak-256 digest provider.

Uses the original Keccak padding (not NIST SHA3-256), via eth-hash.
"""

from eth_hash.auto import keccak


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of `data`."""
    return keccak(bytes(data))


def keccak256_hex(data: bytes) -> str:
    return "0x" + keccak256(data).hex()
