"""
Signer - secp256k1 signing delegated to a vetted library.

The pipeline only needs `(r, s, recovery_id)` for a 32-byte digest. The
production implementation is backed by eth-keys; elliptic-curve arithmetic is
never done here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import structlog
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError as KeyValidationError

from ethtx.errors import SigningError

logger = structlog.get_logger(__name__)

SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SECP256K1_HALF_N = SECP256K1_N // 2

DIGEST_LENGTH = 32
PRIVATE_KEY_LENGTH = 32


@dataclass(frozen=True)
class Signature:
    """
    A recoverable ECDSA signature.

    Attributes:
        r: 256-bit unsigned integer
        s: 256-bit unsigned integer, low-s normalized
        recovery_id: 0 or 1
    """
    r: int
    s: int
    recovery_id: int

    def to_bytes(self) -> bytes:
        """65-byte r || s || recovery_id form."""
        return (
            self.r.to_bytes(32, "big")
            + self.s.to_bytes(32, "big")
            + bytes([self.recovery_id])
        )


class Signer(ABC):
    """Capability that turns a digest and private key into a signature."""

    @abstractmethod
    def sign(self, digest: bytes, private_key: bytes) -> Signature:
        """
        Sign a 32-byte digest.

        Args:
            digest: Message digest (already hashed)
            private_key: 32-byte secp256k1 private scalar

        Returns:
            Low-s signature with recovery id

        Raises:
            SigningError: If the digest or key is rejected
        """
        pass

    @abstractmethod
    def public_key(self, private_key: bytes) -> bytes:
        """Return the 64-byte uncompressed public key (x || y)."""
        pass


class EthKeysSigner(Signer):
    """Signer backed by eth-keys (RFC 6979 deterministic nonces)."""

    def sign(self, digest: bytes, private_key: bytes) -> Signature:
        _check_length("digest", digest, DIGEST_LENGTH)
        key = self._load_key(private_key)

        try:
            signature = key.sign_msg_hash(bytes(digest))
        except (KeyValidationError, BadSignature) as e:
            raise SigningError(f"Signing failed: {e}") from e

        r, s, recovery_id = signature.r, signature.s, signature.v
        if s > SECP256K1_HALF_N:
            s = SECP256K1_N - s
            recovery_id ^= 1

        logger.debug("digest_signed", digest=digest.hex()[:16] + "...")
        return Signature(r=r, s=s, recovery_id=recovery_id)

    def public_key(self, private_key: bytes) -> bytes:
        return self._load_key(private_key).public_key.to_bytes()

    @staticmethod
    def _load_key(private_key: bytes) -> keys.PrivateKey:
        _check_length("private key", private_key, PRIVATE_KEY_LENGTH)
        try:
            return keys.PrivateKey(bytes(private_key))
        except (KeyValidationError, ValueError) as e:
            raise SigningError(f"Invalid private key: {e}") from e


def _check_length(name: str, value: bytes, expected: int) -> None:
    if not isinstance(value, (bytes, bytearray)):
        raise SigningError(f"{name} must be bytes")
    if len(value) != expected:
        raise SigningError(f"{name} must be {expected} bytes, got {len(value)}")
