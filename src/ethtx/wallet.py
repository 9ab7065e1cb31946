"""
Wallet - holds the account key and hands it to the signer.

Supports loading keys from:
- A raw hex private key (argument or ETHTX_PRIVATE_KEY)
- A JSON wallet file {privateKey, publicKey, address, created}

The private key never leaves this object except as the argument of a
single Signer call, and it is never logged.
"""

import json
import secrets
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import structlog

from ethtx.codec.hexutil import is_hex, remove_hex_prefix
from ethtx.config import EthTxConfig, get_config
from ethtx.core.address import derive_address, to_checksum_address
from ethtx.crypto.signer import EthKeysSigner, Signature, Signer
from ethtx.errors import SigningError, ValidationError

logger = structlog.get_logger(__name__)

PRIVATE_KEY_HEX_LENGTH = 64


class Wallet:
    """
    A single secp256k1 account.

    Usage:
        ```python
        wallet = Wallet()                      # new random key
        wallet = Wallet("0x4c08...2318")       # import
        wallet.save("wallet.json")
        ```
    """

    def __init__(
        self,
        private_key: Optional[Union[str, bytes]] = None,
        signer: Optional[Signer] = None,
    ):
        """
        Initialize the wallet.

        Args:
            private_key: 32 raw bytes or 64 hex chars (0x optional). Generated if None.
            signer: Signing backend (eth-keys by default)
        """
        self._signer = signer or EthKeysSigner()
        if private_key is None:
            self._private_key = self._generate_private_key()
        else:
            self._private_key = self._normalize_private_key(private_key)

        try:
            self._public_key = self._signer.public_key(self._private_key)
        except SigningError as e:
            raise ValidationError(f"Invalid private key: {e}") from e
        self._address = to_checksum_address(derive_address(self._public_key))

    @classmethod
    def from_config(cls, config: Optional[EthTxConfig] = None) -> "Wallet":
        """Load the wallet named by configuration (file path first, then raw key)."""
        config = config or get_config()
        if config.wallet_path:
            return cls.load(config.wallet_path)
        if config.private_key:
            wallet = cls(config.private_key.get_secret_value())
            logger.info("wallet_loaded_from_env", address=wallet.address)
            return wallet
        raise ValueError("No wallet configured")

    @staticmethod
    def _generate_private_key() -> bytes:
        return secrets.token_bytes(32)

    @staticmethod
    def _normalize_private_key(private_key: Union[str, bytes]) -> bytes:
        if isinstance(private_key, (bytes, bytearray)):
            if len(private_key) != 32:
                raise ValidationError("Invalid private key format")
            return bytes(private_key)

        digits = remove_hex_prefix(private_key.strip())
        if len(digits) != PRIVATE_KEY_HEX_LENGTH or not is_hex(digits):
            raise ValidationError("Invalid private key format")
        return bytes.fromhex(digits)

    # ------------------------------------------------------------------
    # Key material
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        """Checksum address of the account."""
        return self._address

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def public_key_hex(self) -> str:
        return "0x" + self._public_key.hex()

    @property
    def private_key_hex(self) -> str:
        return "0x" + self._private_key.hex()

    @property
    def signer(self) -> Signer:
        return self._signer

    def sign_digest(self, digest: bytes) -> Signature:
        """Sign a 32-byte digest with this wallet's key."""
        return self._signer.sign(digest, self._private_key)

    def sign_message_hash(self, message_hash: Union[str, bytes]) -> str:
        """
        Sign an already-hashed message.

        Returns:
            0x-prefixed r || s || recovery_id (65 bytes)
        """
        if isinstance(message_hash, str):
            if not is_hex(message_hash):
                raise ValidationError(f"Invalid message hash: {message_hash!r}")
            message_hash = bytes.fromhex(remove_hex_prefix(message_hash).rjust(64, "0"))
        return "0x" + self.sign_digest(message_hash).to_bytes().hex()

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        data = {
            "privateKey": self.private_key_hex,
            "publicKey": self.public_key_hex,
            "address": self.address,
            "created": datetime.now(timezone.utc).isoformat(),
        }
        return json.dumps(data, indent=4)

    @classmethod
    def import_json(cls, json_data: str, signer: Optional[Signer] = None) -> "Wallet":
        try:
            data = json.loads(json_data)
        except json.JSONDecodeError as e:
            raise ValidationError("Invalid JSON format") from e

        if not isinstance(data, dict) or "privateKey" not in data:
            raise ValidationError("Private key not found in JSON data")

        wallet = cls(data["privateKey"], signer=signer)
        stored_address = data.get("address")
        if stored_address and stored_address.lower() != wallet.address.lower():
            raise ValidationError("Wallet file address does not match its private key")
        return wallet

    def save(self, path: Union[str, Path]) -> Path:
        """Write the wallet file. The file holds the raw key; keep it private."""
        path = Path(path)
        path.write_text(self.export_json())
        path.chmod(0o600)
        logger.info("wallet_saved", path=str(path), address=self.address)
        return path

    @classmethod
    def load(cls, path: Union[str, Path], signer: Optional[Signer] = None) -> "Wallet":
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Wallet file not found: {path}")
        wallet = cls.import_json(path.read_text(), signer=signer)
        logger.info("wallet_loaded", path=str(path), address=wallet.address)
        return wallet

    def __repr__(self) -> str:
        return f"Wallet(address={self.address})"
