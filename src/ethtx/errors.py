"""
Error taxonomy for transaction construction, signing and submission.

Local errors (validation, encoding, signing) are raised before any network
call. Network errors carry the node-reported code and message when there is one.
"""

from typing import Any, Optional


class EthTxError(Exception):
    """Base class for all errors raised by ethtx."""
    pass


class ValidationError(EthTxError, ValueError):
    """Raised when a transaction or address is malformed."""
    pass


class EncodingError(EthTxError, ValueError):
    """Raised when a value cannot be represented as an RLP item."""
    pass


class SigningError(EthTxError):
    """Raised when the signer rejects a digest or key."""
    pass


class NetworkError(EthTxError):
    """Raised on transport failure or a node-reported JSON-RPC error."""

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.data = data

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"[{self.code}] {self.message}"


class ConfirmationTimeoutError(EthTxError, TimeoutError):
    """Raised when a receipt does not appear within the polling budget."""

    def __init__(self, tx_hash: str, attempts: int):
        super().__init__(
            f"Transaction {tx_hash} not confirmed after {attempts} attempts"
        )
        self.tx_hash = tx_hash
        self.attempts = attempts
