"""
Transaction module.

Handles transaction signing, submission and confirmation.
"""

from ethtx.tx.manager import (
    ConfirmationResult,
    ConfirmationStatus,
    TransactionManager,
)
from ethtx.tx.signing import SignedTransaction, SigningPipeline

__all__ = [
    "ConfirmationResult",
    "ConfirmationStatus",
    "SignedTransaction",
    "SigningPipeline",
    "TransactionManager",
]
