"""
Core domain: addresses, transactions and denominations.
"""

from ethtx.core.address import (
    derive_address,
    is_valid_address,
    is_valid_checksum_address,
    to_checksum_address,
)
from ethtx.core.transaction import FeeModel, Transaction

__all__ = [
    "FeeModel",
    "Transaction",
    "derive_address",
    "is_valid_address",
    "is_valid_checksum_address",
    "to_checksum_address",
]
