"""
ethtx

Build, sign and submit Ethereum transactions.
Supports legacy (EIP-155) and fee-market (EIP-1559) transactions, EIP-55
checksum addresses, and confirmation polling over JSON-RPC.
"""

__version__ = "0.1.0"

from ethtx.client import EthereumClient
from ethtx.core.transaction import FeeModel, Transaction
from ethtx.tx.manager import ConfirmationResult, ConfirmationStatus, TransactionManager
from ethtx.wallet import Wallet

__all__ = [
    "EthereumClient",
    "FeeModel",
    "Transaction",
    "TransactionManager",
    "ConfirmationResult",
    "ConfirmationStatus",
    "Wallet",
]
