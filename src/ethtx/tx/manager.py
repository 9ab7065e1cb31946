"""
Transaction Manager - fills defaults, signs, submits and waits.

Drives a transaction from partial fields to a confirmed receipt:
validate -> sender -> nonce -> gas price -> gas limit -> sign -> submit,
then polls for the receipt with a bounded number of attempts.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import structlog

from ethtx.config import EthTxConfig, get_config
from ethtx.core.address import same_address
from ethtx.core.transaction import Quantity, Transaction
from ethtx.core.units import Amount, ether_to_wei, wei_to_ether
from ethtx.errors import ConfirmationTimeoutError, NetworkError, ValidationError
from ethtx.node.interface import NodeInterface
from ethtx.tx.signing import SignedTransaction, SigningPipeline
from ethtx.wallet import Wallet

logger = structlog.get_logger(__name__)


class ConfirmationStatus(str, Enum):
    """Status of a submitted transaction."""
    PENDING = "pending"           # No receipt yet
    CONFIRMED = "confirmed"       # Receipt with non-zero or absent status
    FAILED = "failed"             # Receipt with status 0x0 (reverted)
    TIMED_OUT = "timed_out"       # Attempts exhausted without a receipt


@dataclass
class ConfirmationResult:
    """Outcome of waiting for a receipt."""
    tx_hash: str
    status: ConfirmationStatus
    receipt: Optional[dict] = None
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == ConfirmationStatus.CONFIRMED


def receipt_status(receipt: Optional[dict]) -> ConfirmationStatus:
    """Classify a receipt lookup result."""
    if not receipt:
        return ConfirmationStatus.PENDING

    status = receipt.get("status")
    if status is not None and _is_zero_status(status):
        return ConfirmationStatus.FAILED
    return ConfirmationStatus.CONFIRMED


class TransactionManager:
    """
    Orchestrates sending transactions from one wallet.

    Sends from the same sender are serialized, and nonces handed out by this
    manager never repeat or skip even before earlier sends are mined.

    Usage:
        ```python
        manager = TransactionManager(node, wallet)
        tx_hash = await manager.send_ether("0x8ba1...", "0.01")
        result = await manager.wait_for_confirmation(tx_hash)
        ```
    """

    def __init__(
        self,
        node: NodeInterface,
        wallet: Wallet,
        config: Optional[EthTxConfig] = None,
        pipeline: Optional[SigningPipeline] = None,
    ):
        """
        Initialize the transaction manager.

        Args:
            node: Node interface for nonce, gas and submission calls
            wallet: Wallet whose key signs every transaction
            config: ethtx configuration
            pipeline: Custom signing pipeline
        """
        self.node = node
        self.wallet = wallet
        self.config = config or get_config()
        self.pipeline = pipeline or SigningPipeline(
            pad_signature_components=self.config.pad_signature_components,
        )

        self._send_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._last_nonce: Dict[str, int] = {}
        self._chain_id: Optional[int] = self.config.chain_id

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_transaction(self, transaction: Transaction) -> str:
        """
        Fill defaults, sign and submit a transaction.

        Args:
            transaction: Transaction with at least the fields the caller cares about

        Returns:
            Transaction hash reported by the node

        Raises:
            ValidationError: Before any network call if the transaction is malformed
            NetworkError: If nonce resolution or submission fails
            SigningError: If the signer rejects the key
        """
        transaction.validate(require_sender=False)
        self._resolve_sender(transaction)

        sender = transaction.from_address.lower()
        async with self._send_locks[sender]:
            signed = await self._prepare_and_sign(transaction)

            tx_hash = await self.node.send_raw_transaction(signed.raw_hex)

            nonce = transaction.quantity("nonce")
            self._last_nonce[sender] = max(nonce, self._last_nonce.get(sender, -1))

        logger.info(
            "tx_submitted",
            tx_hash=tx_hash,
            sender=transaction.from_address,
            nonce=nonce,
            fee_model=signed.fee_model.value,
        )
        return tx_hash

    async def sign_transaction(self, transaction: Transaction) -> SignedTransaction:
        """Fill defaults and sign without submitting."""
        transaction.validate(require_sender=False)
        self._resolve_sender(transaction)
        async with self._send_locks[transaction.from_address.lower()]:
            return await self._prepare_and_sign(transaction)

    async def send_ether(self, to: str, amount: Amount, **options: Any) -> str:
        """Send `amount` ether (decimal) to `to`."""
        transaction = Transaction.create_transfer(
            self.wallet.address,
            to,
            ether_to_wei(amount),
            **options,
        )
        return await self.send_transaction(transaction)

    async def send_ether_eip1559(
        self,
        to: str,
        amount: Amount,
        max_fee_per_gas: Quantity,
        max_priority_fee_per_gas: Quantity,
        **options: Any,
    ) -> str:
        """Send ether as a type 0x02 fee-market transaction."""
        transaction = Transaction.create_transfer(
            self.wallet.address,
            to,
            ether_to_wei(amount),
            **options,
        )
        transaction.set_eip1559_gas(max_fee_per_gas, max_priority_fee_per_gas)
        return await self.send_transaction(transaction)

    async def _prepare_and_sign(self, transaction: Transaction) -> SignedTransaction:
        await self._resolve_nonce(transaction)
        self._resolve_gas_price(transaction)
        await self._resolve_gas_limit(transaction)
        await self._resolve_chain_id(transaction)

        transaction.validate(require_fee=True)
        return self.pipeline.sign(transaction, self.wallet)

    def _resolve_sender(self, transaction: Transaction) -> None:
        if not transaction.from_address:
            transaction.set_from(self.wallet.address)
        elif not same_address(transaction.from_address, self.wallet.address):
            raise ValidationError(
                f"From address {transaction.from_address} does not match wallet {self.wallet.address}"
            )

    async def _resolve_nonce(self, transaction: Transaction) -> None:
        if transaction.nonce is not None:
            return

        sender = transaction.from_address.lower()
        remote = await self.node.get_transaction_count(transaction.from_address, "latest")
        nonce = max(remote, self._last_nonce.get(sender, -1) + 1)
        transaction.set_nonce(nonce)
        logger.debug("nonce_resolved", sender=transaction.from_address, nonce=nonce, remote=remote)

    def _resolve_gas_price(self, transaction: Transaction) -> None:
        if transaction.has_gas_price or transaction.has_eip1559_fields:
            return
        transaction.set_gas_price(self.config.default_gas_price_wei)
        logger.debug("gas_price_defaulted", gas_price=self.config.default_gas_price_wei)

    async def _resolve_gas_limit(self, transaction: Transaction) -> None:
        """Best-effort estimate for anything that is not a plain transfer."""
        gas = transaction.quantity("gas")
        if gas is not None and (gas != self.config.default_gas_limit or transaction.is_value_transfer):
            return

        try:
            estimated = await self.node.estimate_gas(transaction.to_call_dict())
        except NetworkError as e:
            logger.warning("gas_estimate_failed", error=str(e), gas=transaction.gas)
            if gas is None:
                transaction.set_gas(self.config.default_gas_limit)
            return

        transaction.set_gas(estimated)
        logger.debug("gas_estimated", gas=estimated)

    async def _resolve_chain_id(self, transaction: Transaction) -> None:
        if transaction.chain_id is not None:
            return
        if self._chain_id is None:
            self._chain_id = await self.node.get_chain_id()
            logger.debug("chain_id_resolved", chain_id=self._chain_id)
        transaction.set_chain_id(self._chain_id)

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        max_attempts: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ) -> ConfirmationResult:
        """
        Poll for the receipt of a submitted transaction.

        The whole wait is bounded by max_attempts * delay_seconds and the
        delay is cancellable.

        Args:
            tx_hash: Hash returned by send_transaction
            max_attempts: Receipt polls before giving up
            delay_seconds: Pause between polls

        Returns:
            ConfirmationResult with status CONFIRMED or FAILED

        Raises:
            ConfirmationTimeoutError: If no receipt appeared in max_attempts polls
        """
        if max_attempts is None:
            max_attempts = self.config.confirmation_max_attempts
        if delay_seconds is None:
            delay_seconds = self.config.confirmation_delay_seconds

        for attempt in range(1, max_attempts + 1):
            try:
                receipt = await self.node.get_transaction_receipt(tx_hash)
            except NetworkError as e:
                logger.warning("receipt_poll_failed", tx_hash=tx_hash, attempt=attempt, error=str(e))
                receipt = None

            status = receipt_status(receipt)
            if status != ConfirmationStatus.PENDING:
                logger.info("tx_settled", tx_hash=tx_hash, status=status.value, attempts=attempt)
                return ConfirmationResult(
                    tx_hash=tx_hash,
                    status=status,
                    receipt=receipt,
                    attempts=attempt,
                )

            if attempt < max_attempts:
                await asyncio.sleep(delay_seconds)

        logger.warning("tx_confirmation_timeout", tx_hash=tx_hash, attempts=max_attempts)
        raise ConfirmationTimeoutError(tx_hash, max_attempts)

    async def get_transaction_status(self, tx_hash: str) -> ConfirmationStatus:
        """Single receipt lookup; network errors read as pending."""
        try:
            receipt = await self.node.get_transaction_receipt(tx_hash)
        except NetworkError:
            return ConfirmationStatus.PENDING
        return receipt_status(receipt)

    async def get_transaction_details(self, tx_hash: str) -> Dict[str, Any]:
        transaction = await self.node.get_transaction(tx_hash)
        receipt = await self.node.get_transaction_receipt(tx_hash)
        return {
            "transaction": transaction,
            "receipt": receipt,
            "status": receipt_status(receipt).value,
        }

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def estimate_cost(self, transaction: Transaction) -> Dict[str, Any]:
        """
        Worst-case fee for a transaction (gas limit * price).

        Uses maxFeePerGas for fee-market transactions, gasPrice otherwise,
        and the node's gas price when neither is set.
        """
        if transaction.is_eip1559:
            gas_price = transaction.quantity("max_fee_per_gas")
        elif transaction.has_gas_price:
            gas_price = transaction.quantity("gas_price")
        else:
            gas_price = await self.node.get_gas_price()

        gas_limit = transaction.quantity("gas")
        if gas_limit is None:
            gas_limit = await self.node.estimate_gas(transaction.to_call_dict())

        total = gas_price * gas_limit
        return {
            "gas_price": hex(gas_price),
            "gas_limit": hex(gas_limit),
            "total_cost": hex(total),
            "total_cost_wei": total,
            "total_cost_ether": wei_to_ether(total),
        }

    async def get_balance(self, address: Optional[str] = None) -> int:
        return await self.node.get_balance(address or self.wallet.address)

    async def get_next_nonce(self) -> int:
        sender = self.wallet.address.lower()
        remote = await self.node.get_transaction_count(self.wallet.address, "latest")
        return max(remote, self._last_nonce.get(sender, -1) + 1)


def _is_zero_status(status: Any) -> bool:
    if isinstance(status, str):
        try:
            return int(status, 16) == 0
        except ValueError:
            return False
    return status == 0
