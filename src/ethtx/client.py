"""
Ethereum client facade.

Bundles a node adapter, an optional wallet and its transaction manager
behind one object for scripts and the CLI.
"""

from typing import Any, Dict, List, Optional, Union

import structlog

from ethtx.config import EthTxConfig, get_config
from ethtx.core.address import is_valid_address, to_checksum_address
from ethtx.core.transaction import Quantity, Transaction
from ethtx.core.units import Amount, wei_to_ether
from ethtx.errors import ValidationError
from ethtx.node import create_node
from ethtx.node.interface import NodeInterface
from ethtx.tx.manager import ConfirmationResult, ConfirmationStatus, TransactionManager
from ethtx.wallet import Wallet

logger = structlog.get_logger(__name__)


class EthereumClient:
    """
    High level client.

    Read-only calls work without a wallet. Anything that signs needs one,
    set through the constructor, `create_wallet` or `import_wallet`.

    Usage:
        ```python
        async with EthereumClient(wallet=Wallet.load("wallet.json")) as client:
            tx_hash = await client.send_ether("0x8ba1...", "0.01")
            result = await client.wait_for_confirmation(tx_hash)
        ```
    """

    def __init__(
        self,
        config: Optional[EthTxConfig] = None,
        node: Optional[NodeInterface] = None,
        wallet: Optional[Wallet] = None,
    ):
        """
        Initialize the client.

        Args:
            config: ethtx configuration
            node: Custom node interface (auto-created based on config if not provided)
            wallet: Wallet used for signing
        """
        self.config = config or get_config()
        self.node = node or create_node(self.config)
        self._wallet: Optional[Wallet] = None
        self._manager: Optional[TransactionManager] = None

        if wallet is not None:
            self.set_wallet(wallet)

    async def __aenter__(self) -> "EthereumClient":
        await self.node.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.node.disconnect()

    # ------------------------------------------------------------------
    # Wallet
    # ------------------------------------------------------------------

    @property
    def wallet(self) -> Optional[Wallet]:
        return self._wallet

    @property
    def manager(self) -> TransactionManager:
        if self._manager is None:
            raise RuntimeError("No wallet loaded")
        return self._manager

    def set_wallet(self, wallet: Wallet) -> None:
        self._wallet = wallet
        self._manager = TransactionManager(self.node, wallet, self.config)
        logger.info("client_wallet_set", address=wallet.address)

    def create_wallet(self) -> Wallet:
        """Generate a fresh key pair and use it for signing."""
        wallet = Wallet()
        self.set_wallet(wallet)
        return wallet

    def import_wallet(self, private_key: Union[str, bytes]) -> Wallet:
        wallet = Wallet(private_key)
        self.set_wallet(wallet)
        return wallet

    def import_wallet_from_json(self, json_data: str) -> Wallet:
        wallet = Wallet.import_json(json_data)
        self.set_wallet(wallet)
        return wallet

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send_ether(self, to: str, amount: Amount, **options: Any) -> str:
        return await self.manager.send_ether(to, amount, **options)

    async def send_ether_eip1559(
        self,
        to: str,
        amount: Amount,
        max_fee_per_gas: Quantity,
        max_priority_fee_per_gas: Quantity,
        **options: Any,
    ) -> str:
        return await self.manager.send_ether_eip1559(
            to,
            amount,
            max_fee_per_gas,
            max_priority_fee_per_gas,
            **options,
        )

    async def send_transaction(self, transaction: Union[Transaction, Dict[str, Any]]) -> str:
        if isinstance(transaction, dict):
            transaction = Transaction.from_dict(transaction)
        return await self.manager.send_transaction(transaction)

    async def wait_for_confirmation(
        self,
        tx_hash: str,
        max_attempts: Optional[int] = None,
        delay_seconds: Optional[float] = None,
    ) -> ConfirmationResult:
        return await self.manager.wait_for_confirmation(tx_hash, max_attempts, delay_seconds)

    async def get_transaction_status(self, tx_hash: str) -> ConfirmationStatus:
        return await self.manager.get_transaction_status(tx_hash)

    async def get_transaction_details(self, tx_hash: str) -> Dict[str, Any]:
        return await self.manager.get_transaction_details(tx_hash)

    async def estimate_transaction_cost(
        self,
        transaction: Union[Transaction, Dict[str, Any]],
    ) -> Dict[str, Any]:
        if isinstance(transaction, dict):
            transaction = Transaction.from_dict(transaction)
        return await self.manager.estimate_cost(transaction)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_balance(self, address: Optional[str] = None) -> int:
        """
        Balance in wei.

        Args:
            address: Account to query, defaults to the loaded wallet
        """
        if address is None:
            address = self.manager.wallet.address
        elif not is_valid_address(address):
            raise ValidationError(f"Invalid address: {address}")
        return await self.node.get_balance(address)

    async def get_balance_in_ether(self, address: Optional[str] = None) -> str:
        return wei_to_ether(await self.get_balance(address))

    async def call_contract(
        self,
        transaction: Union[Transaction, Dict[str, Any]],
        block: Union[int, str] = "latest",
    ) -> str:
        """Run eth_call and return the raw hex result."""
        if isinstance(transaction, dict):
            transaction = Transaction.from_dict(transaction)
        transaction.validate(require_sender=False)
        return await self.node.call(transaction.to_call_dict(), block)

    async def get_code(self, address: str, block: Union[int, str] = "latest") -> str:
        if not is_valid_address(address):
            raise ValidationError(f"Invalid address: {address}")
        return await self.node.get_code(address, block)

    async def get_storage_at(
        self,
        address: str,
        position: Union[int, str],
        block: Union[int, str] = "latest",
    ) -> str:
        if not is_valid_address(address):
            raise ValidationError(f"Invalid address: {address}")
        return await self.node.get_storage_at(address, position, block)

    async def get_network_info(self) -> Dict[str, Any]:
        return {
            "chain_id": await self.node.get_chain_id(),
            "network_version": await self.node.get_network_version(),
            "peer_count": await self.node.get_peer_count(),
            "syncing": await self.node.is_syncing(),
        }

    async def get_transactions_for_address(
        self,
        address: str,
        max_blocks: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Scan recent blocks for transfers to or from an address.

        Walks backwards from the latest block. Each hit reports the
        direction (IN / OUT) relative to `address` and the checksummed
        counterparty.

        Args:
            address: Account to look for
            max_blocks: Blocks to scan, newest first
            max_results: Stop after this many matches

        Returns:
            List of dicts with direction, hash, value_eth, peer and block_number
        """
        if not is_valid_address(address):
            raise ValidationError(f"Invalid address: {address}")
        if max_blocks is None:
            max_blocks = self.config.history_scan_blocks
        if max_results is None:
            max_results = self.config.history_max_results

        needle = address.lower()
        latest = await self.node.get_block_number()
        start = max(0, latest - max_blocks + 1)
        results: List[Dict[str, Any]] = []

        for number in range(latest, start - 1, -1):
            if len(results) >= max_results:
                break

            block = await self.node.get_block(number, full_transactions=True)
            if not block:
                continue

            for tx in block.get("transactions") or []:
                if not isinstance(tx, dict):
                    continue
                sender = (tx.get("from") or "").lower()
                recipient = (tx.get("to") or "").lower()
                if needle not in (sender, recipient):
                    continue

                incoming = recipient == needle
                peer = tx.get("from") if incoming else tx.get("to")
                results.append({
                    "direction": "IN" if incoming else "OUT",
                    "hash": tx.get("hash", ""),
                    "value_eth": _trim_decimal(wei_to_ether(tx.get("value") or "0x0")),
                    "peer": to_checksum_address(peer) if peer else "",
                    "block_number": number,
                })
                if len(results) >= max_results:
                    break

        logger.debug(
            "history_scanned",
            address=address,
            from_block=latest,
            to_block=start,
            matches=len(results),
        )
        return results

    async def get_transactions_by_block_number(self, number: int, limit: int = 50) -> List[dict]:
        """Full transaction objects of one block, at most `limit` of them."""
        if limit <= 0:
            return []
        block = await self.node.get_block(number, full_transactions=True)
        if not block:
            return []
        transactions = block.get("transactions")
        if not isinstance(transactions, list):
            return []
        return transactions[:limit]


def _trim_decimal(value: str) -> str:
    if "." not in value:
        return value
    return value.rstrip("0").rstrip(".")
