"""
Abstract interface for node access.

Defines the JSON-RPC contract that all transport adapters must implement.
Adapters only provide `request`; the typed helpers are shared.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union

from ethtx.codec.hexutil import format_block_identifier, hex_to_int, to_hex
from ethtx.errors import NetworkError

JSONRPC_VERSION = "2.0"

BlockIdentifier = Union[int, str]


def build_request(method: str, params: Optional[List[Any]], request_id: Union[int, str]) -> Dict[str, Any]:
    """JSON-RPC request envelope."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": params or [],
        "id": request_id,
    }


def parse_response(data: Any, method: str) -> Any:
    """
    Extract the result of a JSON-RPC response.

    Raises:
        NetworkError: For error objects and malformed responses
    """
    if not isinstance(data, dict):
        raise NetworkError(f"Malformed JSON-RPC response for {method}")

    error = data.get("error")
    if error is not None:
        if isinstance(error, dict):
            raise NetworkError(
                error.get("message", "Unknown error"),
                code=error.get("code"),
                data=error.get("data"),
            )
        raise NetworkError(str(error))

    return data.get("result")


class NodeInterface(ABC):
    """
    Abstract interface for node access.

    This interface defines the node operations needed for sending transactions:
    - Nonce and balance queries
    - Gas estimation and gas price
    - Raw transaction submission
    - Receipt lookup for confirmation
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the node.

        Raises:
            NetworkError: If connection cannot be established
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close connection to the node."""
        pass

    @abstractmethod
    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Send a JSON-RPC request and return its result.

        Args:
            method: JSON-RPC method name
            params: Positional parameters

        Returns:
            The `result` member of the response

        Raises:
            NetworkError: On transport failure or a node-reported error
        """
        pass

    async def __aenter__(self) -> "NodeInterface":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    async def get_chain_id(self) -> int:
        return _quantity(await self.request("eth_chainId"), "eth_chainId")

    async def get_block_number(self) -> int:
        return _quantity(await self.request("eth_blockNumber"), "eth_blockNumber")

    async def get_block(
        self,
        block: BlockIdentifier = "latest",
        full_transactions: bool = False,
    ) -> Optional[dict]:
        return await self.request(
            "eth_getBlockByNumber",
            [format_block_identifier(block), full_transactions],
        )

    async def get_transaction(self, tx_hash: str) -> Optional[dict]:
        return await self.request("eth_getTransactionByHash", [tx_hash])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[dict]:
        """
        Get a transaction receipt.

        Returns:
            The receipt, or None while the transaction is pending
        """
        receipt = await self.request("eth_getTransactionReceipt", [tx_hash])
        return receipt or None

    async def get_balance(self, address: str, block: BlockIdentifier = "latest") -> int:
        result = await self.request("eth_getBalance", [address, format_block_identifier(block)])
        return _quantity(result, "eth_getBalance")

    async def get_transaction_count(self, address: str, block: BlockIdentifier = "latest") -> int:
        result = await self.request(
            "eth_getTransactionCount",
            [address, format_block_identifier(block)],
        )
        return _quantity(result, "eth_getTransactionCount")

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        return _quantity(await self.request("eth_estimateGas", [transaction]), "eth_estimateGas")

    async def call(self, transaction: Dict[str, Any], block: BlockIdentifier = "latest") -> str:
        """
        Execute a read-only call without creating a transaction.

        Args:
            transaction: JSON-RPC call object (to, data, from, value...)
            block: Block number or tag to execute against

        Returns:
            Return data as hex
        """
        return await self.request("eth_call", [transaction, format_block_identifier(block)])

    async def get_code(self, address: str, block: BlockIdentifier = "latest") -> str:
        return await self.request("eth_getCode", [address, format_block_identifier(block)])

    async def get_storage_at(
        self,
        address: str,
        position: Union[int, str],
        block: BlockIdentifier = "latest",
    ) -> str:
        """Read one 32-byte storage slot; `position` is an int or hex slot index."""
        return await self.request(
            "eth_getStorageAt",
            [address, to_hex(position), format_block_identifier(block)],
        )

    async def get_gas_price(self) -> int:
        return _quantity(await self.request("eth_gasPrice"), "eth_gasPrice")

    async def send_raw_transaction(self, raw_transaction: Union[bytes, str]) -> str:
        """
        Submit a signed transaction.

        Args:
            raw_transaction: Wire bytes, or their 0x hex form

        Returns:
            Transaction hash
        """
        if isinstance(raw_transaction, (bytes, bytearray)):
            raw_transaction = "0x" + bytes(raw_transaction).hex()
        tx_hash = await self.request("eth_sendRawTransaction", [raw_transaction])
        if not tx_hash:
            raise NetworkError("No transaction hash returned")
        return tx_hash

    async def get_network_version(self) -> str:
        return str(await self.request("net_version"))

    async def get_peer_count(self) -> int:
        return _quantity(await self.request("net_peerCount"), "net_peerCount")

    async def is_syncing(self) -> Union[bool, dict]:
        return await self.request("eth_syncing")


def _quantity(value: Any, method: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if not isinstance(value, str):
        raise NetworkError(f"Unexpected result for {method}: {value!r}")
    try:
        return hex_to_int(value)
    except ValueError as e:
        raise NetworkError(f"Unexpected result for {method}: {value!r}") from e
