"""
Pytest configuration and shared fixtures for the test suite.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from ethtx.codec.hexutil import hex_to_bytes
from ethtx.config import EthTxConfig, NetworkType
from ethtx.crypto.digest import keccak256_hex
from ethtx.errors import NetworkError
from ethtx.node.interface import NodeInterface
from ethtx.wallet import Wallet

from helpers import EIP155_PRIVATE_KEY, SEPOLIA_CHAIN_ID, TEST_PRIVATE_KEY


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> EthTxConfig:
    """Create a test configuration."""
    return EthTxConfig(
        network=NetworkType.LOCAL,
        rpc_url="http://node.test:8545",
        default_gas_price_wei=25_000_000_000,
        confirmation_max_attempts=5,
        confirmation_delay_seconds=0,
        history_scan_blocks=10,
        history_max_results=5,
        log_level="DEBUG",
    )


# ============================================================================
# Mock Node Interface
# ============================================================================

class MockNode(NodeInterface):
    """
    Mock node with scripted JSON-RPC responses.

    Every request is recorded in `calls`. Receipt lookups consume the
    `receipts` script in order (None = pending, an Exception is raised) and
    return None once it is exhausted.
    """

    def __init__(self):
        self.calls: List[tuple] = []
        self.chain_id = SEPOLIA_CHAIN_ID
        self.transaction_count = 0
        self.gas_price = 30_000_000_000
        self.gas_estimate = 54_321
        self.estimate_error: Optional[NetworkError] = None
        self.send_error: Optional[NetworkError] = None
        self.balances: Dict[str, int] = {}
        self.receipts: List[Any] = []
        self.transactions: Dict[str, dict] = {}
        self.blocks: Dict[int, dict] = {}
        self.latest_block = 0
        self.call_result = "0x"
        self.code: Dict[str, str] = {}
        self.storage: Dict[tuple, str] = {}
        self.sent_raw: List[str] = []
        self.yield_control = False
        self._connected = False

    async def connect(self) -> None:
        self._connected = True

    async def disconnect(self) -> None:
        self._connected = False

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        params = params or []
        self.calls.append((method, params))
        if self.yield_control:
            # Let concurrent senders interleave at every network await
            await asyncio.sleep(0)

        if method == "eth_chainId":
            return hex(self.chain_id)
        if method == "eth_blockNumber":
            return hex(self.latest_block)
        if method == "eth_gasPrice":
            return hex(self.gas_price)
        if method == "eth_getTransactionCount":
            return hex(self.transaction_count)
        if method == "eth_getBalance":
            return hex(self.balances.get(params[0].lower(), 0))
        if method == "eth_estimateGas":
            if self.estimate_error:
                raise self.estimate_error
            return hex(self.gas_estimate)
        if method == "eth_sendRawTransaction":
            if self.send_error:
                raise self.send_error
            self.sent_raw.append(params[0])
            return keccak256_hex(hex_to_bytes(params[0]))
        if method == "eth_getTransactionReceipt":
            if not self.receipts:
                return None
            receipt = self.receipts.pop(0)
            if isinstance(receipt, Exception):
                raise receipt
            return receipt
        if method == "eth_getTransactionByHash":
            return self.transactions.get(params[0])
        if method == "eth_getBlockByNumber":
            return self.blocks.get(int(params[0], 16))
        if method == "eth_call":
            return self.call_result
        if method == "eth_getCode":
            return self.code.get(params[0].lower(), "0x")
        if method == "eth_getStorageAt":
            return self.storage.get((params[0].lower(), params[1]), "0x" + "00" * 32)
        if method == "net_version":
            return str(self.chain_id)
        if method == "net_peerCount":
            return "0x19"
        if method == "eth_syncing":
            return False
        raise NetworkError(f"the method {method} does not exist/is not available", code=-32601)

    def methods_called(self) -> List[str]:
        return [method for method, _ in self.calls]

    def params_for(self, method: str) -> List[Any]:
        """First positional param of each call to `method`, in order."""
        return [params[0] for name, params in self.calls if name == method and params]

    def count(self, method: str) -> int:
        return self.methods_called().count(method)


@pytest.fixture
def mock_node() -> MockNode:
    """Create a mock node interface."""
    return MockNode()


# ============================================================================
# Wallet Fixtures
# ============================================================================

@pytest.fixture
def wallet() -> Wallet:
    """Wallet with a fixed, well-known key."""
    return Wallet(TEST_PRIVATE_KEY)


@pytest.fixture
def eip155_wallet() -> Wallet:
    return Wallet(EIP155_PRIVATE_KEY)
