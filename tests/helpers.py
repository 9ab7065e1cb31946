"""
Shared test data: well-known keys, addresses and RPC payload builders.
"""

from typing import Any, Dict


# Key from the EIP-155 worked example
EIP155_PRIVATE_KEY = "0x" + "46" * 32
# Well-known test key (web3 documentation)
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TEST_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"

RECIPIENT = "0x" + "35" * 20
SEPOLIA_CHAIN_ID = 11155111


def generate_test_tx_hash(index: int = 0) -> str:
    """Generate a deterministic test transaction hash."""
    return "0x" + "ab" * 30 + f"{index:04x}"


def make_receipt(tx_hash: str, status: str = "0x1", block_number: int = 100) -> Dict[str, Any]:
    return {
        "transactionHash": tx_hash,
        "status": status,
        "blockNumber": hex(block_number),
        "gasUsed": "0x5208",
    }
