"""
Command-line interface for ethtx.

Provides commands for wallets, balances and sending ether.
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict

import structlog

from ethtx import __version__
from ethtx.client import EthereumClient
from ethtx.config import EthTxConfig, NetworkType, TransportType, set_config
from ethtx.core.address import to_checksum_address
from ethtx.core.units import gwei_to_wei, wei_to_ether
from ethtx.errors import ConfirmationTimeoutError, EthTxError
from ethtx.tx.manager import ConfirmationStatus, receipt_status
from ethtx.wallet import Wallet


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Logs go to stderr so command output stays pipeable
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def _network_options() -> argparse.ArgumentParser:
    """Options shared by every command that talks to a node."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--network",
        choices=[n.value for n in NetworkType],
        default=None,
        help="Ethereum network (default: sepolia)",
    )
    parent.add_argument(
        "--rpc-url",
        help="JSON-RPC endpoint (overrides the network default)",
    )
    parent.add_argument(
        "--transport",
        choices=[t.value for t in TransportType],
        default=None,
        help="JSON-RPC transport (default: http)",
    )
    return parent


def _logging_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parent.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )
    return parent


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ethtx",
        description="Build, sign and send Ethereum transactions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    network = _network_options()
    logs = _logging_options()
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Wallet commands
    wallet_parser = subparsers.add_parser("wallet", help="Create or inspect wallets")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_command")

    new_parser = wallet_sub.add_parser("new", parents=[logs], help="Generate a new wallet")
    new_parser.add_argument(
        "--out",
        help="Write the wallet JSON to this path",
    )

    show_parser = wallet_sub.add_parser("show", parents=[logs], help="Show a wallet's address")
    show_parser.add_argument(
        "--wallet",
        required=True,
        help="Path to wallet JSON file",
    )

    # Checksum command (offline)
    checksum_parser = subparsers.add_parser("checksum", help="Print the EIP-55 form of an address")
    checksum_parser.add_argument("address", help="Hex address")

    # Balance command
    balance_parser = subparsers.add_parser(
        "balance",
        parents=[network, logs],
        help="Show an address's balance",
    )
    balance_parser.add_argument("address", help="Account address")

    # Send command
    send_parser = subparsers.add_parser(
        "send",
        parents=[network, logs],
        help="Send ether",
    )
    send_parser.add_argument(
        "--to",
        required=True,
        help="Recipient address",
    )
    send_parser.add_argument(
        "--amount",
        required=True,
        help="Amount in ether (decimal)",
    )
    send_parser.add_argument(
        "--wallet",
        help="Path to wallet JSON file (default: ETHTX_WALLET_PATH / ETHTX_PRIVATE_KEY)",
    )
    send_parser.add_argument(
        "--max-fee",
        help="Max fee per gas in gwei (sends an EIP-1559 transaction)",
    )
    send_parser.add_argument(
        "--priority-fee",
        help="Max priority fee per gas in gwei",
    )
    send_parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the receipt",
    )

    # Status command
    status_parser = subparsers.add_parser(
        "status",
        parents=[network, logs],
        help="Show a transaction's status",
    )
    status_parser.add_argument("tx_hash", help="Transaction hash")

    # Info command
    subparsers.add_parser(
        "info",
        parents=[network, logs],
        help="Show network information",
    )

    return parser


def build_config(args: argparse.Namespace) -> EthTxConfig:
    """Layer command-line overrides on top of environment settings."""
    overrides: Dict[str, Any] = {}
    if getattr(args, "network", None):
        overrides["network"] = NetworkType(args.network)
    if getattr(args, "rpc_url", None):
        overrides["rpc_url"] = args.rpc_url
    if getattr(args, "transport", None):
        overrides["transport"] = TransportType(args.transport)
    if getattr(args, "wallet", None):
        overrides["wallet_path"] = args.wallet
    overrides["log_level"] = getattr(args, "log_level", "WARNING")
    overrides["log_json"] = getattr(args, "log_json", False)

    config = EthTxConfig(**overrides)
    set_config(config)
    return config


def wallet_command(args: argparse.Namespace) -> None:
    """Offline wallet commands."""
    if args.wallet_command == "new":
        wallet = Wallet()
        print(f"Address:     {wallet.address}")
        print(f"Public key:  {wallet.public_key_hex}")
        if args.out:
            path = wallet.save(args.out)
            print(f"Saved to:    {path}")
        else:
            print(f"Private key: {wallet.private_key_hex}")
            print()
            print("Store the private key securely. It is not saved anywhere.")
    elif args.wallet_command == "show":
        wallet = Wallet.load(args.wallet)
        print(f"Address:    {wallet.address}")
        print(f"Public key: {wallet.public_key_hex}")
    else:
        print("Usage: ethtx wallet {new,show}")
        sys.exit(1)


async def show_balance(args: argparse.Namespace) -> None:
    config = build_config(args)
    async with EthereumClient(config) as client:
        wei = await client.get_balance(args.address)

    print(f"Address: {to_checksum_address(args.address)}")
    print(f"Balance: {wei_to_ether(wei)} ETH ({wei} wei)")


async def send_ether(args: argparse.Namespace) -> None:
    """Sign and submit a transfer, optionally waiting for the receipt."""
    config = build_config(args)
    wallet = Wallet.from_config(config)

    async with EthereumClient(config, wallet=wallet) as client:
        if args.max_fee:
            priority_fee = args.priority_fee or args.max_fee
            tx_hash = await client.send_ether_eip1559(
                args.to,
                args.amount,
                gwei_to_wei(args.max_fee),
                gwei_to_wei(priority_fee),
            )
        else:
            tx_hash = await client.send_ether(args.to, args.amount)

        print(f"From:    {wallet.address}")
        print(f"To:      {to_checksum_address(args.to)}")
        print(f"Amount:  {args.amount} ETH")
        print(f"Tx hash: {tx_hash}")

        if not args.wait:
            return

        print()
        print(f"Waiting for confirmation (up to {config.confirmation_max_attempts} polls)...")
        try:
            result = await client.wait_for_confirmation(tx_hash)
        except ConfirmationTimeoutError:
            print(f"Status:  {ConfirmationStatus.TIMED_OUT.value}")
            sys.exit(2)

        print(f"Status:  {result.status.value}")
        if result.receipt:
            print(f"Block:   {result.receipt.get('blockNumber')}")
            print(f"Gas used: {result.receipt.get('gasUsed')}")
        if not result.succeeded:
            sys.exit(1)


async def show_status(args: argparse.Namespace) -> None:
    config = build_config(args)
    async with EthereumClient(config) as client:
        receipt = await client.node.get_transaction_receipt(args.tx_hash)
        transaction = await client.node.get_transaction(args.tx_hash)

    print(f"Tx hash: {args.tx_hash}")
    if transaction is None and receipt is None:
        print("Status:  unknown (not found)")
        sys.exit(1)
    print(f"Status:  {receipt_status(receipt).value}")
    if transaction:
        print(f"From:    {transaction.get('from')}")
        print(f"To:      {transaction.get('to') or '(contract creation)'}")
        print(f"Value:   {wei_to_ether(transaction.get('value') or '0x0')} ETH")
    if receipt:
        print(f"Block:   {receipt.get('blockNumber')}")


async def show_info(args: argparse.Namespace) -> None:
    config = build_config(args)
    async with EthereumClient(config) as client:
        info = await client.get_network_info()
        block_number = await client.node.get_block_number()

    print(f"Endpoint:     {client.node.url}")
    print(f"Chain ID:     {info['chain_id']}")
    print(f"Net version:  {info['network_version']}")
    print(f"Peers:        {info['peer_count']}")
    print(f"Syncing:      {bool(info['syncing'])}")
    print(f"Latest block: {block_number}")


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Setup logging
    log_level = getattr(args, "log_level", "WARNING")
    log_json = getattr(args, "log_json", False)
    setup_logging(log_level, log_json)

    try:
        if args.command == "wallet":
            wallet_command(args)
        elif args.command == "checksum":
            print(to_checksum_address(args.address))
        elif args.command == "balance":
            asyncio.run(show_balance(args))
        elif args.command == "send":
            asyncio.run(send_ether(args))
        elif args.command == "status":
            asyncio.run(show_status(args))
        elif args.command == "info":
            asyncio.run(show_info(args))
    except (EthTxError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
