"""
Configuration management for ethtx.

Supports configuration via environment variables and .env files.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkType(str, Enum):
    """Known networks."""
    MAINNET = "mainnet"
    SEPOLIA = "sepolia"
    HOLESKY = "holesky"
    LOCAL = "local"


class TransportType(str, Enum):
    """Supported JSON-RPC transports."""
    HTTP = "http"
    WEBSOCKET = "websocket"


class EthTxConfig(BaseSettings):
    """
    Configuration settings for ethtx.

    All settings can be configured via environment variables with the ETHTX_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="ETHTX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.SEPOLIA,
        description="Network to connect to"
    )
    chain_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Chain id override (queried from the node if unset)"
    )

    # Transport settings
    transport: TransportType = Field(
        default=TransportType.HTTP,
        description="JSON-RPC transport"
    )
    rpc_url: Optional[str] = Field(
        default=None,
        description="HTTP JSON-RPC endpoint"
    )
    ws_url: Optional[str] = Field(
        default=None,
        description="WebSocket JSON-RPC endpoint"
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single JSON-RPC request"
    )

    # Wallet settings
    wallet_path: Optional[str] = Field(
        default=None,
        description="Path to a JSON wallet file"
    )
    private_key: Optional[SecretStr] = Field(
        default=None,
        description="Hex private key (alternative to wallet_path)"
    )

    # Transaction defaults
    default_gas_price_wei: int = Field(
        default=25_000_000_000,
        ge=1,
        description="Fallback legacy gas price when none is set (25 gwei)"
    )
    default_gas_limit: int = Field(
        default=21_000,
        ge=21_000,
        description="Gas limit of a plain value transfer"
    )
    pad_signature_components: bool = Field(
        default=False,
        description="Encode r and s as fixed 32-byte strings instead of minimal integers"
    )

    # Confirmation polling
    confirmation_max_attempts: int = Field(
        default=30,
        ge=1,
        description="Receipt polls before giving up"
    )
    confirmation_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay between receipt polls"
    )

    # History scanning
    history_scan_blocks: int = Field(
        default=500,
        ge=1,
        description="Blocks scanned when listing an address's transactions"
    )
    history_max_results: int = Field(
        default=20,
        ge=1,
        description="Maximum transactions returned by a history scan"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def rpc_endpoint(self) -> str:
        """Get the HTTP endpoint, falling back to a public one for the network."""
        if self.rpc_url:
            return self.rpc_url

        network_urls = {
            NetworkType.MAINNET: "https://ethereum-rpc.publicnode.com",
            NetworkType.SEPOLIA: "https://ethereum-sepolia-rpc.publicnode.com",
            NetworkType.HOLESKY: "https://ethereum-holesky-rpc.publicnode.com",
            NetworkType.LOCAL: "http://127.0.0.1:8545",
        }
        return network_urls.get(self.network, "http://127.0.0.1:8545")

    @property
    def ws_endpoint(self) -> str:
        if self.ws_url:
            return self.ws_url
        if self.network == NetworkType.LOCAL:
            return "ws://127.0.0.1:8546"
        return self.rpc_endpoint.replace("https://", "wss://", 1).replace("http://", "ws://", 1)


# Global config instance
_config: Optional[EthTxConfig] = None


def get_config() -> EthTxConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = EthTxConfig()
    return _config


def set_config(config: EthTxConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
