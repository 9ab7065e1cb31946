"""
Node Integration Layer.

Provides JSON-RPC access to a node over HTTP or WebSocket.
"""

from typing import Optional

from ethtx.config import EthTxConfig, TransportType, get_config
from ethtx.node.interface import NodeInterface
from ethtx.node.http import HttpRpcAdapter
from ethtx.node.websocket import WebSocketRpcAdapter


def create_node(config: Optional[EthTxConfig] = None) -> NodeInterface:
    """Build the adapter selected by `config.transport`."""
    config = config or get_config()
    if config.transport == TransportType.WEBSOCKET:
        return WebSocketRpcAdapter(config)
    return HttpRpcAdapter(config)


__all__ = [
    "NodeInterface",
    "HttpRpcAdapter",
    "WebSocketRpcAdapter",
    "create_node",
]
