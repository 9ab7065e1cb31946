"""
WebSocket JSON-RPC adapter for node integration.

Keeps one connection open and matches responses to requests by id.
"""

import asyncio
import itertools
import json
from typing import Any, Dict, List, Optional

import structlog
import websockets
from websockets.asyncio.client import ClientConnection, connect

from ethtx.config import EthTxConfig, get_config
from ethtx.errors import NetworkError
from ethtx.node.interface import NodeInterface, build_request, parse_response

logger = structlog.get_logger(__name__)


class WebSocketRpcAdapter(NodeInterface):
    """
    WebSocket JSON-RPC adapter.

    Implements the NodeInterface over a persistent WebSocket with a
    background receive loop.
    """

    def __init__(self, config: Optional[EthTxConfig] = None, url: Optional[str] = None):
        """
        Initialize the WebSocket adapter.

        Args:
            config: ethtx configuration. Uses global config if not provided.
            url: Endpoint override
        """
        self.config = config or get_config()
        self.url = url or self.config.ws_endpoint
        self._ws: Optional[ClientConnection] = None
        self._pending_requests: Dict[int, asyncio.Future] = {}
        self._receive_task: Optional[asyncio.Task] = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Establish WebSocket connection."""
        if self._ws is not None:
            return

        try:
            self._ws = await connect(
                self.url,
                ping_interval=30,
                ping_timeout=10,
            )
        except (OSError, websockets.WebSocketException) as e:
            raise NetworkError(f"Failed to connect to {self.url}: {e}") from e

        self._receive_task = asyncio.create_task(self._receive_loop())
        logger.info("rpc_ws_connected", url=self.url)

    async def disconnect(self) -> None:
        """Close WebSocket connection."""
        if self._receive_task:
            self._receive_task.cancel()
            try:
                await self._receive_task
            except asyncio.CancelledError:
                pass
            self._receive_task = None

        if self._ws:
            await self._ws.close()
            self._ws = None
            logger.info("rpc_ws_disconnected")

        self._fail_pending(NetworkError("Connection closed"))

    async def _receive_loop(self) -> None:
        """Background task to receive WebSocket messages."""
        try:
            async for message in self._ws:
                try:
                    data = json.loads(message)
                except ValueError:
                    logger.warning("rpc_ws_invalid_message")
                    continue

                # Subscription notifications carry no id
                request_id = data.get("id") if isinstance(data, dict) else None
                future = self._pending_requests.pop(request_id, None)
                if future is not None and not future.done():
                    future.set_result(data)

        except websockets.ConnectionClosed:
            pass

        # A clean close ends the iteration without raising
        logger.warning("rpc_ws_connection_closed")
        self._ws = None
        self._fail_pending(NetworkError("Connection closed"))

    def _fail_pending(self, error: NetworkError) -> None:
        for future in self._pending_requests.values():
            if not future.done():
                future.set_exception(error)
        self._pending_requests.clear()

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send a JSON-RPC request and await its response."""
        if not self._ws:
            await self.connect()

        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending_requests[request_id] = future

        try:
            await self._ws.send(json.dumps(build_request(method, params, request_id)))
            data = await asyncio.wait_for(future, timeout=self.config.request_timeout_seconds)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request timeout: {method}") from e
        except websockets.WebSocketException as e:
            raise NetworkError(f"Request failed: {e}") from e
        finally:
            self._pending_requests.pop(request_id, None)

        return parse_response(data, method)
