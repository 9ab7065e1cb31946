"""
HTTP JSON-RPC adapter for node integration.

Provides node access via JSON-RPC POST requests.
"""

import itertools
from typing import Any, List, Optional

import httpx
import structlog

from ethtx.config import EthTxConfig, get_config
from ethtx.errors import NetworkError
from ethtx.node.interface import NodeInterface, build_request, parse_response

logger = structlog.get_logger(__name__)


class HttpRpcAdapter(NodeInterface):
    """
    HTTP JSON-RPC adapter.

    Implements the NodeInterface with one POST per request.
    """

    def __init__(
        self,
        config: Optional[EthTxConfig] = None,
        url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the HTTP adapter.

        Args:
            config: ethtx configuration. Uses global config if not provided.
            url: Endpoint override
            transport: Custom httpx transport (used by tests)
        """
        self.config = config or get_config()
        self.url = url or self.config.rpc_endpoint
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._ids = itertools.count(1)

    @property
    def headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def connect(self) -> None:
        """Establish connection (create HTTP client)."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            headers=self.headers,
            timeout=self.config.request_timeout_seconds,
            transport=self._transport,
        )
        logger.info("rpc_http_connected", url=self.url)

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("rpc_http_disconnected")

    async def request(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Send a JSON-RPC request and return its result."""
        if not self._client:
            await self.connect()

        payload = build_request(method, params, next(self._ids))

        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.RequestError as e:
            logger.error("rpc_request_failed", method=method, error=str(e))
            raise NetworkError(f"Network error: {e}") from e

        if response.status_code != 200:
            logger.error(
                "rpc_request_failed",
                method=method,
                status=response.status_code,
            )
            raise NetworkError(
                f"HTTP {response.status_code}: {response.text[:200]}",
                code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from node for {method}") from e

        result = parse_response(data, method)
        logger.debug("rpc_request", method=method)
        return result
