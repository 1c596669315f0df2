"""Raw JSON-RPC transport to an Ethereum node.

The transport only moves envelopes. It does not interpret node errors or
retry; that is the client's job.
"""

import itertools
import logging
from typing import Any, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class NodeTransport(Protocol):
    """Anything that can send one JSON-RPC request and return the envelope."""

    async def request(self, method: str, params: list[Any]) -> dict:
        ...

    async def aclose(self) -> None:
        ...


class HttpJsonRpcTransport:
    """JSON-RPC over HTTP using a shared httpx.AsyncClient."""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def request(self, method: str, params: list[Any]) -> dict:
        """POST a single request and return the decoded response envelope.

        Raises:
            httpx.HTTPError: on connection problems or non-2xx status
            ValueError: if the body is not JSON
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        await self._client.aclose()
