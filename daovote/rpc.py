"""
JSON-RPC 2.0 transport over HTTP.

Every remote call the client makes (contract reads, transaction submission,
receipt polling, wallet account requests) goes through ``JSONRPCClient.call``.
"""

import json
import time
from typing import Any, List, Optional, Union

import httpx

from .constants import CONNECTION_TIMEOUT
from .exceptions import RPCError, TransportError
from .logger import get_logger

logger = get_logger(__name__)

Params = Union[List[Any], dict, None]


class JSONRPCClient:
    """
    Minimal JSON-RPC 2.0 client on top of ``httpx.AsyncClient``.

    The client may be shared; pass one in to reuse its connection pool,
    otherwise one is created (and owned, i.e. closed by ``aclose``).
    """

    def __init__(
        self,
        url: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = CONNECTION_TIMEOUT,
    ):
        self.url = url.rstrip('/')
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._id_counter = 0

    def _next_id(self) -> int:
        self._id_counter += 1
        return self._id_counter

    async def call(self, method: str, params: Params = None) -> Any:
        """
        Send one request and return its ``result``.

        Raises:
            TransportError: endpoint unreachable, non-2xx, or undecodable body
            RPCError: the endpoint answered with an error envelope
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params if params is not None else [],
            "id": self._next_id(),
        }

        start_time = time.time()
        try:
            response = await self.client.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            elapsed = time.time() - start_time
            logger.debug(f"RPC {method} → {self.url} [{response.status_code}] ({elapsed:.3f}s)")
            response.raise_for_status()
            body = response.json()
        except httpx.RequestError as exc:
            elapsed = time.time() - start_time
            logger.warning(f"RPC {method} → {self.url} NETWORK_ERROR ({elapsed:.3f}s)")
            raise TransportError(f"{method}: {exc.__class__.__name__}: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"{method}: HTTP {exc.response.status_code}"
            ) from exc
        except json.JSONDecodeError as exc:
            raise TransportError(f"{method}: response is not JSON") from exc

        if not isinstance(body, dict):
            raise TransportError(f"{method}: unexpected response shape")

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RPCError(
                    code=error.get("code", 0),
                    message=error.get("message", "Unknown RPC error"),
                    data=error.get("data"),
                )
            raise RPCError(code=0, message=str(error))

        if "result" not in body:
            raise TransportError(f"{method}: response has neither result nor error")
        return body["result"]

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "JSONRPCClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
