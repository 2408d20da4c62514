"""
Asynchronous JSON-RPC client for an Ethereum-compatible node.

Lightweight alternative to web3.py: httpx for HTTP + eth-abi for encoding.
Transport failures become TransportError, node-reported reverts become
ChainRevertError, any other JSON-RPC error becomes RpcError. No retries.
"""

from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Optional

import httpx

from ..errors import ChainRevertError, RpcError, TransportError
from .abi import decode_revert_reason

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

# geth: code 3 "execution reverted: <reason>"
# ganache: "VM Exception while processing transaction: revert <reason>"
_REVERT_MESSAGE = re.compile(r"(?:execution reverted|revert)(?::)?\s*(.*)$", re.IGNORECASE)


def _revert_reason_from_error(error: dict[str, Any]) -> Optional[str]:
    """Return the revert reason if a JSON-RPC error object describes a revert."""
    message = str(error.get("message", ""))
    data = error.get("data")

    if isinstance(data, dict):
        # ganache nests the payload: {"data": {"result": "0x08c3...", "reason": "..."}}
        if data.get("reason"):
            return str(data["reason"])
        data = data.get("result") or data.get("data")

    match = _REVERT_MESSAGE.search(message)
    if error.get("code") != 3 and match is None:
        return None

    decoded = decode_revert_reason(data)
    if decoded:
        return decoded
    if match and match.group(1):
        return match.group(1).strip()
    return message or "execution reverted"


class RpcClient:
    """
    JSON-RPC 2.0 client over httpx.AsyncClient.

    The client is safe to share between concurrent coroutines. Close it with
    ``await client.aclose()`` or use it as an async context manager.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._url = url
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def call(self, method: str, params: Optional[list] = None) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            TransportError: Connection failure, timeout or non-2xx HTTP status
            ChainRevertError: The node reports the call as reverted
            RpcError: Any other JSON-RPC error object
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": request_id,
        }
        logger.debug("rpc -> %s id=%d", method, request_id)

        try:
            response = await self._client.post(self._url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} failed: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method} returned a non-JSON response") from exc

        error = data.get("error")
        if error:
            reason = _revert_reason_from_error(error)
            if reason is not None:
                raise ChainRevertError(reason)
            raise RpcError(method, int(error.get("code", 0)), str(error.get("message", "")), error.get("data"))

        return data.get("result")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    async def eth_call(self, tx: dict[str, Any], block: str = "latest") -> str:
        return await self.call("eth_call", [tx, block])

    async def chain_id(self) -> int:
        return int(await self.call("eth_chainId"), 16)

    async def gas_price(self) -> int:
        return int(await self.call("eth_gasPrice"), 16)

    async def get_nonce(self, address: str, block: str = "pending") -> int:
        return int(await self.call("eth_getTransactionCount", [address, block]), 16)

    async def send_raw_transaction(self, raw_tx: str) -> str:
        return await self.call("eth_sendRawTransaction", [raw_tx])

    async def get_receipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return await self.call("eth_getTransactionReceipt", [tx_hash])
