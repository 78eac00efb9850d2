"""Minimal JSON-RPC client for contract-ignition library."""

import itertools
from typing import Any, Dict, List, Optional

import requests

from .exceptions import RpcError


class RpcClient:
    """JSON-RPC 2.0 client over HTTP."""

    def __init__(self, url: str, timeout: float = 30, session: Optional[requests.Session] = None):
        self.url = url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC call and return its result.

        Args:
            method: RPC method name (e.g. "eth_getTransactionReceipt")
            params: Positional parameters

        Returns:
            The "result" member of the response (may be None)

        Raises:
            RpcError: On HTTP errors, network errors, RPC error objects, or
                malformed responses
        """
        payload: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": next(self._ids),
        }

        try:
            response = self._session.post(self.url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(f"Network error during RPC call {method}: {e}") from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise RpcError(f"RPC request {method} failed with status {response.status_code}")

        try:
            result = response.json()
        except ValueError as e:
            raise RpcError(f"RPC response to {method} is not valid JSON") from e

        # Check for RPC errors
        if "error" in result:
            raise RpcError(f"RPC error from {method}: {result['error']}")

        if "result" not in result:
            raise RpcError(f"RPC response to {method} has no result")

        return result["result"]

    def chain_id(self) -> int:
        """Return the chain id reported by the node."""
        return int(self.call("eth_chainId"), 16)

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Return the receipt of a transaction, or None while it is unmined/unknown."""
        return self.call("eth_getTransactionReceipt", [tx_hash])
