"""Solana JSON-RPC client backed by the failover executor.

Each request is a single attempt against one endpoint; rotation and retries
belong to ``FailoverExecutor``. Only read methods are exposed.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from solana_router.clients.failover import FailoverExecutor
from solana_router.constants import TOKEN_PROGRAM_ID
from solana_router.utils.errors import RpcError

logger = logging.getLogger(__name__)

# Methods that take commitment inside their trailing config object
_CONFIG_OBJECT_METHODS = {
    "getAccountInfo",
    "getBalance",
    "getSignaturesForAddress",
    "getTransaction",
    "getTokenAccountsByOwner",
    "getTokenSupply",
    "getTokenLargestAccounts",
}


class SolanaRpcClient:
    """Read-only Solana JSON-RPC client."""

    def __init__(
        self,
        executor: FailoverExecutor,
        http_client: Optional[httpx.AsyncClient] = None,
        commitment: str = "confirmed"
    ):
        """Initialize the client.

        Args:
            executor: Failover executor owning the endpoint pool
            http_client: Shared HTTP client; one is created when omitted
            commitment: Commitment level added to every request
        """
        self.executor = executor
        self.commitment = commitment
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
        )
        self.headers = {"Content-Type": "application/json"}

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "SolanaRpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def current_endpoint(self) -> str:
        return self.executor.pool.current

    def _with_commitment(self, method: str, params: List[Any]) -> List[Any]:
        params = list(params)
        if method not in _CONFIG_OBJECT_METHODS:
            return params
        if params and isinstance(params[-1], dict):
            config = dict(params[-1])
            config.setdefault("commitment", self.commitment)
            params[-1] = config
        else:
            params.append({"commitment": self.commitment})
        return params

    async def _post(self, endpoint: str, method: str, params: List[Any]) -> Any:
        """Make one JSON-RPC request to one endpoint.

        Raises:
            RpcError: If the RPC server returns an error
            httpx.HTTPStatusError: If there's an HTTP error
            httpx.RequestError: If there's a network or request error
        """
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params
        }
        response = await self._http_client.post(endpoint, headers=self.headers, json=payload)
        response.raise_for_status()
        result = response.json()

        if "error" in result:
            error = result["error"]
            message = f"Solana RPC error: {error.get('message', 'Unknown error')}"
            if "data" in error:
                message += f" - {json.dumps(error['data'])}"
            raise RpcError(message, error)

        return result.get("result")

    async def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Call an RPC method through the endpoint pool.

        Args:
            method: The RPC method to call
            params: The parameters to pass to the method

        Returns:
            The ``result`` member of the JSON-RPC response

        Raises:
            EndpointPoolExhausted: If every endpoint failed
        """
        request_params = self._with_commitment(method, params or [])

        async def _attempt(endpoint: str) -> Any:
            return await self._post(endpoint, method, request_params)

        return await self.executor.run(_attempt, operation_name=method)

    async def get_account_info(self, address: str, encoding: str = "base64") -> Optional[Dict[str, Any]]:
        """Get an account record, or None if the account does not exist."""
        result = await self.call("getAccountInfo", [address, {"encoding": encoding}])
        if not result:
            return None
        return result.get("value")

    async def get_balance(self, address: str) -> int:
        """Get the balance of an account in lamports."""
        result = await self.call("getBalance", [address])
        if isinstance(result, dict):
            return int(result.get("value", 0))
        return int(result or 0)

    async def get_signatures_for_address(
        self,
        address: str,
        limit: int = 1000,
        before: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Get signatures for transactions involving an address, newest first."""
        options: Dict[str, Any] = {"limit": limit}
        if before:
            options["before"] = before
        return await self.call("getSignaturesForAddress", [address, options]) or []

    async def get_transaction(self, signature: str) -> Optional[Dict[str, Any]]:
        """Get a parsed transaction, or None if it is not found."""
        return await self.call(
            "getTransaction",
            [signature, {"encoding": "jsonParsed", "maxSupportedTransactionVersion": 0}]
        )

    async def get_token_accounts_by_owner(
        self,
        owner: str,
        program_id: str = TOKEN_PROGRAM_ID
    ) -> List[Dict[str, Any]]:
        """Get parsed token accounts owned by a wallet."""
        result = await self.call(
            "getTokenAccountsByOwner",
            [owner, {"programId": program_id}, {"encoding": "jsonParsed"}]
        )
        return (result or {}).get("value", [])

    async def get_token_supply(self, mint: str) -> Dict[str, Any]:
        """Get the supply of a token mint."""
        result = await self.call("getTokenSupply", [mint])
        return (result or {}).get("value", {})

    async def get_token_largest_accounts(self, mint: str) -> List[Dict[str, Any]]:
        """Get the largest token accounts of a mint."""
        result = await self.call("getTokenLargestAccounts", [mint])
        return (result or {}).get("value", [])
