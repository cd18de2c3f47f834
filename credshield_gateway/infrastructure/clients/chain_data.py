"""Explorer-style chain-data API client for fetching wallet activity"""

import asyncio
from typing import Any, Dict, List

import httpx

from credshield_gateway.config import settings
from credshield_gateway.domain.exceptions import DataUnavailable
from credshield_gateway.domain.models import ActivitySnapshot
from credshield_gateway.domain.snapshot import build_snapshot, normalize_address

LIST_ACTIONS = ("txlist", "tokentx", "txlistinternal")


class ChainDataClient:
    """Client for an Etherscan-compatible account API (balance, txlist, tokentx, txlistinternal)"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.chain_data_api_base
        self.api_key = api_key if api_key is not None else settings.chain_data_api_key
        self.timeout = timeout or settings.chain_data_timeout_seconds
        self.transport = transport

    async def _call(self, client: httpx.AsyncClient, address: str, action: str) -> Any:
        params: Dict[str, Any] = {"module": "account", "action": action, "address": address}
        if action in LIST_ACTIONS:
            params.update({"startblock": 0, "endblock": 99999999, "sort": "asc"})
        if action == "balance":
            params["tag"] = "latest"
        if self.api_key:
            params["apikey"] = self.api_key

        response = await client.get(f"{self.base_url}/api", params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise DataUnavailable(address, f"{action} returned a non-object body")
        result = data.get("result")

        if action == "balance":
            if str(data.get("status", "1")) != "1" or result is None:
                raise DataUnavailable(address, f"balance lookup failed: {data.get('message')}")
            return result

        if isinstance(result, list):
            return result
        # Explorers answer "No transactions found" with status 0 and a non-list result
        if str(data.get("message", "")).lower().startswith("no "):
            return []
        raise DataUnavailable(address, f"{action} failed: {data.get('message')} {result}")

    async def fetch_snapshot(self, address: str, as_of: int) -> ActivitySnapshot:
        """
        Fetch balance and the three activity lists concurrently and build the snapshot.

        Raises:
            DataUnavailable: On timeout, HTTP errors, or malformed responses
        """
        address = normalize_address(address)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                balance, txs, transfers, internals = await asyncio.gather(
                    self._call(client, address, "balance"),
                    *(self._call(client, address, action) for action in LIST_ACTIONS),
                )
            except httpx.TimeoutException as e:
                raise DataUnavailable(address, f"timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise DataUnavailable(address, f"HTTP {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise DataUnavailable(address, f"request failed: {e}") from e
            except ValueError as e:
                raise DataUnavailable(address, f"invalid JSON: {e}") from e

        records: List[List[Dict[str, Any]]] = [txs, transfers, internals]
        if not all(all(isinstance(r, dict) for r in rs) for rs in records):
            raise DataUnavailable(address, "activity records are not objects")
        return build_snapshot(address, balance, txs, transfers, internals, as_of)
