from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Optional, Protocol

import httpx

from ..analysis.fallback import ProviderFallbackManager
from ..data.store import DashboardStore
from ..exceptions import CollaboratorUnavailableError


@dataclass(frozen=True)
class StorageStats:
    total_files: int
    files_this_month: int


@dataclass(frozen=True)
class ServiceStatus:
    initialized: bool
    network_connected: bool


@dataclass(frozen=True)
class BlockInfo:
    number: int
    transaction_count: int
    timestamp: datetime


class StorageStatsSource(Protocol):
    async def get_storage_stats(self) -> StorageStats: ...


class JobQueueStatusSource(Protocol):
    async def get_service_status(self) -> ServiceStatus: ...

    async def get_pending_jobs_count(self) -> int: ...


class NetworkProbe(Protocol):
    async def get_latest_block_number(self) -> int: ...

    async def get_block(self, number: int) -> BlockInfo: ...


class UnavailableCollaborator:
    """Stands in for any collaborator that is not configured."""

    def __init__(self, name: str):
        self.name = name

    def _fail(self) -> CollaboratorUnavailableError:
        return CollaboratorUnavailableError(f"{self.name} is not configured")

    async def get_storage_stats(self) -> StorageStats:
        raise self._fail()

    async def get_service_status(self) -> ServiceStatus:
        raise self._fail()

    async def get_pending_jobs_count(self) -> int:
        raise self._fail()

    async def get_latest_block_number(self) -> int:
        raise self._fail()

    async def get_block(self, number: int) -> BlockInfo:
        raise self._fail()

    async def aclose(self) -> None:
        return None


class HttpStorageStats:
    """Reads ``{base_url}/stats`` from the storage gateway."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = f"{base_url.rstrip('/')}/stats"
        self._timeout = httpx.Timeout(timeout_seconds)
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def get_storage_stats(self) -> StorageStats:
        try:
            response = await self._client.get(self._url, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorUnavailableError(f"Storage stats unavailable: {exc}") from exc
        return StorageStats(
            total_files=int(_pick(body, "totalFiles", "total_files")),
            files_this_month=int(_pick(body, "filesThisMonth", "files_this_month")),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class StoreJobQueue:
    """Job-queue view derived from in-process pipeline state.

    Pending jobs are the cases that have not reached a terminal state. The
    queue counts as network connected when the primary provider is
    configured.
    """

    def __init__(self, store: DashboardStore, providers: ProviderFallbackManager):
        self._store = store
        self._providers = providers

    async def get_service_status(self) -> ServiceStatus:
        return ServiceStatus(
            initialized=True,
            network_connected=self._providers.is_configured(self._providers.primary_provider),
        )

    async def get_pending_jobs_count(self) -> int:
        return len(self._store.active_statuses())

    async def aclose(self) -> None:
        return None


class JsonRpcNetworkProbe:
    """Ethereum-style JSON-RPC probe used to estimate network uptime."""

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._url = rpc_url
        self._timeout = httpx.Timeout(timeout_seconds)
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._request_id = 0

    async def get_latest_block_number(self) -> int:
        return int(await self._call("eth_blockNumber", []), 16)

    async def get_block(self, number: int) -> BlockInfo:
        block = await self._call("eth_getBlockByNumber", [hex(number), False])
        if not isinstance(block, dict):
            raise CollaboratorUnavailableError(f"Block {number} not found")
        transactions: List[Any] = block.get("transactions") or []
        return BlockInfo(
            number=int(block.get("number", hex(number)), 16),
            transaction_count=len(transactions),
            timestamp=datetime.fromtimestamp(int(block["timestamp"], 16), tz=timezone.utc),
        )

    async def _call(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        try:
            response = await self._client.post(self._url, json=payload, timeout=self._timeout)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorUnavailableError(f"RPC {method} failed: {exc}") from exc
        if body.get("error"):
            raise CollaboratorUnavailableError(f"RPC {method} error: {body['error']}")
        return body.get("result")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _pick(body: Any, *keys: str) -> Any:
    if isinstance(body, dict):
        for key in keys:
            if key in body:
                return body[key]
    raise CollaboratorUnavailableError(f"Storage stats missing {keys[0]}")


__all__ = [
    "BlockInfo",
    "HttpStorageStats",
    "JobQueueStatusSource",
    "JsonRpcNetworkProbe",
    "NetworkProbe",
    "ServiceStatus",
    "StorageStats",
    "StorageStatsSource",
    "StoreJobQueue",
    "UnavailableCollaborator",
]
