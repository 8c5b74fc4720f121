"""In-memory pool key store."""

import asyncio

import structlog

from ..core.interfaces import PoolStore
from ..core.types import PoolKeys

logger = structlog.get_logger(__name__)


class PoolCache(PoolStore):
    """Resolves a base mint to the keys of the pool it was first seen in."""

    def __init__(self) -> None:
        self._pools: dict[str, PoolKeys] = {}
        self._lock = asyncio.Lock()

    async def get(self, mint: str) -> PoolKeys | None:
        async with self._lock:
            return self._pools.get(mint)

    async def save(self, mint: str, keys: PoolKeys) -> None:
        async with self._lock:
            if mint not in self._pools:
                logger.debug("Caching pool", mint=mint, pool_id=keys.id)
                self._pools[mint] = keys

    def __len__(self) -> int:
        return len(self._pools)
