"""Dispatch of chain events to the buy and sell lifecycles."""

import asyncio
import time

import structlog

from ..config.settings import BotConfig
from ..core.interfaces import EventSource, PoolStore
from ..core.types import PoolCreatedEvent, TokenBalanceEvent
from ..trading.buyer import AcquisitionController
from ..trading.seller import PositionMonitor

logger = structlog.get_logger(__name__)


class EventRouter:
    """Spawns one lifecycle task per relevant event.

    Pools seen before or opened before the router started are ignored.
    New pools are cached even while buying is stopped so their later
    balance events can still be sold.
    """

    def __init__(
        self,
        config: BotConfig,
        pools: PoolStore,
        buyer: AcquisitionController,
        seller: PositionMonitor,
        owners: set[str] | None = None,
        run_timestamp: int | None = None,
    ) -> None:
        self.config = config
        self.pools = pools
        self.buyer = buyer
        self.seller = seller
        self.owners = owners
        self.run_timestamp = (
            run_timestamp if run_timestamp is not None else int(time.time())
        )
        self.running = True
        self._tasks: set[asyncio.Task] = set()

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def on_pool(self, event: PoolCreatedEvent) -> asyncio.Task | None:
        mint = event.keys.base_mint

        if await self.pools.get(mint) is not None:
            return None
        if event.open_time <= self.run_timestamp:
            logger.debug(
                "Ignoring pool opened before start",
                mint=mint,
                open_time=event.open_time,
            )
            return None

        await self.pools.save(mint, event.keys)

        if not self.running:
            logger.debug("Buying is stopped, pool cached only", mint=mint)
            return None
        return self._spawn(self.buyer.buy(event))

    async def on_wallet(self, event: TokenBalanceEvent) -> asyncio.Task | None:
        if event.mint == self.config.quote_token.mint:
            return None
        if self.owners is not None and event.owner not in self.owners:
            return None
        if not self.config.auto_sell:
            return None
        return self._spawn(self.seller.sell(event))

    async def dispatch(self, event: PoolCreatedEvent | TokenBalanceEvent) -> asyncio.Task | None:
        if isinstance(event, PoolCreatedEvent):
            return await self.on_pool(event)
        return await self.on_wallet(event)

    async def run(self, source: EventSource) -> None:
        """Consume ``source`` and wait for the spawned lifecycles to finish."""
        async for event in source.events():
            await self.dispatch(event)
        await self.drain()

    async def drain(self) -> None:
        if self._tasks:
            logger.info("Waiting for lifecycles to finish", tasks=len(self._tasks))
            await asyncio.gather(*self._tasks, return_exceptions=True)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)
