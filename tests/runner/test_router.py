"""Tests for event dispatch."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import WSOL, make_config, make_pool_keys
from sniper.cache.pools import PoolCache
from sniper.core.types import PoolCreatedEvent, TokenBalanceEvent
from sniper.runner.router import EventRouter

RUN_TS = 1_700_000_000
OWNER = "Owner1111111111111111111111111111111111111"


def pool_event(open_time=RUN_TS + 10, keys=None) -> PoolCreatedEvent:
    keys = keys or make_pool_keys()
    return PoolCreatedEvent(pool_id=keys.id, keys=keys, open_time=open_time)


def wallet_event(mint="MintA", owner=OWNER) -> TokenBalanceEvent:
    return TokenBalanceEvent(account="Account1", mint=mint, owner=owner, amount=5)


class ListSource:
    def __init__(self, events):
        self._events = events

    async def events(self):
        for event in self._events:
            yield event


@pytest.fixture
def router():
    buyer = MagicMock()
    buyer.buy = AsyncMock()
    seller = MagicMock()
    seller.sell = AsyncMock()
    return EventRouter(
        make_config(),
        PoolCache(),
        buyer,
        seller,
        owners={OWNER},
        run_timestamp=RUN_TS,
    )


class TestPoolDispatch:
    """Test handling of newly created pools."""

    @pytest.mark.asyncio
    async def test_new_pool_is_cached_and_bought(self, router):
        event = pool_event()

        task = await router.on_pool(event)
        await task

        assert await router.pools.get(event.keys.base_mint) == event.keys
        router.buyer.buy.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_pool_opened_before_start_ignored(self, router):
        event = pool_event(open_time=RUN_TS)

        assert await router.on_pool(event) is None
        assert await router.pools.get(event.keys.base_mint) is None
        router.buyer.buy.assert_not_called()

    @pytest.mark.asyncio
    async def test_known_mint_ignored(self, router):
        keys = make_pool_keys()
        await router.pools.save(keys.base_mint, keys)

        assert await router.on_pool(pool_event(keys=keys)) is None
        router.buyer.buy.assert_not_called()

    @pytest.mark.asyncio
    async def test_stopped_router_caches_only(self, router):
        router.running = False
        event = pool_event()

        assert await router.on_pool(event) is None
        assert await router.pools.get(event.keys.base_mint) is not None
        router.buyer.buy.assert_not_called()


class TestWalletDispatch:
    """Test handling of wallet token account changes."""

    @pytest.mark.asyncio
    async def test_sell_spawned(self, router):
        event = wallet_event()

        task = await router.on_wallet(event)
        await task

        router.seller.sell.assert_awaited_once_with(event)

    @pytest.mark.asyncio
    async def test_quote_mint_ignored(self, router):
        assert await router.on_wallet(wallet_event(mint=WSOL.mint)) is None

    @pytest.mark.asyncio
    async def test_foreign_owner_ignored(self, router):
        assert await router.on_wallet(wallet_event(owner="Someone")) is None

    @pytest.mark.asyncio
    async def test_auto_sell_disabled(self, router):
        router.config = make_config(auto_sell=False)

        assert await router.on_wallet(wallet_event()) is None
        router.seller.sell.assert_not_called()


class TestRun:
    """Test consuming a whole event stream."""

    @pytest.mark.asyncio
    async def test_run_drains_lifecycles(self, router):
        finished = []

        async def slow_buy(event):
            await asyncio.sleep(0.01)
            finished.append(event.keys.base_mint)

        router.buyer.buy = slow_buy
        first, second = pool_event(), pool_event()

        await router.run(ListSource([first, wallet_event(), second]))

        assert sorted(finished) == sorted([first.keys.base_mint, second.keys.base_mint])
        router.seller.sell.assert_awaited_once()
        assert router.in_flight == 0

    @pytest.mark.asyncio
    async def test_lifecycle_errors_do_not_escape(self, router):
        router.buyer.buy.side_effect = RuntimeError("boom")

        await router.run(ListSource([pool_event()]))

        assert router.in_flight == 0
