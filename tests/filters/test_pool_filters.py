"""Tests for the individual pool filters."""

from decimal import Decimal
from unittest.mock import AsyncMock

import httpx
import pytest
import respx

from sniper.chain.rpc import SolanaRpcError
from sniper.core.types import MintInfo, TokenBalance, TokenMetadata, TokenSupply
from sniper.filters.burn import BurnFilter
from sniper.filters.mutable import MutableFilter
from sniper.filters.pool_size import PoolSizeFilter
from sniper.filters.renounced import RenouncedFreezeFilter


class TestBurnFilter:
    """Test LP burn detection."""

    @pytest.mark.asyncio
    async def test_burn_observed_passes_and_caches(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_supply.side_effect = [
            TokenSupply(amount=1_000 * 10**9, decimals=9),
            TokenSupply(amount=0, decimals=9),
        ]
        burn = BurnFilter(provider)

        first = await burn.execute(pool_keys)
        second = await burn.execute(pool_keys)
        third = await burn.execute(pool_keys)

        assert not first.ok
        assert first.message == "Burned -> Creator didn't burn LP"
        assert second.ok
        assert third.ok
        assert provider.get_token_supply.await_count == 2

    @pytest.mark.asyncio
    async def test_zero_supply_without_drop_fails(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_supply.return_value = TokenSupply(amount=0, decimals=9)

        result = await BurnFilter(provider).execute(pool_keys)

        assert not result.ok

    @pytest.mark.asyncio
    async def test_drop_must_exceed_burn_amount(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_supply.side_effect = [
            TokenSupply(amount=5 * 10**9, decimals=9),
            TokenSupply(amount=0, decimals=9),
        ]
        burn = BurnFilter(provider, burn_amount=Decimal(10))

        await burn.execute(pool_keys)
        result = await burn.execute(pool_keys)

        assert not result.ok

    @pytest.mark.asyncio
    async def test_unknown_lp_mint_passes(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_supply.side_effect = SolanaRpcError(-32602, "Invalid param")

        result = await BurnFilter(provider).execute(pool_keys)

        assert result.ok

    @pytest.mark.asyncio
    async def test_other_errors_fail(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_supply.side_effect = SolanaRpcError(-32005, "unhealthy")

        result = await BurnFilter(provider).execute(pool_keys)

        assert not result.ok
        assert result.message == "Failed to check if LP is burned"


class TestRenouncedFreezeFilter:
    """Test mint and freeze authority checks."""

    @pytest.mark.asyncio
    async def test_renounced_passes(self, pool_keys):
        provider = AsyncMock()
        provider.get_mint_info.return_value = MintInfo()

        result = await RenouncedFreezeFilter(provider, True, True).execute(pool_keys)

        assert result.ok

    @pytest.mark.asyncio
    async def test_mint_authority_fails(self, pool_keys):
        provider = AsyncMock()
        provider.get_mint_info.return_value = MintInfo(mint_authority="creator")

        result = await RenouncedFreezeFilter(provider).execute(pool_keys)

        assert not result.ok
        assert result.message == "RenouncedFreeze -> Creator can mint tokens"

    @pytest.mark.asyncio
    async def test_freeze_checked_only_when_enabled(self, pool_keys):
        provider = AsyncMock()
        provider.get_mint_info.return_value = MintInfo(freeze_authority="creator")

        assert (await RenouncedFreezeFilter(provider, True, False).execute(pool_keys)).ok

        result = await RenouncedFreezeFilter(provider, True, True).execute(pool_keys)
        assert not result.ok
        assert result.message == "RenouncedFreeze -> Creator can freeze tokens"

    @pytest.mark.asyncio
    async def test_both_authorities_reported(self, pool_keys):
        provider = AsyncMock()
        provider.get_mint_info.return_value = MintInfo(
            mint_authority="creator", freeze_authority="creator"
        )

        result = await RenouncedFreezeFilter(provider, True, True).execute(pool_keys)

        assert result.message == "RenouncedFreeze -> Creator can mint and freeze tokens"

    @pytest.mark.asyncio
    async def test_read_error_fails(self, pool_keys):
        provider = AsyncMock()
        provider.get_mint_info.side_effect = LookupError("missing")

        result = await RenouncedFreezeFilter(provider).execute(pool_keys)

        assert not result.ok
        assert result.message == "Failed to check if mint authority is renounced"


class TestMutableFilter:
    """Test metadata mutability and socials checks."""

    @pytest.mark.asyncio
    async def test_mutable_fails(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_metadata.return_value = TokenMetadata(mutable=True)

        result = await MutableFilter(
            provider, AsyncMock(spec=httpx.AsyncClient), check_mutable=True
        ).execute(pool_keys)

        assert not result.ok
        assert result.message == "MutableSocials -> Token metadata can be changed"

    @pytest.mark.asyncio
    async def test_immutable_passes(self, pool_keys):
        provider = AsyncMock()
        provider.get_token_metadata.return_value = TokenMetadata(mutable=False)

        result = await MutableFilter(
            provider, AsyncMock(spec=httpx.AsyncClient), check_mutable=True
        ).execute(pool_keys)

        assert result.ok

    @pytest.mark.asyncio
    @respx.mock
    async def test_socials_found(self, pool_keys):
        respx.get("https://meta.example/token.json").mock(
            return_value=httpx.Response(
                200, json={"name": "T", "extensions": {"twitter": "https://x.com/t"}}
            )
        )
        provider = AsyncMock()
        provider.get_token_metadata.return_value = TokenMetadata(
            mutable=True, uri="https://meta.example/token.json"
        )
        mutable_filter = MutableFilter(
            provider, check_mutable=False, check_socials=True, session=httpx.AsyncClient()
        )

        result = await mutable_filter.execute(pool_keys)

        assert result.ok

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_socials_fail(self, pool_keys):
        respx.get("https://meta.example/token.json").mock(
            return_value=httpx.Response(200, json={"extensions": {"website": ""}})
        )
        provider = AsyncMock()
        provider.get_token_metadata.return_value = TokenMetadata(
            mutable=False, uri="https://meta.example/token.json"
        )
        mutable_filter = MutableFilter(
            provider, check_mutable=True, check_socials=True, session=httpx.AsyncClient()
        )

        result = await mutable_filter.execute(pool_keys)

        assert not result.ok
        assert result.message == "MutableSocials -> Token has no socials"

    @pytest.mark.asyncio
    @respx.mock
    async def test_metadata_fetch_error_fails(self, pool_keys):
        respx.get("https://meta.example/token.json").mock(
            return_value=httpx.Response(500)
        )
        provider = AsyncMock()
        provider.get_token_metadata.return_value = TokenMetadata(
            mutable=False, uri="https://meta.example/token.json"
        )
        mutable_filter = MutableFilter(
            provider, check_mutable=False, check_socials=True, session=httpx.AsyncClient()
        )

        result = await mutable_filter.execute(pool_keys)

        assert not result.ok
        assert result.message == "Failed to check socials"


class TestPoolSizeFilter:
    """Test quote reserve bounds."""

    def _provider(self, sol: int):
        provider = AsyncMock()
        provider.get_token_account_balance.return_value = TokenBalance(
            amount=sol * 10**9, decimals=9
        )
        return provider

    @pytest.mark.asyncio
    async def test_within_bounds(self, pool_keys):
        result = await PoolSizeFilter(
            self._provider(10), Decimal(5), Decimal(50)
        ).execute(pool_keys)

        assert result.ok

    @pytest.mark.asyncio
    async def test_too_small(self, pool_keys):
        result = await PoolSizeFilter(
            self._provider(1), Decimal(5), Decimal(50)
        ).execute(pool_keys)

        assert not result.ok
        assert "< 5" in result.message

    @pytest.mark.asyncio
    async def test_too_large(self, pool_keys):
        result = await PoolSizeFilter(
            self._provider(100), Decimal(5), Decimal(50)
        ).execute(pool_keys)

        assert not result.ok
        assert "> 50" in result.message

    @pytest.mark.asyncio
    async def test_zero_bounds_open(self, pool_keys):
        result = await PoolSizeFilter(
            self._provider(100_000), Decimal(0), Decimal(0)
        ).execute(pool_keys)

        assert result.ok
