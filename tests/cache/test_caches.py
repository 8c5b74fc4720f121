"""Tests for the pool cache and snipe list."""

import asyncio

import pytest

from conftest import make_pool_keys
from sniper.cache.pools import PoolCache
from sniper.cache.snipe_list import SnipeListCache


class TestPoolCache:
    """Test pool key storage."""

    @pytest.mark.asyncio
    async def test_first_save_wins(self):
        cache = PoolCache()
        first, second = make_pool_keys(), make_pool_keys()

        await cache.save("MintA", first)
        await cache.save("MintA", second)

        assert await cache.get("MintA") == first
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_unknown_mint(self):
        assert await PoolCache().get("Nope") is None


class TestSnipeListCache:
    """Test snipe list loading and refresh."""

    def test_load_skips_comments_and_blanks(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n\n# disabled\n  MintB  \n")
        snipe_list = SnipeListCache(str(path))

        snipe_list.load()

        assert snipe_list.is_in_list("MintA")
        assert snipe_list.is_in_list("MintB")
        assert not snipe_list.is_in_list("# disabled")

    def test_missing_file_keeps_previous_list(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n")
        snipe_list = SnipeListCache(str(path))
        snipe_list.load()

        path.unlink()
        snipe_list.load()

        assert snipe_list.is_in_list("MintA")

    @pytest.mark.asyncio
    async def test_refresh_picks_up_changes(self, tmp_path):
        path = tmp_path / "snipe-list.txt"
        path.write_text("MintA\n")
        snipe_list = SnipeListCache(str(path), refresh_interval_ms=10)

        await snipe_list.init()
        path.write_text("MintB\n")
        await asyncio.sleep(0.05)
        await snipe_list.close()

        assert snipe_list.is_in_list("MintB")
        assert not snipe_list.is_in_list("MintA")
