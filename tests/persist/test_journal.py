"""Tests for the SQLite trade journal."""

import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
import pytest_asyncio

from sniper.core.types import TradeRecord, TradeSide
from sniper.persist.journal import TradeJournal


def make_record(mint: str, side: TradeSide, amount: str) -> TradeRecord:
    return TradeRecord(
        token_mint=mint,
        side=side,
        quote_amount=Decimal(amount),
        wallet="Wallet111",
        signature=f"sig-{mint}-{side.value}",
        ts=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


class TestTradeJournal:
    """Test trade journal persistence."""

    @pytest_asyncio.fixture
    async def journal(self):
        """Create a temporary journal."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            journal = TradeJournal(db_path=str(Path(tmp_dir) / "journal.sqlite"))
            await journal.initialize()
            yield journal

    @pytest.mark.asyncio
    async def test_initialization_is_idempotent(self, journal):
        await journal.initialize()

        assert Path(journal.db_path).exists()
        assert await journal.load_trades() == []

    @pytest.mark.asyncio
    async def test_record_and_load(self, journal):
        buy_id = await journal.record_trade(make_record("MintA", TradeSide.BUY, "0.1"))
        sell_id = await journal.record_trade(
            make_record("MintA", TradeSide.SELL, "0.145")
        )

        trades = await journal.load_trades()

        assert sell_id > buy_id
        assert [t.side for t in trades] == [TradeSide.BUY, TradeSide.SELL]
        assert trades[1].quote_amount == Decimal("0.145")
        assert trades[0].ts == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_filter_by_mint(self, journal):
        await journal.record_trade(make_record("MintA", TradeSide.BUY, "0.1"))
        await journal.record_trade(make_record("MintB", TradeSide.BUY, "0.2"))

        trades = await journal.load_trades(token_mint="MintB")

        assert len(trades) == 1
        assert trades[0].token_mint == "MintB"

    @pytest.mark.asyncio
    async def test_write_failure_returns_none(self):
        """A journal without its table logs the error instead of raising."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            journal = TradeJournal(db_path=str(Path(tmp_dir) / "empty.sqlite"))

            result = await journal.record_trade(
                make_record("MintA", TradeSide.BUY, "0.1")
            )

        assert result is None
