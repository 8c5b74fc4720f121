"""Trade journal stored in SQLite."""

from datetime import datetime, timezone
from decimal import Decimal

import aiosqlite
import structlog

from ..core.types import TradeRecord, TradeSide

logger = structlog.get_logger(__name__)


class TradeJournal:
    """Append-only record of confirmed buys and sells.

    Write failures are logged and swallowed: the journal is bookkeeping and
    must never fail a trade that already landed on chain.
    """

    def __init__(self, db_path: str = "sniper.sqlite") -> None:
        self.db_path = db_path
        logger.info("Trade journal initialized", db_path=db_path)

    async def initialize(self) -> None:
        """Initialize database tables."""
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    token_mint TEXT NOT NULL,
                    side TEXT NOT NULL,
                    quote_amount TEXT NOT NULL,
                    wallet TEXT NOT NULL,
                    signature TEXT,
                    ts REAL NOT NULL
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_trades_token_mint
                ON trades(token_mint)
            """)

            await db.commit()

        logger.info("Journal tables initialized")

    async def record_trade(self, record: TradeRecord) -> int | None:
        """Record a confirmed trade.

        Returns:
            Row id, or None when the write failed
        """
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    """
                    INSERT INTO trades (token_mint, side, quote_amount, wallet, signature, ts)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (
                        record.token_mint,
                        record.side.value,
                        str(record.quote_amount),
                        record.wallet,
                        record.signature,
                        record.ts.timestamp(),
                    ),
                )
                trade_id = cursor.lastrowid
                await db.commit()
        except aiosqlite.Error as e:
            logger.error(
                "Failed to record trade",
                mint=record.token_mint,
                side=record.side.value,
                error=str(e),
            )
            return None

        logger.debug(
            "Trade recorded",
            trade_id=trade_id,
            mint=record.token_mint,
            side=record.side.value,
            quote_amount=str(record.quote_amount),
        )
        return trade_id

    async def load_trades(self, token_mint: str | None = None) -> list[TradeRecord]:
        """Load recorded trades, oldest first.

        Args:
            token_mint: Only trades of this mint when given
        """
        query = (
            "SELECT token_mint, side, quote_amount, wallet, signature, ts FROM trades"
        )
        params: tuple = ()
        if token_mint is not None:
            query += " WHERE token_mint = ?"
            params = (token_mint,)
        query += " ORDER BY id"

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(query, params) as cursor:
                rows = await cursor.fetchall()

        return [
            TradeRecord(
                token_mint=row[0],
                side=TradeSide(row[1]),
                quote_amount=Decimal(row[2]),
                wallet=row[3],
                signature=row[4],
                ts=datetime.fromtimestamp(row[5], tz=timezone.utc),
            )
            for row in rows
        ]
