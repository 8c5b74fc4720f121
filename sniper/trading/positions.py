"""Open positions and exit thresholds."""

import time
from collections.abc import Callable
from decimal import Decimal

import structlog
from solders.keypair import Keypair

logger = structlog.get_logger(__name__)

_HUNDRED = Decimal(100)


def take_profit_target(entry: Decimal, take_profit_pct: Decimal) -> Decimal:
    return entry * (1 + take_profit_pct / _HUNDRED)


def stop_loss_floor(entry: Decimal, stop_loss_pct: Decimal) -> Decimal:
    return entry * (1 - stop_loss_pct / _HUNDRED)


def capitulation_floor(entry: Decimal, skip_pct: Decimal) -> Decimal:
    """Value below which a sell is no longer attempted."""
    return entry * (1 - skip_pct / _HUNDRED)


def ratchet_stop_floor(
    floor: Decimal, current: Decimal, stop_loss_pct: Decimal
) -> Decimal:
    """Raise the trailing floor to follow ``current``, never lower it."""
    return max(floor, current * (1 - stop_loss_pct / _HUNDRED))


class Position:
    """A confirmed buy awaiting its exit."""

    def __init__(
        self,
        mint: str,
        entry_amount: Decimal,
        wallet: Keypair,
        take_profit_pct: Decimal,
        stop_loss_pct: Decimal,
        buy_attempts: int = 1,
        opened_at: float | None = None,
    ) -> None:
        self.mint = mint
        self.entry_amount = entry_amount
        self.wallet = wallet
        self.take_profit = take_profit_target(entry_amount, take_profit_pct)
        self.initial_stop_loss = stop_loss_floor(entry_amount, stop_loss_pct)
        self.stop_floor: Decimal | None = None
        self.buy_attempts = buy_attempts
        self.sell_attempts = 0
        self.opened_at = opened_at if opened_at is not None else time.time()

    def current_stop_floor(self) -> Decimal:
        """Trailing floor if one is memoized, else the initial stop loss."""
        if self.stop_floor is None:
            return self.initial_stop_loss
        return self.stop_floor

    def clear_stop_floor(self) -> None:
        self.stop_floor = None

    def __repr__(self) -> str:
        return (
            f"Position(mint={self.mint!r}, entry={self.entry_amount}, "
            f"wallet={self.wallet.pubkey()})"
        )


class PositionRegistry:
    """Per-mint position state shared by the buy and sell lifecycles.

    Also tracks which mints have an exit running so a second balance event
    for the same mint does not start a parallel sell.
    """

    def __init__(self, now_fn: Callable[[], float] | None = None) -> None:
        self._now_fn = now_fn or time.time
        self._positions: dict[str, Position] = {}
        self._selling: set[str] = set()

    def open(
        self,
        mint: str,
        entry_amount: Decimal,
        wallet: Keypair,
        take_profit_pct: Decimal,
        stop_loss_pct: Decimal,
        buy_attempts: int = 1,
    ) -> Position:
        """Record a confirmed buy, replacing any earlier position on the mint."""
        previous = self._positions.get(mint)
        if previous is not None:
            logger.warning(
                "Replacing open position",
                mint=mint,
                previous_entry=str(previous.entry_amount),
            )

        position = Position(
            mint=mint,
            entry_amount=entry_amount,
            wallet=wallet,
            take_profit_pct=take_profit_pct,
            stop_loss_pct=stop_loss_pct,
            buy_attempts=buy_attempts,
            opened_at=self._now_fn(),
        )
        self._positions[mint] = position

        logger.info(
            "Position opened",
            mint=mint,
            entry=str(entry_amount),
            take_profit=str(position.take_profit),
            stop_loss=str(position.initial_stop_loss),
            wallet=str(wallet.pubkey()),
        )
        return position

    def get(self, mint: str) -> Position | None:
        return self._positions.get(mint)

    def close(self, mint: str) -> Position | None:
        position = self._positions.pop(mint, None)
        if position is not None:
            logger.info("Position closed", mint=mint)
        return position

    def current_stop_floor(self, mint: str) -> Decimal | None:
        position = self._positions.get(mint)
        return position.current_stop_floor() if position else None

    def begin_sell(self, mint: str) -> bool:
        """Mark an exit as running, False if one already is."""
        if mint in self._selling:
            return False
        self._selling.add(mint)
        return True

    def end_sell(self, mint: str) -> None:
        self._selling.discard(mint)

    def __contains__(self, mint: str) -> bool:
        return mint in self._positions

    def __len__(self) -> int:
        return len(self._positions)
