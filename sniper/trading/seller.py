"""Exit lifecycle for open positions."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from decimal import Decimal

import structlog
from solders.pubkey import Pubkey

from ..alerts.telegram import dexscreener_maker_url, solscan_tx_url
from ..chain.addresses import associated_token_address
from ..config.settings import BotConfig
from ..core.interfaces import AlertSink, ChainDataProvider, PoolStore
from ..core.types import (
    ExitDecision,
    PoolKeys,
    SellOutcome,
    TokenBalanceEvent,
    TradeRecord,
    TradeSide,
)
from ..exec.swap import SwapExecutor
from ..persist.journal import TradeJournal
from .buyer import polls_for
from .gate import ConcurrencyGate
from .positions import (
    Position,
    PositionRegistry,
    capitulation_floor,
    ratchet_stop_floor,
)

logger = structlog.get_logger(__name__)


class PositionMonitor:
    """Watches an open position and sells it on a profit or loss signal."""

    def __init__(
        self,
        config: BotConfig,
        gate: ConcurrencyGate,
        positions: PositionRegistry,
        pools: PoolStore,
        provider: ChainDataProvider,
        executor: SwapExecutor,
        alerts: AlertSink,
        journal: TradeJournal | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.config = config
        self.gate = gate
        self.positions = positions
        self.pools = pools
        self.provider = provider
        self.executor = executor
        self.alerts = alerts
        self.journal = journal
        self._sleep = sleep

    async def sell(self, event: TokenBalanceEvent) -> SellOutcome:
        """Run the exit lifecycle for a balance change of a held token."""
        async with self.gate.exiting():
            mint = event.mint
            logger.debug("Processing new token", mint=mint)

            if mint == self.config.quote_token.mint:
                return SellOutcome.IGNORED

            keys = await self.pools.get(mint)
            if keys is None:
                logger.debug("Token pool data is not found, can't sell", mint=mint)
                return SellOutcome.IGNORED

            position = self.positions.get(mint)
            if position is None:
                logger.debug("No open position, can't sell", mint=mint)
                return SellOutcome.IGNORED

            if event.amount == 0:
                logger.info("Empty balance, can't sell", mint=mint)
                return SellOutcome.IGNORED

            if not self.positions.begin_sell(mint):
                logger.debug("Sell already in progress", mint=mint)
                return SellOutcome.IGNORED

            try:
                return await self._sell_with_retries(event, keys, position)
            except Exception as e:
                logger.error("Failed to sell token", mint=mint, error=str(e), exc_info=True)
                return SellOutcome.FAILED
            finally:
                self.positions.end_sell(mint)

    async def evaluate_exit(
        self, position: Position, keys: PoolKeys, amount: int
    ) -> ExitDecision:
        """Poll the exit value of ``amount`` raw base tokens until a signal.

        Returns a sell decision on stop loss, take profit or when the
        monitoring window runs out, and a no-sell decision when the position
        lost more than the capitulation threshold.
        """
        interval = self.config.price_check_interval
        duration = self.config.price_check_duration
        if interval == 0 or duration == 0:
            return ExitDecision(sell=True, reason="immediate")

        mint = position.mint
        quote_decimals = self.config.quote_token.decimals
        skip_pct = self.config.skip_selling_if_lost_more_than

        if position.stop_floor is None:
            position.stop_floor = position.initial_stop_loss
        floor = position.stop_floor
        current: Decimal | None = None

        for _ in range(polls_for(duration, interval)):
            try:
                quote = await self.provider.get_swap_quote(
                    keys, amount, TradeSide.SELL, self.config.sell_slippage
                )
                current = Decimal(quote.amount_out).scaleb(-quote_decimals)

                if self.config.trailing_stop_loss:
                    raised = ratchet_stop_floor(floor, current, self.config.stop_loss)
                    if raised > floor:
                        logger.debug(
                            "Updating trailing stop loss",
                            mint=mint,
                            previous=str(floor),
                            floor=str(raised),
                        )
                        position.stop_floor = floor = raised

                if skip_pct > 0 and current < capitulation_floor(
                    position.entry_amount, skip_pct
                ):
                    logger.debug(
                        "Token dropped past the skip threshold, sell stopped",
                        mint=mint,
                        skip_pct=str(skip_pct),
                        initial=str(position.entry_amount),
                        current=str(current),
                    )
                    position.clear_stop_floor()
                    return ExitDecision(sell=False, reason="capitulation", amount_out=current)

                logger.debug(
                    "Price check",
                    mint=mint,
                    take_profit=str(position.take_profit),
                    stop_loss=str(floor),
                    current=str(current),
                )

                if current < floor:
                    position.clear_stop_floor()
                    return ExitDecision(sell=True, reason="stop_loss", amount_out=current)

                if current > position.take_profit:
                    position.clear_stop_floor()
                    return ExitDecision(sell=True, reason="take_profit", amount_out=current)
            except Exception as e:
                logger.debug("Failed to check token price", mint=mint, error=str(e))

            await self._sleep(interval / 1000)

        return ExitDecision(sell=True, reason="timeout", amount_out=current)

    async def _sell_with_retries(
        self, event: TokenBalanceEvent, keys: PoolKeys, position: Position
    ) -> SellOutcome:
        mint = event.mint
        max_retries = self.config.max_sell_retries

        if self.config.auto_sell_delay > 0:
            logger.debug(
                "Waiting before sell", mint=mint, delay_ms=self.config.auto_sell_delay
            )
            await self._sleep(self.config.auto_sell_delay / 1000)

        wallet = position.wallet
        quote_ata = associated_token_address(wallet.pubkey(), self.config.quote_token.mint)
        token_account = Pubkey.from_string(event.account)

        for attempt in range(1, max_retries + 1):
            try:
                decision = await self.evaluate_exit(position, keys, event.amount)
                if not decision.sell:
                    logger.info(
                        "Sell skipped", mint=mint, reason=decision.reason
                    )
                    return SellOutcome.SKIPPED

                logger.info(
                    "Send sell transaction attempt",
                    mint=mint,
                    attempt=f"{attempt}/{max_retries}",
                    reason=decision.reason,
                )
                position.sell_attempts = attempt

                quote, result = await self.executor.swap(
                    keys,
                    wallet,
                    TradeSide.SELL,
                    event.amount,
                    self.config.sell_slippage,
                    token_account,
                    quote_ata,
                )

                if result.confirmed:
                    proceeds = Decimal(quote.amount_out).scaleb(
                        -self.config.quote_token.decimals
                    )
                    await self._on_confirmed(position, result.signature, proceeds)
                    return SellOutcome.SOLD

                logger.info(
                    "Error confirming sell tx",
                    mint=mint,
                    signature=result.signature,
                    error=result.error,
                )
            except Exception as e:
                logger.debug(
                    "Error confirming sell transaction", mint=mint, error=str(e)
                )

        logger.info("Sell retries exhausted", mint=mint, attempts=max_retries)
        return SellOutcome.EXHAUSTED

    async def _on_confirmed(
        self, position: Position, signature: str | None, proceeds: Decimal
    ) -> None:
        mint = position.mint
        maker = str(position.wallet.pubkey())
        dex_url = dexscreener_maker_url(mint, maker)
        tx_url = solscan_tx_url(signature, self.config.network)

        self.positions.close(mint)
        logger.info(
            "Confirmed sell tx",
            mint=mint,
            signature=signature,
            dex=dex_url,
            url=tx_url,
            entry=str(position.entry_amount),
            proceeds=str(proceeds),
        )

        for message in (dex_url, tx_url):
            try:
                await self.alerts.push(message)
            except Exception as e:
                logger.warning("Failed to push sell alert", mint=mint, error=str(e))

        if self.journal is not None:
            await self.journal.record_trade(
                TradeRecord(
                    token_mint=mint,
                    side=TradeSide.SELL,
                    quote_amount=proceeds,
                    wallet=maker,
                    signature=signature,
                    ts=datetime.now(timezone.utc),
                )
            )
