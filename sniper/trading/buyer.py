"""Acquisition lifecycle for newly created pools."""

import asyncio
import math
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal

import structlog
from solders.keypair import Keypair

from ..alerts.telegram import solscan_tx_url
from ..chain.addresses import associated_token_address
from ..config.settings import BotConfig
from ..core.interfaces import AlertSink, ChainDataProvider, SnipeList
from ..core.types import (
    BuyOutcome,
    PoolCreatedEvent,
    PoolKeys,
    TradeRecord,
    TradeSide,
)
from ..exec.swap import SwapExecutor
from ..filters.pipeline import FilterPipeline
from ..persist.journal import TradeJournal
from .gate import ConcurrencyGate
from .positions import PositionRegistry
from .wallets import WalletSelector

logger = structlog.get_logger(__name__)

# Headroom over the swap amount for fees and rent
WALLET_BALANCE_MARGIN = Decimal("1.1")


def polls_for(duration_ms: int, interval_ms: int) -> int:
    return math.ceil(duration_ms / interval_ms)


class AcquisitionController:
    """Turns a pool-creation event into at most one confirmed buy."""

    def __init__(
        self,
        config: BotConfig,
        gate: ConcurrencyGate,
        positions: PositionRegistry,
        provider: ChainDataProvider,
        wallets: WalletSelector,
        executor: SwapExecutor,
        filter_factory: Callable[[], FilterPipeline],
        alerts: AlertSink,
        snipe_list: SnipeList | None = None,
        journal: TradeJournal | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize acquisition controller.

        Args:
            config: Trading configuration
            gate: Shared admission gate
            positions: Shared position registry
            provider: Chain reads
            wallets: Funded wallet selection
            executor: Swap submission
            filter_factory: Builds a fresh pipeline per pool, predicates keep
                per-pool state between polls
            alerts: Trade notifications
            snipe_list: Allow-list used instead of filters when enabled
            journal: Optional trade journal
            sleep: Sleep coroutine, injectable for tests
        """
        self.config = config
        self.gate = gate
        self.positions = positions
        self.provider = provider
        self.wallets = wallets
        self.executor = executor
        self.filter_factory = filter_factory
        self.alerts = alerts
        self.snipe_list = snipe_list
        self.journal = journal
        self._sleep = sleep

    async def buy(self, event: PoolCreatedEvent) -> BuyOutcome:
        keys = event.keys
        mint = keys.base_mint
        logger.debug("Processing new pool", mint=mint, pool_id=event.pool_id)

        if self.config.use_snipe_list and not (
            self.snipe_list is not None and self.snipe_list.is_in_list(mint)
        ):
            logger.debug("Skipping buy because token is not in a snipe list", mint=mint)
            return BuyOutcome.REJECTED

        if self.config.auto_buy_delay > 0:
            logger.debug(
                "Waiting before buy", mint=mint, delay_ms=self.config.auto_buy_delay
            )
            await self._sleep(self.config.auto_buy_delay / 1000)

        if not await self.gate.try_enter():
            logger.debug(
                "Skipping buy because too many tokens are being processed",
                mint=mint,
                in_flight=self.gate.count_in_flight(),
                max_tokens_at_the_time=self.config.max_tokens_at_the_time,
            )
            return BuyOutcome.DROPPED

        try:
            if not self.config.use_snipe_list:
                if not await self.filter_match(keys):
                    logger.debug(
                        "Skipping buy because pool doesn't match filters", mint=mint
                    )
                    return BuyOutcome.REJECTED

            return await self._buy_with_retries(keys)
        except Exception as e:
            logger.error("Failed to buy token", mint=mint, error=str(e), exc_info=True)
            return BuyOutcome.FAILED
        finally:
            self.gate.leave()

    async def filter_match(self, keys: PoolKeys) -> bool:
        """Poll the filter pipeline until enough consecutive passes.

        Zero interval or duration skips filtering entirely.
        """
        interval = self.config.filter_check_interval
        duration = self.config.filter_check_duration
        if interval == 0 or duration == 0:
            return True

        pipeline = self.filter_factory()
        required = self.config.consecutive_filter_matches
        streak = 0

        for _ in range(polls_for(duration, interval)):
            outcome = await pipeline.execute(keys)

            if outcome.ok:
                streak += 1
                if streak >= required:
                    logger.debug(
                        "Filter match", mint=keys.base_mint, matches=f"{streak}/{required}"
                    )
                    return True
            else:
                streak = 0
                logger.debug(
                    "Filter mismatch", mint=keys.base_mint, reasons=outcome.messages
                )

            await self._sleep(interval / 1000)

        return False

    async def trade_size(self, keys: PoolKeys) -> Decimal:
        """Quote amount to spend on this pool, in quote units.

        The quote vault is read on every call, a failed read costs the
        caller an attempt.
        """
        vault = await self.provider.get_token_account_balance(keys.quote_vault)
        if self.config.buy_rate > 0:
            return vault.ui_amount * self.config.buy_rate / Decimal(100)
        return self.config.quote_amount

    async def _buy_with_retries(self, keys: PoolKeys) -> BuyOutcome:
        mint = keys.base_mint
        quote_token = self.config.quote_token
        max_retries = self.config.max_buy_retries

        for attempt in range(1, max_retries + 1):
            try:
                logger.info(
                    "Send buy transaction attempt",
                    mint=mint,
                    attempt=f"{attempt}/{max_retries}",
                )

                amount = await self.trade_size(keys)
                amount_raw = int(
                    amount.scaleb(quote_token.decimals).to_integral_value(
                        rounding=ROUND_DOWN
                    )
                )
                if amount_raw <= 0:
                    logger.info("Trade size rounds to zero", mint=mint, amount=str(amount))
                    continue

                needed = Decimal(amount_raw) * WALLET_BALANCE_MARGIN
                wallet = await self.wallets.select(needed)
                if wallet is None:
                    logger.info(
                        "No wallet can fund the buy, backing off",
                        mint=mint,
                        needed=str(needed),
                        backoff_ms=self.config.no_wallet_backoff,
                    )
                    await self._sleep(self.config.no_wallet_backoff / 1000)
                    continue

                quote_ata = associated_token_address(wallet.pubkey(), quote_token.mint)
                mint_ata = associated_token_address(wallet.pubkey(), mint)

                _quote, result = await self.executor.swap(
                    keys,
                    wallet,
                    TradeSide.BUY,
                    amount_raw,
                    self.config.buy_slippage,
                    quote_ata,
                    mint_ata,
                )

                if result.confirmed:
                    entry = Decimal(amount_raw).scaleb(-quote_token.decimals)
                    await self._on_confirmed(keys, wallet, entry, result.signature, attempt)
                    return BuyOutcome.CONFIRMED

                logger.info(
                    "Error confirming buy tx",
                    mint=mint,
                    signature=result.signature,
                    error=result.error,
                )
            except Exception as e:
                logger.debug(
                    "Error confirming buy transaction", mint=mint, error=str(e)
                )

        logger.info("Buy retries exhausted", mint=mint, attempts=max_retries)
        return BuyOutcome.EXHAUSTED

    async def _on_confirmed(
        self,
        keys: PoolKeys,
        wallet: Keypair,
        entry: Decimal,
        signature: str | None,
        attempt: int,
    ) -> None:
        mint = keys.base_mint
        url = solscan_tx_url(signature, self.config.network)

        self.positions.open(
            mint,
            entry,
            wallet,
            self.config.take_profit,
            self.config.stop_loss,
            buy_attempts=attempt,
        )
        logger.info("Confirmed buy tx", mint=mint, signature=signature, url=url)

        try:
            await self.alerts.push(url)
        except Exception as e:
            logger.warning("Failed to push buy alert", mint=mint, error=str(e))

        if self.journal is not None:
            await self.journal.record_trade(
                TradeRecord(
                    token_mint=mint,
                    side=TradeSide.BUY,
                    quote_amount=entry,
                    wallet=str(wallet.pubkey()),
                    signature=signature,
                    ts=datetime.now(timezone.utc),
                )
            )
