"""Sniper process: assembly, lifecycle and CLI entry point."""

import argparse
import asyncio
import signal
import sys
from typing import Any

import httpx
import structlog

from ..alerts.telegram import NoopAlertSink, TelegramAlertSink
from ..cache.pools import PoolCache
from ..cache.snipe_list import SnipeListCache
from ..chain.provider import RpcChainDataProvider
from ..chain.rpc import SolanaRpcClient
from ..config.settings import AppSettings, load_settings
from ..core.interfaces import EventSource
from ..exec.backends import create_backend
from ..exec.instructions import SwapTransactionBuilder
from ..exec.signers import load_wallets
from ..exec.swap import SwapExecutor
from ..filters.pipeline import build_filter_pipeline
from ..observability.logger import configure_logging
from ..persist.journal import TradeJournal
from ..trading.buyer import AcquisitionController
from ..trading.gate import ConcurrencyGate
from ..trading.positions import PositionRegistry
from ..trading.seller import PositionMonitor
from ..trading.wallets import WalletSelector
from .events import JsonLinesEventSource
from .router import EventRouter

logger = structlog.get_logger(__name__)


class SniperApp:
    """Wires the components together and runs the event loop."""

    def __init__(self, settings: AppSettings) -> None:
        self.settings = settings
        self.config = settings.bot_config()
        self.components = self._assemble(settings)
        self.router: EventRouter = self.components["router"]

    def _assemble(self, settings: AppSettings) -> dict[str, Any]:
        """Assemble all trading components from settings."""
        config = self.config
        components: dict[str, Any] = {}

        session = httpx.AsyncClient(timeout=30.0)
        rpc = SolanaRpcClient(settings.rpc_url, commitment=settings.commitment)
        provider = RpcChainDataProvider(rpc)
        wallets = load_wallets(settings.wallet_private_keys, settings.wallet_keypair_paths)

        components["session"] = session
        components["rpc"] = rpc
        components["provider"] = provider
        components["wallets"] = wallets

        backend = create_backend(settings, rpc, session=session)
        executor = SwapExecutor(
            provider, SwapTransactionBuilder(config, backend.kind), backend
        )
        logger.info("Using transaction executor", executor=backend.kind.value)

        if settings.telegram_bot_token and settings.telegram_admin_ids:
            alerts = TelegramAlertSink(
                bot_token=settings.telegram_bot_token,
                admin_user_ids=settings.telegram_admin_ids,
                session=session,
            )
            logger.info("Using Telegram alert sink")
        else:
            alerts = NoopAlertSink()
            logger.info("Using noop alert sink (no Telegram config)")
        components["alerts"] = alerts

        snipe_list = None
        if config.use_snipe_list:
            snipe_list = SnipeListCache(
                settings.snipe_list_path, settings.snipe_list_refresh_interval
            )
        components["snipe_list"] = snipe_list

        journal = TradeJournal(settings.journal_path) if settings.journal_path else None
        components["journal"] = journal

        gate = ConcurrencyGate(config.max_tokens_at_the_time)
        positions = PositionRegistry()
        pools = PoolCache()
        selector = WalletSelector(provider, wallets, config.quote_token)
        components["gate"] = gate
        components["positions"] = positions
        components["selector"] = selector

        buyer = AcquisitionController(
            config=config,
            gate=gate,
            positions=positions,
            provider=provider,
            wallets=selector,
            executor=executor,
            filter_factory=lambda: build_filter_pipeline(provider, config, session),
            alerts=alerts,
            snipe_list=snipe_list,
            journal=journal,
        )
        seller = PositionMonitor(
            config=config,
            gate=gate,
            positions=positions,
            pools=pools,
            provider=provider,
            executor=executor,
            alerts=alerts,
            journal=journal,
        )
        components["router"] = EventRouter(
            config,
            pools,
            buyer,
            seller,
            owners={str(w.pubkey()) for w in wallets},
        )

        return components

    def log_configuration(self) -> None:
        config = self.config
        logger.info(
            "Bot configuration",
            network=config.network,
            quote_token=config.quote_token.symbol,
            quote_amount=str(config.quote_amount),
            buy_rate=str(config.buy_rate),
            wallets=len(self.components["wallets"]),
            executor=self.settings.transaction_executor.value,
            max_tokens_at_the_time=config.max_tokens_at_the_time,
            use_snipe_list=config.use_snipe_list,
            auto_sell=config.auto_sell,
        )
        logger.info(
            "Buy settings",
            auto_buy_delay=config.auto_buy_delay,
            max_buy_retries=config.max_buy_retries,
            buy_slippage=str(config.buy_slippage),
        )
        logger.info(
            "Sell settings",
            auto_sell_delay=config.auto_sell_delay,
            max_sell_retries=config.max_sell_retries,
            sell_slippage=str(config.sell_slippage),
            take_profit=str(config.take_profit),
            stop_loss=str(config.stop_loss),
            trailing_stop_loss=config.trailing_stop_loss,
            skip_selling_if_lost_more_than=str(config.skip_selling_if_lost_more_than),
            price_check_interval=config.price_check_interval,
            price_check_duration=config.price_check_duration,
        )
        logger.info(
            "Filter settings",
            filter_check_interval=config.filter_check_interval,
            filter_check_duration=config.filter_check_duration,
            consecutive_filter_matches=config.consecutive_filter_matches,
            check_if_mint_is_renounced=config.check_if_mint_is_renounced,
            check_if_freezable=config.check_if_freezable,
            check_if_burned=config.check_if_burned,
            check_if_mutable=config.check_if_mutable,
            check_if_socials=config.check_if_socials,
            min_pool_size=str(config.min_pool_size),
            max_pool_size=str(config.max_pool_size),
        )

    async def validate(self) -> bool:
        return await self.components["selector"].validate()

    async def initialize(self) -> None:
        if self.components["journal"] is not None:
            await self.components["journal"].initialize()
        if self.components["snipe_list"] is not None:
            await self.components["snipe_list"].init()

    def start(self) -> None:
        """Resume buying new pools."""
        self.router.running = True
        logger.info("Buying started")

    def stop(self) -> None:
        """Stop buying new pools, open positions are still sold."""
        self.router.running = False
        logger.info("Buying stopped")

    async def run(self, source: EventSource) -> None:
        self.log_configuration()
        if not await self.validate():
            raise RuntimeError("No wallet can trade the configured quote token")
        await self.initialize()

        await self.components["alerts"].push("Sniper started")
        try:
            await self.router.run(source)
        finally:
            await self.close()

    async def close(self) -> None:
        logger.info("Shutting down")
        if self.components["snipe_list"] is not None:
            await self.components["snipe_list"].close()
        await self.components["rpc"].close()
        await self.components["session"].aclose()


async def main() -> None:
    """Main entry point for the sniper."""
    parser = argparse.ArgumentParser(description="Solana new pool sniper")
    parser.add_argument(
        "--config", default="configs/sniper.yaml", help="Configuration file path"
    )
    parser.add_argument(
        "--events",
        default="-",
        help="JSON lines file of decoded chain events, '-' for stdin",
    )
    args = parser.parse_args()

    try:
        settings = load_settings(args.config)
        configure_logging(settings.log_level, settings.log_format)

        app = SniperApp(settings)
        run_task = asyncio.create_task(app.run(JsonLinesEventSource(args.events)))

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, run_task.cancel)

        try:
            await run_task
        except asyncio.CancelledError:
            logger.info("Received shutdown signal")
    except Exception as e:
        logger.error("Fatal error", error=str(e))
        sys.exit(1)


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
