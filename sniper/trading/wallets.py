"""Funded wallet selection."""

import asyncio
import random
from collections.abc import Awaitable, Callable
from decimal import Decimal

import structlog
from solders.keypair import Keypair

from ..chain.addresses import QuoteToken, associated_token_address
from ..core.interfaces import ChainDataProvider

logger = structlog.get_logger(__name__)


class WalletSelector:
    """Picks a random wallet whose quote-token account can fund a buy."""

    def __init__(
        self,
        provider: ChainDataProvider,
        wallets: list[Keypair],
        quote_token: QuoteToken,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        scan_delay: float = 0.02,
    ) -> None:
        """Initialize wallet selector.

        Args:
            provider: Chain reads
            wallets: Configured wallets
            quote_token: Token the buys are paid in
            rng: Random source for the final pick
            sleep: Sleep coroutine, injectable for tests
            scan_delay: Pause between wallet reads in seconds
        """
        self.provider = provider
        self.wallets = wallets
        self.quote_token = quote_token
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.scan_delay = scan_delay

    async def funded_wallets(self, needed: Decimal) -> list[Keypair]:
        """Wallets whose quote token balance is strictly above ``needed``.

        Balances are raw quote token units of the token account, not its
        lamports.
        """
        funded = []
        for index, wallet in enumerate(self.wallets):
            if index and self.scan_delay:
                await self._sleep(self.scan_delay)

            quote_ata = str(associated_token_address(wallet.pubkey(), self.quote_token.mint))
            try:
                if not await self.provider.account_exists(quote_ata):
                    continue
                balance = await self.provider.get_token_account_balance(quote_ata)
            except Exception as e:
                logger.warning(
                    "Failed to read wallet balance",
                    wallet=str(wallet.pubkey()),
                    error=str(e),
                )
                continue

            if Decimal(balance.amount) > needed:
                funded.append(wallet)

        return funded

    async def select(self, needed: Decimal) -> Keypair | None:
        """Pick one funded wallet at random.

        Args:
            needed: Required balance in raw quote units

        Returns:
            A funded wallet, or None when no wallet qualifies
        """
        funded = await self.funded_wallets(needed)
        if not funded:
            logger.info("No funded wallet available", needed=str(needed))
            return None

        wallet = self.rng.choice(funded)
        logger.debug(
            "Wallet selected",
            wallet=str(wallet.pubkey()),
            candidates=len(funded),
        )
        return wallet

    async def validate(self) -> bool:
        """Check that at least one wallet holds a quote-token account."""
        for wallet in self.wallets:
            quote_ata = str(associated_token_address(wallet.pubkey(), self.quote_token.mint))
            try:
                if await self.provider.account_exists(quote_ata):
                    return True
            except Exception as e:
                logger.warning(
                    "Failed to check quote token account",
                    wallet=str(wallet.pubkey()),
                    error=str(e),
                )

        logger.error(
            "No wallet holds a quote token account",
            quote_token=self.quote_token.symbol,
            wallets=len(self.wallets),
        )
        return False
