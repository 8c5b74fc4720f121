"""Quote, build and submit one swap."""

from decimal import Decimal

import structlog
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from ..core.interfaces import ChainDataProvider, ExecutionBackend
from ..core.types import ExecutionResult, PoolKeys, SwapQuote, TradeSide
from .instructions import SwapTransactionBuilder

logger = structlog.get_logger(__name__)


class SwapExecutor:
    """Runs a single swap attempt through the configured backend."""

    def __init__(
        self,
        provider: ChainDataProvider,
        builder: SwapTransactionBuilder,
        backend: ExecutionBackend,
    ) -> None:
        self.provider = provider
        self.builder = builder
        self.backend = backend

    async def swap(
        self,
        pool_keys: PoolKeys,
        wallet: Keypair,
        side: TradeSide,
        amount_in: int,
        slippage_pct: Decimal,
        source: Pubkey,
        destination: Pubkey,
    ) -> tuple[SwapQuote, ExecutionResult]:
        """Execute one swap attempt.

        Chain read failures propagate to the caller, submission failures are
        reported through the returned result.
        """
        quote = await self.provider.get_swap_quote(
            pool_keys, amount_in, side, slippage_pct
        )
        blockhash = await self.provider.get_latest_blockhash()

        transaction = self.builder.build(
            pool_keys,
            wallet,
            side,
            quote.amount_in,
            quote.min_amount_out,
            source,
            destination,
            blockhash,
        )

        result = await self.backend.submit_and_confirm(transaction, wallet, blockhash)

        logger.debug(
            "Swap attempt finished",
            mint=pool_keys.base_mint,
            side=side.value,
            backend=self.backend.kind.value,
            confirmed=result.confirmed,
            signature=result.signature,
            error=result.error,
        )
        return quote, result
