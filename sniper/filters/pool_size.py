"""Pool quote-reserve size bounds."""

from decimal import Decimal

import structlog

from ..core.interfaces import ChainDataProvider
from ..core.types import FilterResult, PoolKeys

logger = structlog.get_logger(__name__)


class PoolSizeFilter:
    """Accepts pools whose quote reserve lies within the configured bounds.

    A zero bound is open. Never cached: the reserve moves with every trade.
    """

    def __init__(
        self,
        provider: ChainDataProvider,
        min_pool_size: Decimal = Decimal(0),
        max_pool_size: Decimal = Decimal(0),
    ) -> None:
        self.provider = provider
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size

    async def execute(self, pool_keys: PoolKeys) -> FilterResult:
        try:
            balance = await self.provider.get_token_account_balance(
                pool_keys.quote_vault
            )
        except Exception as e:
            logger.error(
                "Failed to check pool size", mint=pool_keys.base_mint, error=str(e)
            )
            return FilterResult(ok=False, message="PoolSize -> Failed to check pool size")

        pool_size = balance.ui_amount

        if self.max_pool_size > 0 and pool_size > self.max_pool_size:
            return FilterResult(
                ok=False,
                message=f"PoolSize -> Pool size {pool_size} > {self.max_pool_size}",
            )

        if self.min_pool_size > 0 and pool_size < self.min_pool_size:
            return FilterResult(
                ok=False,
                message=f"PoolSize -> Pool size {pool_size} < {self.min_pool_size}",
            )

        return FilterResult(ok=True)
