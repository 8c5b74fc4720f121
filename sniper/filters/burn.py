"""LP burn check."""

from decimal import Decimal

import structlog

from ..chain.rpc import INVALID_PARAMS, SolanaRpcError
from ..core.interfaces import ChainDataProvider
from ..core.types import FilterResult, PoolKeys

logger = structlog.get_logger(__name__)


class BurnFilter:
    """Passes once the LP supply has been observed dropping to zero.

    The supply seen on the previous poll is remembered so a burn is only
    accepted when it actually happened while the pool was watched and the
    drop exceeded ``burn_amount``.
    """

    def __init__(self, provider: ChainDataProvider, burn_amount: Decimal = Decimal(0)):
        self.provider = provider
        self.burn_amount = burn_amount
        self.prev_amount = Decimal(0)
        self._cached_result: FilterResult | None = None

    async def execute(self, pool_keys: PoolKeys) -> FilterResult:
        if self._cached_result is not None:
            return self._cached_result

        try:
            supply = await self.provider.get_token_supply(pool_keys.lp_mint)
        except SolanaRpcError as e:
            if e.code == INVALID_PARAMS:
                return FilterResult(ok=True)
            logger.error(
                "Failed to check if LP is burned",
                mint=pool_keys.base_mint,
                error=str(e),
            )
            return FilterResult(ok=False, message="Failed to check if LP is burned")
        except Exception as e:
            logger.error(
                "Failed to check if LP is burned",
                mint=pool_keys.base_mint,
                error=str(e),
            )
            return FilterResult(ok=False, message="Failed to check if LP is burned")

        amount = supply.ui_amount
        burned = amount == 0 and self.prev_amount - amount > self.burn_amount
        self.prev_amount = amount

        if burned:
            self._cached_result = FilterResult(ok=True)
            return self._cached_result

        return FilterResult(ok=False, message="Burned -> Creator didn't burn LP")
