"""Mint and freeze authority checks."""

import structlog

from ..core.interfaces import ChainDataProvider
from ..core.types import FilterResult, PoolKeys

logger = structlog.get_logger(__name__)


class RenouncedFreezeFilter:
    """Rejects pools whose base mint can still be minted or frozen."""

    def __init__(
        self,
        provider: ChainDataProvider,
        check_renounced: bool = True,
        check_freezable: bool = False,
    ) -> None:
        self.provider = provider
        self.check_renounced = check_renounced
        self.check_freezable = check_freezable
        self._cached_result: FilterResult | None = None

        errors = []
        if check_renounced:
            errors.append("mint")
        if check_freezable:
            errors.append("freeze")
        self._error_message = f"Failed to check if {' and '.join(errors)} authority is renounced"

    async def execute(self, pool_keys: PoolKeys) -> FilterResult:
        if self._cached_result is not None:
            return self._cached_result

        try:
            info = await self.provider.get_mint_info(pool_keys.base_mint)
        except Exception as e:
            logger.error(self._error_message, mint=pool_keys.base_mint, error=str(e))
            return FilterResult(ok=False, message=self._error_message)

        renounced = not self.check_renounced or info.mint_authority is None
        freezable = self.check_freezable and info.freeze_authority is not None
        ok = renounced and not freezable

        if ok:
            self._cached_result = FilterResult(ok=True)
            return self._cached_result

        message = []
        if not renounced:
            message.append("mint")
        if freezable:
            message.append("freeze")
        return FilterResult(
            ok=False,
            message=f"RenouncedFreeze -> Creator can {' and '.join(message)} tokens",
        )
