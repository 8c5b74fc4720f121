"""Pool filter pipeline."""

import asyncio

import httpx
import structlog

from ..config.settings import BotConfig
from ..core.interfaces import ChainDataProvider, PoolFilter
from ..core.types import FilterOutcome, FilterResult, PoolKeys
from .burn import BurnFilter
from .mutable import MutableFilter
from .pool_size import PoolSizeFilter
from .renounced import RenouncedFreezeFilter

logger = structlog.get_logger(__name__)


class FilterPipeline:
    """Runs independent pool predicates concurrently and aggregates them."""

    def __init__(self, filters: list[PoolFilter]) -> None:
        self.filters = filters

    async def execute(self, pool_keys: PoolKeys) -> FilterOutcome:
        """Evaluate every predicate against the pool.

        A predicate that raises counts as a failing result carrying the error,
        so one broken predicate never hides the others' diagnostics.
        """
        if not self.filters:
            return FilterOutcome(ok=True)

        raw_results = await asyncio.gather(
            *(f.execute(pool_keys) for f in self.filters), return_exceptions=True
        )

        results: list[FilterResult] = []
        for filter_obj, raw in zip(self.filters, raw_results):
            if isinstance(raw, BaseException):
                if not isinstance(raw, Exception):
                    raise raw
                results.append(
                    FilterResult(
                        ok=False,
                        message=f"{type(filter_obj).__name__} -> {raw}",
                    )
                )
            else:
                results.append(raw)

        messages = [r.message for r in results if r.message]
        outcome = FilterOutcome(
            ok=all(r.ok for r in results),
            ignore=any(r.ignore for r in results),
            messages=messages,
        )

        logger.debug(
            "Filter pipeline evaluated",
            mint=pool_keys.base_mint,
            ok=outcome.ok,
            ignore=outcome.ignore,
            messages=messages,
        )
        return outcome


def build_filter_pipeline(
    provider: ChainDataProvider,
    config: BotConfig,
    session: httpx.AsyncClient,
) -> FilterPipeline:
    """Build a pipeline from the predicates enabled in ``config``.

    ``session`` is shared by every build and closed by its owner.
    """
    filters: list[PoolFilter] = []

    if config.check_if_burned:
        filters.append(BurnFilter(provider, burn_amount=config.burn_amount))

    if config.check_if_mint_is_renounced or config.check_if_freezable:
        filters.append(
            RenouncedFreezeFilter(
                provider,
                check_renounced=config.check_if_mint_is_renounced,
                check_freezable=config.check_if_freezable,
            )
        )

    if config.check_if_mutable or config.check_if_socials:
        filters.append(
            MutableFilter(
                provider,
                session,
                check_mutable=config.check_if_mutable,
                check_socials=config.check_if_socials,
            )
        )

    if config.min_pool_size > 0 or config.max_pool_size > 0:
        filters.append(
            PoolSizeFilter(
                provider,
                min_pool_size=config.min_pool_size,
                max_pool_size=config.max_pool_size,
            )
        )

    return FilterPipeline(filters)
