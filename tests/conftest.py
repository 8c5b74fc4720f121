"""Shared fixtures for sniper tests."""

from decimal import Decimal

import pytest
from solders.pubkey import Pubkey

from sniper.chain.addresses import QUOTE_TOKENS
from sniper.config.settings import BotConfig
from sniper.core.types import PoolKeys

WSOL = QUOTE_TOKENS["WSOL"]


def make_pool_keys(base_mint: str | None = None) -> PoolKeys:
    def key() -> str:
        return str(Pubkey.new_unique())

    return PoolKeys(
        id=key(),
        base_mint=base_mint or key(),
        quote_mint=WSOL.mint,
        lp_mint=key(),
        base_decimals=6,
        quote_decimals=9,
        lp_decimals=9,
        program_id="675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
        authority=key(),
        open_orders=key(),
        target_orders=key(),
        base_vault=key(),
        quote_vault=key(),
        market_program_id="srmqPvymJeFKQ4zGQed1GFppgkRHL9kaELCbyksJtPX",
        market_id=key(),
        market_authority=key(),
        market_base_vault=key(),
        market_quote_vault=key(),
        market_bids=key(),
        market_asks=key(),
        market_event_queue=key(),
    )


def make_config(**overrides) -> BotConfig:
    values = {
        "quote_token": WSOL,
        "quote_amount": Decimal("0.1"),
        "max_tokens_at_the_time": 1,
        "filter_check_interval": 0,
        "filter_check_duration": 0,
        "price_check_interval": 0,
        "price_check_duration": 0,
        "no_wallet_backoff": 0,
    }
    values.update(overrides)
    return BotConfig(**values)


async def no_sleep(_seconds: float) -> None:
    return None


@pytest.fixture
def pool_keys() -> PoolKeys:
    return make_pool_keys()
