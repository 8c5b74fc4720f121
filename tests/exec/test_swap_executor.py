"""Tests for the single-swap executor."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from sniper.core.types import (
    BlockhashContext,
    ExecutionBackendKind,
    ExecutionResult,
    SwapQuote,
    TradeSide,
)
from sniper.exec.swap import SwapExecutor

BLOCKHASH = BlockhashContext(
    blockhash="EkSnNWid2cvwEVnVx9aBqawnmiCNiDgp3gUdkDPTKN1N",
    last_valid_block_height=100,
)


@pytest.fixture
def provider():
    provider = AsyncMock()
    provider.get_swap_quote.return_value = SwapQuote(
        amount_in=1_000, amount_out=500, min_amount_out=400
    )
    provider.get_latest_blockhash.return_value = BLOCKHASH
    return provider


@pytest.fixture
def backend():
    backend = AsyncMock()
    backend.kind = ExecutionBackendKind.DIRECT
    backend.submit_and_confirm.return_value = ExecutionResult(
        confirmed=True, signature="sig"
    )
    return backend


class TestSwapExecutor:
    """Test quote, build and submit sequencing."""

    @pytest.mark.asyncio
    async def test_swap_uses_quote_minimum(self, provider, backend, pool_keys):
        builder = MagicMock()
        wallet = Keypair()
        source, destination = Pubkey.new_unique(), Pubkey.new_unique()
        executor = SwapExecutor(provider, builder, backend)

        quote, result = await executor.swap(
            pool_keys, wallet, TradeSide.BUY, 1_000, Decimal(20), source, destination
        )

        assert quote.min_amount_out == 400
        assert result.confirmed
        provider.get_swap_quote.assert_awaited_once_with(
            pool_keys, 1_000, TradeSide.BUY, Decimal(20)
        )
        builder.build.assert_called_once_with(
            pool_keys, wallet, TradeSide.BUY, 1_000, 400, source, destination, BLOCKHASH
        )
        backend.submit_and_confirm.assert_awaited_once_with(
            builder.build.return_value, wallet, BLOCKHASH
        )

    @pytest.mark.asyncio
    async def test_read_errors_propagate(self, provider, backend, pool_keys):
        provider.get_swap_quote.side_effect = RuntimeError("rpc down")
        executor = SwapExecutor(provider, MagicMock(), backend)

        with pytest.raises(RuntimeError):
            await executor.swap(
                pool_keys,
                Keypair(),
                TradeSide.SELL,
                1_000,
                Decimal(20),
                Pubkey.new_unique(),
                Pubkey.new_unique(),
            )

        backend.submit_and_confirm.assert_not_awaited()
