"""Swap quoting for constant-product AMM pools."""

from decimal import ROUND_DOWN, Decimal

from ..core.types import SwapQuote

# AMM v4 trade fee: 25 / 10000
DEFAULT_FEE_BPS = 25


def compute_swap_quote(
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    slippage_pct: Decimal,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> SwapQuote:
    """Quote an exact-in swap against pool reserves.

    Args:
        reserve_in: Raw reserve of the input token
        reserve_out: Raw reserve of the output token
        amount_in: Raw input amount
        slippage_pct: Tolerated slippage in percent
        fee_bps: Pool trade fee in basis points

    Returns:
        Quote with expected and minimum output amounts
    """
    if amount_in < 0 or reserve_in < 0 or reserve_out < 0:
        raise ValueError("Amounts and reserves must be non-negative")

    amount_in_with_fee = amount_in * (10_000 - fee_bps) // 10_000
    denominator = reserve_in + amount_in_with_fee
    amount_out = reserve_out * amount_in_with_fee // denominator if denominator else 0

    min_amount_out = int(
        (Decimal(amount_out) * (Decimal(100) - slippage_pct) / Decimal(100)).to_integral_value(
            rounding=ROUND_DOWN
        )
    )

    return SwapQuote(
        amount_in=amount_in,
        amount_out=amount_out,
        min_amount_out=max(min_amount_out, 0),
    )
