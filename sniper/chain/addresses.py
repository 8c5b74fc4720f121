"""Well-known program ids, quote tokens and address derivation."""

from pydantic import BaseModel, ConfigDict
from solders.pubkey import Pubkey

TOKEN_PROGRAM_ID = Pubkey.from_string("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
ASSOCIATED_TOKEN_PROGRAM_ID = Pubkey.from_string(
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
)
SYSTEM_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")


class QuoteToken(BaseModel):
    """Token used to fund and price trades."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    mint: str
    decimals: int


QUOTE_TOKENS: dict[str, QuoteToken] = {
    "WSOL": QuoteToken(
        symbol="WSOL",
        mint="So11111111111111111111111111111111111111112",
        decimals=9,
    ),
    "USDC": QuoteToken(
        symbol="USDC",
        mint="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        decimals=6,
    ),
}


def associated_token_address(owner: Pubkey | str, mint: Pubkey | str) -> Pubkey:
    """Derive the associated token account of ``owner`` for ``mint``."""
    if isinstance(owner, str):
        owner = Pubkey.from_string(owner)
    if isinstance(mint, str):
        mint = Pubkey.from_string(mint)
    address, _bump = Pubkey.find_program_address(
        [bytes(owner), bytes(TOKEN_PROGRAM_ID), bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address
