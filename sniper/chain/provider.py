"""Chain data provider backed by Solana JSON-RPC."""

import asyncio
from decimal import Decimal

import structlog

from ..core.interfaces import ChainDataProvider
from ..core.types import (
    BlockhashContext,
    MintInfo,
    PoolKeys,
    SwapQuote,
    TokenBalance,
    TokenMetadata,
    TokenSupply,
    TradeSide,
)
from .amm import compute_swap_quote
from .rpc import SolanaRpcClient

logger = structlog.get_logger(__name__)


class RpcChainDataProvider(ChainDataProvider):
    """Maps raw RPC responses to typed chain reads."""

    def __init__(self, rpc: SolanaRpcClient) -> None:
        self.rpc = rpc

    async def get_token_supply(self, mint: str) -> TokenSupply:
        value = await self.rpc.get_token_supply(mint)
        return TokenSupply(amount=int(value["amount"]), decimals=value["decimals"])

    async def get_token_account_balance(self, account: str) -> TokenBalance:
        value = await self.rpc.get_token_account_balance(account)
        return TokenBalance(amount=int(value["amount"]), decimals=value["decimals"])

    async def get_balance(self, account: str) -> int:
        return await self.rpc.get_balance(account)

    async def account_exists(self, account: str) -> bool:
        return await self.rpc.get_account_info(account) is not None

    async def get_mint_info(self, mint: str) -> MintInfo:
        account = await self.rpc.get_account_info(mint)
        if account is None:
            raise LookupError(f"Mint account not found: {mint}")

        data = account.get("data")
        if not isinstance(data, dict) or "parsed" not in data:
            raise ValueError(f"Account is not a parsed token mint: {mint}")

        info = data["parsed"]["info"]
        return MintInfo(
            mint_authority=info.get("mintAuthority"),
            freeze_authority=info.get("freezeAuthority"),
        )

    async def get_token_metadata(self, mint: str) -> TokenMetadata:
        asset = await self.rpc.get_asset(mint)
        content = asset.get("content") or {}
        return TokenMetadata(
            mutable=bool(asset.get("mutable", True)),
            uri=content.get("json_uri") or None,
        )

    async def get_latest_blockhash(self) -> BlockhashContext:
        value = await self.rpc.get_latest_blockhash()
        return BlockhashContext(
            blockhash=value["blockhash"],
            last_valid_block_height=value["lastValidBlockHeight"],
        )

    async def get_swap_quote(
        self,
        pool_keys: PoolKeys,
        amount_in: int,
        side: TradeSide,
        slippage_pct: Decimal,
    ) -> SwapQuote:
        base_reserve, quote_reserve = await asyncio.gather(
            self.get_token_account_balance(pool_keys.base_vault),
            self.get_token_account_balance(pool_keys.quote_vault),
        )

        if side is TradeSide.BUY:
            reserve_in, reserve_out = quote_reserve.amount, base_reserve.amount
        else:
            reserve_in, reserve_out = base_reserve.amount, quote_reserve.amount

        quote = compute_swap_quote(reserve_in, reserve_out, amount_in, slippage_pct)

        logger.debug(
            "Computed swap quote",
            mint=pool_keys.base_mint,
            side=side.value,
            amount_in=amount_in,
            amount_out=quote.amount_out,
            min_amount_out=quote.min_amount_out,
        )
        return quote
