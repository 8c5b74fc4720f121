"""Core data types for the sniper bot."""

from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TradeSide(str, Enum):
    """Direction of a swap relative to the quote token."""

    BUY = "buy"
    SELL = "sell"


class ExecutionBackendKind(str, Enum):
    """Transaction submission channel."""

    DIRECT = "default"
    BUNDLED_RELAY = "jito"
    FEE_BIASED_RELAY = "warp"


class PoolKeys(BaseModel):
    """Immutable account keys of one AMM v4 liquidity pool."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Pool (AMM) account address")
    base_mint: str = Field(description="Base token mint")
    quote_mint: str = Field(description="Quote token mint")
    lp_mint: str = Field(description="LP token mint")
    base_decimals: int = Field(ge=0, description="Base token decimals")
    quote_decimals: int = Field(ge=0, description="Quote token decimals")
    lp_decimals: int = Field(default=0, ge=0, description="LP token decimals")
    version: int = Field(default=4, description="AMM program version")
    program_id: str = Field(description="AMM program id")
    authority: str = Field(description="AMM authority")
    open_orders: str = Field(description="AMM open orders account")
    target_orders: str = Field(description="AMM target orders account")
    base_vault: str = Field(description="Pool base token vault")
    quote_vault: str = Field(description="Pool quote token vault")
    market_version: int = Field(default=3, description="Market program version")
    market_program_id: str = Field(description="Market program id")
    market_id: str = Field(description="Market account")
    market_authority: str = Field(description="Market vault signer")
    market_base_vault: str = Field(description="Market base vault")
    market_quote_vault: str = Field(description="Market quote vault")
    market_bids: str = Field(description="Market bids")
    market_asks: str = Field(description="Market asks")
    market_event_queue: str = Field(description="Market event queue")


class PoolCreatedEvent(BaseModel):
    """A pool account became visible on chain."""

    pool_id: str = Field(description="Pool account address")
    keys: PoolKeys = Field(description="Decoded pool keys")
    open_time: int = Field(description="Pool open time (unix seconds)")


class TokenBalanceEvent(BaseModel):
    """A token account owned by one of our wallets changed."""

    account: str = Field(description="Token account address")
    mint: str = Field(description="Token mint")
    owner: str = Field(description="Token account owner")
    amount: int = Field(ge=0, description="Raw token amount")


class FilterResult(BaseModel):
    """Result of one pool predicate."""

    ok: bool = Field(description="Whether the pool passed the predicate")
    message: str | None = Field(default=None, description="Diagnostic message")
    ignore: bool = Field(
        default=False, description="Inconclusive result, do not count as a decision"
    )


class FilterOutcome(BaseModel):
    """Aggregated result of the filter pipeline."""

    ok: bool = Field(description="All predicates passed")
    ignore: bool = Field(default=False, description="Any predicate was inconclusive")
    messages: list[str] = Field(
        default_factory=list, description="Messages from every failing predicate"
    )


class TokenSupply(BaseModel):
    """Token supply as reported by the chain."""

    amount: int = Field(description="Raw supply")
    decimals: int = Field(description="Token decimals")

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount).scaleb(-self.decimals)


class TokenBalance(BaseModel):
    """Token account balance as reported by the chain."""

    amount: int = Field(description="Raw balance")
    decimals: int = Field(description="Token decimals")

    @property
    def ui_amount(self) -> Decimal:
        return Decimal(self.amount).scaleb(-self.decimals)


class MintInfo(BaseModel):
    """Authorities of a token mint."""

    mint_authority: str | None = Field(default=None, description="Mint authority")
    freeze_authority: str | None = Field(default=None, description="Freeze authority")


class TokenMetadata(BaseModel):
    """On-chain token metadata summary."""

    mutable: bool = Field(description="Whether the update authority can change it")
    uri: str | None = Field(default=None, description="Off-chain metadata JSON URI")


class BlockhashContext(BaseModel):
    """Recent blockhash and its expiry height."""

    blockhash: str = Field(description="Base58 blockhash")
    last_valid_block_height: int = Field(description="Last block height it is valid")


class SwapQuote(BaseModel):
    """Expected result of a swap, raw units."""

    amount_in: int = Field(description="Raw input amount")
    amount_out: int = Field(description="Expected raw output amount")
    min_amount_out: int = Field(description="Minimum output after slippage")


class ExecutionResult(BaseModel):
    """Result of submitting a transaction."""

    confirmed: bool = Field(description="Whether the transaction confirmed")
    signature: str | None = Field(default=None, description="Transaction signature")
    error: str | None = Field(default=None, description="Failure description")


class ExitDecision(BaseModel):
    """Outcome of the exit-evaluation protocol."""

    sell: bool = Field(description="Whether to sell now")
    reason: str = Field(description="What triggered the decision")
    amount_out: Decimal | None = Field(
        default=None, description="Last observed exit value in quote units"
    )


class BuyOutcome(str, Enum):
    """Terminal state of one acquisition lifecycle."""

    CONFIRMED = "confirmed"
    EXHAUSTED = "exhausted"
    REJECTED = "rejected"
    DROPPED = "dropped"
    FAILED = "failed"


class SellOutcome(str, Enum):
    """Terminal state of one exit lifecycle."""

    SOLD = "sold"
    EXHAUSTED = "exhausted"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    FAILED = "failed"


class TradeRecord(BaseModel):
    """Journal row for a confirmed trade."""

    token_mint: str
    side: TradeSide
    quote_amount: Decimal
    wallet: str
    signature: str | None = None
    ts: datetime
