"""Core interfaces for the sniper bot."""

from collections.abc import AsyncIterator
from decimal import Decimal
from typing import Protocol, runtime_checkable

from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from .types import (
    BlockhashContext,
    ExecutionBackendKind,
    ExecutionResult,
    FilterResult,
    MintInfo,
    PoolCreatedEvent,
    PoolKeys,
    SwapQuote,
    TokenBalance,
    TokenBalanceEvent,
    TokenMetadata,
    TokenSupply,
    TradeSide,
)


class ChainDataProvider(Protocol):
    """Read access to chain state. Calls are not retried internally."""

    async def get_token_supply(self, mint: str) -> TokenSupply:
        """Get the supply of a token mint."""
        ...

    async def get_token_account_balance(self, account: str) -> TokenBalance:
        """Get the token balance of a token account."""
        ...

    async def get_balance(self, account: str) -> int:
        """Get the lamport balance of an account."""
        ...

    async def account_exists(self, account: str) -> bool:
        """Check whether an account exists."""
        ...

    async def get_mint_info(self, mint: str) -> MintInfo:
        """Get mint and freeze authorities of a mint."""
        ...

    async def get_token_metadata(self, mint: str) -> TokenMetadata:
        """Get token metadata summary."""
        ...

    async def get_latest_blockhash(self) -> BlockhashContext:
        """Get a recent blockhash."""
        ...

    async def get_swap_quote(
        self,
        pool_keys: PoolKeys,
        amount_in: int,
        side: TradeSide,
        slippage_pct: Decimal,
    ) -> SwapQuote:
        """Quote a swap of ``amount_in`` raw units through the pool."""
        ...


@runtime_checkable
class ExecutionBackend(Protocol):
    """Submits signed transactions and reports confirmation."""

    kind: ExecutionBackendKind

    async def submit_and_confirm(
        self,
        transaction: VersionedTransaction,
        payer: Keypair,
        blockhash: BlockhashContext,
    ) -> ExecutionResult:
        """Submit a signed transaction and wait for its confirmation."""
        ...


class PoolFilter(Protocol):
    """Pool predicate."""

    async def execute(self, pool_keys: PoolKeys) -> FilterResult:
        """Evaluate the pool."""
        ...


class PoolStore(Protocol):
    """Key-value store resolving a base mint to its pool keys."""

    async def get(self, mint: str) -> PoolKeys | None:
        """Get pool keys by base mint."""
        ...

    async def save(self, mint: str, keys: PoolKeys) -> None:
        """Save pool keys by base mint."""
        ...


class SnipeList(Protocol):
    """Externally maintained allow-list of mints."""

    def is_in_list(self, mint: str) -> bool:
        """Check mint membership."""
        ...


class AlertSink(Protocol):
    """Alert sink protocol."""

    async def push(self, message: str) -> None:
        """Push alert message."""
        ...


class EventSource(Protocol):
    """Stream of decoded pool-creation and balance-change events."""

    def events(self) -> AsyncIterator[PoolCreatedEvent | TokenBalanceEvent]:
        """Iterate over events as they arrive."""
        ...
