"""Swap transaction construction for AMM v4 pools."""

import struct

import structlog
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction

from ..chain.addresses import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)
from ..config.settings import BotConfig
from ..core.types import BlockhashContext, ExecutionBackendKind, PoolKeys, TradeSide

logger = structlog.get_logger(__name__)

# AMM v4 instruction tag for an exact-in swap
SWAP_BASE_IN = 9
# SPL token CloseAccount
CLOSE_ACCOUNT = 9
# Associated token account CreateIdempotent
CREATE_IDEMPOTENT = 1


def _pk(value: str | Pubkey) -> Pubkey:
    return value if isinstance(value, Pubkey) else Pubkey.from_string(value)


def make_swap_fixed_in_instruction(
    pool_keys: PoolKeys,
    owner: Pubkey,
    source: Pubkey,
    destination: Pubkey,
    amount_in: int,
    min_amount_out: int,
) -> Instruction:
    """Build the AMM v4 exact-in swap instruction."""
    data = struct.pack("<BQQ", SWAP_BASE_IN, amount_in, min_amount_out)
    accounts = [
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(_pk(pool_keys.id), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.authority), is_signer=False, is_writable=False),
        AccountMeta(_pk(pool_keys.open_orders), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.target_orders), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.base_vault), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.quote_vault), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_program_id), is_signer=False, is_writable=False),
        AccountMeta(_pk(pool_keys.market_id), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_bids), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_asks), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_event_queue), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_base_vault), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_quote_vault), is_signer=False, is_writable=True),
        AccountMeta(_pk(pool_keys.market_authority), is_signer=False, is_writable=False),
        AccountMeta(source, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=True, is_writable=False),
    ]
    return Instruction(_pk(pool_keys.program_id), data, accounts)


def make_create_ata_idempotent_instruction(
    payer: Pubkey, ata: Pubkey, owner: Pubkey, mint: Pubkey
) -> Instruction:
    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(ata, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
    ]
    return Instruction(
        ASSOCIATED_TOKEN_PROGRAM_ID, bytes([CREATE_IDEMPOTENT]), accounts
    )


def make_close_account_instruction(
    account: Pubkey, destination: Pubkey, owner: Pubkey
) -> Instruction:
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=True, is_writable=False),
    ]
    return Instruction(TOKEN_PROGRAM_ID, bytes([CLOSE_ACCOUNT]), accounts)


class SwapTransactionBuilder:
    """Assembles and signs swap transactions.

    Compute budget instructions are only added for direct submission, relays
    are paid through their own fee transfer. Buys create the destination
    token account if needed, sells close the emptied source account.
    """

    def __init__(self, config: BotConfig, backend_kind: ExecutionBackendKind) -> None:
        self.config = config
        self.backend_kind = backend_kind

    def build(
        self,
        pool_keys: PoolKeys,
        wallet: Keypair,
        side: TradeSide,
        amount_in: int,
        min_amount_out: int,
        source: Pubkey,
        destination: Pubkey,
        blockhash: BlockhashContext,
    ) -> VersionedTransaction:
        owner = wallet.pubkey()
        instructions: list[Instruction] = []

        if self.backend_kind is ExecutionBackendKind.DIRECT:
            instructions.append(set_compute_unit_price(self.config.compute_unit_price))
            instructions.append(set_compute_unit_limit(self.config.compute_unit_limit))

        if side is TradeSide.BUY:
            instructions.append(
                make_create_ata_idempotent_instruction(
                    owner, destination, owner, _pk(pool_keys.base_mint)
                )
            )

        instructions.append(
            make_swap_fixed_in_instruction(
                pool_keys, owner, source, destination, amount_in, min_amount_out
            )
        )

        if side is TradeSide.SELL:
            instructions.append(make_close_account_instruction(source, owner, owner))

        message = MessageV0.try_compile(
            owner, instructions, [], Hash.from_string(blockhash.blockhash)
        )
        transaction = VersionedTransaction(message, [wallet])

        logger.debug(
            "Built swap transaction",
            mint=pool_keys.base_mint,
            side=side.value,
            amount_in=amount_in,
            min_amount_out=min_amount_out,
            instructions=len(instructions),
        )
        return transaction
