"""Tests for swap transaction construction."""

import struct

from solders.keypair import Keypair
from solders.pubkey import Pubkey

from conftest import make_config
from sniper.chain.addresses import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    associated_token_address,
)
from sniper.core.types import BlockhashContext, ExecutionBackendKind, TradeSide
from sniper.exec.instructions import (
    SwapTransactionBuilder,
    make_swap_fixed_in_instruction,
)

COMPUTE_BUDGET_PROGRAM = Pubkey.from_string("ComputeBudget111111111111111111111111111111")
BLOCKHASH = BlockhashContext(
    blockhash="EkSnNWid2cvwEVnVx9aBqawnmiCNiDgp3gUdkDPTKN1N",
    last_valid_block_height=100,
)


def program_ids(transaction):
    message = transaction.message
    keys = message.account_keys
    return [keys[ix.program_id_index] for ix in message.instructions]


class TestSwapInstruction:
    """Test the AMM swap instruction layout."""

    def test_layout(self, pool_keys):
        owner = Keypair().pubkey()
        source, destination = Pubkey.new_unique(), Pubkey.new_unique()

        ix = make_swap_fixed_in_instruction(pool_keys, owner, source, destination, 1_000, 900)

        assert ix.data == struct.pack("<BQQ", 9, 1_000, 900)
        assert str(ix.program_id) == pool_keys.program_id
        assert len(ix.accounts) == 18
        assert ix.accounts[0].pubkey == TOKEN_PROGRAM_ID
        assert str(ix.accounts[1].pubkey) == pool_keys.id
        assert ix.accounts[15].pubkey == source
        assert ix.accounts[16].pubkey == destination
        assert ix.accounts[17].pubkey == owner
        assert ix.accounts[17].is_signer
        assert not any(meta.is_signer for meta in ix.accounts[:17])


class TestSwapTransactionBuilder:
    """Test transaction assembly per side and backend."""

    def _build(self, pool_keys, side, kind):
        wallet = Keypair()
        builder = SwapTransactionBuilder(make_config(), kind)
        source = associated_token_address(wallet.pubkey(), pool_keys.quote_mint)
        destination = associated_token_address(wallet.pubkey(), pool_keys.base_mint)
        tx = builder.build(
            pool_keys, wallet, side, 1_000, 900, source, destination, BLOCKHASH
        )
        return wallet, tx

    def test_direct_buy(self, pool_keys):
        wallet, tx = self._build(pool_keys, TradeSide.BUY, ExecutionBackendKind.DIRECT)

        assert program_ids(tx) == [
            COMPUTE_BUDGET_PROGRAM,
            COMPUTE_BUDGET_PROGRAM,
            ASSOCIATED_TOKEN_PROGRAM_ID,
            Pubkey.from_string(pool_keys.program_id),
        ]
        assert tx.message.account_keys[0] == wallet.pubkey()
        assert len(tx.signatures) == 1

    def test_relay_sell_has_no_compute_budget(self, pool_keys):
        _wallet, tx = self._build(
            pool_keys, TradeSide.SELL, ExecutionBackendKind.BUNDLED_RELAY
        )

        assert program_ids(tx) == [
            Pubkey.from_string(pool_keys.program_id),
            TOKEN_PROGRAM_ID,
        ]

    def test_signed_with_recent_blockhash(self, pool_keys):
        _wallet, tx = self._build(
            pool_keys, TradeSide.BUY, ExecutionBackendKind.FEE_BIASED_RELAY
        )

        assert str(tx.message.recent_blockhash) == BLOCKHASH.blockhash
        assert len(tx.signatures) == 1
