"""Transaction submission backends."""

import asyncio
import base64
import random
from decimal import Decimal
from typing import Any

import base58
import httpx
import structlog
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import VersionedTransaction
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential

from ..chain.rpc import SolanaRpcClient, SolanaRpcError, TransactionExpiredError
from ..config.settings import AppSettings
from ..core.interfaces import ExecutionBackend
from ..core.types import BlockhashContext, ExecutionBackendKind, ExecutionResult

logger = structlog.get_logger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

JITO_BUNDLE_ENDPOINTS = [
    "https://mainnet.block-engine.jito.wtf/api/v1/bundles",
    "https://amsterdam.mainnet.block-engine.jito.wtf/api/v1/bundles",
    "https://frankfurt.mainnet.block-engine.jito.wtf/api/v1/bundles",
    "https://ny.mainnet.block-engine.jito.wtf/api/v1/bundles",
    "https://tokyo.mainnet.block-engine.jito.wtf/api/v1/bundles",
]

JITO_TIP_ACCOUNTS = [
    "96gYZGLnJYVFmbjzopPSU6QiEV5fGqZNyN9nmNhvrZU5",
    "HFqU5x63VTqvQss8hp11i4wVV8bD44PvwucfZ2bU7gRe",
    "Cw8CFyM9FkoMi7K7Crf6HNQqf4uEMzpKw6QNghXLvLkY",
    "ADaUMid9yfUytqMBgopwjb2DTLSokTSzL1zt6iGPaS49",
    "DfXygSm4jCyNCybVYYK6DwvWqjKee8pbDmJGcLWNDXjh",
    "ADuUkR4vqLUMWXxW9gh6D6L8pMSawimctcNZ5pGwDcEt",
    "DttWaMuVvTiduZRnguLF7jNxTgiMBZ1hyAumKUiL2KRL",
    "3AVi9Tg9Uo68tJfuvoKvqKNWKkC5wPdSSdeBnizKZ6jT",
]

WARP_FEE_WALLET = "WARPzUMPnycu9eeCZ95rcAUxorqpBqHndfV3ZP5FSyS"
WARP_EXECUTE_URL = "https://tx.warp.id/transaction/execute"


def _is_retryable_error(exception: BaseException) -> bool:
    """Check if a relay request failure is transient."""
    if isinstance(exception, (httpx.TimeoutException, httpx.NetworkError)):
        return True
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code == 429 or (
            exception.response.status_code >= 500
        )
    return False


_relay_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception(_is_retryable_error),
    reraise=True,
)


def sol_to_lamports(amount: Decimal) -> int:
    return int(amount * LAMPORTS_PER_SOL)


def build_fee_transfer(
    payer: Keypair, recipient: str, lamports: int, blockhash: BlockhashContext
) -> VersionedTransaction:
    """Build a signed transfer paying a relay fee."""
    instruction = transfer(
        TransferParams(
            from_pubkey=payer.pubkey(),
            to_pubkey=Pubkey.from_string(recipient),
            lamports=lamports,
        )
    )
    message = MessageV0.try_compile(
        payer.pubkey(), [instruction], [], Hash.from_string(blockhash.blockhash)
    )
    return VersionedTransaction(message, [payer])


def encode_base58(transaction: VersionedTransaction) -> str:
    return base58.b58encode(bytes(transaction)).decode("ascii")


class DirectExecutionBackend(ExecutionBackend):
    """Sends through the configured RPC node and polls for confirmation."""

    kind = ExecutionBackendKind.DIRECT

    def __init__(self, rpc: SolanaRpcClient, poll_interval: float = 1.0) -> None:
        self.rpc = rpc
        self.poll_interval = poll_interval

    async def submit_and_confirm(
        self,
        transaction: VersionedTransaction,
        payer: Keypair,
        blockhash: BlockhashContext,
    ) -> ExecutionResult:
        signature = str(transaction.signatures[0])
        tx_base64 = base64.b64encode(bytes(transaction)).decode("ascii")

        try:
            await self.rpc.send_transaction(tx_base64)
            await self.rpc.confirm_signature(
                signature,
                blockhash.last_valid_block_height,
                poll_interval=self.poll_interval,
            )
        except (SolanaRpcError, TransactionExpiredError, httpx.HTTPError) as e:
            logger.debug("Transaction not confirmed", signature=signature, error=str(e))
            return ExecutionResult(confirmed=False, signature=signature, error=str(e))

        return ExecutionResult(confirmed=True, signature=signature)


class JitoExecutionBackend(ExecutionBackend):
    """Submits a tip transfer and the swap as one bundle to every block engine."""

    kind = ExecutionBackendKind.BUNDLED_RELAY

    def __init__(
        self,
        rpc: SolanaRpcClient,
        fee_sol: Decimal,
        session: httpx.AsyncClient | None = None,
        endpoints: list[str] | None = None,
        rng: random.Random | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        self.rpc = rpc
        self.fee_lamports = sol_to_lamports(fee_sol)
        self.session = session or httpx.AsyncClient(timeout=30.0)
        self.endpoints = endpoints or JITO_BUNDLE_ENDPOINTS
        self.rng = rng or random.Random()
        self.poll_interval = poll_interval

    @_relay_retry
    async def _post_bundle(self, url: str, payload: dict[str, Any]) -> Any:
        response = await self.session.post(url, json=payload)
        response.raise_for_status()
        return response.json()

    async def submit_and_confirm(
        self,
        transaction: VersionedTransaction,
        payer: Keypair,
        blockhash: BlockhashContext,
    ) -> ExecutionResult:
        tip_account = self.rng.choice(JITO_TIP_ACCOUNTS)
        tip_tx = build_fee_transfer(payer, tip_account, self.fee_lamports, blockhash)
        tip_signature = str(tip_tx.signatures[0])

        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "sendBundle",
            "params": [[encode_base58(tip_tx), encode_base58(transaction)]],
        }

        responses = await asyncio.gather(
            *(self._post_bundle(url, payload) for url in self.endpoints),
            return_exceptions=True,
        )
        accepted = [
            r for r in responses if not isinstance(r, BaseException) and "error" not in r
        ]
        for url, r in zip(self.endpoints, responses):
            if isinstance(r, BaseException):
                logger.debug("Bundle rejected", endpoint=url, error=str(r))

        if not accepted:
            logger.debug("No block engine accepted the bundle")
            return ExecutionResult(
                confirmed=False, error="No block engine accepted the bundle"
            )

        logger.debug(
            "Bundle accepted",
            endpoints=len(accepted),
            tip_account=tip_account,
            signature=tip_signature,
        )

        try:
            await self.rpc.confirm_signature(
                tip_signature,
                blockhash.last_valid_block_height,
                poll_interval=self.poll_interval,
            )
        except (SolanaRpcError, TransactionExpiredError, httpx.HTTPError) as e:
            return ExecutionResult(
                confirmed=False, signature=tip_signature, error=str(e)
            )

        return ExecutionResult(confirmed=True, signature=tip_signature)


class WarpExecutionBackend(ExecutionBackend):
    """Hands the swap and a fee transfer to the warp relay, which confirms."""

    kind = ExecutionBackendKind.FEE_BIASED_RELAY

    def __init__(
        self,
        fee_sol: Decimal,
        session: httpx.AsyncClient | None = None,
        url: str = WARP_EXECUTE_URL,
    ) -> None:
        self.fee_lamports = sol_to_lamports(fee_sol)
        self.session = session or httpx.AsyncClient(timeout=100.0)
        self.url = url

    @_relay_retry
    async def _post_execute(self, payload: dict[str, Any]) -> dict[str, Any]:
        response = await self.session.post(self.url, json=payload)
        response.raise_for_status()
        return response.json()

    async def submit_and_confirm(
        self,
        transaction: VersionedTransaction,
        payer: Keypair,
        blockhash: BlockhashContext,
    ) -> ExecutionResult:
        fee_tx = build_fee_transfer(payer, WARP_FEE_WALLET, self.fee_lamports, blockhash)
        payload = {
            "transactions": [encode_base58(fee_tx), encode_base58(transaction)],
            "latestBlockhash": {
                "blockhash": blockhash.blockhash,
                "lastValidBlockHeight": blockhash.last_valid_block_height,
            },
        }

        try:
            data = await self._post_execute(payload)
        except httpx.HTTPError as e:
            logger.debug("Warp relay request failed", error=str(e))
            return ExecutionResult(confirmed=False, error=str(e))

        return ExecutionResult(
            confirmed=bool(data.get("confirmed")),
            signature=data.get("signature"),
            error=data.get("error"),
        )


def create_backend(
    settings: AppSettings,
    rpc: SolanaRpcClient,
    session: httpx.AsyncClient | None = None,
) -> ExecutionBackend:
    """Create the backend selected by ``transaction_executor``."""
    kind = settings.transaction_executor
    if kind is ExecutionBackendKind.BUNDLED_RELAY:
        return JitoExecutionBackend(rpc, settings.custom_fee, session=session)
    if kind is ExecutionBackendKind.FEE_BIASED_RELAY:
        return WarpExecutionBackend(settings.custom_fee, session=session)
    return DirectExecutionBackend(rpc)
