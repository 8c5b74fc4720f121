"""Solana JSON-RPC client."""

import asyncio
import time
from typing import Any

import httpx
import structlog

logger = structlog.get_logger(__name__)

# JSON-RPC "invalid params", returned e.g. for an unknown mint
INVALID_PARAMS = -32602


class SolanaRpcError(Exception):
    """Exception for Solana RPC errors."""

    def __init__(self, code: int, message: str, data: Any | None = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(f"RPC Error {code}: {message}")


class TransactionExpiredError(Exception):
    """The blockhash of a transaction expired before it confirmed."""

    def __init__(self, signature: str, last_valid_block_height: int):
        self.signature = signature
        self.last_valid_block_height = last_valid_block_height
        super().__init__(
            f"Blockhash expired at height {last_valid_block_height}: {signature}"
        )


class SolanaRpcClient:
    """Thin async JSON-RPC client for a Solana node."""

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize SolanaRpcClient.

        Args:
            rpc_url: Solana RPC endpoint URL
            commitment: Commitment level used for reads
            client: Optional httpx client (will create one if not provided)
            timeout: Request timeout in seconds
        """
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self.timeout = timeout
        self._request_id = 0
        logger.info("SolanaRpcClient initialized", rpc_url=rpc_url, timeout=timeout)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def _get_request_id(self) -> int:
        """Get next request ID."""
        self._request_id += 1
        return self._request_id

    async def _make_rpc_request(
        self, method: str, params: list[Any] | dict[str, Any]
    ) -> Any:
        """Make a single JSON-RPC request.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            RPC response result

        Raises:
            SolanaRpcError: For RPC-specific errors
            httpx.HTTPError: For HTTP errors
        """
        request_id = self._get_request_id()
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params,
        }

        start_time = time.time()
        try:
            response = await self.client.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()

            logger.debug(
                "RPC request completed",
                method=method,
                request_id=request_id,
                duration=time.time() - start_time,
                status_code=response.status_code,
            )

            data = response.json()

            if "error" in data:
                error = data["error"]
                raise SolanaRpcError(
                    code=error.get("code", -1),
                    message=error.get("message", "Unknown RPC error"),
                    data=error.get("data"),
                )

            return data.get("result")

        except httpx.HTTPError as e:
            logger.warning(
                "RPC request failed",
                method=method,
                request_id=request_id,
                duration=time.time() - start_time,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def get_token_supply(self, mint: str) -> dict[str, Any]:
        result = await self._make_rpc_request(
            "getTokenSupply", [mint, {"commitment": self.commitment}]
        )
        return result["value"]

    async def get_token_account_balance(self, account: str) -> dict[str, Any]:
        result = await self._make_rpc_request(
            "getTokenAccountBalance", [account, {"commitment": self.commitment}]
        )
        return result["value"]

    async def get_balance(self, account: str) -> int:
        result = await self._make_rpc_request(
            "getBalance", [account, {"commitment": self.commitment}]
        )
        return int(result["value"])

    async def get_account_info(self, account: str) -> dict[str, Any] | None:
        """Get an account in ``jsonParsed`` encoding, ``None`` if it doesn't exist."""
        result = await self._make_rpc_request(
            "getAccountInfo",
            [account, {"commitment": self.commitment, "encoding": "jsonParsed"}],
        )
        return result["value"]

    async def get_asset(self, asset_id: str) -> dict[str, Any]:
        """Get a token asset through the DAS API."""
        return await self._make_rpc_request("getAsset", {"id": asset_id})

    async def get_latest_blockhash(self) -> dict[str, Any]:
        result = await self._make_rpc_request(
            "getLatestBlockhash", [{"commitment": self.commitment}]
        )
        logger.debug(
            "Retrieved latest blockhash",
            blockhash=result["value"]["blockhash"][:8] + "...",
            last_valid_block_height=result["value"]["lastValidBlockHeight"],
        )
        return result["value"]

    async def get_block_height(self) -> int:
        return int(
            await self._make_rpc_request(
                "getBlockHeight", [{"commitment": self.commitment}]
            )
        )

    async def send_transaction(
        self, tx_base64: str, skip_preflight: bool = False, max_retries: int | None = None
    ) -> str:
        """Send a transaction.

        Args:
            tx_base64: Base64-encoded transaction bytes
            skip_preflight: Whether to skip preflight checks
            max_retries: Node-side rebroadcast limit

        Returns:
            Transaction signature
        """
        options: dict[str, Any] = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": self.commitment,
        }
        if max_retries is not None:
            options["maxRetries"] = max_retries

        logger.debug(
            "Sending transaction",
            tx_length=len(tx_base64),
            skip_preflight=skip_preflight,
        )
        return await self._make_rpc_request("sendTransaction", [tx_base64, options])

    async def confirm_signature(
        self,
        signature: str,
        last_valid_block_height: int,
        poll_interval: float = 1.0,
    ) -> dict[str, Any]:
        """Wait until a signature reaches the client commitment.

        Args:
            signature: Transaction signature to confirm
            last_valid_block_height: Give up once the chain passes this height
            poll_interval: Time between status checks

        Returns:
            Signature status information

        Raises:
            TransactionExpiredError: If the blockhash expired first
            SolanaRpcError: If the transaction failed on chain
        """
        accepted = {
            "processed": {"processed", "confirmed", "finalized"},
            "confirmed": {"confirmed", "finalized"},
            "finalized": {"finalized"},
        }[self.commitment]

        while True:
            result = await self._make_rpc_request(
                "getSignatureStatuses",
                [[signature], {"searchTransactionHistory": False}],
            )
            status_info = (result or {}).get("value", [None])[0]

            if status_info is not None:
                if status_info.get("err") is not None:
                    raise SolanaRpcError(
                        -1, f"Transaction failed: {status_info['err']}"
                    )
                if status_info.get("confirmationStatus") in accepted:
                    logger.debug(
                        "Transaction confirmed",
                        signature=signature,
                        confirmation_status=status_info.get("confirmationStatus"),
                        slot=status_info.get("slot"),
                    )
                    return status_info

            if await self.get_block_height() > last_valid_block_height:
                raise TransactionExpiredError(signature, last_valid_block_height)

            await asyncio.sleep(poll_interval)
