"""Telegram trade notifications."""

import httpx
import structlog

from ..core.interfaces import AlertSink

logger = structlog.get_logger(__name__)


def solscan_tx_url(signature: str | None, network: str) -> str:
    return f"https://solscan.io/tx/{signature}?cluster={network}"


def dexscreener_maker_url(mint: str, maker: str) -> str:
    return f"https://dexscreener.com/solana/{mint}?maker={maker}"


class NoopAlertSink(AlertSink):
    """Alert sink used when no chat is configured."""

    async def push(self, message: str) -> None:
        logger.debug("Alert not sent, no sink configured", message=message)


class TelegramAlertSink(AlertSink):
    """Telegram-based alert sink implementation."""

    def __init__(
        self,
        bot_token: str,
        admin_user_ids: list[int],
        session: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Telegram alert sink.

        Args:
            bot_token: Telegram bot token
            admin_user_ids: List of admin user IDs to send alerts to
            session: Optional HTTP session for requests
        """
        self.bot_token = bot_token
        self.admin_user_ids = admin_user_ids
        self.session = session or httpx.AsyncClient()
        self.base_url = f"https://api.telegram.org/bot{bot_token}"

        logger.info(
            "Telegram alert sink initialized",
            admin_count=len(admin_user_ids),
        )

    async def push(self, message: str) -> None:
        """Push alert message to all admin users.

        Delivery failures are logged per recipient and never raised.
        """
        if not self.admin_user_ids:
            logger.warning("No admin users configured, skipping alert")
            return

        success_count = 0
        for user_id in self.admin_user_ids:
            try:
                await self._send_message(user_id, message)
                success_count += 1
            except (httpx.HTTPError, RuntimeError) as e:
                logger.error(
                    "Failed to send alert to admin", user_id=user_id, error=str(e)
                )

        logger.debug(
            "Alert push completed",
            total_admins=len(self.admin_user_ids),
            success_count=success_count,
        )

    async def _send_message(self, chat_id: int, text: str) -> None:
        url = f"{self.base_url}/sendMessage"
        data = {"chat_id": chat_id, "text": text, "disable_web_page_preview": True}

        response = await self.session.post(url, json=data)
        response.raise_for_status()

        result = response.json()
        if not result.get("ok"):
            raise RuntimeError(
                f"Telegram API error: {result.get('description', 'Unknown error')}"
            )

    async def close(self) -> None:
        """Close the alert sink and cleanup resources."""
        await self.session.aclose()
        logger.info("Telegram alert sink closed")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
