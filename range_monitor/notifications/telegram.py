"""Telegram notification service."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Send messages to Telegram chats through the Bot API."""

    def __init__(self, config: TelegramConfig, timeout: int = 30) -> None:
        self.bot_token = config.bot_token
        self.timeout = timeout

    async def send_message(self, destination: str, text: str) -> bool:
        """Send ``text`` to chat ``destination``; True on HTTP 200."""
        if not self.bot_token or not destination:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": destination,
            "text": text,
            "disable_web_page_preview": True,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(
                url, json=payload, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status == 200:
                    return True
                else:
                    logger.error(
                        "Failed to send Telegram message: %s", response.status
                    )
                    return False


class LogNotifier:
    """Fallback used when Telegram is disabled: writes alerts to the log."""

    async def send_message(self, destination: str, text: str) -> bool:
        logger.warning("Telegram disabled, alert for %s:\n%s", destination, text)
        return True
