from __future__ import annotations

import asyncio
import logging

import httpx

from .errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


class TelegramNotifier:
    def __init__(
        self,
        bot_token: str | None,
        chat_id: str | None,
        timeout: float = 15.0,
        retries: int = 4,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.retries = retries
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def send(self, text: str) -> None:
        if not self.bot_token or not self.chat_id:
            raise ConfigurationError("TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID must be set")

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        delay = 1.0

        for attempt in range(self.retries):
            try:
                response = await self._client.post(
                    url,
                    json={
                        "chat_id": self.chat_id,
                        "text": text,
                        "parse_mode": "HTML",
                        "disable_web_page_preview": True,
                    },
                )

                if response.status_code == 429:
                    retry_after = 2.0
                    try:
                        payload = response.json()
                        retry_after = float(
                            payload.get("parameters", {}).get("retry_after", retry_after)
                        )
                    except (ValueError, TypeError, AttributeError):
                        pass
                    logger.warning("Telegram rate limited. Sleeping %.1fs", retry_after)
                    await asyncio.sleep(retry_after)
                    continue

                response.raise_for_status()
                data = response.json()
                if not data.get("ok", False):
                    raise TransportError(f"Telegram send failed: {data}")
                return
            except (httpx.HTTPError, ValueError, TransportError) as exc:
                if attempt == self.retries - 1:
                    if isinstance(exc, TransportError):
                        raise
                    raise TransportError(f"Telegram send failed: {exc}") from exc
                logger.warning("Telegram send attempt %d failed: %s", attempt + 1, exc)
                await asyncio.sleep(delay)
                delay *= 2

        raise TransportError(f"Telegram send gave up after {self.retries} rate-limited attempts")
