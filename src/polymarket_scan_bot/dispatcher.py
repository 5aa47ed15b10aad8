from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from .errors import ConfigurationError
from .types import DispatchReport

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    async def send(self, text: str) -> None: ...


class NotificationDispatcher:
    """Delivers formatted messages, isolating failures per message.

    Messages are started in emission order; with ``concurrency=1`` they are
    delivered strictly one after another.
    """

    def __init__(self, sink: MessageSink, concurrency: int = 1) -> None:
        self.sink = sink
        self.concurrency = max(1, concurrency)

    async def dispatch(self, messages: Sequence[str]) -> DispatchReport:
        semaphore = asyncio.Semaphore(self.concurrency)
        results = await asyncio.gather(
            *(self._send_one(semaphore, i, text) for i, text in enumerate(messages))
        )
        sent = sum(1 for ok in results if ok)
        return DispatchReport(sent=sent, failed=len(results) - sent)

    async def _send_one(self, semaphore: asyncio.Semaphore, index: int, text: str) -> bool:
        async with semaphore:
            try:
                await self.sink.send(text)
                return True
            except ConfigurationError as exc:
                logger.error("Cannot deliver message %d: %s", index, exc)
            except Exception as exc:
                logger.exception("Failed to deliver message %d: %s", index, exc)
            return False
