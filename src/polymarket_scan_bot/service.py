from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol

from .classifier import Thresholds, classify
from .config import Settings
from .dispatcher import NotificationDispatcher
from .errors import TransportError
from .formatting import format_alert
from .polymarket_feed import GammaEventFeed, PolymarketTradeFeed
from .telegram_notifier import TelegramNotifier
from .types import Alert, ListedEvent, ListingTrader, NewListingAlert, ScanResult, Trade
from .watch_state import WatchState
from .window import filter_recent

logger = logging.getLogger(__name__)


class TradeSource(Protocol):
    async def fetch_recent(self, limit: int) -> list[Trade]: ...


class EventSource(Protocol):
    async def fetch_latest_events(self, limit: int) -> list[ListedEvent]: ...

    async def fetch_top_traders(self, event: ListedEvent, limit: int = 10) -> list[ListingTrader]: ...


@dataclass
class Metrics:
    scans: int = 0
    trades_seen: int = 0
    fetch_failures: int = 0
    alerts_sent: int = 0
    alerts_failed: int = 0


class ScanOrchestrator:
    def __init__(
        self,
        settings: Settings,
        trade_source: TradeSource | None = None,
        event_source: EventSource | None = None,
        dispatcher: NotificationDispatcher | None = None,
        watch_state: WatchState | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.thresholds = Thresholds.from_settings(settings)
        self.metrics = Metrics()
        self.clock = clock

        self._owned: list[PolymarketTradeFeed | GammaEventFeed | TelegramNotifier] = []
        if trade_source is None:
            trade_source = PolymarketTradeFeed(
                settings.poly_data_api_base, timeout=settings.fetch_timeout_seconds
            )
            self._owned.append(trade_source)
        if event_source is None and settings.enable_new_listings:
            event_source = GammaEventFeed(
                settings.poly_api_base,
                data_api_base=settings.poly_data_api_base,
                timeout=settings.fetch_timeout_seconds,
            )
            self._owned.append(event_source)
        if dispatcher is None:
            notifier = TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id)
            self._owned.append(notifier)
            dispatcher = NotificationDispatcher(notifier, settings.dispatch_concurrency)
        if watch_state is None and (settings.enable_watch_rules or event_source is not None):
            watch_state = WatchState(
                watched_wallets=settings.watched_wallets,
                watched_markets=settings.watched_markets,
                seen_events_max=settings.seen_events_max,
                seen_events_keep=settings.seen_events_keep,
            )

        self.trade_source = trade_source
        self.event_source = event_source
        self.dispatcher = dispatcher
        self.watch_state = watch_state

    async def close(self) -> None:
        for resource in self._owned:
            await resource.close()

    async def run_scan(self) -> ScanResult:
        self.metrics.scans += 1
        now = int(self.clock())

        trades = await self._fetch_trades()
        events = await self._fetch_events()
        recent = filter_recent(trades, now, self.settings.poll_window_seconds)
        self.metrics.trades_seen += len(recent)

        if self.watch_state is not None:
            async with self.watch_state.lock:
                alerts = classify(
                    recent,
                    self.thresholds,
                    watch_state=self.watch_state,
                    events=events,
                    apply_watch_rules=self.settings.enable_watch_rules,
                )
        else:
            alerts = classify(recent, self.thresholds)

        alerts = await self._attach_listing_traders(alerts)

        messages: list[str] = []
        format_failures = 0
        for alert in alerts:
            try:
                messages.append(
                    format_alert(
                        alert,
                        market_base=self.settings.poly_market_base,
                        event_base=self.settings.poly_event_base,
                    )
                )
            except Exception as exc:
                format_failures += 1
                logger.exception("Failed to format %s alert: %s", alert.kind, exc)

        report = await self.dispatcher.dispatch(messages)
        failed = report.failed + format_failures
        self.metrics.alerts_sent += report.sent
        self.metrics.alerts_failed += failed

        logger.info(
            "scan fetched=%d in_window=%d alerts=%s sent=%d failed=%d",
            len(trades),
            len(recent),
            ",".join(a.kind for a in alerts),
            report.sent,
            failed,
        )
        return ScanResult(
            alerts_sent=report.sent,
            alerts_failed=failed,
            trades_fetched=len(trades),
            trades_in_window=len(recent),
            alert_kinds=tuple(a.kind for a in alerts),
        )

    async def _fetch_trades(self) -> list[Trade]:
        try:
            return await asyncio.wait_for(
                self.trade_source.fetch_recent(self.settings.trade_lookback),
                timeout=self.settings.fetch_timeout_seconds,
            )
        except (TransportError, asyncio.TimeoutError) as exc:
            self.metrics.fetch_failures += 1
            logger.warning("Trade fetch failed, treating as empty batch: %r", exc)
            return []

    async def _fetch_events(self) -> list[ListedEvent]:
        if self.event_source is None:
            return []
        try:
            return await asyncio.wait_for(
                self.event_source.fetch_latest_events(self.settings.events_lookback),
                timeout=self.settings.fetch_timeout_seconds,
            )
        except (TransportError, asyncio.TimeoutError) as exc:
            self.metrics.fetch_failures += 1
            logger.warning("Event fetch failed, skipping listings: %r", exc)
            return []

    async def _attach_listing_traders(self, alerts: list[Alert]) -> list[Alert]:
        limit = self.settings.listing_top_traders
        if self.event_source is None or limit <= 0:
            return alerts
        enriched: list[Alert] = []
        for alert in alerts:
            if isinstance(alert, NewListingAlert):
                try:
                    traders = await asyncio.wait_for(
                        self.event_source.fetch_top_traders(alert.event, limit),
                        timeout=self.settings.fetch_timeout_seconds,
                    )
                except (TransportError, asyncio.TimeoutError) as exc:
                    logger.warning(
                        "Top traders lookup failed for event %s: %r", alert.event.event_id, exc
                    )
                else:
                    alert = replace(alert, top_traders=tuple(traders))
            enriched.append(alert)
        return enriched

    def log_health(self) -> None:
        logger.info(
            "health scans=%d trades_seen=%d fetch_failures=%d alerts_sent=%d alerts_failed=%d",
            self.metrics.scans,
            self.metrics.trades_seen,
            self.metrics.fetch_failures,
            self.metrics.alerts_sent,
            self.metrics.alerts_failed,
        )
