from __future__ import annotations

import logging
import math
from typing import Any

import httpx

from .errors import MalformedDataError, TransportError
from .types import ListedEvent, ListingTrader, Trade

logger = logging.getLogger(__name__)

# Feed variants disagree on field names; first present key wins.
_USD_KEYS = ("usdcSize", "usdValue", "amountUSD", "amount_usd")
_WALLET_KEYS = ("proxyWallet", "walletAddress", "wallet", "trader", "taker_address", "maker_address")
_MARKET_KEYS = ("conditionId", "condition_id", "market", "id")


class PolymarketTradeFeed:
    """Reads the most recent trades from the public data-api `/trades` endpoint."""

    def __init__(
        self,
        api_base: str,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_recent(self, limit: int) -> list[Trade]:
        try:
            resp = await self._client.get(f"{self.api_base}/trades", params={"limit": limit})
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportError(f"Trade feed request failed: {exc}") from exc
        return parse_trades_payload(payload)


class GammaEventFeed:
    """Reads the newest open events (market listings) from the gamma API."""

    def __init__(
        self,
        api_base: str,
        data_api_base: str = "https://data-api.polymarket.com",
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.data_api_base = data_api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch_top_traders(self, event: ListedEvent, limit: int = 10) -> list[ListingTrader]:
        """Largest recent trades on the event's first market, biggest first."""
        if not event.condition_id:
            return []
        try:
            resp = await self._client.get(
                f"{self.data_api_base}/trades",
                params={"market": event.condition_id, "limit": limit},
            )
            resp.raise_for_status()
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportError(f"Listing trades request failed: {exc}") from exc

        traders = [
            ListingTrader(wallet=t.wallet, usd_value=t.usd_value, outcome=t.outcome)
            for t in parse_trades_payload(payload)
            if t.wallet
        ]
        traders.sort(key=lambda t: t.usd_value, reverse=True)
        return traders[:limit]

    async def fetch_latest_events(self, limit: int) -> list[ListedEvent]:
        try:
            resp = await self._client.get(
                f"{self.api_base}/events",
                params={"order": "id", "ascending": "false", "closed": "false", "limit": limit},
            )
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise TransportError(f"Event feed request failed: {exc}") from exc

        if not isinstance(data, list):
            return []
        events: list[ListedEvent] = []
        for record in data:
            event = normalize_event(record)
            if event is not None:
                events.append(event)
        return events


def parse_number(value: Any) -> float | None:
    """Parse a feed value into a finite float, or None when it is unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_trades_payload(payload: Any) -> list[Trade]:
    if isinstance(payload, dict):
        for key in ("data", "trades", "result"):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        return []

    trades: list[Trade] = []
    rejected = 0
    for record in payload:
        trade = normalize_trade(record)
        if trade is None:
            rejected += 1
            continue
        trades.append(trade)
    if rejected:
        logger.debug("Dropped %d malformed trade records", rejected)
    return trades


def normalize_trade(record: Any) -> Trade | None:
    try:
        return normalize_trade_strict(record)
    except MalformedDataError as exc:
        logger.debug("Skipping trade record: %s", exc)
        return None


def normalize_trade_strict(record: Any) -> Trade:
    if not isinstance(record, dict):
        raise MalformedDataError(f"trade record is not an object: {record!r}")

    market_id = _first_text(record, _MARKET_KEYS)
    if not market_id:
        raise MalformedDataError("trade record has no market identifier")

    raw_ts = parse_number(record.get("timestamp", record.get("ts")))
    if raw_ts is None:
        raise MalformedDataError(f"trade {market_id} has no numeric timestamp")
    timestamp = int(raw_ts)
    if timestamp > 10**12:
        timestamp //= 1000

    size = parse_number(record.get("size", record.get("amount")))
    price = parse_number(record.get("price"))

    usd_value = None
    for key in _USD_KEYS:
        usd_value = parse_number(record.get(key))
        if usd_value is not None:
            break
    if usd_value is None:
        if size is None or price is None:
            raise MalformedDataError(f"trade {market_id} has no usable size/price")
        usd_value = size * price

    side_raw = str(record.get("side") or "").strip().upper()
    side = side_raw if side_raw in ("BUY", "SELL") else None

    tx_hash = _first_text(record, ("transactionHash", "tx_hash", "transaction_hash"))
    wallet = _first_text(record, _WALLET_KEYS)
    trade_id = _first_text(record, ("trade_id", "tradeId"))
    if not trade_id:
        trade_id = f"{tx_hash or 'notx'}_{timestamp}_{market_id}_{wallet or 'nowallet'}_{size}_{price}"

    title = _first_text(record, ("title", "question", "marketTitle")) or f"Market {market_id}"

    return Trade(
        trade_id=trade_id,
        market_id=market_id,
        wallet=wallet,
        side=side,
        size=size,
        price=price,
        usd_value=usd_value,
        outcome=_first_text(record, ("outcome", "outcomeLabel")),
        timestamp=timestamp,
        market_title=title,
        market_slug=_first_text(record, ("slug", "marketSlug", "eventSlug")),
        tx_hash=tx_hash,
    )


def normalize_event(record: Any) -> ListedEvent | None:
    if not isinstance(record, dict):
        return None
    event_id = _first_text(record, ("id", "slug"))
    if not event_id:
        return None
    # Zero 24h volume falls back to lifetime volume; zero there too reads as N/A.
    volume = parse_number(record.get("volume24hr")) or parse_number(record.get("volume")) or None
    condition_id = None
    markets = record.get("markets")
    if isinstance(markets, list) and markets and isinstance(markets[0], dict):
        condition_id = _first_text(markets[0], ("conditionId", "condition_id"))
    return ListedEvent(
        event_id=event_id,
        title=_first_text(record, ("title", "question")) or "Untitled Market",
        slug=_first_text(record, ("slug",)),
        volume=volume,
        end_date=_first_text(record, ("endDate", "end_date")),
        condition_id=condition_id,
    )


def _first_text(record: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        text = _string_or_none(record.get(key))
        if text:
            return text
    return None


def _string_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None
