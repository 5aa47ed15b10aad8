import asyncio

import httpx
import pytest

from polymarket_scan_bot.errors import MalformedDataError, TransportError
from polymarket_scan_bot.polymarket_feed import (
    GammaEventFeed,
    PolymarketTradeFeed,
    normalize_event,
    normalize_trade,
    normalize_trade_strict,
    parse_number,
    parse_trades_payload,
)


def _record(**overrides) -> dict:
    record = {
        "proxyWallet": "0xwallet",
        "side": "BUY",
        "conditionId": "0xcond",
        "size": "1000",
        "price": "0.6",
        "timestamp": 1730000000,
        "title": "Will X happen?",
        "slug": "will-x-happen",
        "outcome": "Yes",
        "transactionHash": "0xabc",
    }
    record.update(overrides)
    return record


def test_parse_number() -> None:
    assert parse_number("0.52") == 0.52
    assert parse_number(3) == 3.0
    assert parse_number(None) is None
    assert parse_number("abc") is None
    assert parse_number("nan") is None
    assert parse_number("inf") is None
    assert parse_number(True) is None


def test_normalize_data_api_trade() -> None:
    trade = normalize_trade(_record())

    assert trade is not None
    assert trade.market_id == "0xcond"
    assert trade.wallet == "0xwallet"
    assert trade.side == "BUY"
    assert trade.usd_value == 600.0
    assert trade.outcome == "Yes"
    assert trade.market_slug == "will-x-happen"
    assert trade.tx_hash == "0xabc"


def test_explicit_usd_field_preferred_over_size_times_price() -> None:
    trade = normalize_trade(_record(usdcSize="750.5"))
    assert trade is not None
    assert trade.usd_value == 750.5


def test_explicit_usd_without_price_is_accepted() -> None:
    trade = normalize_trade(_record(price=None, amountUSD=1200))
    assert trade is not None
    assert trade.price is None
    assert trade.usd_value == 1200.0


def test_missing_optional_fields_tolerated() -> None:
    trade = normalize_trade(_record(side=None, outcome=None))
    assert trade is not None
    assert trade.side is None
    assert trade.outcome is None


def test_millisecond_timestamps_are_scaled() -> None:
    trade = normalize_trade(_record(timestamp=1730000000123))
    assert trade is not None
    assert trade.timestamp == 1730000000


def test_unparseable_values_reject_the_record() -> None:
    with pytest.raises(MalformedDataError):
        normalize_trade_strict(_record(timestamp="yesterday"))
    with pytest.raises(MalformedDataError):
        normalize_trade_strict(_record(size="lots"))
    with pytest.raises(MalformedDataError):
        normalize_trade_strict(_record(conditionId=None))
    assert normalize_trade("not a dict") is None


def test_parse_trades_payload_drops_malformed_and_unwraps_data() -> None:
    payload = {"data": [_record(), _record(price="n/a"), _record(timestamp=None)]}
    trades = parse_trades_payload(payload)
    assert len(trades) == 1
    assert parse_trades_payload("garbage") == []


def test_normalize_event() -> None:
    event = normalize_event(
        {"id": 42, "title": "New market", "slug": "new-market", "volume24hr": "1500", "endDate": "2026-12-31"}
    )
    assert event is not None
    assert event.event_id == "42"
    assert event.volume == 1500.0
    assert normalize_event({"title": "no id"}) is None


def test_fetch_recent_sends_limit_and_parses() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[_record()])

    async def run():
        feed = PolymarketTradeFeed(
            "https://data-api.polymarket.com/",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await feed.fetch_recent(50)
        finally:
            await feed.close()

    trades = asyncio.run(run())
    assert seen["url"] == "https://data-api.polymarket.com/trades?limit=50"
    assert len(trades) == 1


def test_fetch_recent_wraps_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    async def run():
        feed = PolymarketTradeFeed(
            "https://data-api.polymarket.com",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            await feed.fetch_recent(50)
        finally:
            await feed.close()

    with pytest.raises(TransportError):
        asyncio.run(run())


def test_fetch_latest_events() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["closed"] == "false"
        assert request.url.params["limit"] == "10"
        return httpx.Response(200, json=[{"id": "1", "title": "A", "slug": "a"}, "junk"])

    async def run():
        feed = GammaEventFeed(
            "https://gamma-api.polymarket.com",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await feed.fetch_latest_events(10)
        finally:
            await feed.close()

    events = asyncio.run(run())
    assert [e.event_id for e in events] == ["1"]


def test_normalize_event_volume_fallback_and_condition_id() -> None:
    event = normalize_event(
        {"id": "7", "title": "Quiet", "volume24hr": 0, "volume": "8200.5",
         "markets": [{"conditionId": "0xc7"}, {"conditionId": "0xother"}]}
    )
    assert event is not None
    assert event.volume == 8200.5
    assert event.condition_id == "0xc7"

    empty = normalize_event({"id": "8", "volume24hr": 0, "volume": 0})
    assert empty is not None
    assert empty.volume is None
    assert empty.condition_id is None


def test_fetch_top_traders_queries_event_market_biggest_first() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(
            200,
            json=[
                _record(proxyWallet="0xsmall", size="10", price="0.5"),
                _record(proxyWallet="0xbig", size="4000", price="0.5"),
                _record(proxyWallet=None, size="9000", price="0.5"),
            ],
        )

    async def run():
        feed = GammaEventFeed(
            "https://gamma-api.polymarket.com",
            data_api_base="https://data-api.polymarket.com/",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            event = normalize_event({"id": "7", "markets": [{"conditionId": "0xc7"}]})
            return await feed.fetch_top_traders(event, 5)
        finally:
            await feed.close()

    traders = asyncio.run(run())
    assert seen["url"] == "https://data-api.polymarket.com/trades?market=0xc7&limit=5"
    assert [t.wallet for t in traders] == ["0xbig", "0xsmall"]
    assert traders[0].usd_value == 2000.0


def test_fetch_top_traders_without_market_skips_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    async def run():
        feed = GammaEventFeed(
            "https://gamma-api.polymarket.com",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        try:
            return await feed.fetch_top_traders(normalize_event({"id": "7"}))
        finally:
            await feed.close()

    assert asyncio.run(run()) == []
