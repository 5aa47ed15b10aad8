from dataclasses import replace

import pytest

from polymarket_scan_bot.config import Settings

_BASE = Settings(
    telegram_bot_token="t",
    telegram_chat_id="c",
    host="127.0.0.1",
    port=3000,
    poly_data_api_base="https://data-api.polymarket.com",
    poly_api_base="https://gamma-api.polymarket.com",
    poly_market_base="https://polymarket.com/market",
    poly_event_base="https://polymarket.com/event",
    trade_lookback=50,
    poll_window_seconds=300,
    whale_threshold_usd=500.0,
    high_volume_market_threshold_usd=4_000_000.0,
    top_traders_count=3,
    top_holders_limit=10,
    top_wallets_per_outcome=5,
    new_wallet_min_usd=1000.0,
    crypto_markets_only=True,
    enable_watch_rules=False,
    watched_wallets=(),
    watched_markets=(),
    enable_new_listings=False,
    events_lookback=50,
    listing_top_traders=10,
    seen_events_max=500,
    seen_events_keep=250,
    fetch_timeout_seconds=5.0,
    dispatch_concurrency=1,
    scan_interval_seconds=0,
    log_level="INFO",
)


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        return replace(_BASE, **overrides)

    return _make
