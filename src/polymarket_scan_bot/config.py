from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    telegram_bot_token: str | None
    telegram_chat_id: str | None
    host: str
    port: int
    poly_data_api_base: str
    poly_api_base: str
    poly_market_base: str
    poly_event_base: str
    trade_lookback: int
    poll_window_seconds: int
    whale_threshold_usd: float
    high_volume_market_threshold_usd: float
    top_traders_count: int
    top_holders_limit: int
    top_wallets_per_outcome: int
    new_wallet_min_usd: float
    crypto_markets_only: bool
    enable_watch_rules: bool
    watched_wallets: tuple[str, ...]
    watched_markets: tuple[str, ...]
    enable_new_listings: bool
    events_lookback: int
    listing_top_traders: int
    seen_events_max: int
    seen_events_keep: int
    fetch_timeout_seconds: float
    dispatch_concurrency: int
    scan_interval_seconds: int
    log_level: str


def _optional_str(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _optional_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _optional_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


def _optional_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _optional_csv(name: str) -> tuple[str, ...]:
    raw = os.getenv(name, "")
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        telegram_bot_token=_optional_str("TELEGRAM_BOT_TOKEN"),
        telegram_chat_id=_optional_str("TELEGRAM_CHAT_ID"),
        host=os.getenv("HOST", "0.0.0.0").strip(),
        port=_optional_int("PORT", 3000),
        poly_data_api_base=os.getenv(
            "POLY_DATA_API_BASE", "https://data-api.polymarket.com"
        ).strip(),
        poly_api_base=os.getenv("POLY_API_BASE", "https://gamma-api.polymarket.com").strip(),
        poly_market_base=os.getenv("POLY_MARKET_BASE", "https://polymarket.com/market").strip(),
        poly_event_base=os.getenv("POLY_EVENT_BASE", "https://polymarket.com/event").strip(),
        trade_lookback=_optional_int("TRADE_LOOKBACK", 50),
        poll_window_seconds=_optional_int("POLL_WINDOW_SECONDS", 300),
        whale_threshold_usd=_optional_float("WHALE_THRESHOLD_USD", 500.0),
        high_volume_market_threshold_usd=_optional_float(
            "HIGH_VOLUME_MARKET_THRESHOLD_USD", 4_000_000.0
        ),
        top_traders_count=_optional_int("TOP_TRADERS_COUNT", 3),
        top_holders_limit=_optional_int("TOP_HOLDERS_LIMIT", 10),
        top_wallets_per_outcome=_optional_int("TOP_WALLETS_PER_OUTCOME", 5),
        new_wallet_min_usd=_optional_float("NEW_WALLET_MIN_USD", 1000.0),
        crypto_markets_only=_optional_bool("CRYPTO_MARKETS_ONLY", True),
        enable_watch_rules=_optional_bool("ENABLE_WATCH_RULES", False),
        watched_wallets=_optional_csv("WATCHED_WALLETS"),
        watched_markets=_optional_csv("WATCHED_MARKETS"),
        enable_new_listings=_optional_bool("ENABLE_NEW_LISTINGS", False),
        events_lookback=_optional_int("EVENTS_LOOKBACK", 50),
        listing_top_traders=_optional_int("LISTING_TOP_TRADERS", 10),
        seen_events_max=_optional_int("SEEN_EVENTS_MAX", 500),
        seen_events_keep=_optional_int("SEEN_EVENTS_KEEP", 250),
        fetch_timeout_seconds=_optional_float("FETCH_TIMEOUT_SECONDS", 20.0),
        dispatch_concurrency=max(1, _optional_int("DISPATCH_CONCURRENCY", 1)),
        scan_interval_seconds=_optional_int("SCAN_INTERVAL_SECONDS", 0),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
