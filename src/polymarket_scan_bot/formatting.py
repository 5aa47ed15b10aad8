from __future__ import annotations

import math
from datetime import datetime, timezone
from html import escape

from .types import (
    Alert,
    HeartbeatAlert,
    HighVolumeMarketAlert,
    NewListingAlert,
    NewWalletAlert,
    TopTradersAlert,
    Trade,
    WatchedTradeAlert,
    WhaleTradeAlert,
)

MARKET_BASE_URL = "https://polymarket.com/market"
EVENT_BASE_URL = "https://polymarket.com/event"


def side_to_text(side: str | None) -> str:
    s = (side or "").upper()
    if s == "BUY":
        return "BUY"
    if s == "SELL":
        return "SELL"
    return "TRADE"


def short_address(address: str | None) -> str:
    if not address:
        return "Unknown"
    addr = address.strip()
    if len(addr) <= 10:
        return addr
    return f"{addr[:6]}...{addr[-4:]}"


def format_usd(amount: float) -> str:
    return f"${amount:,.2f}"


def trade_time_utc(ts: int) -> str:
    try:
        dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return "N/A"
    return dt.strftime("%a, %d %b %Y %H:%M:%S UTC")


def format_end_date(end_date: str | None, now: datetime | None = None) -> str:
    """Render an ISO end date as e.g. "Thu Dec 31 2026 (12 days left)"."""
    if not end_date:
        return "N/A"
    try:
        end = datetime.fromisoformat(end_date.strip().replace("Z", "+00:00"))
    except ValueError:
        return "N/A"
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)
    days_left = math.ceil((end - now).total_seconds() / 86400)
    status = f"{days_left} days left" if days_left > 0 else "expired"
    return f"{end.strftime('%a %b %d %Y')} ({status})"


def window_text(window_seconds: int) -> str:
    if window_seconds % 60 == 0:
        minutes = window_seconds // 60
        return f"{minutes} min" if minutes == 1 else f"{minutes} mins"
    return f"{window_seconds}s"


def build_market_link(slug: str | None, base_url: str = MARKET_BASE_URL) -> str | None:
    if not slug:
        return None
    return f"{base_url.rstrip('/')}/{slug}"


def build_event_link(slug: str | None, base_url: str = EVENT_BASE_URL) -> str | None:
    if not slug:
        return None
    return f"{base_url.rstrip('/')}/{slug}"


def _link(url: str | None, label: str) -> str:
    if not url:
        return "No link available"
    return f'<a href="{escape(url, quote=True)}">{escape(label)}</a>'


def _trade_lines(trade: Trade) -> list[str]:
    return [
        f"📊 <b>Market:</b> {escape(trade.market_title)}",
        f"🆔 <code>{escape(trade.market_id)}</code>",
        f"🎯 <b>Outcome:</b> {escape(trade.outcome or 'N/A')}",
        "",
        f"👛 <b>Wallet:</b> <code>{escape(short_address(trade.wallet))}</code>",
        f"🔄 <b>Action:</b> {side_to_text(trade.side)}",
    ]


def format_whale_trade(alert: WhaleTradeAlert, market_base: str = MARKET_BASE_URL) -> str:
    trade = alert.trade
    prob = "N/A" if alert.implied_probability is None else f"{alert.implied_probability}%"
    lines = ["🐳 <b>Whale Trade Detected</b>", ""]
    lines += _trade_lines(trade)
    lines += [
        f"💰 <b>Size:</b> {format_usd(alert.usd_value)}",
        f"📈 <b>Implied probability:</b> {prob} ({escape(alert.strength)})",
        f"⏱ <b>Time:</b> {trade_time_utc(trade.timestamp)}",
        "",
        f"🔗 {_link(build_market_link(trade.market_slug, market_base), 'Place Trade')}",
    ]
    return "\n".join(lines)


def format_top_traders(alert: TopTradersAlert) -> str:
    lines = [f"🧠 <b>Top Traders (last {window_text(alert.window_seconds)})</b>", ""]
    for rank, trader in enumerate(alert.traders, start=1):
        lines.append(f"{rank}. <code>{escape(short_address(trader.wallet))}</code>")
        lines.append(
            f"   💰 {format_usd(trader.total_usd)} on <b>{escape(trader.trade.market_title)}</b>"
        )
        lines.append("")
    return "\n".join(lines).strip()


def format_high_volume_market(
    alert: HighVolumeMarketAlert, market_base: str = MARKET_BASE_URL
) -> str:
    lines = [
        "🔥 <b>High-Volume Market</b>",
        "",
        f"📊 <b>Market:</b> {escape(alert.title)}",
        f"💵 <b>Volume in window:</b> {format_usd(alert.total_usd)}",
    ]
    for outcome, leaders in alert.outcome_leaders:
        lines.append("")
        lines.append(f"🎯 <b>{escape(outcome)}</b>")
        for rank, (wallet, usd) in enumerate(leaders, start=1):
            lines.append(f"{rank}. <code>{escape(short_address(wallet))}</code> {format_usd(usd)}")
    if alert.top_holders:
        lines.append("")
        lines.append("👥 <b>Largest wallets:</b>")
        for wallet, usd in alert.top_holders:
            lines.append(f"• <code>{escape(short_address(wallet))}</code> {format_usd(usd)}")
    lines += ["", f"🔗 {_link(build_market_link(alert.slug, market_base), 'View Market')}"]
    return "\n".join(lines)


def format_new_wallet(alert: NewWalletAlert) -> str:
    trade = alert.trade
    lines = ["🆕 <b>New Wallet Spotted</b>", ""]
    lines += _trade_lines(trade)
    lines += [
        f"💰 <b>Size:</b> {format_usd(trade.usd_value)}",
        f"⏱ <b>Time:</b> {trade_time_utc(trade.timestamp)}",
    ]
    return "\n".join(lines)


def format_watched_trade(alert: WatchedTradeAlert, market_base: str = MARKET_BASE_URL) -> str:
    trade = alert.trade
    header = "Watched Wallet Trade" if alert.reason == "wallet" else "Watched Market Trade"
    lines = [f"👀 <b>{header}</b>", ""]
    lines += _trade_lines(trade)
    lines += [
        f"💰 <b>Size:</b> {format_usd(trade.usd_value)}",
        f"⏱ <b>Time:</b> {trade_time_utc(trade.timestamp)}",
        "",
        f"🔗 {_link(build_market_link(trade.market_slug, market_base), 'View Market')}",
    ]
    return "\n".join(lines)


def format_new_listing(
    alert: NewListingAlert,
    event_base: str = EVENT_BASE_URL,
    now: datetime | None = None,
) -> str:
    event = alert.event
    volume = "N/A" if event.volume is None else format_usd(event.volume)
    text = (
        "🚨 <b>New Polymarket Listing!</b>\n\n"
        f"<b>{escape(event.title)}</b>\n\n"
        f"📅 <b>Ends:</b> {escape(format_end_date(event.end_date, now))}\n"
        f"💰 <b>Volume:</b> {volume}\n"
        f"🔗 {_link(build_event_link(event.slug, event_base), 'View Market')}"
    )
    if alert.top_traders:
        lines = ["", "", "💼 <b>Top Traders:</b>"]
        for rank, trader in enumerate(alert.top_traders, start=1):
            lines.append(
                f"{rank}. <code>{escape(short_address(trader.wallet))}</code> "
                f"{format_usd(trader.usd_value)} on {escape(trader.outcome or 'N/A')}"
            )
        text += "\n".join(lines)
    return text


def format_heartbeat(alert: HeartbeatAlert) -> str:
    return (
        "🤖 <b>Bot Active</b>\n\n"
        "Scanning Polymarket...\n"
        "No whale trades or major activity detected in the last "
        f"{window_text(alert.window_seconds)}."
    )


def format_alert(
    alert: Alert,
    market_base: str = MARKET_BASE_URL,
    event_base: str = EVENT_BASE_URL,
) -> str:
    if isinstance(alert, WhaleTradeAlert):
        return format_whale_trade(alert, market_base)
    if isinstance(alert, TopTradersAlert):
        return format_top_traders(alert)
    if isinstance(alert, HighVolumeMarketAlert):
        return format_high_volume_market(alert, market_base)
    if isinstance(alert, NewWalletAlert):
        return format_new_wallet(alert)
    if isinstance(alert, WatchedTradeAlert):
        return format_watched_trade(alert, market_base)
    if isinstance(alert, NewListingAlert):
        return format_new_listing(alert, event_base)
    if isinstance(alert, HeartbeatAlert):
        return format_heartbeat(alert)
    raise TypeError(f"Unsupported alert type: {type(alert).__name__}")
