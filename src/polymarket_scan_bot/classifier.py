from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .aggregation import (
    aggregate_by_market,
    aggregate_by_wallet,
    combined_holders,
    is_crypto_trade,
    rank_wallets,
)
from .config import Settings
from .types import (
    Alert,
    HeartbeatAlert,
    HighVolumeMarketAlert,
    ListedEvent,
    NewListingAlert,
    NewWalletAlert,
    TopTrader,
    TopTradersAlert,
    Trade,
    WatchedTradeAlert,
    WhaleTradeAlert,
)
from .watch_state import WatchState


@dataclass(frozen=True)
class Thresholds:
    whale_usd: float = 500.0
    high_volume_market_usd: float = 4_000_000.0
    top_traders_count: int = 3
    top_holders_limit: int = 10
    top_wallets_per_outcome: int = 5
    new_wallet_min_usd: float = 1000.0
    crypto_markets_only: bool = True
    window_seconds: int = 300

    @classmethod
    def from_settings(cls, settings: Settings) -> Thresholds:
        return cls(
            whale_usd=settings.whale_threshold_usd,
            high_volume_market_usd=settings.high_volume_market_threshold_usd,
            top_traders_count=settings.top_traders_count,
            top_holders_limit=settings.top_holders_limit,
            top_wallets_per_outcome=settings.top_wallets_per_outcome,
            new_wallet_min_usd=settings.new_wallet_min_usd,
            crypto_markets_only=settings.crypto_markets_only,
            window_seconds=settings.poll_window_seconds,
        )


def implied_probability(price: float | None) -> int | None:
    if price is None:
        return None
    return round(price * 100)


def strength_label(price: float | None) -> str:
    if price is None:
        return "Unknown"
    if price >= 0.80:
        return "Heavy Favorite"
    if price >= 0.60:
        return "Favorite"
    if price <= 0.20:
        return "Heavy Underdog"
    if price <= 0.40:
        return "Underdog"
    return "Neutral"


def whale_trade_alerts(trades: Sequence[Trade], thresholds: Thresholds) -> list[Alert]:
    return [
        WhaleTradeAlert(
            trade=trade,
            usd_value=trade.usd_value,
            implied_probability=implied_probability(trade.price),
            strength=strength_label(trade.price),
        )
        for trade in trades
        if trade.usd_value >= thresholds.whale_usd
    ]


def top_traders_alert(trades: Sequence[Trade], thresholds: Thresholds) -> TopTradersAlert | None:
    wallets = aggregate_by_wallet(trades)
    eligible = [agg for agg in wallets.values() if agg.total_usd >= thresholds.whale_usd]
    eligible.sort(key=lambda agg: agg.total_usd, reverse=True)
    ranked = eligible[: thresholds.top_traders_count]
    if not ranked:
        return None
    return TopTradersAlert(
        traders=tuple(TopTrader(a.wallet, a.total_usd, a.trade) for a in ranked),
        window_seconds=thresholds.window_seconds,
    )


def high_volume_market_alerts(trades: Sequence[Trade], thresholds: Thresholds) -> list[Alert]:
    market_filter = is_crypto_trade if thresholds.crypto_markets_only else None
    alerts: list[Alert] = []
    for market in aggregate_by_market(trades, market_filter).values():
        if market.total_usd < thresholds.high_volume_market_usd:
            continue
        leaders = tuple(
            (outcome, tuple(rank_wallets(per_wallet, thresholds.top_wallets_per_outcome)))
            for outcome, per_wallet in market.outcomes.items()
        )
        alerts.append(
            HighVolumeMarketAlert(
                market_id=market.market_id,
                title=market.title,
                slug=market.slug,
                total_usd=market.total_usd,
                outcome_leaders=leaders,
                top_holders=tuple(
                    rank_wallets(combined_holders(market), thresholds.top_holders_limit)
                ),
            )
        )
    return alerts


def watch_alerts(
    trades: Sequence[Trade], thresholds: Thresholds, state: WatchState
) -> list[Alert]:
    """New-wallet and watched-entity rules. Mutates ``state``."""
    alerts: list[Alert] = []
    for trade in trades:
        if trade.trade_id in state.seen_trades:
            continue
        state.seen_trades.add(trade.trade_id)

        wallet = trade.wallet
        if (
            wallet
            and wallet not in state.known_wallets
            and trade.usd_value >= thresholds.new_wallet_min_usd
        ):
            state.known_wallets.add(wallet)
            alerts.append(NewWalletAlert(trade=trade))

        if state.is_watched_wallet(wallet):
            alerts.append(WatchedTradeAlert(trade=trade, reason="wallet"))
        elif state.is_watched_market(trade.market_id, trade.market_slug):
            alerts.append(WatchedTradeAlert(trade=trade, reason="market"))
    return alerts


def new_listing_alerts(events: Sequence[ListedEvent], state: WatchState) -> list[Alert]:
    alerts: list[Alert] = []
    for event in events:
        if state.seen_events.add(event.event_id):
            alerts.append(NewListingAlert(event=event))
    return alerts


def classify(
    trades: Sequence[Trade],
    thresholds: Thresholds,
    watch_state: WatchState | None = None,
    events: Sequence[ListedEvent] | None = None,
    apply_watch_rules: bool = True,
) -> list[Alert]:
    """Turn one scan's windowed trades into the ordered list of alerts to send.

    Without ``watch_state`` this is a pure function of its inputs. The
    heartbeat is decided here and nowhere else: it is emitted only when no
    other rule fired.

    Raises ``ValueError`` when ``events`` are given without a ``watch_state``:
    new listings are only announced once, so they need somewhere to be
    remembered.
    """
    alerts: list[Alert] = []
    alerts.extend(whale_trade_alerts(trades, thresholds))

    top = top_traders_alert(trades, thresholds)
    if top is not None:
        alerts.append(top)

    alerts.extend(high_volume_market_alerts(trades, thresholds))

    if events and watch_state is None:
        raise ValueError("new listing alerts need a WatchState to remember seen events")
    if watch_state is not None:
        if apply_watch_rules:
            alerts.extend(watch_alerts(trades, thresholds, watch_state))
        if events:
            alerts.extend(new_listing_alerts(events, watch_state))

    if not alerts:
        alerts.append(HeartbeatAlert(window_seconds=thresholds.window_seconds))
    return alerts
