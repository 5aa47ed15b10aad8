from __future__ import annotations

from collections.abc import Callable, Iterable

from .types import MarketAggregate, Trade, WalletAggregate

CRYPTO_KEYWORDS = (
    "bitcoin",
    "ethereum",
    "solana",
    "crypto",
    "token",
    "airdrop",
    "exchange",
    "launch",
    "price",
    "sale",
    "dip",
    "cap",
    "buyback",
    "fdv",
    "market",
)

UNKNOWN_OUTCOME = "UNKNOWN"


def normalize_outcome(label: str | None) -> str:
    if label is None or not label.strip():
        return UNKNOWN_OUTCOME
    lowered = label.strip().lower()
    if lowered in ("yes", "up"):
        return "YES"
    if lowered in ("no", "down"):
        return "NO"
    return label


def is_crypto_market(title: str | None, slug: str | None) -> bool:
    """Heuristic keyword match; false positives are acceptable."""
    haystack = f"{title or ''} {slug or ''}".lower()
    return any(word in haystack for word in CRYPTO_KEYWORDS)


def is_crypto_trade(trade: Trade) -> bool:
    return is_crypto_market(trade.market_title, trade.market_slug)


def aggregate_by_wallet(trades: Iterable[Trade]) -> dict[str, WalletAggregate]:
    wallets: dict[str, WalletAggregate] = {}
    for trade in trades:
        if not trade.wallet:
            continue
        agg = wallets.get(trade.wallet)
        if agg is None:
            agg = WalletAggregate(wallet=trade.wallet, trade=trade)
            wallets[trade.wallet] = agg
        agg.total_usd += trade.usd_value
        agg.trade_count += 1
    return wallets


def aggregate_by_market(
    trades: Iterable[Trade],
    market_filter: Callable[[Trade], bool] | None = None,
) -> dict[str, MarketAggregate]:
    markets: dict[str, MarketAggregate] = {}
    for trade in trades:
        if market_filter is not None and not market_filter(trade):
            continue
        agg = markets.get(trade.market_id)
        if agg is None:
            agg = MarketAggregate(
                market_id=trade.market_id,
                title=trade.market_title,
                slug=trade.market_slug,
            )
            markets[trade.market_id] = agg
        agg.total_usd += trade.usd_value

        if not trade.wallet:
            continue
        bucket = agg.outcomes.setdefault(normalize_outcome(trade.outcome), {})
        bucket[trade.wallet] = bucket.get(trade.wallet, 0.0) + trade.usd_value
    return markets


def rank_wallets(usd_by_wallet: dict[str, float], limit: int) -> list[tuple[str, float]]:
    # sorted() is stable, so ties keep first-seen order.
    ranked = sorted(usd_by_wallet.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def combined_holders(market: MarketAggregate) -> dict[str, float]:
    totals: dict[str, float] = {}
    for per_wallet in market.outcomes.values():
        for wallet, usd in per_wallet.items():
            totals[wallet] = totals.get(wallet, 0.0) + usd
    return totals
