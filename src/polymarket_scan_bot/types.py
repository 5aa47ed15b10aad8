from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union


@dataclass(frozen=True)
class Trade:
    trade_id: str
    market_id: str
    wallet: str | None
    side: str | None
    size: float | None
    price: float | None
    usd_value: float
    outcome: str | None
    timestamp: int
    market_title: str
    market_slug: str | None
    tx_hash: str | None = None


@dataclass(frozen=True)
class ListedEvent:
    event_id: str
    title: str
    slug: str | None
    volume: float | None
    end_date: str | None
    condition_id: str | None = None


@dataclass(frozen=True)
class ListingTrader:
    wallet: str
    usd_value: float
    outcome: str | None


@dataclass
class WalletAggregate:
    wallet: str
    trade: Trade
    total_usd: float = 0.0
    trade_count: int = 0


@dataclass
class MarketAggregate:
    market_id: str
    title: str
    slug: str | None
    total_usd: float = 0.0
    # outcome label -> wallet -> usd
    outcomes: dict[str, dict[str, float]] = field(default_factory=dict)


@dataclass(frozen=True)
class TopTrader:
    wallet: str
    total_usd: float
    trade: Trade


@dataclass(frozen=True)
class WhaleTradeAlert:
    kind: ClassVar[str] = "whale_trade"

    trade: Trade
    usd_value: float
    implied_probability: int | None
    strength: str


@dataclass(frozen=True)
class TopTradersAlert:
    kind: ClassVar[str] = "top_traders"

    traders: tuple[TopTrader, ...]
    window_seconds: int


@dataclass(frozen=True)
class HighVolumeMarketAlert:
    kind: ClassVar[str] = "high_volume_market"

    market_id: str
    title: str
    slug: str | None
    total_usd: float
    # outcome label -> ranked (wallet, usd) pairs
    outcome_leaders: tuple[tuple[str, tuple[tuple[str, float], ...]], ...]
    top_holders: tuple[tuple[str, float], ...]


@dataclass(frozen=True)
class NewWalletAlert:
    kind: ClassVar[str] = "new_wallet"

    trade: Trade


@dataclass(frozen=True)
class WatchedTradeAlert:
    kind: ClassVar[str] = "watched_trade"

    trade: Trade
    reason: str


@dataclass(frozen=True)
class NewListingAlert:
    kind: ClassVar[str] = "new_listing"

    event: ListedEvent
    top_traders: tuple[ListingTrader, ...] = ()


@dataclass(frozen=True)
class HeartbeatAlert:
    kind: ClassVar[str] = "heartbeat"

    window_seconds: int


Alert = Union[
    WhaleTradeAlert,
    TopTradersAlert,
    HighVolumeMarketAlert,
    NewWalletAlert,
    WatchedTradeAlert,
    NewListingAlert,
    HeartbeatAlert,
]


@dataclass(frozen=True)
class DispatchReport:
    sent: int
    failed: int


@dataclass(frozen=True)
class ScanResult:
    alerts_sent: int
    alerts_failed: int = 0
    trades_fetched: int = 0
    trades_in_window: int = 0
    alert_kinds: tuple[str, ...] = ()
