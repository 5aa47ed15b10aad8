from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import Iterable


class BoundedIdSet:
    """Insertion-ordered id set that keeps only the most recent entries.

    Once the set grows past ``max_size`` it is trimmed down to the ``keep``
    most recently added ids.
    """

    def __init__(self, max_size: int = 500, keep: int = 250) -> None:
        if keep > max_size:
            raise ValueError("keep must not exceed max_size")
        self.max_size = max_size
        self.keep = keep
        self._ids: OrderedDict[str, None] = OrderedDict()

    def __contains__(self, key: object) -> bool:
        return key in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(self._ids)

    def add(self, key: str) -> bool:
        """Record ``key``; returns False if it was already present."""
        if key in self._ids:
            self._ids.move_to_end(key)
            return False
        self._ids[key] = None
        self.trim()
        return True

    def trim(self) -> None:
        if len(self._ids) <= self.max_size:
            return
        while len(self._ids) > self.keep:
            self._ids.popitem(last=False)


class WatchState:
    """Process-lifetime sets shared between scans. Never persisted."""

    def __init__(
        self,
        watched_wallets: Iterable[str] = (),
        watched_markets: Iterable[str] = (),
        seen_events_max: int = 500,
        seen_events_keep: int = 250,
        seen_trades_max: int = 5000,
        seen_trades_keep: int = 2500,
    ) -> None:
        self.known_wallets: set[str] = set()
        self.watched_wallets: set[str] = {w.lower() for w in watched_wallets}
        self.watched_markets: set[str] = {m.lower() for m in watched_markets}
        self.seen_trades = BoundedIdSet(seen_trades_max, seen_trades_keep)
        self.seen_events = BoundedIdSet(seen_events_max, seen_events_keep)
        self.lock = asyncio.Lock()

    def is_watched_wallet(self, wallet: str | None) -> bool:
        return bool(wallet) and wallet.lower() in self.watched_wallets

    def is_watched_market(self, *identifiers: str | None) -> bool:
        return any(i and i.lower() in self.watched_markets for i in identifiers)

    def watch_wallet(self, wallet: str) -> None:
        self.watched_wallets.add(wallet.lower())

    def watch_market(self, market: str) -> None:
        self.watched_markets.add(market.lower())
