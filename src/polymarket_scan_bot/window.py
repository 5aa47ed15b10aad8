from __future__ import annotations

from collections.abc import Iterable

from .types import Trade


def is_in_window(timestamp: int, now: int, window_seconds: int) -> bool:
    # Future timestamps count as in-window; there is no lower bound.
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return False
    return now - timestamp <= window_seconds


def filter_recent(trades: Iterable[Trade], now: int, window_seconds: int) -> list[Trade]:
    return [t for t in trades if is_in_window(t.timestamp, now, window_seconds)]
