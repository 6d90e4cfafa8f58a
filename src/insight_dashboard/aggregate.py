from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from datetime import datetime, tzinfo
from typing import TypeVar

from .types import TimeBucket, TransferEvent, WalletSummary

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


def group_by(
    items: Iterable[T],
    key: Callable[[T], K],
    reducer: Callable[[V, T], V],
    initial: Callable[[], V],
) -> dict[K, V]:
    """Fold ``items`` into one accumulator per key, keeping first-seen key order."""
    groups: dict[K, V] = {}
    for item in items:
        k = key(item)
        groups[k] = reducer(groups[k] if k in groups else initial(), item)
    return groups


def minute_label(timestamp: int, tz: tzinfo | None = None) -> str:
    # tz=None means the machine's local wall clock.
    dt = datetime.fromtimestamp(timestamp, tz=tz)
    return dt.strftime("%H:%M")


def sort_buckets(buckets: Iterable[TimeBucket]) -> list[TimeBucket]:
    # Labels carry no date, so buckets from either side of midnight interleave.
    return sorted(buckets, key=lambda b: b.minute_of_day)


def _bucketize(
    events: Iterable[TransferEvent],
    tz: tzinfo | None,
    reducer: Callable[[float, TransferEvent], float],
) -> list[TimeBucket]:
    grouped = group_by(
        events,
        key=lambda e: minute_label(e.block_timestamp, tz),
        reducer=reducer,
        initial=lambda: 0,
    )
    return sort_buckets(TimeBucket(label, value) for label, value in grouped.items())


def volume_by_minute(
    events: Iterable[TransferEvent], tz: tzinfo | None = None
) -> list[TimeBucket]:
    return _bucketize(events, tz, lambda total, e: total + round(e.amount, 2))


def count_by_minute(
    events: Iterable[TransferEvent], tz: tzinfo | None = None
) -> list[TimeBucket]:
    return _bucketize(events, tz, lambda count, _e: count + 1)


def _add_leg(summary: WalletSummary | None, leg: tuple[str, float]) -> WalletSummary:
    address, amount = leg
    if summary is None:
        summary = WalletSummary(address)
    summary.add(amount)
    return summary


def aggregate_wallets(events: Iterable[TransferEvent], top_n: int = 10) -> list[WalletSummary]:
    """Sum volume per address across both sides of each transfer.

    Ties keep first-seen order since ``sorted`` is stable.
    """
    # Each transfer contributes once as sender and once as receiver.
    legs = (
        (address, event.amount)
        for event in events
        for address in (event.from_address, event.to_address)
    )
    summaries = group_by(legs, key=lambda leg: leg[0], reducer=_add_leg, initial=lambda: None)
    ranked = sorted(summaries.values(), key=lambda s: s.total_amount, reverse=True)
    return ranked[:top_n]


def sort_by_amount(events: Iterable[TransferEvent]) -> list[TransferEvent]:
    return sorted(events, key=lambda e: e.amount_raw, reverse=True)
