"""
Dashboard widgets derived from the ledger: top donors of the day and the
rotating live donation feed.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from donor_ledger.constants import LIVE_FEED_WINDOW, TOP_DONORS_LIMIT
from donor_ledger.models.ledger import Transaction


@dataclass(frozen=True)
class TopDonor:
    name: str
    amount: float
    date: date


@dataclass(frozen=True)
class TopDonorsResult:
    """Top donors plus the date actually used (None when the ledger is empty)."""

    date_used: Optional[date]
    donors: list[TopDonor] = field(default_factory=list)


def select_top_donors_for_date(
    transactions: Iterable[Transaction],
    today: date,
    limit: int = TOP_DONORS_LIMIT,
) -> TopDonorsResult:
    """
    Highest per-donor totals for today, or for the most recent day with gifts.

    Falls back to the latest transaction date when nothing was given today,
    so the widget never renders empty while the ledger has data.
    """
    credits = [t for t in transactions if not t.is_refund]
    if not credits:
        return TopDonorsResult(date_used=None)

    target = today if any(t.date == today for t in credits) else max(t.date for t in credits)

    sums: dict[str, float] = {}
    for tx in credits:
        if tx.date == target:
            sums[tx.donor_name] = sums.get(tx.donor_name, 0.0) + tx.amount

    ranked = sorted(sums.items(), key=lambda item: item[1], reverse=True)[:limit]
    return TopDonorsResult(
        date_used=target,
        donors=[TopDonor(name=name, amount=amount, date=target) for name, amount in ranked],
    )


def feed_sequence(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Non-refund transactions, newest first (stable for equal dates)."""
    credits = [t for t in transactions if not t.is_refund]
    return sorted(credits, key=lambda t: t.date, reverse=True)


class LiveFeed:
    """
    Fixed-size window over recent donations that rotates one entry per tick.

    Each tick pushes the next donation from the source sequence onto the
    front of the window. A donation already visible moves to the front
    instead of appearing twice.
    """

    def __init__(self, transactions: Iterable[Transaction], window_size: int = LIVE_FEED_WINDOW):
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self.window_size = window_size
        self._sequence = feed_sequence(transactions)
        self._window = self._sequence[:window_size]
        self._cursor = window_size % len(self._sequence) if self._sequence else 0

    @property
    def window(self) -> list[Transaction]:
        return list(self._window)

    def tick(self) -> list[Transaction]:
        """Advance one step and return the new window."""
        if not self._sequence:
            return []
        incoming = self._sequence[self._cursor]
        seen: set[str] = set()
        window = []
        for tx in [incoming] + self._window:
            if tx.id in seen:
                continue
            seen.add(tx.id)
            window.append(tx)
        self._window = window[: self.window_size]
        self._cursor = (self._cursor + 1) % len(self._sequence)
        return self.window


def select_live_feed(
    transactions: Iterable[Transaction],
    window_size: int = LIVE_FEED_WINDOW,
    rotation_index: int = 0,
) -> list[Transaction]:
    """Window shown after ``rotation_index`` ticks of a fresh LiveFeed."""
    if rotation_index < 0:
        raise ValueError(f"rotation_index must be >= 0, got {rotation_index}")
    feed = LiveFeed(transactions, window_size)
    for _ in range(rotation_index):
        feed.tick()
    return feed.window
