"""
Time-bucketed donation totals for trend charts.

Granularities:
- daily: fixed 30-day window ending today, every day present (zero-filled)
- weekly: last 12 weeks, bucketed by week start (Sunday), sparse
- monthly: last 12 months, bucketed by calendar month, sparse

Window and bucket boundaries use calendar dates, never fixed multiples of
24h from the current time. Refunds are excluded.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from donor_ledger.constants import (
    DAILY_WINDOW_DAYS,
    MONTHLY_WINDOW_YEARS,
    WEEK_START_WEEKDAY,
    WEEKLY_WINDOW_DAYS,
)
from donor_ledger.models.ledger import Transaction


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class TrendBucket:
    """Total donated within one day, week or month starting at ``key``."""

    key: date
    label: str
    total: float


def day_label(day: date) -> str:
    """'Jul 4' style label."""
    return f"{day:%b} {day.day}"


def month_label(day: date) -> str:
    """'Jul 2024' style label."""
    return f"{day:%b %Y}"


def start_of_week(day: date, week_start: int = WEEK_START_WEEKDAY) -> date:
    """Most recent ``week_start`` weekday on or before ``day``."""
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def years_before(day: date, years: int) -> date:
    """Same month/day ``years`` earlier; Feb 29 becomes Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _credits(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [t for t in transactions if not t.is_refund]


def daily_trend(transactions: Iterable[Transaction], today: date) -> list[TrendBucket]:
    """One bucket per day for the 30 days ending today (inclusive)."""
    start = today - timedelta(days=DAILY_WINDOW_DAYS - 1)
    totals = {start + timedelta(days=i): 0.0 for i in range(DAILY_WINDOW_DAYS)}
    for tx in _credits(transactions):
        if tx.date in totals:
            totals[tx.date] += tx.amount
    return [TrendBucket(key=day, label=day_label(day), total=total) for day, total in totals.items()]


def weekly_trend(transactions: Iterable[Transaction], today: date) -> list[TrendBucket]:
    """Week buckets for transactions within the last 12 weeks (sparse)."""
    cutoff = today - timedelta(days=WEEKLY_WINDOW_DAYS)
    totals: dict[date, float] = {}
    for tx in _credits(transactions):
        if cutoff < tx.date <= today:
            week = start_of_week(tx.date)
            totals[week] = totals.get(week, 0.0) + tx.amount
    return [TrendBucket(key=week, label=day_label(week), total=totals[week]) for week in sorted(totals)]


def monthly_trend(transactions: Iterable[Transaction], today: date) -> list[TrendBucket]:
    """Month buckets for transactions after the same day one year ago (sparse)."""
    cutoff = years_before(today, MONTHLY_WINDOW_YEARS)
    totals: dict[date, float] = {}
    for tx in _credits(transactions):
        if cutoff < tx.date <= today:
            month = start_of_month(tx.date)
            totals[month] = totals.get(month, 0.0) + tx.amount
    return [TrendBucket(key=month, label=month_label(month), total=totals[month]) for month in sorted(totals)]


def compute_trend(
    transactions: Iterable[Transaction],
    granularity: Granularity | str,
    today: date,
) -> list[TrendBucket]:
    """
    Donation totals bucketed by day, week or month, oldest bucket first.

    Args:
        transactions: Ledger credits (refunds are skipped)
        granularity: "daily", "weekly" or "monthly"
        today: Last day of every window

    Raises:
        ValueError: Unknown granularity
    """
    granularity = Granularity(granularity)
    if granularity is Granularity.DAILY:
        return daily_trend(transactions, today)
    if granularity is Granularity.WEEKLY:
        return weekly_trend(transactions, today)
    return monthly_trend(transactions, today)
