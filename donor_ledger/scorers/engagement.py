"""
Donor engagement scoring - recency, frequency and monetary (RFM) rollups.

Scores are relative to the donor cohort: the biggest giver gets the full
monetary share and the most frequent giver gets the full frequency share.

Score components (total capped at 100):
- recency (0-40): stepped by days since the donor's last gift
- monetary (0-30): log-scaled total, so one very large donor does not push
  everyone else towards zero
- frequency (0-30): linear in donation count

Refund transactions never count. Everything here is pure: pass ``today``
explicitly so results are reproducible.
"""

import math
from dataclasses import dataclass
from datetime import date
from typing import Iterable

from donor_ledger.constants import (
    FREQUENCY_WEIGHT,
    MAX_ENGAGEMENT_SCORE,
    MONETARY_WEIGHT,
    RECENCY_TIERS,
)
from donor_ledger.models.ledger import Transaction


@dataclass(frozen=True)
class DonorRollup:
    """Per-donor totals and engagement score (derived, never stored)."""

    name: str
    total_donated: float
    donation_count: int
    last_donation_date: date
    engagement_score: int


@dataclass
class _Totals:
    total: float = 0.0
    count: int = 0
    last: date = date.min


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (Python's round() is banker's)."""
    return math.floor(value + 0.5)


def calculate_recency_score(last_donation_date: date, today: date) -> int:
    """
    Recency points from whole calendar days since the last donation.

    Rubric:
    - <=30 days = 40
    - <=90 days = 30
    - <=180 days = 20
    - <=365 days = 10
    - older = 0
    """
    days = (today - last_donation_date).days
    for max_days, points in RECENCY_TIERS:
        if days <= max_days:
            return points
    return 0


def calculate_monetary_score(total_donated: float, max_total_donated: float) -> float:
    """Log-scaled share of the cohort maximum, 0-30."""
    ceiling = max(max_total_donated, 1.0)
    return MONETARY_WEIGHT * math.log(total_donated + 1) / math.log(ceiling + 1)


def calculate_frequency_score(donation_count: int, max_donation_count: int) -> float:
    """Linear share of the cohort's highest donation count, 0-30."""
    return FREQUENCY_WEIGHT * donation_count / max(max_donation_count, 1)


def calculate_engagement_score(
    total_donated: float,
    donation_count: int,
    last_donation_date: date,
    max_total_donated: float,
    max_donation_count: int,
    today: date,
) -> int:
    """Combine the three components into an integer score in [0, 100]."""
    raw = (
        calculate_recency_score(last_donation_date, today)
        + calculate_monetary_score(total_donated, max_total_donated)
        + calculate_frequency_score(donation_count, max_donation_count)
    )
    return max(0, min(MAX_ENGAGEMENT_SCORE, round_half_up(raw)))


def group_by_donor(transactions: Iterable[Transaction]) -> dict[str, _Totals]:
    """Sum non-refund transactions per donor name, in first-seen order."""
    donors: dict[str, _Totals] = {}
    for tx in transactions:
        if tx.is_refund:
            continue
        totals = donors.setdefault(tx.donor_name, _Totals())
        totals.total += tx.amount
        totals.count += 1
        if tx.date > totals.last:
            totals.last = tx.date
    return donors


def compute_donor_rollups(transactions: Iterable[Transaction], today: date) -> list[DonorRollup]:
    """
    Build donor rollups sorted by engagement score, highest first.

    Donor names are matched exactly (case-sensitive). Donors whose only
    transactions are refunds do not appear. Equal scores keep the order in
    which donors first appear in ``transactions``.

    Args:
        transactions: Ledger credits, refunds included (they are skipped)
        today: Reference date for recency

    Returns:
        List of DonorRollup, empty when there are no non-refund transactions
    """
    donors = group_by_donor(transactions)
    if not donors:
        return []

    max_total = max(max(t.total for t in donors.values()), 1.0)
    max_count = max(max(t.count for t in donors.values()), 1)

    rollups = [
        DonorRollup(
            name=name,
            total_donated=totals.total,
            donation_count=totals.count,
            last_donation_date=totals.last,
            engagement_score=calculate_engagement_score(
                totals.total, totals.count, totals.last, max_total, max_count, today
            ),
        )
        for name, totals in donors.items()
    ]
    # sorted() is stable, so ties stay in first-seen order
    return sorted(rollups, key=lambda r: r.engagement_score, reverse=True)
