"""Deterministic aggregation over ledger transactions."""

from donor_ledger.scorers.engagement import (
    DonorRollup,
    calculate_engagement_score,
    calculate_frequency_score,
    calculate_monetary_score,
    calculate_recency_score,
    compute_donor_rollups,
    round_half_up,
)
from donor_ledger.scorers.feed import (
    LiveFeed,
    TopDonor,
    TopDonorsResult,
    select_live_feed,
    select_top_donors_for_date,
)
from donor_ledger.scorers.trends import Granularity, TrendBucket, compute_trend

__all__ = [
    # Engagement scoring
    "DonorRollup",
    "compute_donor_rollups",
    "calculate_engagement_score",
    "calculate_recency_score",
    "calculate_monetary_score",
    "calculate_frequency_score",
    "round_half_up",
    # Trends
    "Granularity",
    "TrendBucket",
    "compute_trend",
    # Dashboard widgets
    "TopDonor",
    "TopDonorsResult",
    "select_top_donors_for_date",
    "LiveFeed",
    "select_live_feed",
]
