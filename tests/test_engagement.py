"""Tests for donor engagement scoring (recency + monetary + frequency)."""

import datetime as dt

import pytest

from donor_ledger.db.seed import seed_payments
from donor_ledger.models.ledger import Transaction
from donor_ledger.scorers.engagement import (
    calculate_engagement_score,
    calculate_frequency_score,
    calculate_monetary_score,
    calculate_recency_score,
    compute_donor_rollups,
    round_half_up,
)

TODAY = dt.date(2024, 7, 22)


def _days_ago(n: int) -> dt.date:
    return TODAY - dt.timedelta(days=n)


# ─── Component scores ─────────────────────────────────────────────────────────


class TestRecencyScore:
    """Stepped by whole calendar days since the last donation."""

    @pytest.mark.parametrize(
        "days, points",
        [(0, 40), (30, 40), (31, 30), (90, 30), (91, 20), (180, 20), (181, 10), (365, 10), (366, 0), (2000, 0)],
    )
    def test_tiers(self, days, points):
        """Each boundary belongs to the more recent tier."""
        assert calculate_recency_score(_days_ago(days), TODAY) == points


class TestMonetaryScore:
    def test_max_donor_gets_full_weight(self):
        assert calculate_monetary_score(1000, 1000) == pytest.approx(30.0)

    def test_log_scaled(self):
        """10 vs a 1000 cohort max → 30·ln(11)/ln(1001) ≈ 10.41."""
        assert calculate_monetary_score(10, 1000) == pytest.approx(10.412, abs=0.001)

    def test_max_floored_at_one(self):
        """A cohort max below 1 is treated as 1."""
        assert calculate_monetary_score(0.5, 0.5) == pytest.approx(30 * 0.5849625, abs=1e-4)


class TestFrequencyScore:
    def test_linear(self):
        assert calculate_frequency_score(1, 2) == pytest.approx(15.0)
        assert calculate_frequency_score(2, 2) == pytest.approx(30.0)

    def test_zero_max_does_not_divide_by_zero(self):
        assert calculate_frequency_score(0, 0) == 0


class TestRoundHalfUp:
    def test_halves_round_up(self):
        """Unlike round(), 2.5 → 3 and 0.5 → 1."""
        assert round_half_up(2.5) == 3
        assert round_half_up(0.5) == 1
        assert round_half_up(80.5) == 81

    def test_below_half_rounds_down(self):
        assert round_half_up(1.49) == 1


class TestEngagementScore:
    def test_clamped_to_100(self):
        score = calculate_engagement_score(5000, 10, TODAY, 5000, 10, TODAY)
        assert score == 100

    def test_lapsed_small_donor(self):
        """Over a year ago, tiny total, one gift → only the monetary/frequency shares."""
        score = calculate_engagement_score(1, 1, _days_ago(400), 1000, 10, TODAY)
        # 0 + 30·ln2/ln1001 (≈3.01) + 3
        assert score == 6


# ─── compute_donor_rollups ───────────────────────────────────────────────────


class TestComputeDonorRollups:
    def test_empty_input(self):
        assert compute_donor_rollups([], TODAY) == []

    def test_refund_only_donor_absent(self, make_transaction):
        """A gives 100 twice, B only has a refund → A (200, 2) and no B."""
        transactions = [
            make_transaction(donor="A", amount=100),
            make_transaction(donor="A", amount=100),
            make_transaction(donor="B", amount=50, mode="Refund"),
        ]
        rollups = compute_donor_rollups(transactions, TODAY)

        assert [r.name for r in rollups] == ["A"]
        assert rollups[0].total_donated == 200
        assert rollups[0].donation_count == 2
        assert rollups[0].engagement_score == 100

    def test_single_donor_today_scores_100(self, make_transaction):
        rollups = compute_donor_rollups([make_transaction(amount=42)], TODAY)
        assert rollups[0].engagement_score == 100

    def test_totals_exclude_refunds(self, make_transaction):
        """Sum of rollup totals equals the sum of non-refund amounts."""
        transactions = [
            make_transaction(donor="A", amount=100),
            make_transaction(donor="A", amount=30, mode="Refund"),
            make_transaction(donor="B", amount=75, mode="Wallet"),
            make_transaction(donor="C", amount=10, mode="Manual"),
        ]
        rollups = compute_donor_rollups(transactions, TODAY)
        assert sum(r.total_donated for r in rollups) == pytest.approx(185)

    def test_last_donation_date_is_max(self, make_transaction):
        transactions = [
            make_transaction(donor="A", date=_days_ago(10)),
            make_transaction(donor="A", date=_days_ago(2)),
            make_transaction(donor="A", date=_days_ago(40)),
        ]
        assert compute_donor_rollups(transactions, TODAY)[0].last_donation_date == _days_ago(2)

    def test_sorted_by_score_descending(self, make_transaction):
        """Bigger donor outranks a smaller one on the same day (100 vs 80)."""
        transactions = [
            make_transaction(donor="Small", amount=10),
            make_transaction(donor="Big", amount=1000),
        ]
        rollups = compute_donor_rollups(transactions, TODAY)

        assert [r.name for r in rollups] == ["Big", "Small"]
        assert [r.engagement_score for r in rollups] == [100, 80]

    def test_frequency_share(self, make_transaction):
        """Same total, twice the gifts → full frequency share (100 vs 85)."""
        transactions = [
            make_transaction(donor="Once", amount=100),
            make_transaction(donor="Twice", amount=50),
            make_transaction(donor="Twice", amount=50),
        ]
        scores = {r.name: r.engagement_score for r in compute_donor_rollups(transactions, TODAY)}
        assert scores == {"Twice": 100, "Once": 85}

    def test_ties_keep_first_seen_order(self, make_transaction):
        transactions = [
            make_transaction(donor="Zed", amount=100),
            make_transaction(donor="Amy", amount=100),
            make_transaction(donor="Max", amount=100),
        ]
        assert [r.name for r in compute_donor_rollups(transactions, TODAY)] == ["Zed", "Amy", "Max"]

    def test_names_are_case_sensitive(self, make_transaction):
        transactions = [make_transaction(donor="aisha"), make_transaction(donor="Aisha")]
        assert len(compute_donor_rollups(transactions, TODAY)) == 2

    def test_scores_within_bounds(self):
        """Every score on the seed ledger is an integer in [0, 100]."""
        transactions = [Transaction.model_validate(p) for p in seed_payments(TODAY)]
        for rollup in compute_donor_rollups(transactions, TODAY):
            assert isinstance(rollup.engagement_score, int)
            assert 0 <= rollup.engagement_score <= 100

    def test_seed_ledger_refunds(self):
        """Sandeep's 500 refund is ignored; Elias (refund only) is absent."""
        transactions = [Transaction.model_validate(p) for p in seed_payments(TODAY)]
        rollups = {r.name: r for r in compute_donor_rollups(transactions, TODAY)}

        assert "Elias K. Joseph" not in rollups
        assert rollups["Sandeep Kumar"].total_donated == 3
        assert rollups["Sandeep Kumar"].donation_count == 3

    def test_reference_date_is_explicit(self, make_transaction):
        """The same ledger scored a year later loses the recency points."""
        transactions = [make_transaction(amount=100)]
        later = TODAY + dt.timedelta(days=400)
        assert compute_donor_rollups(transactions, later)[0].engagement_score == 60
