"""Tests for concurrent fraud assessment (fake LLM client, no network)."""

import datetime as dt
import json
import time

import pytest

from donor_ledger.config import DashboardConfig
from donor_ledger.constants import FRAUD_UNAVAILABLE_REASON
from donor_ledger.llm.schemas import FraudVerdict
from donor_ledger.scorers.engagement import compute_donor_rollups
from donor_ledger.services.fraud_detection_service import FraudDetectionService, build_fraud_input

TODAY = dt.date(2024, 7, 22)

SUSPICIOUS = json.dumps({"isSuspicious": True, "reason": "Repeated micro-donations"})
CLEAN = json.dumps({"isSuspicious": False, "reason": "Normal giving pattern"})


@pytest.fixture
def transactions(make_transaction):
    return [
        make_transaction("Aisha Rahman", 500, TODAY),
        make_transaction("Aisha Rahman", 200, TODAY, mode="Refund"),
        make_transaction("Ravi Kumar", 1, TODAY),
        make_transaction("Ravi Kumar", 1, TODAY),
        make_transaction("Ravi Kumar", 1, TODAY),
        make_transaction("Slow Donor", 50, TODAY),
    ]


def test_build_fraud_input_keeps_refunds(transactions):
    payload = build_fraud_input("Aisha Rahman", transactions[:2])
    assert [t.mode for t in payload.transactions] == ["Online", "Refund"]


def test_unavailable_verdict():
    verdict = FraudVerdict.unavailable()
    assert verdict.is_suspicious is False
    assert verdict.reason == FRAUD_UNAVAILABLE_REASON


class TestAssessDonor:
    def test_returns_verdict(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = SUSPICIOUS
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        verdict = service.assess_donor("Ravi Kumar", transactions[2:5])

        assert verdict.is_suspicious is True
        assert verdict.reason == "Repeated micro-donations"
        assert fake_llm.calls[0]["timeout"] == 2.0

    def test_refunds_in_prompt(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = CLEAN
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        service.assess_donor("Aisha Rahman", transactions[:2])

        prompt = fake_llm.calls[0]["prompt"]
        assert "Aisha Rahman" in prompt
        assert "Mode: Refund" in prompt
        assert "Amount: ₹200" in prompt

    def test_provider_failure_is_unavailable(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = RuntimeError("quota exceeded")
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        assert service.assess_donor("Ravi Kumar", transactions[2:5]) == FraudVerdict.unavailable()

    def test_malformed_reply_is_unavailable(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = "I think this donor is fine."
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        assert service.assess_donor("Ravi Kumar", transactions[2:5]).reason == FRAUD_UNAVAILABLE_REASON

    @pytest.mark.parametrize("reply", ['{"isSuspicious": true}', '{"reason": "Looks fine"}', "{}"])
    def test_incomplete_reply_is_unavailable(self, fake_llm, dashboard_config, transactions, reply):
        fake_llm.reply = reply
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        assert service.assess_donor("Ravi Kumar", transactions[2:5]) == FraudVerdict.unavailable()

    def test_schema_requires_both_fields(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = CLEAN
        FraudDetectionService(llm_client=fake_llm, config=dashboard_config).assess_donor("Ravi Kumar", transactions[2:5])

        schema = fake_llm.calls[0]["json_schema"]
        assert set(schema["required"]) == {"isSuspicious", "reason"}


class TestAssessDonors:
    def test_every_donor_gets_a_verdict(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = lambda prompt: SUSPICIOUS if "Ravi Kumar" in prompt else CLEAN
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)
        rollups = compute_donor_rollups(transactions, TODAY)

        verdicts = service.assess_donors(rollups, transactions)

        assert list(verdicts) == [r.name for r in rollups]
        assert verdicts["Ravi Kumar"].is_suspicious is True
        assert verdicts["Aisha Rahman"].is_suspicious is False
        assert len(fake_llm.calls) == 3

    def test_one_failure_isolated(self, fake_llm, dashboard_config, transactions):
        def reply(prompt):
            if "Aisha Rahman" in prompt:
                raise RuntimeError("boom")
            return CLEAN

        fake_llm.reply = reply
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)

        verdicts = service.assess_donors(compute_donor_rollups(transactions, TODAY), transactions)

        assert verdicts["Aisha Rahman"] == FraudVerdict.unavailable()
        assert verdicts["Ravi Kumar"].reason == "Normal giving pattern"

    def test_slow_donor_times_out(self, fake_llm, transactions):
        def reply(prompt):
            if "Slow Donor" in prompt:
                time.sleep(1.0)
            return SUSPICIOUS

        fake_llm.reply = reply
        config = DashboardConfig(fraud_timeout_seconds=0.3, fraud_max_workers=4)
        service = FraudDetectionService(llm_client=fake_llm, config=config)

        start = time.monotonic()
        verdicts = service.assess_donors(compute_donor_rollups(transactions, TODAY), transactions)
        elapsed = time.monotonic() - start

        assert elapsed < 0.9
        assert verdicts["Slow Donor"] == FraudVerdict.unavailable()
        assert verdicts["Ravi Kumar"].is_suspicious is True
        assert verdicts["Aisha Rahman"].is_suspicious is True

    def test_slow_donor_does_not_starve_queued_donors(self, fake_llm, make_transaction):
        """More donors than workers: the donor queued behind a slow one is still assessed."""

        def reply(prompt):
            if "Slow Donor" in prompt:
                time.sleep(0.8)
            return SUSPICIOUS

        fake_llm.reply = reply
        transactions = [make_transaction("Slow Donor", 5000, TODAY), make_transaction("Fast Donor", 10, TODAY)]
        rollups = compute_donor_rollups(transactions, TODAY)
        assert [r.name for r in rollups] == ["Slow Donor", "Fast Donor"]
        config = DashboardConfig(fraud_timeout_seconds=0.5, fraud_max_workers=1)
        service = FraudDetectionService(llm_client=fake_llm, config=config)

        verdicts = service.assess_donors(rollups, transactions)

        assert verdicts["Slow Donor"] == FraudVerdict.unavailable()
        assert verdicts["Fast Donor"].is_suspicious is True
        assert verdicts["Fast Donor"].reason == "Repeated micro-donations"

    def test_donor_without_transactions_skipped(self, fake_llm, dashboard_config, transactions):
        fake_llm.reply = CLEAN
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)
        rollups = compute_donor_rollups(transactions, TODAY)

        verdicts = service.assess_donors(rollups, transactions[2:5])

        assert list(verdicts) == ["Ravi Kumar"]

    def test_no_donors(self, fake_llm, dashboard_config):
        service = FraudDetectionService(llm_client=fake_llm, config=dashboard_config)
        assert service.assess_donors([], []) == {}
        assert fake_llm.calls == []
