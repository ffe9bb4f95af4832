"""
Heuristic fraud review of donor activity.

Each donor's full history (refunds included) is sent to the fraud flow.
Verdicts are advisory: any failure, timeout or invalid reply becomes the
"analysis unavailable" verdict and is logged, never raised.

Donors are assessed concurrently. Each donor has its own slot in the
result, so one slow or failing assessment never affects the others.
"""

import logging
import math
from typing import Any, Iterable, Optional

from donor_ledger.config import DashboardConfig, load_config
from donor_ledger.llm.flow import FraudCheckFlow
from donor_ledger.llm.schemas import FraudCheckInput, FraudTransaction, FraudVerdict
from donor_ledger.models.ledger import Transaction
from donor_ledger.scorers.engagement import DonorRollup
from donor_ledger.utils.logger import log_timing
from donor_ledger.utils.worker_pool import WorkerPool

logger = logging.getLogger(__name__)


def build_fraud_input(donor_name: str, transactions: Iterable[Transaction]) -> FraudCheckInput:
    return FraudCheckInput(
        donor_name=donor_name,
        transactions=[FraudTransaction(amount=t.amount, date=t.date, mode=t.mode.value) for t in transactions],
    )


class FraudDetectionService:
    def __init__(
        self,
        llm_client: Optional[Any] = None,
        config: Optional[DashboardConfig] = None,
    ):
        """
        Args:
            llm_client: Client with LLMClient.generate()'s signature; must be thread-safe
            config: Timeout, worker count and model override (loaded from YAML if omitted)
        """
        self.config = config or load_config()
        self.flow = FraudCheckFlow(
            llm_client=llm_client,
            model=self.config.fraud_model,
            timeout=self.config.fraud_timeout_seconds,
        )

    def _check(self, payload: FraudCheckInput) -> FraudVerdict:
        return self.flow.run(payload)

    def assess_donor(self, donor_name: str, transactions: list[Transaction]) -> FraudVerdict:
        """Single synchronous assessment. Never raises."""
        try:
            return self._check(build_fraud_input(donor_name, transactions))
        except Exception as e:
            logger.warning(f"Fraud assessment unavailable for {donor_name}: {e}")
            return FraudVerdict.unavailable()

    def assess_donors(
        self,
        rollups: Iterable[DonorRollup],
        transactions: Iterable[Transaction],
    ) -> dict[str, FraudVerdict]:
        """
        Assess every donor concurrently.

        Args:
            rollups: Donors to assess (typically compute_donor_rollups output)
            transactions: The full ledger; each donor's refunds are included

        Returns:
            Dict of donor name -> verdict, in rollup order. Donors with no
            transactions are skipped.
        """
        by_donor: dict[str, list[Transaction]] = {}
        for tx in transactions:
            by_donor.setdefault(tx.donor_name, []).append(tx)

        items = []
        for rollup in rollups:
            history = by_donor.get(rollup.name)
            if history:
                items.append((rollup.name, build_fraud_input(rollup.name, history)))
        if not items:
            return {}

        def fallback(donor_name: str, error: Optional[Exception]) -> FraudVerdict:
            if error is None:
                logger.warning(f"Fraud assessment for {donor_name} timed out")
            return FraudVerdict.unavailable()

        timeout = self.config.fraud_timeout_seconds
        workers = self.config.fraud_max_workers
        # Each donor gets its own timeout from when its call starts; the batch
        # ceiling covers every wave of calls using its full allowance
        waves = math.ceil(len(items) / workers)

        pool = WorkerPool(max_workers=workers, logger=logger)
        with log_timing(logger, "fraud assessment", donors=len(items)):
            return pool.map_with_deadline(
                self._check,
                items,
                timeout=timeout,
                fallback=fallback,
                desc="Fraud assessment",
                max_wait=timeout * (waves + 1),
            )
