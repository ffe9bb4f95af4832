"""
Ledger reads and writes: project raised totals, credit/debit totals, the
merged payment history and new ledger entries.

A project's ``raised`` is never trusted from storage. It is recomputed from
non-refund transactions on every read.
"""

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from donor_ledger.db.repository import LedgerStore
from donor_ledger.models.ledger import Debit, Project, Transaction, TransactionMode
from donor_ledger.utils.ids import new_record_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerTotals:
    total_credit: float
    total_debit: float

    @property
    def balance(self) -> float:
        return self.total_credit - self.total_debit


@dataclass(frozen=True)
class LedgerEntry:
    """One row of the merged payment history."""

    id: str
    kind: str  # "credit" or "debit"
    date: dt.date
    amount: float
    project_id: str
    project_name: str
    party: str  # donor name for credits, description for debits
    mode: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_refund(self) -> bool:
        return self.mode == TransactionMode.REFUND.value


@dataclass(frozen=True)
class Receipt:
    """Printable receipt for a single payment."""

    payment_id: str
    donor_name: str
    issued: dt.date
    project_name: str
    amount: float
    reason: Optional[str] = None
    is_refund: bool = False

    @property
    def issued_label(self) -> str:
        return f"{self.issued:%B} {self.issued.day}, {self.issued.year}"


def raised_by_project(transactions: list[Transaction]) -> dict[str, float]:
    """Sum of non-refund amounts per project id."""
    raised: dict[str, float] = {}
    for tx in transactions:
        if not tx.is_refund:
            raised[tx.project_id] = raised.get(tx.project_id, 0.0) + tx.amount
    return raised


def percent_of_goal(raised: float, goal: float) -> float:
    """Funding progress in percent, capped at 100."""
    return min(100.0, raised / goal * 100)


class LedgerService:
    """Ledger operations over a LedgerStore."""

    def __init__(self, ledger: LedgerStore, today: Optional[Callable[[], dt.date]] = None):
        self.ledger = ledger
        self._today = today or dt.date.today

    # Projects ---------------------------------------------------------------

    def project_raised(self, project_id: str) -> float:
        return raised_by_project(self.ledger.payments.get_all()).get(project_id, 0.0)

    def projects_with_raised(self) -> list[Project]:
        """All projects with ``raised`` recomputed from the ledger."""
        raised = raised_by_project(self.ledger.payments.get_all())
        return [p.model_copy(update={"raised": raised.get(p.id, 0.0)}) for p in self.ledger.projects.get_all()]

    def project_with_raised(self, project_id: str) -> Project:
        """Raises KeyError for an unknown project."""
        project = self.ledger.projects.require(project_id)
        return project.model_copy(update={"raised": self.project_raised(project_id)})

    # Totals and history ----------------------------------------------------

    def totals(self) -> LedgerTotals:
        """Credit and debit totals. Refunds count toward neither."""
        credit = sum(t.amount for t in self.ledger.payments.get_all() if not t.is_refund)
        debit = sum(d.amount for d in self.ledger.debits.get_all())
        return LedgerTotals(total_credit=credit, total_debit=debit)

    def history(self, search: Optional[str] = None) -> list[LedgerEntry]:
        """
        Credits and debits merged, newest first.

        Args:
            search: Case-insensitive substring matched against donor name,
                project name and mode (credits) or description and project
                name (debits)
        """
        names = {p.id: p.name for p in self.ledger.projects.get_all()}
        entries = [
            LedgerEntry(
                id=t.id,
                kind="credit",
                date=t.date,
                amount=t.amount,
                project_id=t.project_id,
                project_name=t.project_name or names.get(t.project_id, t.project_id),
                party=t.donor_name,
                mode=t.mode.value,
                reason=t.reason,
            )
            for t in self.ledger.payments.get_all()
        ]
        entries += [
            LedgerEntry(
                id=d.id,
                kind="debit",
                date=d.date,
                amount=d.amount,
                project_id=d.project_id,
                project_name=d.project_name or names.get(d.project_id, d.project_id),
                party=d.description,
                reason=d.reason,
            )
            for d in self.ledger.debits.get_all()
        ]

        if search:
            needle = search.strip().lower()
            entries = [e for e in entries if _matches(e, needle)]

        return sorted(entries, key=lambda e: e.date, reverse=True)

    def donor_transactions(self, donor_name: str) -> list[Transaction]:
        """Every transaction for a donor, refunds included."""
        return self.ledger.payments.for_donor(donor_name)

    def receipt(self, payment_id: str) -> Receipt:
        """Raises KeyError for an unknown payment id."""
        tx = self.ledger.payments.require(payment_id)
        project_name = tx.project_name
        if not project_name:
            project = self.ledger.projects.get(tx.project_id)
            project_name = project.name if project else tx.project_id
        return Receipt(
            payment_id=tx.id,
            donor_name=tx.donor_name,
            issued=tx.date,
            project_name=project_name,
            amount=tx.amount,
            reason=tx.reason,
            is_refund=tx.is_refund,
        )

    # Writes -----------------------------------------------------------------

    def add_credit(
        self,
        donor_name: str,
        amount: float,
        project_id: str,
        mode: TransactionMode | str = TransactionMode.ONLINE,
        date: Optional[dt.date] = None,
        reason: Optional[str] = None,
        donor_email: Optional[str] = None,
        donor_phone: Optional[str] = None,
        attachment_name: Optional[str] = None,
    ) -> Transaction:
        """
        Record a payment against a project.

        Raises:
            KeyError: Unknown project
            pydantic.ValidationError: Invalid amount, name or mode
        """
        project = self.ledger.projects.require(project_id)
        tx = Transaction(
            id=new_record_id("pay"),
            donor_name=donor_name.strip(),
            amount=amount,
            date=date or self._today(),
            mode=mode,
            project_id=project.id,
            project_name=project.name,
            reason=reason,
            donor_email=donor_email,
            donor_phone=donor_phone,
            attachment_name=attachment_name,
        )
        self.ledger.payments.prepend(tx)
        logger.info(f"Recorded {tx.mode.value} credit {tx.id}: {tx.amount:g} from {tx.donor_name} to {project.name}")
        return tx

    def add_debit(
        self,
        description: str,
        amount: float,
        project_id: str,
        date: Optional[dt.date] = None,
        reason: Optional[str] = None,
        attachment_name: Optional[str] = None,
    ) -> Debit:
        """
        Record an expense against a project.

        Raises:
            KeyError: Unknown project
            pydantic.ValidationError: Invalid amount
        """
        project = self.ledger.projects.require(project_id)
        debit = Debit(
            id=new_record_id("debit"),
            description=description.strip(),
            amount=amount,
            date=date or self._today(),
            project_id=project.id,
            project_name=project.name,
            reason=reason,
            attachment_name=attachment_name,
        )
        self.ledger.debits.prepend(debit)
        logger.info(f"Recorded debit {debit.id}: {debit.amount:g} against {project.name}")
        return debit


def _matches(entry: LedgerEntry, needle: str) -> bool:
    fields = [entry.party, entry.project_name]
    if entry.mode:
        fields.append(entry.mode)
    return any(needle in value.lower() for value in fields)
