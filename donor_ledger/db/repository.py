"""Data access repositories for ledger collections.

Each repository owns one store key and exposes simple CRUD over the whole
collection. Every mutation is read-modify-write of the full blob.
Records are validated with pydantic on load; an unreadable or invalid
collection is replaced by seed data (logged, never fatal).
"""

import datetime as dt
import logging
from typing import Callable, Generic, Optional, TypeVar

from pydantic import ValidationError

from donor_ledger.constants import (
    CAMPAIGNS_KEY,
    DEBITS_KEY,
    PAYMENTS_KEY,
    PROJECTS_KEY,
    STAFF_KEY,
)
from donor_ledger.models.ledger import (
    Debit,
    EmergencyCampaign,
    LedgerModel,
    Project,
    StaffMember,
    Transaction,
)

from .seed import seed_collection
from .store import KeyValueStore

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=LedgerModel)


class CollectionRepository(Generic[RecordT]):
    """Whole-collection CRUD for one store key."""

    KEY: str = ""
    MODEL: type[LedgerModel] = LedgerModel

    def __init__(self, store: KeyValueStore, today: Optional[Callable[[], dt.date]] = None):
        """
        Args:
            store: Persistence provider
            today: Clock used to date seed records (defaults to date.today)
        """
        self.store = store
        self._today = today or dt.date.today

    def _parse(self, raw: list) -> list[RecordT]:
        return [self.MODEL.model_validate(item) for item in raw]

    def _seed(self) -> list[RecordT]:
        return self._parse(seed_collection(self.KEY, self._today()))

    def get_all(self) -> list[RecordT]:
        """Load every record, falling back to seed data."""
        raw = self.store.load(self.KEY)
        if raw is None:
            return self._seed()
        if not isinstance(raw, list):
            logger.warning(f"Stored '{self.KEY}' is not a list ({type(raw).__name__}), using seed data")
            return self._seed()
        try:
            return self._parse(raw)
        except ValidationError as e:
            logger.warning(f"Stored '{self.KEY}' failed validation, using seed data: {e.error_count()} error(s)")
            return self._seed()

    def save_all(self, records: list[RecordT]) -> None:
        """Replace the stored collection."""
        ids = [r.id for r in records]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate ids in '{self.KEY}' collection")
        self.store.save(self.KEY, [r.to_json_dict() for r in records])

    def get(self, record_id: str) -> Optional[RecordT]:
        for record in self.get_all():
            if record.id == record_id:
                return record
        return None

    def require(self, record_id: str) -> RecordT:
        """Like get(), but raise KeyError for an unknown id."""
        record = self.get(record_id)
        if record is None:
            raise KeyError(f"No {self.KEY} record with id {record_id!r}")
        return record

    def exists(self, record_id: str) -> bool:
        return self.get(record_id) is not None

    def prepend(self, record: RecordT) -> None:
        """Insert a new record at the front (newest first, as the ledger is shown)."""
        records = self.get_all()
        if any(r.id == record.id for r in records):
            raise ValueError(f"Record {record.id!r} already exists in '{self.KEY}'")
        self.save_all([record] + records)

    def upsert(self, record: RecordT) -> None:
        """Replace the record with the same id, or append it."""
        records = self.get_all()
        for i, existing in enumerate(records):
            if existing.id == record.id:
                records[i] = record
                break
        else:
            records.append(record)
        self.save_all(records)

    def remove(self, record_id: str) -> bool:
        records = self.get_all()
        kept = [r for r in records if r.id != record_id]
        if len(kept) == len(records):
            return False
        self.save_all(kept)
        return True


class ProjectRepository(CollectionRepository[Project]):
    """Projects table."""

    KEY = PROJECTS_KEY
    MODEL = Project


class PaymentRepository(CollectionRepository[Transaction]):
    """Credits (donations and refunds)."""

    KEY = PAYMENTS_KEY
    MODEL = Transaction

    def for_donor(self, donor_name: str) -> list[Transaction]:
        """All of a donor's transactions, refunds included."""
        return [t for t in self.get_all() if t.donor_name == donor_name]

    def for_project(self, project_id: str) -> list[Transaction]:
        return [t for t in self.get_all() if t.project_id == project_id]


class DebitRepository(CollectionRepository[Debit]):
    """Project expenses."""

    KEY = DEBITS_KEY
    MODEL = Debit


class StaffRepository(CollectionRepository[StaffMember]):
    KEY = STAFF_KEY
    MODEL = StaffMember


class CampaignRepository(CollectionRepository[EmergencyCampaign]):
    """Emergency campaigns, active and ended."""

    KEY = CAMPAIGNS_KEY
    MODEL = EmergencyCampaign

    def get_active(self) -> Optional[EmergencyCampaign]:
        for campaign in self.get_all():
            if campaign.is_active:
                return campaign
        return None


class LedgerStore:
    """All repositories over one persistence provider."""

    def __init__(self, store: KeyValueStore, today: Optional[Callable[[], dt.date]] = None):
        self.store = store
        self.projects = ProjectRepository(store, today)
        self.payments = PaymentRepository(store, today)
        self.debits = DebitRepository(store, today)
        self.staff = StaffRepository(store, today)
        self.campaigns = CampaignRepository(store, today)
