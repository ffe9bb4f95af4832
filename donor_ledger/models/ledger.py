"""Pydantic models for ledger records.

These are the records stored as JSON blobs by the persistence provider.
Stored blobs use camelCase keys (``donorName``, ``projectId``, ``isActive``);
Python code uses the snake_case attribute names. Validation happens when a
collection is loaded, so the scoring layer can assume well-formed records.
"""

import datetime as dt
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class LedgerModel(BaseModel):
    """Base for stored records: accepts both alias and field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_json_dict(self) -> dict:
        """Serialize to the stored (camelCase, JSON-safe) form."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class TransactionMode(str, Enum):
    """How a credit reached the charity.

    Refund is a ledger entry but never counts toward raised totals or donor
    credit.
    """

    ONLINE = "Online"
    WALLET = "Wallet"
    MANUAL = "Manual"
    REFUND = "Refund"


class Transaction(LedgerModel):
    """A credit (payment) from a donor to a project."""

    id: str
    donor_name: str = Field(alias="donorName", min_length=1)
    amount: float = Field(gt=0, description="Always positive; refunds use mode=Refund")
    date: dt.date
    mode: TransactionMode
    project_id: str = Field(alias="projectId")
    project_name: Optional[str] = Field(None, alias="projectName")
    donor_email: Optional[str] = Field(None, alias="donorEmail")
    donor_phone: Optional[str] = Field(None, alias="donorPhone")
    reason: Optional[str] = None
    attachment_name: Optional[str] = Field(None, alias="attachmentName")
    attachment_uri: Optional[str] = Field(None, alias="attachmentUri")

    @property
    def is_refund(self) -> bool:
        return self.mode == TransactionMode.REFUND


class Debit(LedgerModel):
    """An expense against a project. Never attributed to a donor."""

    id: str
    description: str
    amount: float = Field(gt=0)
    date: dt.date
    project_id: str = Field(alias="projectId")
    project_name: Optional[str] = Field(None, alias="projectName")
    reason: Optional[str] = None
    attachment_name: Optional[str] = Field(None, alias="attachmentName")
    attachment_uri: Optional[str] = Field(None, alias="attachmentUri")


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    STORY = "story"


class ProjectMedia(LedgerModel):
    """A before/after update on a project (URLs for image/video, text for story)."""

    id: str
    type: MediaType
    before: str
    after: str
    description: str = ""


class Project(LedgerModel):
    """A fundraising project.

    ``raised`` is a cache only; the ledger service recomputes it from
    non-refund transactions on every read.
    """

    id: str
    name: str = Field(min_length=1)
    description: str = ""
    goal: float = Field(gt=0)
    raised: float = Field(0.0, ge=0)
    media: list[ProjectMedia] = Field(default_factory=list)


class Permissions(LedgerModel):
    """Dashboard sections a staff member may open."""

    dashboard: bool = True
    projects: bool = False
    emergency: bool = False
    payments: bool = False
    donors: bool = False
    staff: bool = False

    @classmethod
    def sections(cls) -> list[str]:
        return list(cls.model_fields)


class WorkingHours(LedgerModel):
    start: str = "09:00"
    end: str = "17:00"

    @field_validator("start", "end")
    @classmethod
    def _check_format(cls, value: str) -> str:
        if not _HHMM.match(value):
            raise ValueError(f"expected HH:MM, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingHours":
        if self.start >= self.end:
            raise ValueError(f"working hours must end after they start ({self.start}-{self.end})")
        return self


class StaffRole(str, Enum):
    ADMIN = "Admin"
    STAFF = "Staff"


class StaffMember(LedgerModel):
    id: str
    name: str = Field(min_length=1)
    email: str
    role: StaffRole = StaffRole.STAFF
    avatar: str = "https://placehold.co/100x100.png"
    permissions: Permissions = Field(default_factory=Permissions)
    working_hours: WorkingHours = Field(default_factory=WorkingHours, alias="workingHours")

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        if "@" not in value:
            raise ValueError(f"invalid email address: {value!r}")
        return value.strip()


class EmergencyCampaign(LedgerModel):
    """An urgent campaign bound to its own project. At most one is active."""

    id: str
    name: str = Field(min_length=1)
    description: str = ""
    goal: float = Field(gt=0)
    is_active: bool = Field(False, alias="isActive")
    broadcast_message: str = Field("", alias="broadcastMessage")
    project_id: str = Field(alias="projectId")
