"""
Staff records and their dashboard-section permissions.

Permissions are data only. Nothing in this package enforces them.
"""

import logging
from typing import Optional

from donor_ledger.db.repository import LedgerStore
from donor_ledger.models.ledger import Permissions, StaffMember, StaffRole, WorkingHours
from donor_ledger.utils.ids import new_record_id

logger = logging.getLogger(__name__)

# Sections an Admin always keeps
ADMIN_LOCKED_SECTIONS = ("staff",)


def _check_section(section: str) -> str:
    if section not in Permissions.sections():
        raise ValueError(f"Unknown section {section!r}. Valid: {Permissions.sections()}")
    return section


def _apply_admin_rules(member: StaffMember) -> StaffMember:
    if member.role != StaffRole.ADMIN:
        return member
    forced = {s: True for s in ADMIN_LOCKED_SECTIONS}
    return member.model_copy(update={"permissions": member.permissions.model_copy(update=forced)})


class StaffService:
    def __init__(self, ledger: LedgerStore):
        self.ledger = ledger

    def list_staff(self) -> list[StaffMember]:
        return self.ledger.staff.get_all()

    def add_staff(
        self,
        name: str,
        email: str,
        role: StaffRole | str = StaffRole.STAFF,
        sections: Optional[list[str]] = None,
        start: str = "09:00",
        end: str = "17:00",
    ) -> StaffMember:
        """
        Add a staff member.

        Args:
            sections: Sections to allow (dashboard is allowed when omitted)

        Raises:
            ValueError: Unknown section, bad email or bad working hours
        """
        allowed = [_check_section(s) for s in (sections if sections is not None else ["dashboard"])]
        member = StaffMember(
            id=new_record_id("staff"),
            name=name.strip(),
            email=email,
            role=role,
            permissions=Permissions(**{s: s in allowed for s in Permissions.sections()}),
            working_hours=WorkingHours(start=start, end=end),
        )
        member = _apply_admin_rules(member)
        self.ledger.staff.upsert(member)
        logger.info(f"Added staff member {member.id}: {member.name} ({member.role.value})")
        return member

    def update_staff(self, staff_id: str, **changes) -> StaffMember:
        """
        Update name, email, role, avatar or working hours.

        Raises:
            KeyError: Unknown staff id
            ValueError: Unknown field or invalid value
        """
        member = self.ledger.staff.require(staff_id)
        allowed_fields = {"name", "email", "role", "avatar", "working_hours"}
        unknown = set(changes) - allowed_fields
        if unknown:
            raise ValueError(f"Cannot update {sorted(unknown)}; allowed: {sorted(allowed_fields)}")

        data = member.model_dump()
        data.update(changes)
        updated = _apply_admin_rules(StaffMember.model_validate(data))
        self.ledger.staff.upsert(updated)
        return updated

    def remove_staff(self, staff_id: str) -> None:
        """Raises KeyError for an unknown staff id."""
        if not self.ledger.staff.remove(staff_id):
            raise KeyError(f"No staff member with id {staff_id!r}")
        logger.info(f"Removed staff member {staff_id}")

    def set_permission(self, staff_id: str, section: str, allowed: bool) -> StaffMember:
        """
        Allow or deny one section.

        Denying ``staff`` to an Admin is ignored: admins always keep it.

        Raises:
            KeyError: Unknown staff id
            ValueError: Unknown section
        """
        _check_section(section)
        member = self.ledger.staff.require(staff_id)
        if member.role == StaffRole.ADMIN and section in ADMIN_LOCKED_SECTIONS and not allowed:
            logger.warning(f"{member.name} is an Admin; '{section}' permission stays enabled")
        permissions = member.permissions.model_copy(update={section: allowed})
        updated = _apply_admin_rules(member.model_copy(update={"permissions": permissions}))
        self.ledger.staff.upsert(updated)
        return updated

    @staticmethod
    def allowed_sections(member: StaffMember) -> list[str]:
        return [s for s in Permissions.sections() if getattr(member.permissions, s)]
