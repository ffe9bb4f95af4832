"""Ledger record models."""

from .ledger import (
    Debit,
    EmergencyCampaign,
    LedgerModel,
    MediaType,
    Permissions,
    Project,
    ProjectMedia,
    StaffMember,
    StaffRole,
    Transaction,
    TransactionMode,
    WorkingHours,
)

__all__ = [
    "Debit",
    "EmergencyCampaign",
    "LedgerModel",
    "MediaType",
    "Permissions",
    "Project",
    "ProjectMedia",
    "StaffMember",
    "StaffRole",
    "Transaction",
    "TransactionMode",
    "WorkingHours",
]
