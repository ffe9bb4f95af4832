"""Persistence providers and repositories for ledger collections.

Provides:
- Key/value JSON stores (file-backed and in-memory)
- Repository classes with seed-data fallback
"""

from .repository import (
    CampaignRepository,
    CollectionRepository,
    DebitRepository,
    LedgerStore,
    PaymentRepository,
    ProjectRepository,
    StaffRepository,
)
from .seed import seed_collection
from .store import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    # Stores
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "seed_collection",
    # Repositories
    "CollectionRepository",
    "ProjectRepository",
    "PaymentRepository",
    "DebitRepository",
    "StaffRepository",
    "CampaignRepository",
    "LedgerStore",
]
