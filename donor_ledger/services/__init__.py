"""Dashboard services over the ledger store and the generative-text client."""

from donor_ledger.services.campaign_controller import (
    CampaignController,
    CampaignError,
    CampaignRequest,
    LaunchResult,
)
from donor_ledger.services.content_service import ChatSession, ContentService
from donor_ledger.services.fraud_detection_service import FraudDetectionService
from donor_ledger.services.ledger_service import LedgerEntry, LedgerService, LedgerTotals, Receipt
from donor_ledger.services.project_service import ProjectService
from donor_ledger.services.staff_service import StaffService

__all__ = [
    "CampaignController",
    "CampaignError",
    "CampaignRequest",
    "LaunchResult",
    "ChatSession",
    "ContentService",
    "FraudDetectionService",
    "LedgerEntry",
    "LedgerService",
    "LedgerTotals",
    "Receipt",
    "ProjectService",
    "StaffService",
]
