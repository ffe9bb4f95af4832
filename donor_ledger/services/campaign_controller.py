"""
Emergency campaign lifecycle.

A campaign is Inactive -> Active -> Inactive, and at most one campaign is
active at a time. Launching creates a dedicated project for the campaign's
donations. Ended campaigns are kept for the record.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from donor_ledger.db.repository import LedgerStore
from donor_ledger.llm.schemas import EmergencyBroadcast
from donor_ledger.models.ledger import EmergencyCampaign, Project
from donor_ledger.utils.ids import new_record_id

from .content_service import ContentService
from .ledger_service import LedgerService, percent_of_goal

logger = logging.getLogger(__name__)


class CampaignError(RuntimeError):
    """Invalid campaign state transition."""


class CampaignRequest(BaseModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    goal: float = Field(gt=0)
    broadcast_message: str = ""


@dataclass
class LaunchResult:
    campaign: EmergencyCampaign
    project: Project
    broadcast: Optional[EmergencyBroadcast] = None


class CampaignController:
    """Launch, end and report on emergency campaigns."""

    def __init__(
        self,
        ledger: LedgerStore,
        content: Optional[ContentService] = None,
        ledger_service: Optional[LedgerService] = None,
    ):
        """
        Args:
            ledger: Repositories for campaigns and projects
            content: When set, broadcast copy is generated before launch
            ledger_service: Used for progress; built from ``ledger`` if omitted
        """
        self.ledger = ledger
        self.content = content
        self.ledger_service = ledger_service or LedgerService(ledger)

    def active_campaign(self) -> Optional[EmergencyCampaign]:
        return self.ledger.campaigns.get_active()

    def list_campaigns(self) -> list[EmergencyCampaign]:
        return self.ledger.campaigns.get_all()

    def launch(self, request: CampaignRequest) -> LaunchResult:
        """
        Start a new campaign and its project.

        Broadcast copy (if a content service is configured) is generated
        first, so a generation failure leaves nothing saved.

        Raises:
            CampaignError: Another campaign is active
            GenerationError: Broadcast copy could not be generated
        """
        active = self.active_campaign()
        if active is not None:
            raise CampaignError(f"Campaign '{active.name}' is already active; end it before launching another")

        broadcast = None
        if self.content is not None:
            broadcast = self.content.broadcast_emergency_alert(
                campaign_name=request.name,
                description=request.description,
                goal=request.goal,
                message=request.broadcast_message,
            )

        project = Project(
            id=new_record_id("proj"),
            name=request.name,
            description=request.description,
            goal=request.goal,
            raised=0,
        )
        campaign = EmergencyCampaign(
            id=new_record_id("camp"),
            name=request.name,
            description=request.description,
            goal=request.goal,
            is_active=True,
            broadcast_message=request.broadcast_message,
            project_id=project.id,
        )

        others = [c.model_copy(update={"is_active": False}) for c in self.ledger.campaigns.get_all()]
        self.ledger.projects.save_all(self.ledger.projects.get_all() + [project])
        self.ledger.campaigns.save_all([campaign] + others)

        logger.info(f"Launched emergency campaign {campaign.id} '{campaign.name}' (goal {campaign.goal:g})")
        return LaunchResult(campaign=campaign, project=project, broadcast=broadcast)

    def end(self, campaign_id: str) -> EmergencyCampaign:
        """
        Deactivate a campaign.

        Raises:
            KeyError: Unknown campaign id
            CampaignError: Campaign is not active
        """
        campaign = self.ledger.campaigns.require(campaign_id)
        if not campaign.is_active:
            raise CampaignError(f"Campaign '{campaign.name}' is not active")
        ended = campaign.model_copy(update={"is_active": False})
        self.ledger.campaigns.upsert(ended)
        logger.info(f"Ended emergency campaign {campaign.id} '{campaign.name}'")
        return ended

    def raised(self, campaign: EmergencyCampaign) -> float:
        return self.ledger_service.project_raised(campaign.project_id)

    def progress(self, campaign: EmergencyCampaign) -> float:
        """Percent of the campaign goal raised, capped at 100."""
        return percent_of_goal(self.raised(campaign), campaign.goal)
