"""Tests for the emergency campaign lifecycle."""

import json

import pytest

from donor_ledger.llm.flow import GenerationError
from donor_ledger.models.ledger import EmergencyCampaign
from donor_ledger.services.campaign_controller import CampaignController, CampaignError, CampaignRequest
from donor_ledger.services.content_service import ContentService
from donor_ledger.services.ledger_service import LedgerService

BROADCAST_REPLY = json.dumps(
    {
        "pushNotification": "Flood relief needed now. Please give.",
        "emailSubject": "Urgent: Flood Relief",
        "emailBody": "Dear friend, ...",
        "smsMessage": "Flood relief: donate today.",
    }
)


def _request(name="Flood Relief", goal=50000):
    return CampaignRequest(name=name, description="Families displaced by floods", goal=goal, broadcast_message="Help")


@pytest.fixture
def controller(ledger):
    return CampaignController(ledger)


class TestLaunch:
    def test_creates_active_campaign_and_project(self, controller, ledger):
        result = controller.launch(_request())

        assert result.campaign.is_active
        assert result.project.raised == 0
        assert result.project.media == []
        assert result.campaign.project_id == result.project.id
        assert ledger.projects.exists(result.project.id)
        assert controller.active_campaign().id == result.campaign.id
        assert result.broadcast is None

    def test_refused_while_active(self, controller, ledger):
        controller.launch(_request("First"))
        with pytest.raises(CampaignError):
            controller.launch(_request("Second"))

        campaigns = ledger.campaigns.get_all()
        assert [c.name for c in campaigns if c.is_active] == ["First"]
        assert len(campaigns) == 1

    def test_launch_after_end(self, controller, ledger):
        first = controller.launch(_request("First")).campaign
        controller.end(first.id)
        second = controller.launch(_request("Second")).campaign

        campaigns = ledger.campaigns.get_all()
        assert len(campaigns) == 2
        assert [c.id for c in campaigns if c.is_active] == [second.id]

    def test_ended_campaigns_kept(self, controller, ledger):
        ledger.campaigns.save_all([EmergencyCampaign(id="old", name="Old", goal=10, project_id="proj-1")])
        result = controller.launch(_request())

        campaigns = ledger.campaigns.get_all()
        assert [c.id for c in campaigns] == [result.campaign.id, "old"]
        assert sum(c.is_active for c in campaigns) == 1

    def test_invalid_request(self):
        with pytest.raises(ValueError):
            CampaignRequest(name="", description="x", goal=10)
        with pytest.raises(ValueError):
            CampaignRequest(name="x", description="x", goal=0)


class TestLaunchWithBroadcast:
    def test_broadcast_generated(self, ledger, fake_llm):
        fake_llm.reply = BROADCAST_REPLY
        controller = CampaignController(ledger, content=ContentService(llm_client=fake_llm))

        result = controller.launch(_request())

        assert result.broadcast.email_subject == "Urgent: Flood Relief"
        assert "Flood Relief" in fake_llm.calls[0]["prompt"]

    def test_generation_failure_saves_nothing(self, ledger, fake_llm):
        fake_llm.reply = RuntimeError("503 Service Unavailable")
        controller = CampaignController(ledger, content=ContentService(llm_client=fake_llm))

        with pytest.raises(GenerationError):
            controller.launch(_request())

        assert ledger.campaigns.get_all() == []
        assert len(ledger.projects.get_all()) == 5


class TestEnd:
    def test_end_active(self, controller, ledger):
        campaign = controller.launch(_request()).campaign
        ended = controller.end(campaign.id)

        assert ended.is_active is False
        assert controller.active_campaign() is None
        assert ledger.campaigns.require(campaign.id).is_active is False
        assert [c.id for c in controller.list_campaigns()] == [campaign.id]

    def test_end_twice(self, controller):
        campaign = controller.launch(_request()).campaign
        controller.end(campaign.id)
        with pytest.raises(CampaignError):
            controller.end(campaign.id)

    def test_end_unknown(self, controller):
        with pytest.raises(KeyError):
            controller.end("camp-404")


class TestProgress:
    def test_progress_from_ledger(self, controller, ledger):
        campaign = controller.launch(_request(goal=50000)).campaign
        service = LedgerService(ledger)
        service.add_credit("Aisha Rahman", 20000, campaign.project_id)
        service.add_credit("Ravi Kumar", 5000, campaign.project_id)
        service.add_credit("Ravi Kumar", 1000, campaign.project_id, mode="Refund")

        assert controller.raised(campaign) == 25000
        assert controller.progress(campaign) == pytest.approx(50.0)

    def test_progress_capped(self, controller, ledger):
        campaign = controller.launch(_request(goal=100)).campaign
        LedgerService(ledger).add_credit("Aisha Rahman", 250, campaign.project_id)
        assert controller.progress(campaign) == 100
