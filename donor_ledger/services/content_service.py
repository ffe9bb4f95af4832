"""
Generated copy for the dashboard: donor thank-you emails, emergency alert
broadcasts and the admin chat assistant.

Every call is a single structured flow. Failures raise GenerationError to
the caller, which blocks only that one action.
"""

import logging
from typing import Any, Iterable, Optional

from donor_ledger.llm.flow import ChatFlow, EmergencyBroadcastFlow, ThankYouEmailFlow
from donor_ledger.llm.schemas import ChatMessage, ChatReply, EmergencyBroadcast, ThankYouEmail
from donor_ledger.scorers.engagement import DonorRollup

logger = logging.getLogger(__name__)


class ContentService:
    def __init__(self, llm_client: Optional[Any] = None, model: Optional[str] = None):
        """
        Args:
            llm_client: Shared client for all flows (each flow builds its own when None)
            model: Optional model override for every content flow
        """
        self.thank_you_flow = ThankYouEmailFlow(llm_client=llm_client, model=model)
        self.broadcast_flow = EmergencyBroadcastFlow(llm_client=llm_client, model=model)
        self.chat_flow = ChatFlow(llm_client=llm_client, model=model)

    def generate_thank_you_email(self, donor_name: str, total_donated: float, donation_count: int) -> ThankYouEmail:
        email = self.thank_you_flow.run(
            {"donor_name": donor_name, "total_donated": total_donated, "donation_count": donation_count}
        )
        logger.info(f"Generated thank-you email for {donor_name}")
        return email

    def thank_donor(self, rollup: DonorRollup) -> ThankYouEmail:
        return self.generate_thank_you_email(rollup.name, rollup.total_donated, rollup.donation_count)

    def broadcast_emergency_alert(
        self,
        campaign_name: str,
        description: str,
        goal: float,
        message: str,
    ) -> EmergencyBroadcast:
        """Push, email and SMS copy for a new emergency campaign."""
        broadcast = self.broadcast_flow.run(
            {"campaign_name": campaign_name, "description": description, "goal": goal, "message": message}
        )
        logger.info(f"Generated emergency broadcast for '{campaign_name}'")
        return broadcast

    def chat(self, history: Iterable[ChatMessage | dict], message: str) -> ChatReply:
        return self.chat_flow.run({"history": list(history), "message": message})


class ChatSession:
    """Conversation state for the chat assistant.

    Both turns are appended only when the reply succeeds, so a failed call
    can be retried with the same history.
    """

    def __init__(self, content: ContentService):
        self.content = content
        self.history: list[ChatMessage] = []

    def send(self, message: str) -> str:
        reply = self.content.chat(self.history, message)
        self.history.append(ChatMessage(role="user", content=message))
        self.history.append(ChatMessage(role="model", content=reply.response))
        return reply.response

    def reset(self) -> None:
        self.history.clear()
