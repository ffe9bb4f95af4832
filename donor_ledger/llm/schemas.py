"""Pydantic schemas for the dashboard's generative flows.

Each flow has an input model (validated before the prompt is rendered) and an
output model (its JSON schema is sent to the provider and the reply is
validated against it). Field aliases match the camelCase keys the prompts
ask for.
"""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from donor_ledger.constants import FRAUD_UNAVAILABLE_REASON, PUSH_NOTIFICATION_MAX_CHARS, SMS_MAX_CHARS


class FlowModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


def clip(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters, ending with an ellipsis if cut."""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


# Fraud review


class FraudTransaction(FlowModel):
    amount: float
    date: dt.date
    mode: str


class FraudCheckInput(FlowModel):
    donor_name: str = Field(alias="donorName", min_length=1)
    transactions: list[FraudTransaction]


class FraudVerdict(FlowModel):
    """Heuristic verdict on one donor's activity. Advisory only."""

    is_suspicious: bool = Field(alias="isSuspicious", description="Whether the activity is suspicious")
    reason: str = Field(
        min_length=1,
        description="Brief explanation of why the activity is or is not suspicious",
    )

    @classmethod
    def unavailable(cls) -> "FraudVerdict":
        return cls(is_suspicious=False, reason=FRAUD_UNAVAILABLE_REASON)


# Thank-you email


class ThankYouEmailInput(FlowModel):
    donor_name: str = Field(alias="donorName", min_length=1)
    total_donated: float = Field(alias="totalDonated", ge=0)
    donation_count: int = Field(alias="donationCount", ge=0)


class ThankYouEmail(FlowModel):
    email_subject: str = Field(alias="emailSubject", min_length=1, description="Subject line of the email")
    email_body: str = Field(alias="emailBody", min_length=1, description="Plain-text body of the email")


# Emergency broadcast


class EmergencyBroadcastInput(FlowModel):
    campaign_name: str = Field(alias="campaignName", min_length=1)
    description: str
    goal: float = Field(gt=0)
    message: str


class EmergencyBroadcast(FlowModel):
    """Alert copy for every channel. Over-long push/SMS text is clipped to the channel limit."""

    push_notification: str = Field(
        alias="pushNotification",
        description=f"Short, urgent push notification (max {PUSH_NOTIFICATION_MAX_CHARS} characters)",
    )
    email_subject: str = Field(alias="emailSubject", min_length=1)
    email_body: str = Field(alias="emailBody", min_length=1)
    sms_message: str = Field(
        alias="smsMessage",
        description=f"Short SMS with a call to action (max {SMS_MAX_CHARS} characters)",
    )

    @field_validator("push_notification")
    @classmethod
    def _clip_push(cls, value: str) -> str:
        return clip(value, PUSH_NOTIFICATION_MAX_CHARS)

    @field_validator("sms_message")
    @classmethod
    def _clip_sms(cls, value: str) -> str:
        return clip(value, SMS_MAX_CHARS)


# Chat


class ChatMessage(FlowModel):
    role: Literal["user", "model"]
    content: str


class ChatInput(FlowModel):
    history: list[ChatMessage] = Field(default_factory=list)
    message: str = Field(min_length=1)


class ChatReply(FlowModel):
    response: str = Field(description="The assistant's reply to the user")
