"""Generative-text client, prompt templates and structured flows."""

from donor_ledger.llm.flow import (
    ChatFlow,
    EmergencyBroadcastFlow,
    FraudCheckFlow,
    GenerationError,
    StructuredFlow,
    ThankYouEmailFlow,
    strip_markdown_json,
)
from donor_ledger.llm.llm_client import LLMClient, LLMResponse, LLMTask
from donor_ledger.llm.schemas import (
    ChatMessage,
    ChatReply,
    EmergencyBroadcast,
    FraudVerdict,
    ThankYouEmail,
)

__all__ = [
    "LLMClient",
    "LLMResponse",
    "LLMTask",
    "StructuredFlow",
    "GenerationError",
    "strip_markdown_json",
    "FraudCheckFlow",
    "ThankYouEmailFlow",
    "EmergencyBroadcastFlow",
    "ChatFlow",
    "FraudVerdict",
    "ThankYouEmail",
    "EmergencyBroadcast",
    "ChatMessage",
    "ChatReply",
]
