"""Structured generation flows.

A flow is one prompt template plus an input and an output schema:

1. validate the caller's payload against the input model
2. render the versioned prompt
3. call the provider in JSON mode with the output model's JSON schema
4. strip markdown fences and validate the reply

Any provider failure or invalid reply raises GenerationError. What to do
about it (surface it, or fall back to a default) is the caller's decision.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from donor_ledger.constants import ORGANIZATION_NAME, PUSH_NOTIFICATION_MAX_CHARS, SMS_MAX_CHARS

from .llm_client import LLMClient, LLMTask, get_client_for_task
from .prompt_loader import PromptInfo, load_prompt
from .schemas import (
    ChatInput,
    ChatReply,
    EmergencyBroadcast,
    EmergencyBroadcastInput,
    FraudCheckInput,
    FraudVerdict,
    ThankYouEmail,
    ThankYouEmailInput,
)

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class GenerationError(RuntimeError):
    """The provider failed or returned something that does not fit the output schema."""


def strip_markdown_json(text: str) -> str:
    """Strip a ```json ... ``` wrapper from an LLM reply, if present."""
    match = re.search(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    if match:
        return match.group(1).strip()
    return text.strip()


class StructuredFlow(ABC, Generic[InputT, OutputT]):
    """Base class for schema-validated prompt calls.

    Subclasses set ``prompt_name``, ``task``, ``input_model`` and
    ``output_model`` and implement ``substitutions()``.
    """

    prompt_name: str = ""
    task: LLMTask
    input_model: type[BaseModel]
    output_model: type[BaseModel]
    temperature: float = 0.3

    def __init__(
        self,
        llm_client: Optional[Any] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            llm_client: Anything with LLMClient.generate()'s signature (a fake in tests)
            model: Pin a specific model instead of the task's default
            timeout: Per-request provider timeout in seconds
        """
        self._llm_client = llm_client
        self.model = model
        self.timeout = timeout
        self._prompt: Optional[PromptInfo] = None

    @property
    def name(self) -> str:
        return self.prompt_name

    def get_llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = get_client_for_task(self.task, model=self.model, logger=logger)
        return self._llm_client

    def load_prompt(self) -> PromptInfo:
        if self._prompt is None:
            self._prompt = load_prompt(self.prompt_name)
        return self._prompt

    @abstractmethod
    def substitutions(self, data: InputT) -> dict[str, Any]:
        """Placeholder values for the prompt template."""

    def format_prompt(self, data: InputT) -> str:
        return self.load_prompt().render(organization=ORGANIZATION_NAME, **self.substitutions(data))

    def run(self, payload: Union[InputT, dict[str, Any]]) -> OutputT:
        """
        Execute the flow once.

        Raises:
            pydantic.ValidationError: ``payload`` does not fit the input model
            GenerationError: Provider failure or invalid reply
        """
        data = self.input_model.model_validate(payload)
        prompt = self.format_prompt(data)

        try:
            response = self.get_llm_client().generate(
                prompt=prompt,
                temperature=self.temperature,
                json_mode=True,
                json_schema=self.output_model.model_json_schema(by_alias=True),
                prompt_version=self.load_prompt().version,
                timeout=self.timeout,
            )
        except Exception as e:
            raise GenerationError(f"{self.name}: provider call failed: {e}") from e

        text = strip_markdown_json(response.text or "")
        if not text:
            raise GenerationError(f"{self.name}: provider returned an empty reply")

        try:
            result = self.output_model.model_validate_json(text)
        except ValidationError as e:
            raise GenerationError(f"{self.name}: reply failed validation ({e.error_count()} error(s))") from e

        logger.debug(f"{self.name}: ok (cost ${getattr(response, 'cost_usd', 0.0):.6f})")
        return result


class FraudCheckFlow(StructuredFlow[FraudCheckInput, FraudVerdict]):
    prompt_name = "detect_fraud"
    task = LLMTask.FRAUD_DETECTION
    input_model = FraudCheckInput
    output_model = FraudVerdict
    temperature = 0.0

    def substitutions(self, data: FraudCheckInput) -> dict[str, Any]:
        lines = [f"- Date: {t.date.isoformat()}, Amount: ₹{t.amount:g}, Mode: {t.mode}" for t in data.transactions]
        return {"donor_name": data.donor_name, "transactions": "\n".join(lines) or "(none)"}


class ThankYouEmailFlow(StructuredFlow[ThankYouEmailInput, ThankYouEmail]):
    prompt_name = "thank_you_email"
    task = LLMTask.THANK_YOU_EMAIL
    input_model = ThankYouEmailInput
    output_model = ThankYouEmail

    def substitutions(self, data: ThankYouEmailInput) -> dict[str, Any]:
        return {
            "donor_name": data.donor_name,
            "total_donated": f"{data.total_donated:,.2f}",
            "donation_count": data.donation_count,
        }


class EmergencyBroadcastFlow(StructuredFlow[EmergencyBroadcastInput, EmergencyBroadcast]):
    prompt_name = "emergency_broadcast"
    task = LLMTask.EMERGENCY_BROADCAST
    input_model = EmergencyBroadcastInput
    output_model = EmergencyBroadcast

    def substitutions(self, data: EmergencyBroadcastInput) -> dict[str, Any]:
        return {
            "campaign_name": data.campaign_name,
            "description": data.description,
            "goal": f"{data.goal:,.0f}",
            "message": data.message,
            "push_max": PUSH_NOTIFICATION_MAX_CHARS,
            "sms_max": SMS_MAX_CHARS,
        }


class ChatFlow(StructuredFlow[ChatInput, ChatReply]):
    prompt_name = "chat"
    task = LLMTask.CHAT
    input_model = ChatInput
    output_model = ChatReply
    temperature = 0.7

    def substitutions(self, data: ChatInput) -> dict[str, Any]:
        history = "\n".join(f"- {m.role}: {m.content}" for m in data.history)
        return {"history": history or "(no earlier messages)", "message": data.message}

