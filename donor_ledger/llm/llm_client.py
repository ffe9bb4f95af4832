"""
Generative-text client for the dashboard's content helpers, built on LiteLLM.

Each dashboard task (fraud review, thank-you email, emergency broadcast,
chat) maps to a primary model plus fallbacks. Transient provider errors move
on to the next model; permanent errors (bad key, bad request) are raised at
once.

Usage:
    from donor_ledger.llm.llm_client import LLMClient, LLMTask

    client = LLMClient(task=LLMTask.THANK_YOU_EMAIL)
    response = client.generate("Write a thank-you note...", json_mode=True)
"""

import hashlib
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import litellm
from litellm import completion, completion_cost

from donor_ledger.constants import DEFAULT_REQUEST_TIMEOUT_SECONDS
from donor_ledger.llm.schema_helpers import fix_schema_for_anthropic

litellm.set_verbose = False
litellm.suppress_debug_info = True

logging.getLogger("LiteLLM").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)


# =============================================================================
# MODELS
# =============================================================================

MODEL_GEMINI_25_FLASH = "gemini-2.5-flash"
MODEL_GEMINI_20_FLASH = "gemini-2.0-flash"
MODEL_GEMINI_25_FLASH_LITE = "gemini-2.5-flash-lite"
MODEL_CLAUDE_HAIKU_45 = "claude-haiku-4-5"
MODEL_GPT4O_MINI = "gpt-4o-mini"

MODEL_REGISTRY: Dict[str, Dict[str, Any]] = {
    MODEL_GEMINI_25_FLASH: {
        "litellm_name": "gemini/gemini-2.5-flash",
        "provider": "google",
        "cost_per_1m_input": 0.15,
        "cost_per_1m_output": 0.60,
        "supports_json_mode": True,
    },
    MODEL_GEMINI_20_FLASH: {
        "litellm_name": "gemini/gemini-2.0-flash",
        "provider": "google",
        "cost_per_1m_input": 0.10,
        "cost_per_1m_output": 0.40,
        "supports_json_mode": True,
    },
    MODEL_GEMINI_25_FLASH_LITE: {
        "litellm_name": "gemini/gemini-2.5-flash-lite",
        "provider": "google",
        "cost_per_1m_input": 0.10,
        "cost_per_1m_output": 0.40,
        "supports_json_mode": True,
    },
    MODEL_CLAUDE_HAIKU_45: {
        "litellm_name": "anthropic/claude-haiku-4-5",
        "provider": "anthropic",
        "cost_per_1m_input": 1.00,
        "cost_per_1m_output": 5.00,
        "supports_json_mode": True,
    },
    MODEL_GPT4O_MINI: {
        "litellm_name": "gpt-4o-mini",
        "provider": "openai",
        "cost_per_1m_input": 0.15,
        "cost_per_1m_output": 0.60,
        "supports_json_mode": True,
    },
}


class LLMTask(Enum):
    """Dashboard tasks with their own model configuration."""

    FRAUD_DETECTION = "fraud_detection"
    THANK_YOU_EMAIL = "thank_you_email"
    EMERGENCY_BROADCAST = "emergency_broadcast"
    CHAT = "chat"


# Task -> (primary_model, fallback_models)
TASK_MODELS: Dict[LLMTask, Tuple[str, List[str]]] = {
    # Fraud review runs once per donor, so use the cheapest model
    LLMTask.FRAUD_DETECTION: (MODEL_GEMINI_25_FLASH_LITE, [MODEL_GEMINI_20_FLASH]),
    LLMTask.THANK_YOU_EMAIL: (MODEL_GEMINI_25_FLASH, [MODEL_GPT4O_MINI]),
    LLMTask.EMERGENCY_BROADCAST: (MODEL_GEMINI_25_FLASH, [MODEL_GPT4O_MINI]),
    LLMTask.CHAT: (MODEL_GEMINI_25_FLASH, [MODEL_CLAUDE_HAIKU_45]),
}


@dataclass
class LLMResponse:
    """Text returned by a provider plus usage and tracking metadata."""

    text: str
    model: str
    provider: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    finish_reason: Optional[str] = None

    prompt_version: str = ""
    prompt_hash: str = ""
    timestamp: str = ""
    task: Optional[str] = None

    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMClient:
    """
    LiteLLM client with task-based model selection and fallback.

    Usage:
        client = LLMClient(task=LLMTask.CHAT)
        client = LLMClient(model=MODEL_GEMINI_25_FLASH)
    """

    def __init__(
        self,
        task: Optional[LLMTask] = None,
        model: Optional[str] = None,
        api_keys: Optional[Dict[str, str]] = None,
        logger=None,
    ):
        """
        Initialize LLM client.

        Args:
            task: Dashboard task (determines model and fallbacks)
            model: Specific model name (overrides task, no fallbacks)
            api_keys: Dict of provider -> API key
            logger: Optional logger instance
        """
        self.logger = logger
        self.api_keys = api_keys or {}
        self.task = task

        self._setup_api_keys()

        if model:
            if model not in MODEL_REGISTRY:
                raise ValueError(f"Unknown model: {model}. Available: {list(MODEL_REGISTRY.keys())}")
            self.model_name = model
            self.fallback_models = []
        elif task:
            primary, fallbacks = TASK_MODELS[task]
            self.model_name = primary
            self.fallback_models = list(fallbacks)
        else:
            self.model_name = MODEL_GEMINI_25_FLASH
            self.fallback_models = [MODEL_GPT4O_MINI]
        self.model_config = MODEL_REGISTRY[self.model_name]

        if self.logger:
            fallback_str = f" (fallbacks: {self.fallback_models})" if self.fallback_models else ""
            self.logger.debug(f"LLM client initialized: {self.model_name}{fallback_str}")

    def _setup_api_keys(self):
        """Set API keys in environment for LiteLLM (only if not already set)."""
        key_map = {
            "GEMINI_API_KEY": self.api_keys.get("google") or self.api_keys.get("gemini"),
            "ANTHROPIC_API_KEY": self.api_keys.get("anthropic"),
            "OPENAI_API_KEY": self.api_keys.get("openai"),
        }
        for env_var, value in key_map.items():
            if value and not os.environ.get(env_var):
                os.environ[env_var] = value

    def _is_transient_error(self, error: Exception) -> bool:
        """Rate limits, timeouts and overloaded upstreams are worth a fallback."""
        error_str = str(error).lower()
        transient_indicators = [
            "rate limit",
            "quota exceeded",
            "too many requests",
            "429",
            "502",
            "503",
            "timeout",
            "timed out",
            "connection",
            "temporary",
            "overloaded",
        ]
        return any(indicator in error_str for indicator in transient_indicators)

    def _is_permanent_error(self, error: Exception) -> bool:
        """Auth and malformed-request errors fail the same way on every model."""
        error_str = str(error).lower()
        error_type = type(error).__name__.lower()
        permanent_indicators = [
            "authentication",
            "api key",
            "unauthorized",
            "401",
            "403",
            "permission denied",
            "invalid request",
            "authenticationerror",
            "invalidrequesterror",
        ]
        return any(indicator in error_str or indicator in error_type for indicator in permanent_indicators)

    def _compute_prompt_hash(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        full_prompt = f"{system_prompt or ''}|||{prompt}"
        return hashlib.sha256(full_prompt.encode()).hexdigest()[:16]

    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: float = 0.3,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        json_schema: Optional[Dict] = None,
        prompt_version: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_on_error: bool = True,
    ) -> LLMResponse:
        """
        Generate text using the configured model with automatic fallback.

        Args:
            prompt: User prompt
            system_prompt: Optional system instructions
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate
            json_mode: Request JSON output
            json_schema: Optional JSON schema for structured output
            prompt_version: Version string for this prompt template
            timeout: Per-request timeout in seconds (default 60)
            retry_on_error: Let LiteLLM retry the same model before falling back

        Returns:
            LLMResponse with text, tracking metadata, and cost
        """
        models_to_try = [self.model_name] + self.fallback_models
        prompt_hash = self._compute_prompt_hash(prompt, system_prompt)
        last_error: Optional[Exception] = None

        for i, model_name in enumerate(models_to_try):
            try:
                return self._generate_with_model(
                    model_name=model_name,
                    prompt=prompt,
                    system_prompt=system_prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    json_mode=json_mode,
                    json_schema=json_schema,
                    prompt_version=prompt_version,
                    prompt_hash=prompt_hash,
                    timeout=timeout or DEFAULT_REQUEST_TIMEOUT_SECONDS,
                    retry_on_error=retry_on_error,
                )
            except Exception as e:
                last_error = e

                if self._is_permanent_error(e):
                    if self.logger:
                        self.logger.error(f"Permanent error with {model_name}: {e}. Not trying fallback.")
                    raise

                if i == len(models_to_try) - 1:
                    raise

                kind = "TRANSIENT" if self._is_transient_error(e) else "UNEXPECTED"
                if self.logger:
                    self.logger.warning(
                        f"{kind} error with {model_name}: {type(e).__name__}: {e}. "
                        f"Trying fallback to {models_to_try[i + 1]}..."
                    )

        raise RuntimeError(f"All models failed. Last error: {last_error}")

    def _generate_with_model(
        self,
        model_name: str,
        prompt: str,
        system_prompt: Optional[str],
        temperature: float,
        max_tokens: Optional[int],
        json_mode: bool,
        json_schema: Optional[Dict],
        prompt_version: Optional[str],
        prompt_hash: str,
        timeout: float,
        retry_on_error: bool,
    ) -> LLMResponse:
        model_config = MODEL_REGISTRY[model_name]

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {
            "model": model_config["litellm_name"],
            "messages": messages,
            "temperature": temperature,
            "timeout": timeout,
        }

        if max_tokens and model_config["provider"] != "google":
            kwargs["max_tokens"] = max_tokens

        if json_mode and model_config.get("supports_json_mode"):
            if json_schema:
                if model_config["provider"] == "anthropic":
                    json_schema = fix_schema_for_anthropic(json_schema)
                kwargs["response_format"] = {
                    "type": "json_schema",
                    "json_schema": {"name": "response", "schema": json_schema},
                }
            else:
                kwargs["response_format"] = {"type": "json_object"}

        if retry_on_error:
            kwargs["num_retries"] = 2

        litellm.drop_params = True

        response = completion(**kwargs)

        if not response.choices:
            raise RuntimeError(
                f"LLM API returned empty choices array. "
                f"Model: {model_name}, Response: {getattr(response, 'id', 'unknown')}"
            )

        text = response.choices[0].message.content or ""

        usage = getattr(response, "usage", None)
        input_tokens = (getattr(usage, "prompt_tokens", 0) or 0) if usage else 0
        output_tokens = (getattr(usage, "completion_tokens", 0) or 0) if usage else 0

        try:
            cost = completion_cost(completion_response=response)
        except Exception:
            cost = (input_tokens / 1_000_000) * model_config["cost_per_1m_input"] + (
                output_tokens / 1_000_000
            ) * model_config["cost_per_1m_output"]

        llm_response = LLMResponse(
            text=text,
            model=model_name,
            provider=model_config["provider"],
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cost_usd=cost,
            finish_reason=response.choices[0].finish_reason,
            prompt_version=prompt_version or "",
            prompt_hash=prompt_hash,
            timestamp=datetime.now(timezone.utc).isoformat(),
            task=self.task.value if self.task else None,
            metadata={"raw_response_id": getattr(response, "id", None)},
        )

        if self.logger:
            self.logger.debug(
                f"LLM call: {model_name} | "
                f"Tokens: {llm_response.input_tokens}->{llm_response.output_tokens} | "
                f"Cost: ${llm_response.cost_usd:.6f}"
            )

        return llm_response

    def get_model_info(self) -> Dict[str, Any]:
        return {
            "model": self.model_name,
            "litellm_name": self.model_config["litellm_name"],
            "provider": self.model_config["provider"],
            "fallback_models": self.fallback_models,
            "task": self.task.value if self.task else None,
        }


def get_client_for_task(task: LLMTask, model: Optional[str] = None, logger=None) -> LLMClient:
    """Client for a dashboard task, optionally pinned to one model."""
    if model:
        client = LLMClient(model=model, logger=logger)
        client.task = task
        return client
    return LLMClient(task=task, logger=logger)
