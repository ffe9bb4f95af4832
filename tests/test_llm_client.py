"""Tests for LLMClient model selection and fallback (litellm.completion patched)."""

from types import SimpleNamespace

import pytest

from donor_ledger.llm import llm_client as llm_module
from donor_ledger.llm.llm_client import (
    MODEL_CLAUDE_HAIKU_45,
    MODEL_GEMINI_20_FLASH,
    MODEL_GEMINI_25_FLASH_LITE,
    LLMClient,
    LLMTask,
    get_client_for_task,
)
from donor_ledger.llm.schema_helpers import fix_schema_for_anthropic


def _response(text='{"ok": true}'):
    return SimpleNamespace(
        id="resp-1",
        choices=[SimpleNamespace(message=SimpleNamespace(content=text), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=100, completion_tokens=20),
    )


@pytest.fixture
def completions(monkeypatch):
    """Patch litellm.completion; each queued item is returned or raised in turn."""
    calls = []
    queue = []

    def fake_completion(**kwargs):
        calls.append(kwargs)
        item = queue.pop(0) if queue else _response()
        if isinstance(item, Exception):
            raise item
        return item

    def fake_cost(completion_response):
        raise ValueError("model not in cost map")

    monkeypatch.setattr(llm_module, "completion", fake_completion)
    monkeypatch.setattr(llm_module, "completion_cost", fake_cost)
    return SimpleNamespace(calls=calls, queue=queue)


class TestModelSelection:
    def test_task_models(self):
        client = LLMClient(task=LLMTask.FRAUD_DETECTION)
        assert client.model_name == MODEL_GEMINI_25_FLASH_LITE
        assert client.fallback_models == [MODEL_GEMINI_20_FLASH]

    def test_pinned_model_has_no_fallback(self):
        client = get_client_for_task(LLMTask.CHAT, model=MODEL_CLAUDE_HAIKU_45)
        assert client.fallback_models == []
        assert client.get_model_info()["task"] == "chat"

    def test_unknown_model(self):
        with pytest.raises(ValueError):
            LLMClient(model="gpt-99")


class TestGenerate:
    def test_success(self, completions):
        response = LLMClient(task=LLMTask.THANK_YOU_EMAIL).generate("hello", prompt_version="1.0.0", timeout=5)

        assert response.text == '{"ok": true}'
        assert response.task == "thank_you_email"
        assert response.prompt_version == "1.0.0"
        assert response.input_tokens == 100
        assert response.cost_usd > 0
        assert completions.calls[0]["timeout"] == 5
        assert completions.calls[0]["messages"] == [{"role": "user", "content": "hello"}]

    def test_transient_error_falls_back(self, completions):
        completions.queue.extend([RuntimeError("503 Service Unavailable"), _response("fallback")])
        client = LLMClient(task=LLMTask.FRAUD_DETECTION)

        response = client.generate("hello")

        assert response.text == "fallback"
        assert response.model == MODEL_GEMINI_20_FLASH
        assert len(completions.calls) == 2

    def test_permanent_error_raises_at_once(self, completions):
        completions.queue.append(RuntimeError("AuthenticationError: invalid api key"))
        with pytest.raises(RuntimeError):
            LLMClient(task=LLMTask.FRAUD_DETECTION).generate("hello")
        assert len(completions.calls) == 1

    def test_last_model_error_raises(self, completions):
        completions.queue.extend([RuntimeError("timed out"), RuntimeError("timed out")])
        with pytest.raises(RuntimeError):
            LLMClient(task=LLMTask.FRAUD_DETECTION).generate("hello")
        assert len(completions.calls) == 2

    def test_empty_choices(self, completions):
        completions.queue.append(SimpleNamespace(id="x", choices=[], usage=None))
        with pytest.raises(RuntimeError):
            LLMClient(model=MODEL_GEMINI_20_FLASH).generate("hello")

    def test_json_schema_for_anthropic(self, completions):
        schema = {"type": "object", "properties": {"response": {"type": "string"}}}
        LLMClient(model=MODEL_CLAUDE_HAIKU_45).generate("hello", json_mode=True, json_schema=schema)

        sent = completions.calls[0]["response_format"]["json_schema"]["schema"]
        assert sent["additionalProperties"] is False
        assert "additionalProperties" not in schema

    def test_json_object_without_schema(self, completions):
        LLMClient(model=MODEL_GEMINI_20_FLASH).generate("hello", json_mode=True)
        assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_fix_schema_nested():
    schema = {
        "type": "object",
        "properties": {"items": {"type": "array", "items": {"type": "object", "properties": {}}}},
        "$defs": {"Inner": {"type": "object"}},
    }
    fixed = fix_schema_for_anthropic(schema)
    assert fixed["properties"]["items"]["items"]["additionalProperties"] is False
    assert fixed["$defs"]["Inner"]["additionalProperties"] is False
