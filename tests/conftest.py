"""Shared fixtures for donor ledger tests.

No test touches the network: generative flows run against FakeLLMClient,
which has the same generate() signature as LLMClient.
"""

import datetime as dt
import sys
import threading
from pathlib import Path

import pytest

# Add the repository root to the path so tests can import donor_ledger
sys.path.insert(0, str(Path(__file__).parent.parent))

from donor_ledger.config import DashboardConfig, clear_cache  # noqa: E402
from donor_ledger.db import LedgerStore, MemoryStore  # noqa: E402
from donor_ledger.llm.llm_client import LLMResponse  # noqa: E402
from donor_ledger.models.ledger import Transaction  # noqa: E402

TODAY = dt.date(2024, 7, 22)


class FakeLLMClient:
    """Stand-in for LLMClient.

    ``reply`` may be a string, an exception instance (raised on every call),
    or a callable taking the prompt and returning a string. Calls are
    recorded (thread-safe) for assertions.
    """

    def __init__(self, reply=""):
        self.reply = reply
        self.calls: list[dict] = []
        self._lock = threading.Lock()

    def generate(
        self,
        prompt,
        system_prompt=None,
        temperature=0.3,
        max_tokens=None,
        json_mode=False,
        json_schema=None,
        prompt_version=None,
        timeout=None,
        retry_on_error=True,
    ):
        with self._lock:
            self.calls.append(
                {
                    "prompt": prompt,
                    "json_mode": json_mode,
                    "json_schema": json_schema,
                    "prompt_version": prompt_version,
                    "timeout": timeout,
                }
            )
        if isinstance(self.reply, Exception):
            raise self.reply
        text = self.reply(prompt) if callable(self.reply) else self.reply
        return LLMResponse(text=text, model="fake-model", provider="fake", cost_usd=0.0)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Each test sees config loaded from scratch."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def make_transaction():
    """Factory for Transaction records with sensible defaults."""
    counter = {"n": 0}

    def _make(donor="Aisha Rahman", amount=100, date=TODAY, mode="Online", project_id="proj-1", tx_id=None):
        counter["n"] += 1
        return Transaction(
            id=tx_id or f"tx-{counter['n']}",
            donor_name=donor,
            amount=amount,
            date=date,
            mode=mode,
            project_id=project_id,
        )

    return _make


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def ledger(memory_store):
    """LedgerStore over an empty in-memory store (reads fall back to seed data)."""
    return LedgerStore(memory_store, today=lambda: TODAY)


@pytest.fixture
def fake_llm():
    return FakeLLMClient()


@pytest.fixture
def dashboard_config():
    return DashboardConfig(fraud_timeout_seconds=2.0, fraud_max_workers=4)
