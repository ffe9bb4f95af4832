"""
Central configuration for data paths and dashboard settings.

Local collections (projects, payments, ...) are stored as JSON files in
~/.donor-ledger/ unless DONOR_LEDGER_DATA_DIR points elsewhere.

Settings are read from config/dashboard.yaml (or the file named by
DONOR_LEDGER_CONFIG). A missing file means "use defaults".

Provider API keys are read by LiteLLM from the environment:
  - GEMINI_API_KEY
  - OPENAI_API_KEY
  - ANTHROPIC_API_KEY
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from donor_ledger.constants import (
    FRAUD_MAX_WORKERS,
    FRAUD_TIMEOUT_SECONDS,
    LIVE_FEED_WINDOW,
)

logger = logging.getLogger(__name__)


def get_data_dir() -> Path:
    """
    Get the local data directory used by the JSON file store.

    Uses DONOR_LEDGER_DATA_DIR environment variable if set, otherwise defaults
    to ~/.donor-ledger/

    Returns:
        Path to data directory
    """
    env_path = os.environ.get("DONOR_LEDGER_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path.home() / ".donor-ledger"


@dataclass
class DashboardConfig:
    """Runtime settings for the dashboard services.

    Attributes:
        fraud_timeout_seconds: Per-donor deadline for a fraud assessment
        fraud_max_workers: Upper bound on concurrent fraud assessments
        feed_window: Number of entries shown in the live donation feed
        log_level: Default log level for the CLI
        fraud_model: Optional model override for fraud detection
        content_model: Optional model override for email/broadcast/chat copy
    """

    fraud_timeout_seconds: float = FRAUD_TIMEOUT_SECONDS
    fraud_max_workers: int = FRAUD_MAX_WORKERS
    feed_window: int = LIVE_FEED_WINDOW
    log_level: str = "INFO"
    fraud_model: Optional[str] = None
    content_model: Optional[str] = None

    def __post_init__(self):
        if self.fraud_timeout_seconds <= 0:
            raise ValueError(f"fraud_timeout_seconds must be positive, got {self.fraud_timeout_seconds}")
        if self.fraud_max_workers < 1:
            raise ValueError(f"fraud_max_workers must be at least 1, got {self.fraud_max_workers}")
        if self.feed_window < 1:
            raise ValueError(f"feed_window must be at least 1, got {self.feed_window}")

    @classmethod
    def from_dict(cls, raw: dict) -> "DashboardConfig":
        """Build a config from a parsed YAML mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            logger.warning(f"Ignoring unknown dashboard settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in raw.items() if k in known})


# Module-level cache
_config_cache: Optional[DashboardConfig] = None


def _get_config_path() -> Path:
    env_path = os.environ.get("DONOR_LEDGER_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path(__file__).parent.parent / "config" / "dashboard.yaml"


def load_config() -> DashboardConfig:
    """Load and cache dashboard settings from YAML."""
    global _config_cache
    if _config_cache is not None:
        return _config_cache

    config_path = _get_config_path()
    if not config_path.exists():
        logger.debug(f"Dashboard config not found at {config_path}, using defaults")
        _config_cache = DashboardConfig()
        return _config_cache

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config_cache = DashboardConfig.from_dict(raw.get("dashboard", raw))
    logger.debug(f"Loaded dashboard config from {config_path}")
    return _config_cache


def clear_cache():
    """Clear the config cache (useful for testing)."""
    global _config_cache
    _config_cache = None
