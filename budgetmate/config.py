"""Configuration management for BudgetMate.

This module centralizes all configuration values including paths,
advice provider settings, logging and environment variable overrides.
Business constants (thresholds, benchmarks, category taxonomy) live in
:mod:`budgetmate.rules` instead.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

# Base project root - assumes this file is in budgetmate/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("BUDGETMATE_DATA_DIR", _PROJECT_ROOT / "data"))
USERS_DIR = DATA_DIR / "users"

# Optional replacement for the bundled rules file
RULES_PATH: Optional[Path] = (
    Path(os.environ["BUDGETMATE_RULES_PATH"]).resolve()
    if os.getenv("BUDGETMATE_RULES_PATH")
    else None
)

# Advice collaborator
ADVICE_PROVIDER = os.getenv("BUDGETMATE_ADVICE_PROVIDER", "mock").lower()
ADVICE_MODEL = os.getenv("BUDGETMATE_ADVICE_MODEL", "")
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")

DEFAULT_MODELS = {
    "claude": "claude-sonnet-4-20250514",
    "openai": "gpt-4o-mini",
}

LOG_LEVEL = os.getenv("BUDGETMATE_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, USERS_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def advice_api_key(provider: Optional[str] = None) -> str:
    """Return the API key configured for an advice provider ('' when unset)."""
    provider = (provider or ADVICE_PROVIDER).lower()
    if provider == "claude":
        return ANTHROPIC_API_KEY
    if provider == "openai":
        return OPENAI_API_KEY
    return ""


def advice_model(provider: Optional[str] = None) -> str:
    """Model name for a provider, honouring ``BUDGETMATE_ADVICE_MODEL``."""
    provider = (provider or ADVICE_PROVIDER).lower()
    return ADVICE_MODEL or DEFAULT_MODELS.get(provider, "")


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic handler for the ``budgetmate`` loggers."""
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=LOG_FORMAT)
