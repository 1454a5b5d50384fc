"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from kiro_acp.config import reset_config

pytest_plugins = ("pytest_asyncio",)

# Environment variables that change how the agent behaves
KIRO_ENV_VARS = (
    "KIRO_ACP_KIRO_CLI",
    "KIRO_CLI",
    "KIRO_ACP_AGENT",
    "KIRO_ACP_MODEL",
    "KIRO_ACP_TRUST_ALL_TOOLS",
    "KIRO_ACP_TRUST_TOOLS",
    "KIRO_ACP_WRAP",
    "KIRO_ACP_VERBOSE",
    "KIRO_ACP_STRATEGY",
    "KIRO_ACP_LOG",
    "KIRO_ACP_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_kiro_env(monkeypatch: pytest.MonkeyPatch):
    """Isolate tests from the developer's kiro-acp environment and config cache."""
    for name in KIRO_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()
