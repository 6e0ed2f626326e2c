"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration and small task doubles.
All fixtures here are autouse unless noted.
"""

from __future__ import annotations

import logging
import os
from typing import Any

import pytest

from tests.helpers import ScriptedTask

# =============================================================================
# Task Doubles
# =============================================================================


@pytest.fixture
def scripted_task():
    """Return a factory for ``ScriptedTask`` doubles (not autouse)."""

    def _make(*script: Any, default: Any = "ok", delay_s: float = 0.0) -> ScriptedTask:
        return ScriptedTask(script=list(script), default=default, delay_s=delay_s)

    return _make


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    monkeypatch.setattr(
        "safe_executor.config.load_dotenv", lambda *_args, **_kwargs: False
    )


@pytest.fixture(autouse=True)
def isolate_policy_env(request, monkeypatch):
    """Clear SAFE_EXECUTOR_* env vars so policy tests start from defaults.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("SAFE_EXECUTOR_"):
            monkeypatch.delenv(key, raising=False)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_asyncio_logger():
    """Keep asyncio's own debug chatter out of captured logs."""
    logging.getLogger("asyncio").setLevel(logging.WARNING)
