"""Root pytest configuration for all tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from agentchat.config import reset_config
from agentchat.engine import SessionStore
from tests.utils import CallbackRecorder


@pytest.fixture
def callbacks() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def store(callbacks: CallbackRecorder) -> SessionStore:
    """Store wired to a callback recorder."""
    return SessionStore(
        on_processing_change=callbacks.on_processing,
        on_permission_request=callbacks.on_permission,
    )


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep real user config and env overrides out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("AGENTCHAT_LOG", raising=False)
    monkeypatch.delenv("AGENTCHAT_LOG_LEVEL", raising=False)
    reset_config()
