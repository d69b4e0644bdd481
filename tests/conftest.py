"""
Pytest config.

Local imports like `import rolelink` rely on the repo root being on sys.path. When
invoking a global `pytest` entrypoint that doesn't always happen during collection,
so we pin the behavior here.
"""

from __future__ import annotations

import base64
import sys
from pathlib import Path
from typing import Iterator

import pytest


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from rolelink.config import LinkConfig, load_link_config  # noqa: E402

TEST_SECRET_KEY = base64.b64encode(b"0123456789abcdef0123456789abcdef").decode("ascii")


@pytest.fixture
def link_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[LinkConfig]:
    """Configure a complete test environment and return the loaded config."""
    monkeypatch.setenv("OPEN_COLLECTIVE_CLIENT_ID", "oc-client")
    monkeypatch.setenv("OPEN_COLLECTIVE_CLIENT_SECRET", "oc-secret")
    monkeypatch.setenv("OPEN_COLLECTIVE_REDIRECT_URL", "https://links.example.org/open-collective/redirect")
    monkeypatch.setenv("OPEN_COLLECTIVE_SLUG", "example-collective")
    monkeypatch.setenv("DISCORD_CLIENT_ID", "1234567890")
    monkeypatch.setenv("DISCORD_CLIENT_SECRET", "discord-secret")
    monkeypatch.setenv("DISCORD_REDIRECT_URL", "https://links.example.org/discord/redirect")
    monkeypatch.setenv("DISCORD_WEBHOOK_URL", "")
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET_KEY)
    monkeypatch.delenv("DISCORD_BOT_TOKEN", raising=False)
    monkeypatch.delenv("LINK_COOKIE_SECURE", raising=False)
    monkeypatch.delenv("LINK_STATE_TTL_SECONDS", raising=False)
    load_link_config.cache_clear()
    yield load_link_config()
    load_link_config.cache_clear()
