from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


@dataclass(frozen=True)
class LinkConfig:
    # Open Collective OAuth application
    open_collective_client_id: str
    open_collective_client_secret: str
    open_collective_redirect_url: str
    open_collective_slug: str  # Collective whose backers are being verified

    # Discord OAuth application
    discord_client_id: str
    discord_client_secret: str
    discord_redirect_url: str
    discord_webhook_url: str  # Empty string disables the notification embed
    discord_bot_token: Optional[str]  # Only needed for metadata schema registration

    # State token / cookie configuration
    secret_key: str  # base64-encoded 32 byte HMAC key
    state_ttl_seconds: int
    cookie_max_age_seconds: int
    cookie_secure: bool

    @property
    def notifications_enabled(self) -> bool:
        return bool(self.discord_webhook_url)


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name, "") or default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env_str(name).lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


@lru_cache(maxsize=1)
def load_link_config() -> LinkConfig:
    """
    Load service configuration from environment variables.

    The result is cached for the process lifetime; tests call
    `load_link_config.cache_clear()` after changing the environment.
    """
    ttl = int(float(_env_str("LINK_STATE_TTL_SECONDS", "900") or "900"))  # 15m default
    if ttl < 60:
        ttl = 60

    return LinkConfig(
        open_collective_client_id=_env_str("OPEN_COLLECTIVE_CLIENT_ID"),
        open_collective_client_secret=_env_str("OPEN_COLLECTIVE_CLIENT_SECRET"),
        open_collective_redirect_url=_env_str("OPEN_COLLECTIVE_REDIRECT_URL"),
        open_collective_slug=_env_str("OPEN_COLLECTIVE_SLUG"),
        discord_client_id=_env_str("DISCORD_CLIENT_ID"),
        discord_client_secret=_env_str("DISCORD_CLIENT_SECRET"),
        discord_redirect_url=_env_str("DISCORD_REDIRECT_URL"),
        discord_webhook_url=_env_str("DISCORD_WEBHOOK_URL"),
        discord_bot_token=_env_str("DISCORD_BOT_TOKEN") or None,
        secret_key=_env_str("SECRET_KEY"),
        state_ttl_seconds=ttl,
        cookie_max_age_seconds=25 * 60 * 60,
        cookie_secure=_env_bool("LINK_COOKIE_SECURE", True),
    )
