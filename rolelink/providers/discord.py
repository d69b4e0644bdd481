"""
Discord provider: OAuth2 authorization-code flow, role-connection metadata,
the optional notification webhook and the one-time metadata schema registration.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

import requests

from rolelink.config import LinkConfig
from rolelink.models import LinkedAccount, RoleConnectionMetadata
from rolelink.providers.http import HTTP_TIMEOUT_SECONDS, check_response, parse_model, response_json
from rolelink.providers.schemas import DiscordUser, OAuthTokenResponse

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Discord"
PLATFORM_NAME = "Open Collective"

API_BASE = "https://discord.com/api/v10"
AUTHORIZE_URL = "https://discord.com/api/oauth2/authorize"
TOKEN_URL = f"{API_BASE}/oauth2/token"
USER_URL = f"{API_BASE}/users/@me"

SCOPE = "role_connections.write identify"

# Role-connection metadata comparator types.
INTEGER_GREATER_THAN_OR_EQUAL = 2
DATETIME_GREATER_THAN_OR_EQUAL = 6
BOOLEAN_EQUAL = 7

METADATA_SCHEMA: List[Dict[str, Any]] = [
    {
        "key": "total_donated",
        "name": "Total Donated",
        "description": "Minimum amount to donate",
        "type": INTEGER_GREATER_THAN_OR_EQUAL,
    },
    {
        "key": "last_donation",
        "name": "Last Donation",
        "description": "Days since their last donation",
        "type": DATETIME_GREATER_THAN_OR_EQUAL,
    },
    {
        "key": "last_donation_amount",
        "name": "Last Donation Amount",
        "description": "Minimum amount of their last donation",
        "type": INTEGER_GREATER_THAN_OR_EQUAL,
    },
    {
        "key": "is_backer",
        "name": "Backer",
        "description": "The user has either donated at least once before or is a member of the collective",
        "type": BOOLEAN_EQUAL,
    },
]

EMBED_COLOR = 0x66CC33


def build_metadata_schema(
    locales: Optional[Mapping[str, Mapping[str, Mapping[str, str]]]] = None,
) -> List[Dict[str, Any]]:
    """
    Return the registration body, optionally with per-locale display strings.

    Args:
        locales: `{locale: {field_key: {"name": ..., "description": ...}}}`,
            e.g. `{"fr": {"is_backer": {"name": "Donateur"}}}`. Unknown keys are ignored.
    """
    out: List[Dict[str, Any]] = []
    for field in METADATA_SCHEMA:
        entry = dict(field)
        names: Dict[str, str] = {}
        descriptions: Dict[str, str] = {}
        for locale, fields in (locales or {}).items():
            strings = fields.get(field["key"]) or {}
            if strings.get("name"):
                names[locale] = strings["name"]
            if strings.get("description"):
                descriptions[locale] = strings["description"]
        if names:
            entry["name_localizations"] = names
        if descriptions:
            entry["description_localizations"] = descriptions
        out.append(entry)
    return out


class DiscordClient:
    """OAuth + REST client for Discord's linked-roles API."""

    def __init__(self, cfg: LinkConfig) -> None:
        self.cfg = cfg

    @property
    def role_connection_url(self) -> str:
        return f"{USER_URL}/applications/{self.cfg.discord_client_id}/role-connection"

    def build_authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.cfg.discord_client_id,
            "redirect_uri": self.cfg.discord_redirect_url,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
            "prompt": "consent",
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code_for_token(self, code: str) -> str:
        payload = {
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.cfg.discord_client_id,
            "client_secret": self.cfg.discord_client_secret,
            "redirect_uri": self.cfg.discord_redirect_url,
        }
        r = requests.post(TOKEN_URL, data=payload, timeout=HTTP_TIMEOUT_SECONDS)
        check_response(r, PROVIDER_NAME)
        tokens = parse_model(OAuthTokenResponse, response_json(r, PROVIDER_NAME), PROVIDER_NAME)
        return tokens.access_token

    def fetch_identity(self, access_token: str) -> DiscordUser:
        r = requests.get(
            USER_URL,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        check_response(r, PROVIDER_NAME)
        return parse_model(DiscordUser, response_json(r, PROVIDER_NAME), PROVIDER_NAME)

    def push_metadata(self, access_token: str, metadata: RoleConnectionMetadata, display_name: str) -> None:
        body = {
            "platform_name": PLATFORM_NAME,
            "platform_username": display_name,
            "metadata": metadata.to_dict(),
        }
        r = requests.put(
            self.role_connection_url,
            json=body,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        check_response(r, PROVIDER_NAME)

    def post_notification(
        self, user: DiscordUser, account: LinkedAccount, metadata: RoleConnectionMetadata
    ) -> bool:
        """
        Announce a completed link on the configured webhook.

        Returns False without a request when no webhook URL is configured.
        """
        if not self.cfg.notifications_enabled:
            return False

        fields = [
            {"name": "id", "value": account.id, "inline": True},
            {"name": "name", "value": account.name, "inline": True},
            {"name": "slug", "value": account.slug, "inline": True},
        ]
        for key, value in metadata.to_dict().items():
            fields.append({"name": key, "value": str(value), "inline": True})

        payload = {
            "embeds": [
                {
                    "type": "rich",
                    "title": user.id,
                    "description": user.display_name,
                    "fields": fields,
                    "color": EMBED_COLOR,
                }
            ]
        }
        r = requests.post(self.cfg.discord_webhook_url, json=payload, timeout=HTTP_TIMEOUT_SECONDS)
        check_response(r, "Discord webhook")
        return True

    def register_metadata_schema(
        self,
        bot_token: str,
        locales: Optional[Mapping[str, Mapping[str, Mapping[str, str]]]] = None,
    ) -> Any:
        """
        Replace the application's role-connection metadata schema.

        Administrative and idempotent; run once per application, never per user.
        """
        url = f"{API_BASE}/applications/{self.cfg.discord_client_id}/role-connections/metadata"
        r = requests.put(
            url,
            json=build_metadata_schema(locales),
            headers={"Authorization": f"Bot {bot_token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        check_response(r, PROVIDER_NAME)
        logger.info("Registered %d role-connection metadata fields", len(METADATA_SCHEMA))
        return response_json(r, PROVIDER_NAME)
