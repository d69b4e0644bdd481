"""
The linking flow, one method per redirect hop.

    START                    -> mint nonce + Initial state, send the browser to Open Collective
    AWAIT_PLATFORM_CALLBACK  -> identify the backer, aggregate donations, mint Enriched state,
                                send the browser to Discord
    AWAIT_DISCORD_CALLBACK   -> identify the Discord user, notify, push role-connection metadata
    DONE

Nothing is stored between hops: everything a later hop needs travels in the
signed `state` parameter, and each hop re-checks it against the nonce cookie.
Errors propagate to the caller; a failed hop leaves no trace and the user has
to start over.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaValidationError

from rolelink.auth.nonce import issue_nonce, validate_request_state
from rolelink.auth.tokens import sign_token
from rolelink.config import LinkConfig
from rolelink.errors import ValidationError
from rolelink.metadata import aggregate_donations
from rolelink.models import FlowStart, LinkResult, RoleConnectionMetadata
from rolelink.providers.discord import DiscordClient
from rolelink.providers.open_collective import OpenCollectiveClient
from rolelink.providers.schemas import AccountRef

logger = logging.getLogger(__name__)


class _MetadataState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    is_backer: Literal[0, 1]
    total_donated: Optional[int] = None
    last_donation: Optional[str] = None
    last_donation_amount: Optional[int] = None


class _EnrichedState(BaseModel):
    model_config = ConfigDict(extra="ignore")

    nonce: str
    account: AccountRef
    metadata: _MetadataState


def _require_code_and_state(code: Optional[str], state: Optional[str]) -> None:
    if not code or not state:
        raise ValidationError("missing code and state")


class LinkFlow:
    def __init__(
        self,
        cfg: LinkConfig,
        open_collective: Optional[OpenCollectiveClient] = None,
        discord: Optional[DiscordClient] = None,
    ) -> None:
        self.cfg = cfg
        self.open_collective = open_collective or OpenCollectiveClient(cfg)
        self.discord = discord or DiscordClient(cfg)

    def _sign(self, payload: Dict[str, Any]) -> str:
        return sign_token(self.cfg, payload, ttl_seconds=self.cfg.state_ttl_seconds)

    def start(self) -> FlowStart:
        nonce = issue_nonce()
        state = self._sign({"nonce": nonce})
        return FlowStart(redirect_url=self.open_collective.build_authorize_url(state), nonce=nonce)

    def complete_platform_leg(self, code: Optional[str], state: Optional[str], cookie_header: Optional[str]) -> str:
        """Handle the Open Collective callback and return the Discord authorize URL."""
        _require_code_and_state(code, state)
        payload = validate_request_state(self.cfg, state or "", cookie_header)

        access_token = self.open_collective.exchange_code_for_token(code or "")
        me = self.open_collective.fetch_identity(access_token)
        summary = self.open_collective.fetch_donation_summary(access_token, me.id)
        result = aggregate_donations(summary)

        # Donations made through an organization or fiscal host display as that account.
        account = result.account or me
        logger.info(
            "Open Collective account %s authenticated (display=%s, is_backer=%d)",
            me.slug,
            account.slug,
            result.metadata.is_backer,
        )

        enriched = self._sign(
            {
                "nonce": payload["nonce"],
                "account": account.to_dict(),
                "metadata": result.metadata.to_dict(),
            }
        )
        return self.discord.build_authorize_url(enriched)

    def complete_discord_leg(
        self, code: Optional[str], state: Optional[str], cookie_header: Optional[str]
    ) -> LinkResult:
        """Handle the Discord callback: push the carried metadata for the Discord user."""
        _require_code_and_state(code, state)
        payload = validate_request_state(self.cfg, state or "", cookie_header)
        try:
            carried = _EnrichedState.model_validate(payload)
        except SchemaValidationError:
            # e.g. an Initial token replayed against the Discord callback.
            raise ValidationError("Invalid state payload") from None

        account = carried.account.to_linked_account()
        metadata = RoleConnectionMetadata(**carried.metadata.model_dump())

        access_token = self.discord.exchange_code_for_token(code or "")
        user = self.discord.fetch_identity(access_token)
        if self.discord.post_notification(user, account, metadata):
            logger.debug("Posted link notification for Discord user %s", user.id)
        self.discord.push_metadata(access_token, metadata, account.name or account.slug)

        logger.info("Linked Discord user %s to Open Collective account %s", user.id, account.slug)
        return LinkResult(discord_user_id=user.id, account=account, metadata=metadata)