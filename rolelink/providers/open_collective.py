"""
Open Collective provider: OAuth2 authorization-code flow plus GraphQL v2 queries.

Only two queries are issued: `me` to identify the authenticated account, and a
single donation-summary query covering that account and every organization or
collective it is a member of.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests

from rolelink.config import LinkConfig
from rolelink.errors import UpstreamSchemaError
from rolelink.models import LinkedAccount
from rolelink.providers.http import HTTP_TIMEOUT_SECONDS, check_response, parse_model, response_json
from rolelink.providers.schemas import DonationSummary, MeResult, OAuthTokenResponse

logger = logging.getLogger(__name__)

PROVIDER_NAME = "Open Collective"

AUTHORIZE_URL = "https://opencollective.com/oauth/authorize"
TOKEN_URL = "https://opencollective.com/oauth/token"
GRAPHQL_URL = "https://opencollective.com/api/graphql/v2"

SCOPE = "account"

ME_QUERY = "{ me { id slug name } }"

# Latest membership of the collective and latest outgoing contribution to it,
# for the account itself and for each organization or collective it is a member
# of. Transactions are read from the DEBIT (payer) side, so amounts come back negative.
DONATION_SUMMARY_QUERY = """
query linkedRoleMetadata($slug: String, $account_id: String) {
  account(id: $account_id) {
    ...donor
    organizations: memberOf(accountType: [ORGANIZATION, COLLECTIVE]) {
      nodes {
        account {
          ...donor
        }
      }
    }
  }
}

fragment donor on Account {
  id
  slug
  name
  membership: memberOf(account: { slug: $slug }, limit: 1) {
    nodes {
      role
      totalDonations {
        value
      }
    }
  }
  lastDonation: transactions(type: DEBIT, kind: [CONTRIBUTION], toAccount: { slug: $slug }, limit: 1) {
    nodes {
      amount {
        value
      }
      createdAt
      fromAccount {
        id
        slug
        name
      }
    }
  }
}
"""


class OpenCollectiveClient:
    """OAuth + GraphQL client for the collective platform."""

    def __init__(self, cfg: LinkConfig) -> None:
        self.cfg = cfg

    def build_authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.cfg.open_collective_client_id,
            "redirect_uri": self.cfg.open_collective_redirect_url,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    def exchange_code_for_token(self, code: str) -> str:
        payload = {
            "grant_type": "authorization_code",
            "client_id": self.cfg.open_collective_client_id,
            "client_secret": self.cfg.open_collective_client_secret,
            "code": code,
            "redirect_uri": self.cfg.open_collective_redirect_url,
        }
        r = requests.post(TOKEN_URL, data=payload, timeout=HTTP_TIMEOUT_SECONDS)
        check_response(r, PROVIDER_NAME)
        tokens = parse_model(OAuthTokenResponse, response_json(r, PROVIDER_NAME), PROVIDER_NAME)
        return tokens.access_token

    def _graphql(self, access_token: str, query: str, variables: Optional[Dict[str, Any]] = None) -> Any:
        body: Dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables
        r = requests.post(
            GRAPHQL_URL,
            json=body,
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=HTTP_TIMEOUT_SECONDS,
        )
        check_response(r, PROVIDER_NAME)
        data = response_json(r, PROVIDER_NAME)
        if not isinstance(data, dict):
            raise UpstreamSchemaError(f"Invalid JSON response from {PROVIDER_NAME}")

        errors = data.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) and errors else {}
            msg = str(first.get("message") or "unknown error") if isinstance(first, dict) else "unknown error"
            # Partial data still fails closed: a half-answered summary would under-report.
            raise UpstreamSchemaError(f"{PROVIDER_NAME} query failed: {msg}")
        return data.get("data")

    def fetch_identity(self, access_token: str) -> LinkedAccount:
        data = self._graphql(access_token, ME_QUERY)
        return parse_model(MeResult, data, PROVIDER_NAME).me.to_linked_account()

    def fetch_donation_summary(self, access_token: str, account_id: str) -> DonationSummary:
        data = self._graphql(
            access_token,
            DONATION_SUMMARY_QUERY,
            {"slug": self.cfg.open_collective_slug, "account_id": account_id},
        )
        summary = parse_model(DonationSummary, data, PROVIDER_NAME)
        logger.debug(
            "Donation summary for %s: %d organization(s)", account_id, len(summary.account.organizations.nodes)
        )
        return summary
