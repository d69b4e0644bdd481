from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class LinkedAccount:
    """Open Collective account associated with the Discord user."""

    id: str
    name: str
    slug: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name, "slug": self.slug}


@dataclass
class RoleConnectionMetadata:
    """
    Values pushed to Discord's role-connection endpoint.

    Discord expects booleans as 0/1 and drops keys it does not receive, so unset
    fields are omitted rather than sent as null.
    """

    is_backer: int = 0
    total_donated: Optional[int] = None
    last_donation: Optional[str] = None  # ISO-8601 timestamp
    last_donation_amount: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self.total_donated is not None:
            out["total_donated"] = self.total_donated
        if self.last_donation is not None:
            out["last_donation"] = self.last_donation
        if self.last_donation_amount is not None:
            out["last_donation_amount"] = self.last_donation_amount
        out["is_backer"] = self.is_backer
        return out


@dataclass(frozen=True)
class AggregationResult:
    metadata: RoleConnectionMetadata
    # Paying account of the newest donation, when there is one.
    account: Optional[LinkedAccount] = None


@dataclass(frozen=True)
class FlowStart:
    redirect_url: str
    nonce: str


@dataclass(frozen=True)
class LinkResult:
    discord_user_id: str
    account: LinkedAccount
    metadata: RoleConnectionMetadata
