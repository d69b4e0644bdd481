"""
Parsed shapes of provider responses.

Upstream JSON is validated on arrival instead of being walked with optional
lookups; a missing required field fails the flow rather than defaulting.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from rolelink.models import LinkedAccount


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class OAuthTokenResponse(_Schema):
    access_token: str
    token_type: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    scope: Optional[str] = None


# ---- Open Collective (GraphQL v2) ----


class Amount(_Schema):
    value: float


class AccountRef(_Schema):
    id: str
    slug: str
    name: Optional[str] = None  # null for accounts without a public name

    def to_linked_account(self) -> LinkedAccount:
        return LinkedAccount(id=self.id, name=self.name or self.slug, slug=self.slug)


class MeResult(_Schema):
    me: AccountRef


class Membership(_Schema):
    role: str
    total_donations: Amount = Field(alias="totalDonations")


class DonationTransaction(_Schema):
    amount: Amount  # DEBIT side, so normally negative
    created_at: datetime = Field(alias="createdAt")
    from_account: AccountRef = Field(alias="fromAccount")

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        # Timestamps without an offset are UTC; mixing naive and aware ones breaks ordering.
        return v.replace(tzinfo=timezone.utc) if v.tzinfo is None else v


class MembershipPage(_Schema):
    nodes: List[Membership] = Field(default_factory=list)


class TransactionPage(_Schema):
    nodes: List[DonationTransaction] = Field(default_factory=list)


class DonorAccount(AccountRef):
    membership: MembershipPage
    last_donation: TransactionPage = Field(alias="lastDonation")

    @property
    def latest_membership(self) -> Optional[Membership]:
        return self.membership.nodes[0] if self.membership.nodes else None

    @property
    def latest_transaction(self) -> Optional[DonationTransaction]:
        return self.last_donation.nodes[0] if self.last_donation.nodes else None


class OrganizationNode(_Schema):
    account: DonorAccount


class OrganizationPage(_Schema):
    nodes: List[OrganizationNode] = Field(default_factory=list)


class SummaryAccount(DonorAccount):
    organizations: OrganizationPage = Field(default_factory=OrganizationPage)


class DonationSummary(_Schema):
    account: SummaryAccount

    def donor_accounts(self) -> List[DonorAccount]:
        """The authenticated account first, then every organization it belongs to."""
        # memberOf returns one node per role, so the same group can repeat.
        seen = {self.account.id}
        out: List[DonorAccount] = [self.account]
        for node in self.account.organizations.nodes:
            if node.account.id in seen:
                continue
            seen.add(node.account.id)
            out.append(node.account)
        return out


# ---- Discord ----


class DiscordUser(_Schema):
    id: str
    username: str
    global_name: Optional[str] = None
    discriminator: Optional[str] = None
    avatar: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.global_name or self.username
