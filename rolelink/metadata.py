"""
Reduce an Open Collective donation summary into Discord role-connection metadata.

Amounts are always rounded up to whole currency units so a donation is never
under-reported.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from rolelink.models import AggregationResult, LinkedAccount, RoleConnectionMetadata
from rolelink.providers.schemas import DonationSummary

BACKER_ROLES = frozenset({"BACKER", "ADMIN", "CONTRIBUTOR", "MEMBER"})


def aggregate_donations(summary: DonationSummary) -> AggregationResult:
    """
    Fold every donor account (the user plus their organizations) into one record.

    - Accounts without a membership of the collective contribute nothing.
    - `total_donated` is summed across accounts.
    - `is_backer` becomes 1 once any account holds a backer role and stays 1.
    - The newest transaction across accounts sets `last_donation`,
      `last_donation_amount` and the account the link is displayed as.
    """
    metadata = RoleConnectionMetadata()
    newest: Optional[datetime] = None
    account: Optional[LinkedAccount] = None

    for donor in summary.donor_accounts():
        membership = donor.latest_membership
        if membership is None:
            continue

        metadata.total_donated = (metadata.total_donated or 0) + math.ceil(membership.total_donations.value)
        if membership.role.upper() in BACKER_ROLES:
            metadata.is_backer = 1

        tx = donor.latest_transaction
        if tx is None:
            continue
        if newest is None or tx.created_at > newest:
            newest = tx.created_at
            metadata.last_donation = tx.created_at.isoformat()
            metadata.last_donation_amount = math.ceil(abs(tx.amount.value))
            account = tx.from_account.to_linked_account()

    return AggregationResult(metadata=metadata, account=account)
