from __future__ import annotations

from typing import Any, Dict, List, Optional

from rolelink.metadata import aggregate_donations
from rolelink.models import LinkedAccount
from rolelink.providers.schemas import DonationSummary

T1 = "2024-03-01T12:00:00.000Z"
T2 = "2024-05-20T08:30:00.000Z"


def _donor(
    slug: str,
    *,
    role: Optional[str] = None,
    total: float = 0.0,
    amount: Optional[float] = None,
    created_at: Optional[str] = None,
    paid_by: Optional[str] = None,
) -> Dict[str, Any]:
    membership = [{"role": role, "totalDonations": {"value": total}}] if role is not None else []
    transactions = []
    if amount is not None:
        payer = paid_by or slug
        transactions.append(
            {
                "amount": {"value": amount},
                "createdAt": created_at,
                "fromAccount": {"id": f"id-{payer}", "slug": payer, "name": payer.title()},
            }
        )
    return {
        "id": f"id-{slug}",
        "slug": slug,
        "name": slug.title(),
        "membership": {"nodes": membership},
        "lastDonation": {"nodes": transactions},
    }


def _summary(me: Dict[str, Any], orgs: Optional[List[Dict[str, Any]]] = None) -> DonationSummary:
    account = dict(me)
    account["organizations"] = {"nodes": [{"account": o} for o in (orgs or [])]}
    return DonationSummary.model_validate({"account": account})


def test_no_memberships_yields_only_is_backer_zero() -> None:
    result = aggregate_donations(_summary(_donor("alice"), [_donor("acme")]))
    assert result.metadata.to_dict() == {"is_backer": 0}
    assert result.account is None


def test_two_accounts_sum_totals_and_take_newest_donation() -> None:
    alice = _donor("alice", role="BACKER", total=12.3, amount=-5.2, created_at=T1)
    acme = _donor("acme", role="MEMBER", total=7.0, amount=-9.9, created_at=T2)
    result = aggregate_donations(_summary(alice, [acme]))

    md = result.metadata
    assert md.total_donated == 20
    assert md.is_backer == 1
    assert md.last_donation is not None and md.last_donation.startswith("2024-05-20T08:30:00")
    assert md.last_donation_amount == 10
    assert result.account == LinkedAccount(id="id-acme", name="Acme", slug="acme")


def test_older_later_transaction_does_not_overwrite_newer() -> None:
    alice = _donor("alice", role="BACKER", total=1, amount=-3.0, created_at=T2)
    acme = _donor("acme", role="ADMIN", total=1, amount=-50.0, created_at=T1)
    md = aggregate_donations(_summary(alice, [acme])).metadata
    assert md.last_donation_amount == 3
    assert md.last_donation is not None and md.last_donation.startswith("2024-05-20")


def test_backer_flag_is_sticky_in_either_order() -> None:
    follower = _donor("alice", role="FOLLOWER", total=0)
    admin = _donor("acme", role="ADMIN", total=0)
    assert aggregate_donations(_summary(follower, [admin])).metadata.is_backer == 1
    assert aggregate_donations(_summary(admin, [follower])).metadata.is_backer == 1


def test_non_backer_role_still_counts_donations() -> None:
    md = aggregate_donations(_summary(_donor("alice", role="FOLLOWER", total=4.01))).metadata
    assert md.is_backer == 0
    assert md.total_donated == 5


def test_account_without_membership_is_ignored_even_with_transactions() -> None:
    alice = _donor("alice", role="CONTRIBUTOR", total=2.5)
    stray = _donor("stray", amount=-100.0, created_at=T2)
    result = aggregate_donations(_summary(alice, [stray]))
    assert result.metadata.to_dict() == {"total_donated": 3, "is_backer": 1}
    assert result.account is None


def test_amounts_round_up_and_use_magnitude() -> None:
    md = aggregate_donations(_summary(_donor("alice", role="BACKER", total=10.0001, amount=-0.5, created_at=T1))).metadata
    assert md.total_donated == 11
    assert md.last_donation_amount == 1


def test_timestamp_without_offset_is_compared_as_utc() -> None:
    alice = _donor("alice", role="BACKER", total=1, amount=-2.0, created_at="2024-03-01T12:00:00Z")
    acme = _donor("acme", role="MEMBER", total=1, amount=-4.0, created_at="2024-05-01T12:00:00")
    md = aggregate_donations(_summary(alice, [acme])).metadata
    assert md.last_donation == "2024-05-01T12:00:00+00:00"
    assert md.last_donation_amount == 4


def test_payer_without_public_name_is_shown_by_slug() -> None:
    alice = _donor("alice", role="BACKER", total=5, amount=-5, created_at=T1)
    alice["lastDonation"]["nodes"][0]["fromAccount"]["name"] = None
    result = aggregate_donations(_summary(alice))
    assert result.account == LinkedAccount(id="id-alice", name="alice", slug="alice")


def test_transaction_payer_becomes_linked_identity() -> None:
    alice = _donor("alice", role="BACKER", total=5, amount=-5, created_at=T1, paid_by="fiscal-host")
    result = aggregate_donations(_summary(alice))
    assert result.account is not None
    assert result.account.slug == "fiscal-host"
