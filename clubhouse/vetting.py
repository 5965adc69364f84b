"""Safeguarding vetting status for coaches, volunteers, and committee members."""

from __future__ import annotations

import os
from datetime import date
from typing import Iterable, List, Sequence

from .models import Member, VettingRecord

VETTING_WARNING_DAYS = int(os.getenv("VETTING_WARNING_DAYS", "60"))

VETTING_TYPES = {
    "garda_vetting": "Garda Vetting",
    "dbs": "DBS Check",
    "access_ni": "Access NI",
    "tusla": "Tusla Check",
    "safeguarding_1": "Safeguarding 1",
    "safeguarding_2": "Safeguarding 2",
    "safeguarding_3": "Safeguarding 3",
    "first_aid": "First Aid Cert",
    "coaching_cert": "Coaching Cert",
}

VETTABLE_MEMBER_TYPES = {"coach", "volunteer", "committee"}

EXPIRED = "expired"
EXPIRING_SOON = "expiring_soon"
VALID = "valid"
UNVERIFIED = "unverified"


def days_left(record: VettingRecord, today: date) -> int | None:
    if record.expiry_date is None:
        return None
    return (record.expiry_date - today).days


def record_state(record: VettingRecord, today: date | None = None) -> str:
    remaining = days_left(record, today or date.today())
    if remaining is None:
        return VALID if record.status == VALID else UNVERIFIED
    if remaining < 0:
        return EXPIRED
    if remaining <= VETTING_WARNING_DAYS:
        return EXPIRING_SOON
    return VALID


def initial_status(expiry_date: date | None, today: date | None = None) -> str:
    """Status stored on a newly added record."""
    if expiry_date is None:
        return "pending"
    return EXPIRED if (expiry_date - (today or date.today())).days < 0 else VALID


def vettable_members(members: Iterable[Member]) -> List[Member]:
    return [member for member in members if member.member_type in VETTABLE_MEMBER_TYPES]


def can_coach_under_18(records: Sequence[VettingRecord], today: date | None = None) -> bool:
    """True when the member holds current Garda vetting."""
    today = today or date.today()
    for record in records:
        if record.vetting_type != "garda_vetting" or record.status != VALID:
            continue
        remaining = days_left(record, today)
        if remaining is None or remaining > 0:
            return True
    return False


def member_vetting(member: Member, records: Sequence[VettingRecord], today: date | None = None) -> dict:
    today = today or date.today()
    own = [record for record in records if record.member_id == member.id]
    states = [record_state(record, today) for record in own]
    return {
        "member_id": member.id,
        "member_name": member.full_name,
        "member_type": member.member_type,
        "records": [
            {
                **record.model_dump(mode="json"),
                "label": VETTING_TYPES.get(record.vetting_type or "", record.vetting_type),
                "state": state,
                "days_left": days_left(record, today),
            }
            for record, state in zip(own, states)
        ],
        "expired": states.count(EXPIRED),
        "expiring_soon": states.count(EXPIRING_SOON),
        "valid": states.count(VALID),
        "can_coach_u18": can_coach_under_18(own, today),
    }


def vetting_alerts(records: Iterable[VettingRecord], today: date | None = None) -> dict[str, List[VettingRecord]]:
    today = today or date.today()
    alerts: dict[str, List[VettingRecord]] = {EXPIRED: [], EXPIRING_SOON: []}
    for record in records:
        if record.expiry_date is None:
            continue
        state = record_state(record, today)
        if state in alerts:
            alerts[state].append(record)
    return alerts
