from __future__ import annotations

from datetime import date

import pytest

from clubhouse.compliance import (
    age_on,
    evaluate_member,
    health_label,
    is_minor,
    missing_summary,
    summarize_health,
)
from clubhouse.models import Member

TODAY = date(2025, 6, 1)


def _adult(**overrides) -> Member:
    data = {
        "first_name": "Aoife",
        "last_name": "Byrne",
        "date_of_birth": "1990-03-14",
        "gender": "female",
        "address": "1 Main Street",
        "member_type": "player",
        "member_category": "adult",
        "federation_data": {"ngb_id": "GAA-123"},
    }
    data.update(overrides)
    return Member.model_validate(data)


def _fields(issues) -> list[str]:
    return [issue.field for issue in issues]


def test_complete_adult_is_compliant():
    assert evaluate_member(_adult(), "gaelic_football", TODAY) == []


def test_missing_ngb_id_is_the_only_issue_for_complete_adult():
    issues = evaluate_member(_adult(federation_data=None), "hurling", TODAY)
    assert _fields(issues) == ["ngb_id"]
    assert issues[0].severity == "warning"
    assert issues[0].ngb == "hurling"
    assert issues[0].message == "Not registered with NGB"


def test_missing_date_of_birth_always_reported():
    issues = evaluate_member(_adult(date_of_birth=None), "gaelic_football", TODAY)
    assert "date_of_birth" in _fields(issues)
    empty = evaluate_member(Member(), "gaelic_football", TODAY)
    assert "date_of_birth" in _fields(empty)


def test_unparseable_date_of_birth_counts_as_missing():
    member = _adult(date_of_birth="not a date")
    assert member.date_of_birth is None
    assert "date_of_birth" in _fields(evaluate_member(member, "gaelic_football", TODAY))


def test_postal_code_satisfies_address_rule():
    member = _adult(address=None, postal_code="D01 F5P2")
    assert "address" not in _fields(evaluate_member(member, "gaelic_football", TODAY))
    member = _adult(address="", postal_code="")
    issues = evaluate_member(member, "gaelic_football", TODAY)
    address = next(issue for issue in issues if issue.field == "address")
    assert address.ngb == "GAA/LGFA"
    assert address.severity == "error"


def test_minor_without_guardian_flagged_until_contact_added():
    child = _adult(date_of_birth="2012-09-01", member_category="child")
    assert "guardian" in _fields(evaluate_member(child, "gaelic_football", TODAY))

    with_guardian = child.model_copy(update={"guardian_id": "m-1"})
    assert "guardian" not in _fields(evaluate_member(with_guardian, "gaelic_football", TODAY))

    with_contact = child.model_copy(update={"emergency_contact_name": "Mary Byrne"})
    assert "guardian" not in _fields(evaluate_member(with_contact, "gaelic_football", TODAY))


def test_minor_by_age_even_when_category_is_adult():
    member = _adult(date_of_birth="2007-06-02")
    assert is_minor(member, TODAY)
    assert "guardian" in _fields(evaluate_member(member, "gaelic_football", TODAY))


def test_eighteenth_birthday_is_adult():
    member = _adult(date_of_birth="2007-06-01")
    assert not is_minor(member, TODAY)
    assert evaluate_member(member, "gaelic_football", TODAY) == []


@pytest.mark.parametrize("sport", ["rugby", "irfu"])
def test_rugby_minor_needs_school_name(sport):
    child = _adult(member_category="child", date_of_birth="2013-01-01", guardian_id="m-1")
    issues = evaluate_member(child, sport, TODAY)
    assert _fields(issues) == ["school_name"]
    assert issues[0].severity == "warning"
    assert issues[0].ngb == "IRFU"

    assert evaluate_member(child, "soccer", TODAY) == []


def test_coach_requires_email():
    coach = _adult(member_type="coach")
    issues = evaluate_member(coach, "gaelic_football", TODAY)
    assert _fields(issues) == ["email"]
    assert evaluate_member(coach.model_copy(update={"email": "c@club.ie"}), "gaelic_football", TODAY) == []


def test_age_on_uses_calendar_not_day_count():
    assert age_on(date(2000, 2, 29), date(2018, 2, 28)) == 17
    assert age_on(date(2000, 2, 29), date(2018, 3, 1)) == 18


def test_health_summary_counts_and_rounds_half_up():
    compliant = evaluate_member(_adult(), "gaelic_football", TODAY)
    warning_only = evaluate_member(_adult(federation_data=None), "gaelic_football", TODAY)
    critical = evaluate_member(Member(), "gaelic_football", TODAY)
    summary = summarize_health([compliant] + [warning_only] * 3 + [critical] * 4)

    assert summary["total"] == 8
    assert summary["compliant"] == 1
    assert summary["warnings"] == 3
    assert summary["critical"] == 4
    assert summary["score"] == 13
    assert summary["label"] == "Critical"


def test_health_summary_without_members():
    summary = summarize_health([])
    assert summary["score"] == 100
    assert summary["label"] == "Excellent"


@pytest.mark.parametrize(
    "score, label",
    [(100, "Excellent"), (90, "Excellent"), (89, "Good"), (70, "Good"), (50, "Needs Attention"), (49, "Critical")],
)
def test_health_labels(score, label):
    assert health_label(score) == label


def test_missing_summary_joins_messages():
    issues = evaluate_member(_adult(gender=None, federation_data=None), "gaelic_football", TODAY)
    assert missing_summary(issues) == "Missing Gender, Not registered with NGB"
