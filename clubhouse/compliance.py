"""Member data compliance checks required for governing-body registration."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable, List, Sequence, TypedDict

from .models import ComplianceIssue, Member

ADULT_AGE = 18
RUGBY_SPORTS = {"rugby", "irfu"}
ERROR = "error"
WARNING = "warning"


class HealthSummary(TypedDict):
    score: int
    label: str
    total: int
    compliant: int
    critical: int
    warnings: int


def age_on(date_of_birth: date, today: date) -> int:
    """Return completed years between ``date_of_birth`` and ``today``."""
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def is_minor(member: Member, today: date | None = None) -> bool:
    if member.member_category == "child":
        return True
    if member.date_of_birth is None:
        return False
    return age_on(member.date_of_birth, today or date.today()) < ADULT_AGE


def evaluate_member(member: Member, sport_type: str | None, today: date | None = None) -> List[ComplianceIssue]:
    """Return the compliance issues for one member; an empty list means compliant.

    Each rule is a presence check on the record. Missing and empty values are
    treated alike and nothing here raises on partial records.
    """
    issues: List[ComplianceIssue] = []

    if not member.date_of_birth:
        issues.append(_issue("date_of_birth", "Missing Date of Birth", ERROR, "All"))
    if not member.address and not member.postal_code:
        issues.append(_issue("address", "Missing Address/Postcode", ERROR, "GAA/LGFA"))
    if not member.gender:
        issues.append(_issue("gender", "Missing Gender", ERROR, "All"))

    if is_minor(member, today):
        if not member.guardian_id and not member.emergency_contact_name:
            issues.append(_issue("guardian", "Missing Guardian/Emergency Contact", ERROR, "All"))
        if sport_type in RUGBY_SPORTS and not member.school_name:
            issues.append(
                _issue("school_name", "Missing School Name (Required for Youth Rugby)", WARNING, "IRFU")
            )

    if member.member_type == "coach" and not member.email:
        issues.append(_issue("email", "Missing Email (Required for Coach Registration)", ERROR, "All"))

    federation = member.federation_data
    if not (federation and federation.ngb_id):
        issues.append(_issue("ngb_id", "Not registered with NGB", WARNING, sport_type))

    return issues


def _issue(field: str, message: str, severity: str, ngb: str | None) -> ComplianceIssue:
    return ComplianceIssue(field=field, message=message, severity=severity, ngb=ngb)


def health_label(score: int) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Needs Attention"
    return "Critical"


def summarize_health(issue_lists: Sequence[Sequence[ComplianceIssue]]) -> HealthSummary:
    """Aggregate per-member issue lists into the club data health score."""
    total = len(issue_lists)
    compliant = sum(1 for issues in issue_lists if not issues)
    critical = sum(1 for issues in issue_lists if any(i.severity == ERROR for i in issues))
    warnings = sum(
        1 for issues in issue_lists if issues and all(i.severity == WARNING for i in issues)
    )
    # Half-up rounding, so 12.5% reports as 13.
    score = math.floor(100 * compliant / total + 0.5) if total else 100
    return HealthSummary(
        score=score,
        label=health_label(score),
        total=total,
        compliant=compliant,
        critical=critical,
        warnings=warnings,
    )


def missing_summary(issues: Iterable[ComplianceIssue]) -> str:
    """Comma-separated issue messages, used in information requests."""
    return ", ".join(issue.message for issue in issues)
