"""Registration exports in the CSV layouts each governing body imports."""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, Iterable, List, Sequence, Union

from .models import Member

Formatter = Callable[[Member], str]
ColumnSource = Union[str, Formatter]


def _dob(pattern: str) -> Formatter:
    def render(member: Member) -> str:
        return member.date_of_birth.strftime(pattern) if member.date_of_birth else ""

    return render


def _gender_initial(member: Member) -> str:
    return {"male": "M", "female": "F"}.get(member.gender or "", "")


def _gender_word(member: Member) -> str:
    return {"male": "Male", "female": "Female"}.get(member.gender or "", "Other")


def _ngb_number(member: Member) -> str:
    return (member.federation_data.ngb_id if member.federation_data else None) or ""


@dataclass(frozen=True)
class ExportPreset:
    name: str
    columns: Dict[str, ColumnSource]
    required_fields: Sequence[str] = field(default_factory=tuple)

    @property
    def headers(self) -> List[str]:
        return list(self.columns)


NGB_PRESETS: Dict[str, ExportPreset] = {
    "gaa_foireann": ExportPreset(
        name="GAA/LGFA (Foireann)",
        columns={
            "Surname": "last_name",
            "First Name": "first_name",
            "DOB": _dob("%d/%m/%Y"),
            "Gender": _gender_initial,
            "Address Line 1": "address",
            "Address Line 2": "",
            "Town": "city",
            "County": "county",
            "Eircode": "postal_code",
            "Email": "email",
            "Phone": "phone",
            "Guardian Name": "emergency_contact_name",
            "Guardian Phone": "emergency_contact_phone",
        },
        required_fields=("last_name", "first_name", "date_of_birth", "address", "county"),
    ),
    "irfu_rugbyconnect": ExportPreset(
        name="Rugby (RugbyConnect)",
        columns={
            "First Name": "first_name",
            "Surname": "last_name",
            "Date of Birth": _dob("%d-%m-%Y"),
            "Gender": "gender",
            "Email": "email",
            "Mobile": "phone",
            "Address": "address",
            "Town": "city",
            "County": "county",
            "Postcode": "postal_code",
            "School Name": "school_name",
            "Parent/Guardian Name": "emergency_contact_name",
            "Parent/Guardian Email": "",
            "Parent/Guardian Mobile": "emergency_contact_phone",
        },
        required_fields=("first_name", "last_name", "date_of_birth", "email"),
    ),
    "fai_comet": ExportPreset(
        name="Soccer (FAI Comet)",
        columns={
            "FirstName": "first_name",
            "LastName": "last_name",
            "DateOfBirth": _dob("%Y-%m-%d"),
            "Gender": _gender_word,
            "Email": "email",
            "Mobile": "phone",
            "AddressLine1": "address",
            "AddressLine2": "",
            "City": "city",
            "County": "county",
            "PostCode": "postal_code",
            "Country": lambda member: member.country or "Ireland",
        },
        required_fields=("first_name", "last_name", "date_of_birth"),
    ),
    "fa_england": ExportPreset(
        name="Football (FA England)",
        columns={
            "First Name": "first_name",
            "Last Name": "last_name",
            "DOB": _dob("%d/%m/%Y"),
            "Gender": "gender",
            "Email Address": "email",
            "Phone Number": "phone",
            "Address 1": "address",
            "Address 2": "",
            "City": "city",
            "Postcode": "postal_code",
            "FAN Number": _ngb_number,
        },
        required_fields=("first_name", "last_name", "date_of_birth", "postal_code"),
    ),
}


def filter_members(
    members: Iterable[Member],
    *,
    team_id: str | None = None,
    include_children: bool = True,
    include_adults: bool = True,
) -> List[Member]:
    selected: List[Member] = []
    for member in members:
        if team_id and team_id not in member.teams:
            continue
        is_child = member.member_category == "child"
        if is_child and not include_children:
            continue
        if not is_child and not include_adults:
            continue
        selected.append(member)
    return selected


def _has_value(member: Member, field_name: str) -> bool:
    value = getattr(member, field_name, None)
    return bool(value) and str(value).strip() != ""


def readiness(preset: ExportPreset, members: Sequence[Member]) -> dict[str, int]:
    ready = sum(
        1 for member in members if all(_has_value(member, name) for name in preset.required_fields)
    )
    return {"ready": ready, "issues": len(members) - ready, "total": len(members)}


def _cell(member: Member, source: ColumnSource) -> str:
    if not source:
        return ""
    if callable(source):
        return source(member)
    value = getattr(member, source, None)
    return "" if value is None else str(value)


def build_csv(preset: ExportPreset, members: Iterable[Member]) -> str:
    """Render members as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(preset.headers)
    for member in members:
        writer.writerow([_cell(member, source) for source in preset.columns.values()])
    return buffer.getvalue().rstrip("\n")


def export_filename(club_name: str | None, preset: ExportPreset, today: date | None = None) -> str:
    safe_preset = re.sub(r"[^a-z0-9]", "_", preset.name, flags=re.IGNORECASE)
    stamp = (today or date.today()).isoformat()
    return f"{club_name or 'Club'}_{safe_preset}_Export_{stamp}.csv"
