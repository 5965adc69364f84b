"""Typed record structures for the entities the club backend stores.

Records arrive as loosely typed JSON objects with any subset of fields set.
They are validated into these models once, at the DataClient boundary, so the
logic modules can read attributes without guarding every lookup.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import ConfigDict, field_validator
from sqlmodel import Field, SQLModel


def _coerce_date(value: Any) -> Any:
    """Return ``None`` for blank or unparseable dates instead of failing validation."""
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _coerce_score(value: Any) -> Any:
    """Return ``None`` for blank or non-numeric score text; numbers pass through."""
    if not isinstance(value, str):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


class RecordModel(SQLModel):
    """Base for stored records; numeric JSON values are accepted in text fields."""

    model_config = ConfigDict(coerce_numbers_to_str=True)


class FederationData(RecordModel):
    ngb_id: str | None = None
    synced_at: str | None = None


class Member(RecordModel):
    id: str | None = None
    club_id: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    county: str | None = None
    postal_code: str | None = None
    country: str | None = None
    member_type: str | None = None
    member_category: str | None = None
    guardian_id: str | None = None
    guardian_email: str | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    school_name: str | None = None
    teams: list[str] = Field(default_factory=list)
    federation_data: FederationData | None = None

    @field_validator("date_of_birth", mode="before")
    @classmethod
    def parse_birth_date(cls, value: Any) -> Any:
        return _coerce_date(value)

    @field_validator("teams", mode="before")
    @classmethod
    def teams_list(cls, value: Any) -> Any:
        return value or []

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Club(RecordModel):
    id: str | None = None
    name: str | None = None
    sport_type: str | None = None
    contact_email: str | None = None


class ClubMembership(RecordModel):
    id: str | None = None
    club_id: str | None = None
    user_email: str | None = None
    role: str | None = None


class ComplianceIssue(SQLModel):
    field: str
    message: str
    severity: str
    ngb: str | None = None


class TournamentTeam(RecordModel):
    id: str
    name: str | None = None
    group: str | None = None


class Fixture(RecordModel):
    id: str
    round: str | None = None
    group: str | None = None
    home_team_id: str | None = None
    home_team_name: str | None = None
    away_team_id: str | None = None
    away_team_name: str | None = None
    home_score: int | None = None
    away_score: int | None = None
    status: str = "scheduled"

    @field_validator("home_score", "away_score", mode="before")
    @classmethod
    def parse_score(cls, value: Any) -> Any:
        return _coerce_score(value)


class Standing(RecordModel):
    team_id: str
    team_name: str | None = None
    group: str | None = None
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    goal_difference: int = 0
    points: int = 0


class Group(RecordModel):
    name: str
    teams: list[str] = Field(default_factory=list)


class Bracket(SQLModel):
    groups: list[Group] = Field(default_factory=list)
    fixtures: list[Fixture] = Field(default_factory=list)


class Tournament(RecordModel):
    id: str | None = None
    club_id: str | None = None
    name: str | None = None
    slug: str | None = None
    status: str | None = None
    entry_fee: float | None = None
    teams: list[TournamentTeam] = Field(default_factory=list)
    groups: list[Group] = Field(default_factory=list)
    fixtures: list[Fixture] = Field(default_factory=list)
    standings: list[Standing] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("teams", "groups", "fixtures", "standings", "settings", mode="before")
    @classmethod
    def empty_when_null(cls, value: Any, info) -> Any:
        if value is None:
            return {} if info.field_name == "settings" else []
        return value

    @field_validator("entry_fee", mode="before")
    @classmethod
    def blank_fee(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class TournamentRegistration(RecordModel):
    id: str | None = None
    tournament_id: str | None = None
    team_name: str | None = None
    contact_name: str | None = None
    contact_email: str | None = None
    registration_status: str | None = None
    payment_status: str | None = None


class VettingRecord(RecordModel):
    id: str | None = None
    club_id: str | None = None
    member_id: str | None = None
    member_name: str | None = None
    member_email: str | None = None
    vetting_type: str | None = None
    vetting_id: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None
    status: str | None = None

    @field_validator("issue_date", "expiry_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Any:
        return _coerce_date(value)


class TimelineEvent(RecordModel):
    id: str
    minute: int = 0
    type: str
    team: str | None = None
    player_name: str = ""
    description: str = ""
    timestamp: datetime | None = None


class MatchLive(RecordModel):
    id: str | None = None
    club_id: str | None = None
    event_id: str | None = None
    team_id: str | None = None
    team_name: str | None = None
    opponent_name: str | None = None
    sport_type: str | None = None
    status: str = "not_started"
    home_score: int = 0
    away_score: int = 0
    home_points: int = 0
    away_points: int = 0
    started_at: datetime | None = None
    half_time_at: datetime | None = None
    second_half_at: datetime | None = None
    ended_at: datetime | None = None
    notify_fans: bool = False
    timeline: list[TimelineEvent] = Field(default_factory=list)

    @field_validator("home_score", "away_score", "home_points", "away_points", mode="before")
    @classmethod
    def zero_when_null(cls, value: Any) -> Any:
        score = _coerce_score(value)
        return 0 if score is None else score

    @field_validator("timeline", mode="before")
    @classmethod
    def timeline_list(cls, value: Any) -> Any:
        return value or []
