"""Live match clock, phase changes, and commentary timeline."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict
from uuid import uuid4

from .models import MatchLive, TimelineEvent

GAA_SPORTS = {"hurling", "gaelic_football"}
HALF_LENGTH_MINUTES = 45
NOTIFY_EVENT_TYPES = {"goal", "point", "half_time", "full_time"}

# action -> (statuses it may follow, resulting status, timestamp field)
PHASES: Dict[str, tuple[set[str], str, str]] = {
    "kick_off": ({"not_started"}, "first_half", "started_at"),
    "half_time": ({"first_half"}, "half_time", "half_time_at"),
    "second_half": ({"half_time"}, "second_half", "second_half_at"),
    "full_time": ({"first_half", "second_half"}, "full_time", "ended_at"),
}
SCORE_FIELDS = {
    ("home", "goal"): "home_score",
    ("away", "goal"): "away_score",
    ("home", "point"): "home_points",
    ("away", "point"): "away_points",
}


class InvalidTransition(ValueError):
    """Raised when a phase action does not follow the match's current status."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def whole_minutes(start: datetime | None, end: datetime | None) -> int:
    if start is None or end is None:
        return 0
    seconds = (_as_utc(end) - _as_utc(start)).total_seconds()
    return max(0, int(seconds // 60))


def elapsed_minutes(match: MatchLive, now: datetime | None = None) -> int:
    """Match clock in whole minutes; stops during the break and after full time."""
    now = now or utcnow()
    if match.status == "first_half":
        return whole_minutes(match.started_at, now)
    if match.status == "half_time":
        return whole_minutes(match.started_at, match.half_time_at or now)
    if match.status == "second_half":
        return HALF_LENGTH_MINUTES + whole_minutes(match.second_half_at, now)
    if match.status == "full_time":
        if match.second_half_at is None:
            return whole_minutes(match.started_at, match.ended_at)
        return HALF_LENGTH_MINUTES + whole_minutes(match.second_half_at, match.ended_at)
    return 0


def is_gaa(sport_type: str | None) -> bool:
    return sport_type in GAA_SPORTS


def format_score(goals: int, points: int | None, gaa: bool) -> str:
    """Gaelic games show goals-points; everything else shows goals."""
    if gaa:
        return f"{goals}-{points or 0}"
    return str(goals)


def phase_updates(match: MatchLive, action: str, now: datetime | None = None) -> Dict[str, Any]:
    if action not in PHASES:
        raise InvalidTransition(f"Unknown match action '{action}'.")
    allowed_from, status, stamp_field = PHASES[action]
    if match.status not in allowed_from:
        raise InvalidTransition(f"Cannot {action.replace('_', ' ')} while match is {match.status}.")
    return {"status": status, stamp_field: (now or utcnow()).isoformat()}


def score_updates(match: MatchLive, team: str, kind: str) -> Dict[str, int]:
    field_name = SCORE_FIELDS.get((team, kind))
    if field_name is None:
        raise ValueError(f"Unknown score '{kind}' for side '{team}'.")
    return {field_name: getattr(match, field_name) + 1}


def side_name(match: MatchLive, team: str | None) -> str:
    return (match.team_name if team == "home" else match.opponent_name) or ""


def describe_event(match: MatchLive, event_type: str, team: str | None, minute: int, player_name: str = "") -> str:
    side = side_name(match, team)
    if event_type == "goal":
        if player_name:
            return f"{minute}' - GOAL! {player_name} scores for {side}"
        return f"{minute}' - GOAL! {side}"
    if event_type == "point":
        return f"{minute}' - POINT! {side}"
    if event_type == "kick_off":
        return "The match has kicked off!"
    if event_type == "half_time":
        return f"Half Time: {match.team_name} {match.home_score} - {match.away_score} {match.opponent_name}"
    if event_type == "second_half":
        return "Second half underway!"
    if event_type == "full_time":
        return f"Full Time: {match.team_name} {match.home_score} - {match.away_score} {match.opponent_name}"
    return f"{minute}' - {event_type}"


def timeline_event(
    match: MatchLive,
    event_type: str,
    team: str | None,
    *,
    player_name: str = "",
    now: datetime | None = None,
) -> TimelineEvent:
    """Build the commentary entry for ``event_type`` at the current match minute."""
    now = now or utcnow()
    minute = elapsed_minutes(match, now)
    return TimelineEvent(
        id=uuid4().hex,
        minute=minute,
        type=event_type,
        team=team,
        player_name=player_name,
        description=describe_event(match, event_type, team, minute, player_name),
        timestamp=now,
    )


def scoreboard(match: MatchLive, now: datetime | None = None) -> Dict[str, Any]:
    gaa = is_gaa(match.sport_type)
    return {
        "status": match.status,
        "minute": elapsed_minutes(match, now),
        "home": format_score(match.home_score, match.home_points, gaa),
        "away": format_score(match.away_score, match.away_points, gaa),
    }
