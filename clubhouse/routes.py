from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Type, TypeVar

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from sqlmodel import Field, Session, SQLModel

from . import notify
from .bracket import generate_bracket
from .compliance import evaluate_member, missing_summary, summarize_health
from .context import ClubContext
from .database import DataClient, RecordNotFound, get_session
from .exports import NGB_PRESETS, build_csv, export_filename, filter_members, readiness
from .live import (
    NOTIFY_EVENT_TYPES,
    InvalidTransition,
    is_gaa,
    phase_updates,
    score_updates,
    scoreboard,
    timeline_event,
    utcnow,
)
from .llm import LLMError, LLMNotConfigured
from .models import (
    Club,
    ClubMembership,
    Member,
    MatchLive,
    Tournament,
    TournamentRegistration,
    TournamentTeam,
    VettingRecord,
)
from .standings import apply_fixture_score, compute_standings, fixtures_by_round, standings_by_group
from .vetting import (
    VETTING_TYPES,
    initial_status,
    member_vetting,
    vettable_members,
    vetting_alerts,
)

router = APIRouter()
logger = logging.getLogger(__name__)

TOURNAMENT_POLL_SECONDS = 30
MATCH_POLL_SECONDS = 10
DEFAULT_TOURNAMENT_SETTINGS = {
    "points_for_win": 3,
    "points_for_draw": 1,
    "teams_per_group": 4,
    "teams_qualify_per_group": 2,
}
REGISTRATION_STATUSES = {"pending", "confirmed", "rejected"}
IN_PLAY = {"first_half", "second_half"}
MATCH_REPORT_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "content": {"type": "string"},
        "excerpt": {"type": "string"},
    },
}

ModelT = TypeVar("ModelT", bound=SQLModel)


class InfoRequest(SQLModel):
    message: str | None = None


class VettingCreate(SQLModel):
    member_id: str
    vetting_type: str
    vetting_id: str | None = None
    issue_date: date | None = None
    expiry_date: date | None = None


class TournamentCreate(SQLModel):
    name: str = Field(min_length=1, max_length=200)
    entry_fee: float | None = None
    teams: list[TournamentTeam] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)


class BracketRequest(SQLModel):
    num_teams: int | None = None
    teams_per_group: int | None = None
    qualify_per_group: int | None = None


class ScoreEntry(SQLModel):
    home_score: int
    away_score: int


class RegistrationDecision(SQLModel):
    registration_status: str


class MatchCreate(SQLModel):
    event_id: str


class PhaseChange(SQLModel):
    action: str


class ScoreEvent(SQLModel):
    team: str
    kind: str = "goal"
    player_name: str = ""


class FanNotifications(SQLModel):
    notify_fans: bool


class MatchReportRequest(SQLModel):
    score: str
    scorers: str = ""
    man_of_match: str = ""
    key_moments: str = ""


def get_client(session: Session = Depends(get_session)) -> DataClient:
    return DataClient(session)


def _load(client: DataClient, model: Type[ModelT], record_id: str, label: str) -> ModelT:
    try:
        return client.record(model, record_id)
    except RecordNotFound:
        raise HTTPException(status_code=404, detail=f"{label} not found")


def _context(client: DataClient, club_id: str | None, user_email: str | None) -> ClubContext:
    if not club_id:
        raise HTTPException(status_code=404, detail="Club not found")
    club = _load(client, Club, club_id, "Club")
    role = None
    if user_email:
        memberships = client.records(ClubMembership, {"club_id": club.id, "user_email": user_email})
        role = memberships[0].role if memberships else None
    return ClubContext(club=club, user_email=user_email, role=role)


def club_context(
    club_id: str,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
) -> ClubContext:
    return _context(client, club_id, x_user_email)


def _require_admin(ctx: ClubContext) -> None:
    if not ctx.is_club_admin:
        raise HTTPException(status_code=403, detail="Club admin access required")


def _require_match_control(ctx: ClubContext) -> None:
    if not ctx.can_control_matches:
        raise HTTPException(status_code=403, detail="Club admin or coach access required")


def _slugify(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


# Registrar


@router.get("/clubs/{club_id}/compliance", name="compliance_dashboard")
async def compliance_dashboard(
    team_id: str | None = None,
    issues_only: bool = False,
    search: str | None = None,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    today = date.today()
    members = filter_members(client.records(Member, {"club_id": ctx.club_id}), team_id=team_id)
    evaluated = [(member, evaluate_member(member, ctx.sport_type, today)) for member in members]
    needle = (search or "").strip().lower()
    rows = [
        {
            "member_id": member.id,
            "name": member.full_name,
            "member_type": member.member_type,
            "member_category": member.member_category,
            "issues": [issue.model_dump() for issue in issues],
        }
        for member, issues in evaluated
        if (issues or not issues_only) and needle in member.full_name.lower()
    ]
    return {
        "club_id": ctx.club_id,
        "sport_type": ctx.sport_type,
        "health": summarize_health([issues for _, issues in evaluated]),
        "members": rows,
    }


@router.post("/clubs/{club_id}/members/{member_id}/info-request", name="request_member_info")
async def request_member_info(
    member_id: str,
    payload: InfoRequest,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    member = _load(client, Member, member_id, "Member")
    if member.club_id != ctx.club_id:
        raise HTTPException(status_code=404, detail="Member not found")

    recipient = member.email or member.guardian_email
    if not recipient:
        raise HTTPException(status_code=400, detail="No email address available")

    issues = evaluate_member(member, ctx.sport_type)
    body = payload.message or notify.render_text(
        "info_request.txt",
        first_name=member.first_name or "your member",
        missing=missing_summary(issues),
    )
    subject = f"Action Required: Update Information for {member.first_name or member.full_name}"
    sent = client.send_email(recipient, subject, body)
    logger.info("Information request for member %s sent=%s", member.id, sent)
    return {
        "recipient": recipient,
        "subject": subject,
        "sent": sent,
        "missing": [issue.field for issue in issues],
    }


def _export_members(
    client: DataClient,
    ctx: ClubContext,
    preset_key: str,
    team_id: str | None,
    include_children: bool,
    include_adults: bool,
):
    preset = NGB_PRESETS.get(preset_key)
    if preset is None:
        raise HTTPException(status_code=400, detail=f"Unknown export preset '{preset_key}'")
    members = filter_members(
        client.records(Member, {"club_id": ctx.club_id}),
        team_id=team_id,
        include_children=include_children,
        include_adults=include_adults,
    )
    return preset, members


@router.get("/clubs/{club_id}/exports/{preset_key}/readiness", name="export_readiness")
async def export_readiness(
    preset_key: str,
    team_id: str | None = None,
    include_children: bool = True,
    include_adults: bool = True,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    preset, members = _export_members(client, ctx, preset_key, team_id, include_children, include_adults)
    return {
        "preset": preset_key,
        "name": preset.name,
        "headers": preset.headers,
        "required_fields": list(preset.required_fields),
        **readiness(preset, members),
    }


@router.get("/clubs/{club_id}/exports/{preset_key}/csv", name="export_csv")
async def export_csv(
    preset_key: str,
    team_id: str | None = None,
    include_children: bool = True,
    include_adults: bool = True,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    preset, members = _export_members(client, ctx, preset_key, team_id, include_children, include_adults)
    filename = export_filename(ctx.club.name, preset)
    logger.info("Exporting %d members for club %s as %s", len(members), ctx.club_id, preset_key)
    return Response(
        content=build_csv(preset, members),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/clubs/{club_id}/vetting", name="vetting_overview")
async def vetting_overview(
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    today = date.today()
    records = client.records(VettingRecord, {"club_id": ctx.club_id})
    members = vettable_members(client.records(Member, {"club_id": ctx.club_id}))
    alerts = vetting_alerts(records, today)
    return {
        "alerts": {
            state: [record.model_dump(mode="json") for record in flagged]
            for state, flagged in alerts.items()
        },
        "members": [member_vetting(member, records, today) for member in members],
    }


@router.post("/clubs/{club_id}/vetting", status_code=201, name="add_vetting_record")
async def add_vetting_record(
    payload: VettingCreate,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    if payload.vetting_type not in VETTING_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown vetting type '{payload.vetting_type}'")
    member = _load(client, Member, payload.member_id, "Member")
    if member.club_id != ctx.club_id:
        raise HTTPException(status_code=404, detail="Member not found")

    return client.create(
        "VettingRecord",
        {
            "club_id": ctx.club_id,
            "member_id": member.id,
            "member_name": member.full_name,
            "member_email": member.email,
            "vetting_type": payload.vetting_type,
            "vetting_id": payload.vetting_id,
            "issue_date": payload.issue_date,
            "expiry_date": payload.expiry_date,
            "status": initial_status(payload.expiry_date),
        },
    )


@router.post("/vetting/{record_id}/reminder", name="send_vetting_reminder")
async def send_vetting_reminder(
    record_id: str,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    record = _load(client, VettingRecord, record_id, "Vetting record")
    _require_admin(_context(client, record.club_id, x_user_email))
    if not record.member_email:
        raise HTTPException(status_code=400, detail="No email address available")
    if record.expiry_date is None:
        raise HTTPException(status_code=400, detail="Vetting record has no expiry date")

    label = VETTING_TYPES.get(record.vetting_type or "", record.vetting_type)
    body = notify.render_text(
        "vetting_reminder.txt",
        member_name=record.member_name or "there",
        label=label,
        expiry_date=record.expiry_date,
    )
    sent = client.send_email(record.member_email, f"Vetting Renewal Required: {label}", body)
    client.update(
        "VettingRecord",
        record_id,
        {"reminder_sent": True, "reminder_sent_date": date.today().isoformat()},
    )
    return {"recipient": record.member_email, "sent": sent}


# Tournaments


def _tournament_view(tournament: Tournament) -> dict[str, Any]:
    return {
        "tournament": tournament.model_dump(mode="json"),
        "fixtures_by_round": {
            round_name: [fixture.model_dump(mode="json") for fixture in fixtures]
            for round_name, fixtures in fixtures_by_round(tournament.fixtures).items()
        },
        "standings_by_group": {
            group: [row.model_dump(mode="json") for row in rows]
            for group, rows in standings_by_group(tournament.standings).items()
        },
        "poll_interval_seconds": TOURNAMENT_POLL_SECONDS,
    }


def _tournament_for_admin(
    client: DataClient, tournament_id: str, user_email: str | None
) -> Tournament:
    tournament = _load(client, Tournament, tournament_id, "Tournament")
    _require_admin(_context(client, tournament.club_id, user_email))
    return tournament


@router.post("/clubs/{club_id}/tournaments", status_code=201, name="create_tournament")
async def create_tournament(
    payload: TournamentCreate,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    created = client.create(
        "Tournament",
        {
            "club_id": ctx.club_id,
            "name": payload.name,
            "slug": _slugify(payload.name),
            "status": "draft",
            "entry_fee": payload.entry_fee,
            "teams": [team.model_dump() for team in payload.teams],
            "groups": [],
            "fixtures": [],
            "standings": [],
            "settings": {**DEFAULT_TOURNAMENT_SETTINGS, **payload.settings},
        },
    )
    logger.info("Created tournament %s for club %s", created["id"], ctx.club_id)
    return _tournament_view(Tournament.model_validate(created))


@router.get("/tournaments/{tournament_id}", name="tournament_detail")
async def tournament_detail(tournament_id: str, client: DataClient = Depends(get_client)):
    return _tournament_view(_load(client, Tournament, tournament_id, "Tournament"))


@router.post("/tournaments/{tournament_id}/bracket", name="generate_tournament_bracket")
async def generate_tournament_bracket(
    tournament_id: str,
    payload: BracketRequest,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    tournament = _tournament_for_admin(client, tournament_id, x_user_email)
    settings = {**DEFAULT_TOURNAMENT_SETTINGS, **tournament.settings}
    teams_per_group = payload.teams_per_group or settings["teams_per_group"]
    qualify_per_group = payload.qualify_per_group or settings["teams_qualify_per_group"]
    num_teams = payload.num_teams or len(tournament.teams)
    if num_teams <= 0 or teams_per_group <= 0 or qualify_per_group < 0:
        raise HTTPException(status_code=400, detail="Team counts must be greater than zero")

    bracket = generate_bracket(num_teams, teams_per_group, qualify_per_group)
    updated = client.update(
        "Tournament",
        tournament_id,
        {
            "groups": [group.model_dump() for group in bracket.groups],
            "fixtures": [fixture.model_dump() for fixture in bracket.fixtures],
            "settings": {
                **settings,
                "teams_per_group": teams_per_group,
                "teams_qualify_per_group": qualify_per_group,
            },
        },
    )
    logger.info(
        "Generated %d groups and %d fixtures for tournament %s",
        len(bracket.groups),
        len(bracket.fixtures),
        tournament_id,
    )
    return _tournament_view(Tournament.model_validate(updated))


@router.post("/tournaments/{tournament_id}/fixtures/{fixture_id}/score", name="record_fixture_score")
async def record_fixture_score(
    tournament_id: str,
    fixture_id: str,
    payload: ScoreEntry,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    tournament = _tournament_for_admin(client, tournament_id, x_user_email)
    if payload.home_score < 0 or payload.away_score < 0:
        raise HTTPException(status_code=400, detail="Scores must be zero or greater")

    fixtures = apply_fixture_score(
        tournament.fixtures, fixture_id, payload.home_score, payload.away_score
    )
    if fixtures is None:
        raise HTTPException(status_code=404, detail="Fixture not found")
    standings = compute_standings(tournament.teams, fixtures)

    # Whole-list write back; a concurrent edit may be overwritten.
    updated = client.update(
        "Tournament",
        tournament_id,
        {
            "fixtures": [fixture.model_dump() for fixture in fixtures],
            "standings": [row.model_dump() for row in standings],
        },
    )
    return _tournament_view(Tournament.model_validate(updated))


@router.post(
    "/tournaments/{tournament_id}/registrations/{registration_id}/status",
    name="update_registration_status",
)
async def update_registration_status(
    tournament_id: str,
    registration_id: str,
    payload: RegistrationDecision,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    tournament = _tournament_for_admin(client, tournament_id, x_user_email)
    if payload.registration_status not in REGISTRATION_STATUSES:
        raise HTTPException(status_code=400, detail="Unknown registration status")
    registration = _load(client, TournamentRegistration, registration_id, "Registration")
    if registration.tournament_id != tournament.id:
        raise HTTPException(status_code=404, detail="Registration not found")

    updated = client.update(
        "TournamentRegistration",
        registration_id,
        {"registration_status": payload.registration_status},
    )

    notification = None
    if payload.registration_status == "confirmed":
        payment_due = bool(tournament.entry_fee and tournament.entry_fee > 0) and (
            registration.payment_status != "paid"
        )
        notification = client.create(
            "Notification",
            {
                "club_id": tournament.club_id,
                "type": "tournament_update",
                "recipient_type": "tournament_participant",
                "recipient_email": registration.contact_email,
                "recipient_name": registration.contact_name,
                "subject": f"Registration Confirmed: {tournament.name}",
                "message": notify.render_text(
                    "registration_confirmed.txt",
                    team_name=registration.team_name,
                    tournament_name=tournament.name,
                    payment_due=payment_due,
                ),
                "related_entity_type": "tournament",
                "related_entity_id": tournament.id,
                "status": "pending",
            },
        )
    return {"registration": updated, "notification": notification}


# Live matches


def _match_view(match: MatchLive) -> dict[str, Any]:
    return {
        "match": match.model_dump(mode="json"),
        "scoreboard": scoreboard(match),
        "poll_interval_seconds": MATCH_POLL_SECONDS,
    }


def _match_for_control(client: DataClient, match_id: str, user_email: str | None) -> MatchLive:
    match = _load(client, MatchLive, match_id, "Match")
    _require_match_control(_context(client, match.club_id, user_email))
    return match


def _notify_fans(client: DataClient, match: MatchLive, message: str) -> bool:
    recipient = notify.FAN_UPDATES_EMAIL
    if not recipient:
        logger.info("FAN_UPDATES_EMAIL not configured; skipping update for match %s", match.id)
        return False
    return client.send_email(recipient, f"{match.team_name} Match Update", message)


def _record_event(
    client: DataClient,
    match: MatchLive,
    updates: dict[str, Any],
    event_type: str,
    team: str | None,
    *,
    player_name: str = "",
) -> MatchLive:
    """Apply ``updates``, append the timeline entry, write back, and notify fans."""
    now = utcnow()
    advanced = MatchLive.model_validate({**match.model_dump(), **updates})
    event = timeline_event(advanced, event_type, team, player_name=player_name, now=now)
    timeline = [*advanced.timeline, event]
    updated = client.update(
        "MatchLive",
        match.id,
        {**updates, "timeline": [entry.model_dump(mode="json") for entry in timeline]},
    )
    if advanced.notify_fans and event_type in NOTIFY_EVENT_TYPES:
        _notify_fans(client, advanced, event.description)
    return MatchLive.model_validate(updated)


@router.post("/clubs/{club_id}/matches", status_code=201, name="create_live_match")
async def create_live_match(
    payload: MatchCreate,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_match_control(ctx)
    try:
        event = client.get("Event", payload.event_id)
    except RecordNotFound:
        raise HTTPException(status_code=404, detail="Event not found")

    created = client.create(
        "MatchLive",
        {
            "club_id": ctx.club_id,
            "event_id": payload.event_id,
            "team_id": event.get("team_id"),
            "team_name": event.get("team_name") or ctx.club.name,
            "opponent_name": event.get("opponent") or "Opponent",
            "sport_type": ctx.sport_type,
            "status": "not_started",
            "home_score": 0,
            "away_score": 0,
            "home_points": 0,
            "away_points": 0,
            "kick_off_time": event.get("start_datetime"),
            "venue": event.get("venue"),
            "timeline": [],
            "notify_fans": False,
        },
    )
    return _match_view(MatchLive.model_validate(created))


@router.get("/matches/{match_id}", name="live_match_detail")
async def live_match_detail(match_id: str, client: DataClient = Depends(get_client)):
    return _match_view(_load(client, MatchLive, match_id, "Match"))


@router.post("/matches/{match_id}/phase", name="change_match_phase")
async def change_match_phase(
    match_id: str,
    payload: PhaseChange,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    match = _match_for_control(client, match_id, x_user_email)
    try:
        updates = phase_updates(match, payload.action)
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    team = "home" if payload.action == "kick_off" else None
    return _match_view(_record_event(client, match, updates, payload.action, team))


@router.post("/matches/{match_id}/score", name="record_match_score")
async def record_match_score(
    match_id: str,
    payload: ScoreEvent,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    match = _match_for_control(client, match_id, x_user_email)
    if match.status not in IN_PLAY:
        raise HTTPException(status_code=409, detail="Match is not in play")
    if payload.kind == "point" and not is_gaa(match.sport_type):
        raise HTTPException(status_code=400, detail="Points are only recorded for Gaelic games")
    try:
        updates = score_updates(match, payload.team, payload.kind)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    updated = _record_event(
        client, match, updates, payload.kind, payload.team, player_name=payload.player_name
    )
    return _match_view(updated)


@router.post("/matches/{match_id}/notifications", name="set_fan_notifications")
async def set_fan_notifications(
    match_id: str,
    payload: FanNotifications,
    client: DataClient = Depends(get_client),
    x_user_email: str | None = Header(default=None),
):
    _match_for_control(client, match_id, x_user_email)
    updated = client.update("MatchLive", match_id, {"notify_fans": payload.notify_fans})
    return _match_view(MatchLive.model_validate(updated))


# News


@router.post("/clubs/{club_id}/news/match-report", name="draft_match_report")
async def draft_match_report(
    payload: MatchReportRequest,
    ctx: ClubContext = Depends(club_context),
    client: DataClient = Depends(get_client),
):
    _require_admin(ctx)
    prompt = notify.render_text("match_report_prompt.txt", **payload.model_dump())
    try:
        result = client.invoke_llm(prompt, MATCH_REPORT_SCHEMA)
    except LLMNotConfigured as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except LLMError as exc:
        raise HTTPException(status_code=502, detail=f"Match report generation failed: {exc}")

    return {
        "club_id": ctx.club_id,
        "title": result.get("title") or f"Match Report: {payload.score}",
        "content": result.get("content") or "",
        "excerpt": result.get("excerpt") or "",
        "category": "match_report",
        "ai_generated": True,
    }
