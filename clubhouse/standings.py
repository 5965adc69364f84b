"""League table computation for tournament group stages."""

from __future__ import annotations

from collections import OrderedDict
from typing import Dict, Iterable, List, Sequence

from .bracket import GROUP_STAGE
from .models import Fixture, Standing, TournamentTeam

COMPLETED = "completed"
POINTS_FOR_WIN = 3
POINTS_FOR_DRAW = 1


def compute_standings(teams: Sequence[TournamentTeam], fixtures: Iterable[Fixture]) -> List[Standing]:
    """Rebuild the group table from the full fixture list.

    Only completed group-stage fixtures between two listed teams count. Rows
    sort by group, then points, goal difference and goals scored; anything still
    level keeps the order the teams were listed in (no head-to-head or other
    tie-break).
    """
    table: Dict[str, Standing] = {}
    for team in teams:
        table[team.id] = Standing(team_id=team.id, team_name=team.name, group=team.group)

    for fixture in fixtures:
        if fixture.status != COMPLETED or fixture.round != GROUP_STAGE:
            continue
        home = table.get(fixture.home_team_id) if fixture.home_team_id else None
        away = table.get(fixture.away_team_id) if fixture.away_team_id else None
        if home is None or away is None:
            continue

        home_score = fixture.home_score or 0
        away_score = fixture.away_score or 0

        home.played += 1
        home.goals_for += home_score
        home.goals_against += away_score
        away.played += 1
        away.goals_for += away_score
        away.goals_against += home_score

        if home_score > away_score:
            home.won += 1
            home.points += POINTS_FOR_WIN
            away.lost += 1
        elif away_score > home_score:
            away.won += 1
            away.points += POINTS_FOR_WIN
            home.lost += 1
        else:
            home.drawn += 1
            away.drawn += 1
            home.points += POINTS_FOR_DRAW
            away.points += POINTS_FOR_DRAW

        home.goal_difference = home.goals_for - home.goals_against
        away.goal_difference = away.goals_for - away.goals_against

    def sort_key(row: Standing) -> tuple:
        return (row.group or "", -row.points, -row.goal_difference, -row.goals_for)

    return sorted(table.values(), key=sort_key)


def apply_fixture_score(
    fixtures: Sequence[Fixture], fixture_id: str, home_score: int, away_score: int
) -> List[Fixture] | None:
    """Return a copy of ``fixtures`` with one fixture scored and completed.

    Returns ``None`` when no fixture carries ``fixture_id``.
    """
    updated: List[Fixture] = []
    found = False
    for fixture in fixtures:
        if fixture.id == fixture_id:
            fixture = fixture.model_copy(
                update={"home_score": home_score, "away_score": away_score, "status": COMPLETED}
            )
            found = True
        updated.append(fixture)
    return updated if found else None


def fixtures_by_round(fixtures: Iterable[Fixture]) -> "OrderedDict[str, List[Fixture]]":
    grouped: "OrderedDict[str, List[Fixture]]" = OrderedDict()
    for fixture in fixtures:
        grouped.setdefault(fixture.round or "TBD", []).append(fixture)
    return grouped


def standings_by_group(standings: Iterable[Standing]) -> "OrderedDict[str, List[Standing]]":
    grouped: "OrderedDict[str, List[Standing]]" = OrderedDict()
    for row in standings:
        grouped.setdefault(row.group or "All", []).append(row)
    return grouped
