from __future__ import annotations

from clubhouse.models import Fixture, TournamentTeam
from clubhouse.standings import (
    apply_fixture_score,
    compute_standings,
    fixtures_by_round,
    standings_by_group,
)


def _team(team_id: str, group: str = "Group A") -> TournamentTeam:
    return TournamentTeam(id=team_id, name=team_id.upper(), group=group)


def _result(fixture_id: str, home: str, away: str, home_score: int, away_score: int, **extra) -> Fixture:
    data = {
        "id": fixture_id,
        "round": "Group Stage",
        "home_team_id": home,
        "away_team_id": away,
        "home_score": home_score,
        "away_score": away_score,
        "status": "completed",
    }
    data.update(extra)
    return Fixture(**data)


def _by_team(rows):
    return {row.team_id: row for row in rows}


def test_empty_inputs():
    assert compute_standings([], []) == []


def test_single_win():
    rows = _by_team(compute_standings([_team("a"), _team("b")], [_result("F1", "a", "b", 2, 1)]))
    assert (rows["a"].played, rows["a"].won, rows["a"].points, rows["a"].goal_difference) == (1, 1, 3, 1)
    assert (rows["b"].played, rows["b"].lost, rows["b"].points, rows["b"].goal_difference) == (1, 1, 0, -1)
    assert rows["a"].goals_for == 2
    assert rows["a"].goals_against == 1


def test_draw_gives_one_point_each():
    rows = _by_team(compute_standings([_team("a"), _team("b")], [_result("F1", "a", "b", 1, 1)]))
    assert rows["a"].drawn == rows["b"].drawn == 1
    assert rows["a"].points == rows["b"].points == 1


def test_knockout_and_unfinished_fixtures_are_ignored():
    fixtures = [
        _result("SF1", "a", "b", 5, 0, round="Semi-Final"),
        _result("F1", "a", "b", 3, 0, status="scheduled"),
    ]
    rows = compute_standings([_team("a"), _team("b")], fixtures)
    assert all(row.played == 0 and row.points == 0 for row in rows)


def test_unknown_team_skips_fixture():
    rows = _by_team(compute_standings([_team("a")], [_result("F1", "a", "ghost", 2, 0)]))
    assert list(rows) == ["a"]
    assert rows["a"].played == 0


def test_missing_scores_count_as_zero():
    fixture = Fixture(id="F1", round="Group Stage", home_team_id="a", away_team_id="b", status="completed")
    rows = _by_team(compute_standings([_team("a"), _team("b")], [fixture]))
    assert rows["a"].drawn == 1
    assert rows["b"].points == 1


def test_recomputation_is_idempotent():
    teams = [_team("a"), _team("b"), _team("c")]
    fixtures = [_result("F1", "a", "b", 2, 1), _result("F2", "b", "c", 0, 0)]
    assert compute_standings(teams, fixtures) == compute_standings(teams, fixtures)


def test_sort_by_group_points_difference_and_goals():
    teams = [_team("a"), _team("b"), _team("c"), _team("d"), _team("x", group="Group B")]
    fixtures = [
        # a and b both win once, b by the larger margin
        _result("F1", "a", "c", 1, 0),
        _result("F2", "b", "d", 3, 0),
        # c and d draw and trail on points
        _result("F3", "c", "d", 2, 2),
    ]
    order = [row.team_id for row in compute_standings(teams, fixtures)]
    assert order[:2] == ["b", "a"]
    assert order[-1] == "x"


def test_full_ties_keep_team_order():
    fixtures = [_result("F1", "a", "c", 2, 0), _result("F2", "b", "d", 2, 0), _result("F3", "c", "d", 1, 1)]
    teams = [_team("a"), _team("b"), _team("c"), _team("d")]

    order = [row.team_id for row in compute_standings(teams, fixtures)]
    assert order == ["a", "b", "c", "d"]

    reversed_order = [row.team_id for row in compute_standings(list(reversed(teams)), fixtures)]
    assert reversed_order == ["b", "a", "d", "c"]


def test_equal_points_and_difference_prefers_goals_for():
    teams = [_team("a"), _team("b"), _team("c"), _team("d")]
    fixtures = [_result("F1", "a", "c", 1, 0), _result("F2", "b", "d", 3, 2)]
    order = [row.team_id for row in compute_standings(teams, fixtures)]
    assert order[:2] == ["b", "a"]


def test_apply_fixture_score_copies_list():
    fixtures = [Fixture(id="F1", round="Group Stage"), Fixture(id="F2", round="Group Stage")]
    updated = apply_fixture_score(fixtures, "F2", 4, 1)
    assert updated is not None
    assert updated[1].status == "completed"
    assert (updated[1].home_score, updated[1].away_score) == (4, 1)
    assert fixtures[1].status == "scheduled"
    assert apply_fixture_score(fixtures, "missing", 1, 0) is None


def test_grouping_helpers_use_fallback_labels():
    fixtures = [Fixture(id="F1", round="Group Stage"), Fixture(id="F2"), Fixture(id="F3", round="Final")]
    assert list(fixtures_by_round(fixtures)) == ["Group Stage", "TBD", "Final"]

    rows = compute_standings([_team("a", group=None), _team("b")], [])
    assert list(standings_by_group(rows)) == ["All", "Group A"]
