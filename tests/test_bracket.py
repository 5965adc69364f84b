from __future__ import annotations

import logging
from collections import Counter

import pytest

from clubhouse.bracket import generate_bracket, group_count, round_robin_size


def test_two_groups_with_knockout():
    bracket = generate_bracket(8, 4, 2)
    assert [group.name for group in bracket.groups] == ["Group A", "Group B"]

    rounds = Counter(fixture.round for fixture in bracket.fixtures)
    assert rounds == {"Group Stage": 12, "Semi-Final": 2, "Final": 1}
    per_group = Counter(fixture.group for fixture in bracket.fixtures if fixture.round == "Group Stage")
    assert per_group == {"Group A": 6, "Group B": 6}


def test_single_group_has_no_knockout():
    bracket = generate_bracket(4, 4, 1)
    assert len(bracket.groups) == 1
    assert len(bracket.fixtures) == 6
    assert {fixture.round for fixture in bracket.fixtures} == {"Group Stage"}


def test_fixtures_are_placeholders():
    bracket = generate_bracket(8, 4, 2)
    assert all(fixture.home_team_id is None and fixture.away_team_id is None for fixture in bracket.fixtures)
    assert all(fixture.status == "scheduled" for fixture in bracket.fixtures)
    semis = [fixture for fixture in bracket.fixtures if fixture.round == "Semi-Final"]
    assert [fixture.id for fixture in semis] == ["SF1", "SF2"]
    assert {fixture.home_team_name for fixture in semis} == {"TBD"}
    final = bracket.fixtures[-1]
    assert (final.id, final.home_team_name, final.away_team_name) == ("F", "Winner SF1", "Winner SF2")


def test_fixture_ids_are_unique():
    bracket = generate_bracket(16, 4, 2)
    ids = [fixture.id for fixture in bracket.fixtures]
    assert len(ids) == len(set(ids))


def test_eight_qualifiers_still_get_two_semis():
    bracket = generate_bracket(16, 4, 2)
    rounds = Counter(fixture.round for fixture in bracket.fixtures)
    assert rounds["Semi-Final"] == 2
    assert rounds["Final"] == 1
    assert "Quarter-Final" not in rounds


def test_uneven_team_count_uses_full_group_size():
    bracket = generate_bracket(5, 4, 2)
    assert len(bracket.groups) == 2
    assert Counter(fixture.group for fixture in bracket.fixtures if fixture.group) == {"Group A": 6, "Group B": 6}


def test_group_count_caps_at_eight_letters(caplog):
    with caplog.at_level(logging.WARNING, logger="clubhouse.bracket"):
        assert group_count(40, 4) == 8
    assert "only 8 are supported" in caplog.text
    assert [group.name for group in generate_bracket(40, 4, 1).groups][-1] == "Group H"


@pytest.mark.parametrize("num_teams, per_group", [(0, 4), (4, 0), (-3, 2)])
def test_non_positive_sizes_give_empty_bracket(num_teams, per_group):
    bracket = generate_bracket(num_teams, per_group, 2)
    assert bracket.groups == []
    assert bracket.fixtures == []


@pytest.mark.parametrize("slots, games", [(0, 0), (1, 0), (2, 1), (3, 3), (4, 6), (5, 10)])
def test_round_robin_size(slots, games):
    assert round_robin_size(slots) == games


def test_group_stage_matches_round_robin_size():
    bracket = generate_bracket(10, 5, 1)
    per_group = Counter(fixture.group for fixture in bracket.fixtures if fixture.round == "Group Stage")
    assert per_group == {"Group A": 10, "Group B": 10}
    assert all(fixture.home_team_name == "TBD" for fixture in bracket.fixtures if fixture.group)
