"""Skeleton bracket generation for group-plus-knockout tournaments."""

from __future__ import annotations

import logging
import math
from typing import List

from .models import Bracket, Fixture, Group

GROUP_LETTERS = "ABCDEFGH"
GROUP_STAGE = "Group Stage"
SEMI_FINAL = "Semi-Final"
FINAL = "Final"
PLACEHOLDER_TEAM = "TBD"
KNOCKOUT_MIN_QUALIFIERS = 4

logger = logging.getLogger(__name__)


def group_count(num_teams: int, teams_per_group: int) -> int:
    """Return how many groups the bracket uses, capped at the available letters."""
    if num_teams <= 0 or teams_per_group <= 0:
        return 0
    count = math.ceil(num_teams / teams_per_group)
    if count > len(GROUP_LETTERS):
        logger.warning(
            "Bracket needs %s groups but only %s are supported; extra teams are not scheduled",
            count,
            len(GROUP_LETTERS),
        )
        return len(GROUP_LETTERS)
    return count


def generate_bracket(num_teams: int, teams_per_group: int, qualify_per_group: int) -> Bracket:
    """Create placeholder groups and fixtures for a group-plus-knockout tournament.

    Every group gets a full round robin over ``teams_per_group`` slots, even when
    fewer real teams will end up in it. Knockouts are a fixed two semi-finals and
    a final whenever at least four teams qualify; larger qualifier counts do not
    add quarter-finals. No team is assigned to any fixture.
    """
    num_groups = group_count(num_teams, teams_per_group)
    groups = [Group(name=f"Group {GROUP_LETTERS[index]}") for index in range(num_groups)]

    fixtures: List[Fixture] = []
    for group in groups:
        for _ in range(round_robin_size(teams_per_group)):
            fixtures.append(
                _placeholder(f"F{len(fixtures) + 1}", GROUP_STAGE, group=group.name)
            )

    if qualify_per_group * num_groups >= KNOCKOUT_MIN_QUALIFIERS:
        fixtures.append(_placeholder("SF1", SEMI_FINAL))
        fixtures.append(_placeholder("SF2", SEMI_FINAL))
        fixtures.append(
            _placeholder("F", FINAL, home_name="Winner SF1", away_name="Winner SF2")
        )

    return Bracket(groups=groups, fixtures=fixtures)


def round_robin_size(slot_count: int) -> int:
    """Number of games for every slot to meet every other slot once."""
    if slot_count < 2:
        return 0
    return slot_count * (slot_count - 1) // 2


def _placeholder(
    fixture_id: str,
    round_name: str,
    *,
    group: str | None = None,
    home_name: str = PLACEHOLDER_TEAM,
    away_name: str = PLACEHOLDER_TEAM,
) -> Fixture:
    return Fixture(
        id=fixture_id,
        round=round_name,
        group=group,
        home_team_id=None,
        home_team_name=home_name,
        away_team_id=None,
        away_team_name=away_name,
        status="scheduled",
    )
