"""
Playoff seeding from regular-season standings. Pure functions.

Standings order: wins DESC > points_for DESC > roster_id ASC.
WINNERS takes the top N; CONSOLATION takes the next M, re-seeded 1..M.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence

from playoffs.services.bracket_model import bye_seeds


@dataclass
class StandingRow:
    roster_id: int
    team_name: str
    wins: int
    losses: int
    ties: int
    points_for: float


@dataclass
class SeedInput:
    roster_id: int
    seed: int
    regular_season_record: str
    points_for: float
    has_bye: bool


def sort_standings_for_seeding(standings: Sequence[StandingRow]) -> List[StandingRow]:
    return sorted(standings, key=lambda s: (-s.wins, -s.points_for, s.roster_id))


def format_record(wins: int, losses: int, ties: int) -> str:
    if ties > 0:
        return f"{wins}-{losses}-{ties}"
    return f"{wins}-{losses}"


def seed_from_standings(sorted_standings: Sequence[StandingRow], team_count: int, offset: int = 0) -> List[SeedInput]:
    """
    Build seeds 1..team_count from standings positions offset+1..offset+team_count.

    The 6-team bye rule is applied to whichever sub-bracket is being seeded.
    """
    byes = bye_seeds(team_count)
    selected = list(sorted_standings[offset : offset + team_count])
    return [
        SeedInput(
            roster_id=row.roster_id,
            seed=index + 1,
            regular_season_record=format_record(row.wins, row.losses, row.ties),
            points_for=row.points_for,
            has_bye=(index + 1) in byes,
        )
        for index, row in enumerate(selected)
    ]
