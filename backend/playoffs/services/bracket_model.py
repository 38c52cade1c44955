"""
Bracket Model: pure bracket-shape calculations. No database access.

Formats:
  4 teams -> 2 rounds: (1v4), (2v3), then the final
  6 teams -> 3 rounds: (3v6), (4v5); seeds 1 and 2 enter in round 2
  8 teams -> 3 rounds: (1v8), (4v5), (3v6), (2v7) quarterfinals, no byes
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from playoffs.services.playoff_errors import PlayoffConfigError

VALID_TEAM_COUNTS = (4, 6, 8)
VALID_ROUND_WEEKS = (1, 2)

_TOTAL_ROUNDS = {4: 2, 6: 3, 8: 3}

# (seed1, seed2, bracket_position)
_ROUND1_TEMPLATES = {
    4: [(1, 4, 1), (2, 3, 2)],
    6: [(3, 6, 1), (4, 5, 2)],
    8: [(1, 8, 1), (4, 5, 2), (3, 6, 3), (2, 7, 4)],
}


class BracketType(str, Enum):
    WINNERS = "WINNERS"
    THIRD_PLACE = "THIRD_PLACE"
    CONSOLATION = "CONSOLATION"


@dataclass(frozen=True)
class BracketSlot:
    """One round-1 pairing: seeds and the stable bracket position it occupies."""
    seed1: int
    seed2: int
    bracket_position: int


def total_rounds(team_count: int) -> int:
    if team_count not in _TOTAL_ROUNDS:
        raise PlayoffConfigError(f"Playoff teams must be 4, 6, or 8, got {team_count}")
    return _TOTAL_ROUNDS[team_count]


def default_weeks_by_round(rounds: int) -> List[int]:
    return [1] * rounds


def round_weeks(weeks_by_round: Optional[Sequence[int]], round_number: int) -> int:
    """Weeks spanned by a round. Rounds past the end of the array last one week."""
    weeks = list(weeks_by_round or [])
    if round_number - 1 < len(weeks):
        return weeks[round_number - 1]
    return 1


def round_week_range(
    start_week: int, weeks_by_round: Optional[Sequence[int]], round_number: int
) -> Tuple[int, int]:
    """Return (week_start, week_end) for a 1-indexed round."""
    week_start = start_week
    for r in range(1, round_number):
        week_start += round_weeks(weeks_by_round, r)
    week_end = week_start + round_weeks(weeks_by_round, round_number) - 1
    return week_start, week_end


def week_for_round_game(
    start_week: int, weeks_by_round: Optional[Sequence[int]], round_number: int, game: int
) -> int:
    week_start, _ = round_week_range(start_week, weeks_by_round, round_number)
    return week_start + game - 1


def last_playoff_week(start_week: int, weeks_by_round: Optional[Sequence[int]], rounds: int) -> int:
    _, week_end = round_week_range(start_week, weeks_by_round, rounds)
    return week_end


def round1_template(team_count: int) -> List[BracketSlot]:
    total_rounds(team_count)
    return [BracketSlot(seed1=a, seed2=b, bracket_position=pos) for a, b, pos in _ROUND1_TEMPLATES[team_count]]


def bye_seeds(team_count: int) -> List[int]:
    """Only 6-team formats have byes, and only for seeds 1 and 2."""
    return [1, 2] if team_count == 6 else []


def round_name(team_count: int, round_number: int, rounds: int) -> str:
    """Display label for a WINNERS round."""
    if round_number == rounds:
        return "Championship"
    if round_number == rounds - 1:
        return "Semifinals"
    if team_count == 8 and round_number == 1:
        return "Quarterfinals"
    if team_count == 6 and round_number == 1:
        return "Wild Card"
    return f"Round {round_number}"


def consolation_round_name(team_count: int, round_number: int, rounds: int) -> str:
    if round_number == rounds:
        return "Consolation Final"
    return f"Consolation {round_name(team_count, round_number, rounds)}"


def validate_playoff_config(
    playoff_teams: int,
    weeks_by_round: Optional[Sequence[int]] = None,
    consolation_enabled: bool = False,
    consolation_teams: Optional[int] = None,
    total_league_teams: Optional[int] = None,
) -> None:
    """
    Validate a bracket configuration before anything is written.

    Collects every problem and raises a single PlayoffConfigError listing them.
    """
    errors: List[str] = []

    rounds: Optional[int] = _TOTAL_ROUNDS.get(playoff_teams)
    if rounds is None:
        errors.append("Playoff teams must be 4, 6, or 8")

    if weeks_by_round is not None:
        if rounds is not None and len(weeks_by_round) != rounds:
            errors.append(
                f"weeks_by_round must have {rounds} elements for {playoff_teams}-team playoffs, "
                f"got {len(weeks_by_round)}"
            )
        for i, weeks in enumerate(weeks_by_round):
            if weeks not in VALID_ROUND_WEEKS:
                errors.append(f"weeks_by_round[{i}] must be 1 or 2, got {weeks}")

    if total_league_teams is not None and total_league_teams < playoff_teams:
        errors.append(f"Not enough teams for playoffs. Need {playoff_teams}, have {total_league_teams}")

    if consolation_enabled and total_league_teams is not None:
        non_playoff_teams = total_league_teams - playoff_teams
        if non_playoff_teams < 4:
            errors.append(
                "Not enough teams for consolation bracket. "
                f"Need at least 4 non-playoff teams, have {max(non_playoff_teams, 0)}"
            )
        if consolation_teams is not None:
            if consolation_teams not in VALID_TEAM_COUNTS:
                errors.append("Consolation teams must be 4, 6, or 8")
            elif consolation_teams > non_playoff_teams:
                errors.append(
                    f"Cannot have {consolation_teams} consolation teams "
                    f"with only {max(non_playoff_teams, 0)} non-playoff teams"
                )

    if errors:
        raise PlayoffConfigError("; ".join(errors))


def auto_consolation_teams(non_playoff_teams: int) -> Optional[int]:
    """Largest supported consolation size that fits the teams left out of the playoffs."""
    for size in sorted(VALID_TEAM_COUNTS, reverse=True):
        if size <= non_playoff_teams:
            return size
    return None
