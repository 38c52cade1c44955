"""
Series Aggregator + Winner/Loser Resolver.

A series is every game sharing a series_id; a one-week round is a degenerate
series of one game with no series_id. Aggregations are computed from the game
rows on every read and never stored.

Winner rule (every round, terminal rounds included):
1. Higher aggregate points, summed exactly to the cent
2. Lower seed number (better regular-season seed)
3. Lower roster id (only reachable if both sides carry the same seed)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from playoffs.models.matchup import Matchup
from playoffs.services.playoff_errors import PlayoffInvariantError


@dataclass
class SeriesAggregation:
    series_key: str
    series_id: Optional[str]
    bracket_type: Optional[str]
    playoff_round: Optional[int]
    bracket_position: int
    roster1_id: int
    roster2_id: int
    roster1_seed: int
    roster2_seed: int
    roster1_total_points: Decimal
    roster2_total_points: Decimal
    games_completed: int
    series_length: int
    last_week: int

    @property
    def is_complete(self) -> bool:
        return self.games_completed == self.series_length


@dataclass
class SeriesSide:
    roster_id: int
    seed: int
    aggregate_points: Decimal
    bracket_position: int


CENTS = Decimal("0.01")


def to_points(value) -> Decimal:
    """Score as an exact 2-place Decimal; floats go through str() so 123.22 stays 123.22."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS)


def series_key_for(matchup: Matchup) -> str:
    if matchup.series_id:
        return matchup.series_id
    return f"matchup:{matchup.id}"


def aggregate_series(games: Sequence[Matchup], require_scores: bool = True) -> SeriesAggregation:
    """
    Sum each side's points over the final games of one series.

    Pending games contribute nothing and keep the series incomplete, even when
    the aggregate is already out of reach. With require_scores, a game marked
    final without both scores raises PlayoffInvariantError instead of counting
    as zero; display callers pass require_scores=False.
    """
    if not games:
        raise PlayoffInvariantError("Cannot aggregate an empty series")

    ordered = sorted(games, key=lambda g: (g.series_game or 1, g.id or 0))
    first = ordered[0]
    series_length = first.series_length or 1

    for game in ordered[1:]:
        if (game.roster1_id, game.roster2_id) != (first.roster1_id, first.roster2_id):
            raise PlayoffInvariantError(
                f"Series {series_key_for(first)} has games between different rosters"
            )
        if (game.series_length or 1) != series_length:
            raise PlayoffInvariantError(f"Series {series_key_for(first)} has inconsistent series_length")
    if len(ordered) > series_length:
        raise PlayoffInvariantError(
            f"Series {series_key_for(first)} has {len(ordered)} games but series_length {series_length}"
        )

    roster1_total = Decimal("0.00")
    roster2_total = Decimal("0.00")
    games_completed = 0
    for game in ordered:
        if not game.is_final:
            continue
        if require_scores and (game.roster1_points is None or game.roster2_points is None):
            raise PlayoffInvariantError(f"Matchup {game.id} is final but missing a score")
        games_completed += 1
        roster1_total += to_points(game.roster1_points)
        roster2_total += to_points(game.roster2_points)

    return SeriesAggregation(
        series_key=series_key_for(first),
        series_id=first.series_id,
        bracket_type=first.bracket_type,
        playoff_round=first.playoff_round,
        bracket_position=first.bracket_position or 0,
        roster1_id=first.roster1_id,
        roster2_id=first.roster2_id,
        roster1_seed=first.playoff_seed1 or 0,
        roster2_seed=first.playoff_seed2 or 0,
        roster1_total_points=roster1_total,
        roster2_total_points=roster2_total,
        games_completed=games_completed,
        series_length=series_length,
        last_week=max(g.week for g in ordered),
    )


def _sides(series: SeriesAggregation):
    side1 = SeriesSide(
        roster_id=series.roster1_id,
        seed=series.roster1_seed,
        aggregate_points=series.roster1_total_points,
        bracket_position=series.bracket_position,
    )
    side2 = SeriesSide(
        roster_id=series.roster2_id,
        seed=series.roster2_seed,
        aggregate_points=series.roster2_total_points,
        bracket_position=series.bracket_position,
    )
    return side1, side2


def _side1_wins(series: SeriesAggregation) -> bool:
    if series.roster1_total_points != series.roster2_total_points:
        return series.roster1_total_points > series.roster2_total_points
    if series.roster1_seed != series.roster2_seed:
        return series.roster1_seed < series.roster2_seed
    return series.roster1_id < series.roster2_id


def resolve_series_winner(series: SeriesAggregation) -> SeriesSide:
    side1, side2 = _sides(series)
    return side1 if _side1_wins(series) else side2


def resolve_series_loser(series: SeriesAggregation) -> SeriesSide:
    side1, side2 = _sides(series)
    return side2 if _side1_wins(series) else side1


def resolve_matchup_winner(matchup: Matchup, require_scores: bool = True) -> SeriesSide:
    """Resolve a single final game as a one-game series."""
    if not matchup.is_final:
        raise PlayoffInvariantError(f"Matchup {matchup.id} is not final")
    if require_scores and (matchup.roster1_points is None or matchup.roster2_points is None):
        raise PlayoffInvariantError(f"Matchup {matchup.id} is final but missing a score")
    single = SeriesAggregation(
        series_key=f"matchup:{matchup.id}",
        series_id=None,
        bracket_type=matchup.bracket_type,
        playoff_round=matchup.playoff_round,
        bracket_position=matchup.bracket_position or 0,
        roster1_id=matchup.roster1_id,
        roster2_id=matchup.roster2_id,
        roster1_seed=matchup.playoff_seed1 or 0,
        roster2_seed=matchup.playoff_seed2 or 0,
        roster1_total_points=to_points(matchup.roster1_points),
        roster2_total_points=to_points(matchup.roster2_points),
        games_completed=1,
        series_length=1,
        last_week=matchup.week,
    )
    return resolve_series_winner(single)
