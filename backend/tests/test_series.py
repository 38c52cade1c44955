"""Series aggregation and winner/loser resolution. Pure, no database."""
from decimal import Decimal

import pytest

from playoffs.models.matchup import Matchup
from playoffs.services.playoff_errors import PlayoffInvariantError
from playoffs.services.series import (
    aggregate_series,
    resolve_matchup_winner,
    resolve_series_loser,
    resolve_series_winner,
)


def _game(
    game_id,
    roster1_id,
    roster2_id,
    seed1,
    seed2,
    p1=None,
    p2=None,
    is_final=False,
    series_id=None,
    series_game=1,
    series_length=1,
    week=15,
):
    return Matchup(
        id=game_id,
        league_id=1,
        season=2025,
        week=week,
        roster1_id=roster1_id,
        roster2_id=roster2_id,
        roster1_points=p1,
        roster2_points=p2,
        is_final=is_final,
        is_playoff=True,
        bracket_type="WINNERS",
        playoff_round=1,
        playoff_seed1=seed1,
        playoff_seed2=seed2,
        bracket_position=1,
        series_id=series_id,
        series_game=series_game,
        series_length=series_length,
    )


def test_higher_aggregate_wins():
    series = aggregate_series([_game(1, 20, 50, 2, 5, 120.0, 118.0, is_final=True)])
    winner = resolve_series_winner(series)
    assert winner.roster_id == 20
    assert winner.seed == 2
    assert resolve_series_loser(series).roster_id == 50


def test_exact_tie_goes_to_better_seed():
    # Better seed listed second to prove the side order does not matter
    series = aggregate_series([_game(1, 60, 30, 6, 3, 100.0, 100.0, is_final=True)])
    assert resolve_series_winner(series).seed == 3
    assert resolve_series_winner(series).roster_id == 30
    assert resolve_series_loser(series).roster_id == 60


def test_two_game_series_is_incomplete_after_one_game():
    games = [
        _game(1, 10, 20, 1, 4, 150.0, 60.0, is_final=True, series_id="s1", series_game=1, series_length=2, week=15),
        _game(2, 10, 20, 1, 4, series_id="s1", series_game=2, series_length=2, week=16),
    ]
    series = aggregate_series(games)
    assert series.games_completed == 1
    assert series.series_length == 2
    assert not series.is_complete
    assert series.roster1_total_points == 150.0
    assert series.last_week == 16


def test_two_game_series_sums_both_games():
    games = [
        _game(1, 10, 20, 1, 4, 90.0, 110.0, is_final=True, series_id="s1", series_game=1, series_length=2),
        _game(2, 10, 20, 1, 4, 130.0, 100.0, is_final=True, series_id="s1", series_game=2, series_length=2),
    ]
    series = aggregate_series(games)
    assert series.is_complete
    assert series.roster1_total_points == 220.0
    assert series.roster2_total_points == 210.0
    assert resolve_series_winner(series).roster_id == 10


def test_two_game_totals_equal_to_the_cent_are_a_tie():
    # Summed as floats these differ in the last bit; the better seed must still win
    games = [
        _game(1, 40, 10, 4, 1, 139.46, 123.22, is_final=True, series_id="s1", series_game=1, series_length=2),
        _game(2, 40, 10, 4, 1, 82.37, 98.61, is_final=True, series_id="s1", series_game=2, series_length=2),
    ]
    series = aggregate_series(games)
    assert series.roster1_total_points == Decimal("221.83")
    assert series.roster2_total_points == Decimal("221.83")
    assert resolve_series_winner(series).seed == 1
    assert resolve_series_loser(series).roster_id == 40


def test_decimal_scores_are_summed_exactly():
    leg = dict(is_final=True, series_id="s1", series_length=2)
    games = [
        _game(1, 10, 20, 1, 4, Decimal("0.10"), Decimal("0.30"), series_game=1, **leg),
        _game(2, 10, 20, 1, 4, Decimal("0.20"), Decimal("0.00"), series_game=2, **leg),
    ]
    series = aggregate_series(games)
    assert series.roster1_total_points == series.roster2_total_points == Decimal("0.30")
    assert resolve_series_winner(series).roster_id == 10


def test_final_game_missing_score_is_an_error():
    with pytest.raises(PlayoffInvariantError, match="missing a score"):
        aggregate_series([_game(1, 10, 20, 1, 4, 110.0, None, is_final=True)])


def test_display_aggregation_tolerates_missing_score():
    series = aggregate_series([_game(1, 10, 20, 1, 4, 110.0, None, is_final=True)], require_scores=False)
    assert series.roster1_total_points == 110.0
    assert series.roster2_total_points == 0.0


def test_series_with_mismatched_rosters_is_rejected():
    games = [
        _game(1, 10, 20, 1, 4, series_id="s1", series_game=1, series_length=2),
        _game(2, 10, 30, 1, 4, series_id="s1", series_game=2, series_length=2),
    ]
    with pytest.raises(PlayoffInvariantError, match="different rosters"):
        aggregate_series(games)


def test_empty_series_is_rejected():
    with pytest.raises(PlayoffInvariantError):
        aggregate_series([])


def test_resolve_single_matchup():
    assert resolve_matchup_winner(_game(1, 10, 20, 1, 4, 99.5, 101.0, is_final=True)).roster_id == 20


def test_resolve_single_matchup_requires_final():
    with pytest.raises(PlayoffInvariantError, match="not final"):
        resolve_matchup_winner(_game(1, 10, 20, 1, 4, 99.5, 101.0))
