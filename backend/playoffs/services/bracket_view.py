"""
Bracket view: read-only projection of a bracket, its seeds and playoff games.

Display only. Partial or missing scores are shown as-is and never raise; the
displayed winner is only set for final games with both scores recorded.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from playoffs.models.league import Roster
from playoffs.models.matchup import Matchup
from playoffs.models.playoff_bracket import PlayoffBracket
from playoffs.models.playoff_seed import PlayoffSeed
from playoffs.services.bracket_model import (
    BracketType,
    consolation_round_name,
    round_name,
    round_week_range,
    total_rounds,
)
from playoffs.services.playoff_repository import PlayoffRepository
from playoffs.services.series import resolve_matchup_winner


def _team_info(
    roster_id: Optional[int],
    seed_number: Optional[int],
    points: Optional[Decimal],
    seeds_by_roster: Dict[int, PlayoffSeed],
    names: Dict[int, str],
) -> Optional[Dict[str, Any]]:
    if roster_id is None:
        return None
    seed = seeds_by_roster.get(roster_id)
    number = seed_number if seed_number is not None else (seed.seed if seed else None)
    return {
        "roster_id": roster_id,
        "seed": number,
        "team_name": names.get(roster_id) or f"Team {number}",
        "points": float(points) if points is not None else None,
        "record": seed.regular_season_record if seed else None,
    }


def _matchup_view(
    m: Matchup, seeds_by_roster: Dict[int, PlayoffSeed], names: Dict[int, str]
) -> Dict[str, Any]:
    team1 = _team_info(m.roster1_id, m.playoff_seed1, m.roster1_points, seeds_by_roster, names)
    team2 = _team_info(m.roster2_id, m.playoff_seed2, m.roster2_points, seeds_by_roster, names)

    winner = None
    if m.is_final and m.roster1_points is not None and m.roster2_points is not None:
        side = resolve_matchup_winner(m)
        winner = team1 if side.roster_id == m.roster1_id else team2

    return {
        "matchup_id": m.id,
        "week": m.week,
        "round": m.playoff_round,
        "bracket_type": m.bracket_type,
        "bracket_position": m.bracket_position or 0,
        "team1": team1,
        "team2": team2,
        "winner": winner,
        "is_final": m.is_final,
        "series_id": m.series_id,
        "series_game": m.series_game,
        "series_length": m.series_length,
    }


def _seed_view(seed: PlayoffSeed, names: Dict[int, str]) -> Dict[str, Any]:
    return {
        "roster_id": seed.roster_id,
        "seed": seed.seed,
        "team_name": names.get(seed.roster_id) or f"Team {seed.seed}",
        "regular_season_record": seed.regular_season_record,
        "points_for": seed.points_for,
        "has_bye": seed.has_bye,
    }


def _rounds_view(
    bracket: PlayoffBracket,
    team_count: int,
    matchups: List[Matchup],
    seeds_by_roster: Dict[int, PlayoffSeed],
    names: Dict[int, str],
    consolation: bool = False,
) -> List[Dict[str, Any]]:
    rounds = total_rounds(team_count)
    by_round: Dict[int, List[Dict[str, Any]]] = {}
    for m in matchups:
        by_round.setdefault(m.playoff_round, []).append(_matchup_view(m, seeds_by_roster, names))

    result = []
    for r in range(1, rounds + 1):
        week_start, week_end = round_week_range(bracket.start_week, bracket.weeks_by_round, r)
        name = consolation_round_name(team_count, r, rounds) if consolation else round_name(team_count, r, rounds)
        result.append(
            {
                "round": r,
                "name": name,
                "week_start": week_start,
                "week_end": week_end,
                "matchups": sorted(
                    by_round.get(r, []), key=lambda mv: (mv["bracket_position"], mv["series_game"] or 1)
                ),
            }
        )
    return result


def _bracket_fields(bracket: PlayoffBracket) -> Dict[str, Any]:
    return {
        "id": bracket.id,
        "league_id": bracket.league_id,
        "season": bracket.season,
        "playoff_teams": bracket.playoff_teams,
        "total_rounds": bracket.total_rounds,
        "start_week": bracket.start_week,
        "championship_week": bracket.championship_week,
        "status": bracket.status,
        "champion_roster_id": bracket.champion_roster_id,
        "third_place_roster_id": bracket.third_place_roster_id,
        "consolation_winner_roster_id": bracket.consolation_winner_roster_id,
        "created_at": bracket.created_at.isoformat() if bracket.created_at else None,
        "updated_at": bracket.updated_at.isoformat() if bracket.updated_at else None,
    }


def build_bracket_view(session: Session, bracket: PlayoffBracket) -> Dict[str, Any]:
    repo = PlayoffRepository(session)
    names = {
        r.id: r.team_name
        for r in session.exec(select(Roster).where(Roster.league_id == bracket.league_id)).all()
    }

    winners_seeds = repo.get_seeds(bracket.id, BracketType.WINNERS.value)
    winners_by_roster = {s.roster_id: s for s in winners_seeds}
    winners_games = repo.get_playoff_matchups(bracket.league_id, bracket.season, BracketType.WINNERS.value)

    champion = None
    if bracket.champion_roster_id is not None:
        champion = _team_info(bracket.champion_roster_id, None, None, winners_by_roster, names)

    third_place = None
    if bracket.enable_third_place:
        third_games = repo.get_playoff_matchups(bracket.league_id, bracket.season, BracketType.THIRD_PLACE.value)
        if third_games:
            third_place = {
                "matchups": [_matchup_view(m, winners_by_roster, names) for m in third_games],
                "winner": _team_info(bracket.third_place_roster_id, None, None, winners_by_roster, names),
            }

    consolation = None
    if bracket.consolation_enabled:
        consolation_seeds = repo.get_seeds(bracket.id, BracketType.CONSOLATION.value)
        consolation_by_roster = {s.roster_id: s for s in consolation_seeds}
        consolation_games = repo.get_playoff_matchups(
            bracket.league_id, bracket.season, BracketType.CONSOLATION.value
        )
        consolation = {
            "seeds": [_seed_view(s, names) for s in consolation_seeds],
            "rounds": _rounds_view(
                bracket,
                bracket.consolation_teams,
                consolation_games,
                consolation_by_roster,
                names,
                consolation=True,
            ),
            "winner": _team_info(bracket.consolation_winner_roster_id, None, None, consolation_by_roster, names),
        }

    return {
        "bracket": _bracket_fields(bracket),
        "settings": {
            "enable_third_place_game": bracket.enable_third_place,
            "consolation_type": bracket.consolation_type,
            "consolation_teams": bracket.consolation_teams,
            "weeks_by_round": list(bracket.weeks_by_round or []),
        },
        "seeds": [_seed_view(s, names) for s in winners_seeds],
        "rounds": _rounds_view(bracket, bracket.playoff_teams, winners_games, winners_by_roster, names),
        "champion": champion,
        "third_place": third_place,
        "consolation": consolation,
    }
