"""
Playoff orchestrator: bracket generation, week advancement, view and delete.

Every function works inside the caller's transaction and never commits. On
error nothing is flushed that the caller would keep: routes roll back by
closing the session.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlmodel import Session

from playoffs.models.league import League
from playoffs.models.playoff_bracket import (
    CONSOLATION_ENABLED,
    CONSOLATION_NONE,
    STATUS_ACTIVE,
    STATUS_COMPLETED,
    STATUS_PENDING,
    PlayoffBracket,
)
from playoffs.services.bracket_model import (
    BracketType,
    auto_consolation_teams,
    default_weeks_by_round,
    last_playoff_week,
    round1_template,
    total_rounds,
    validate_playoff_config,
)
from playoffs.services.bracket_view import build_bracket_view
from playoffs.services.playoff_engine import AdvanceResult, advance_round, create_series
from playoffs.services.playoff_errors import PlayoffConfigError, PlayoffConflictError, PlayoffNotFoundError
from playoffs.services.playoff_events import EVENT_BRACKET_DELETED, EVENT_BRACKET_GENERATED, PendingEvents
from playoffs.services.playoff_repository import PlayoffRepository
from playoffs.services.seeding import SeedInput, seed_from_standings
from playoffs.services.series import SeriesSide
from playoffs.services.standings import get_standings

logger = logging.getLogger(__name__)


def _get_league(session: Session, league_id: int) -> League:
    league = session.get(League, league_id)
    if not league:
        raise PlayoffNotFoundError(f"League {league_id} not found")
    return league


def _get_bracket(repo: PlayoffRepository, league: League) -> PlayoffBracket:
    bracket = repo.find_bracket(league.id, league.season)
    if not bracket:
        raise PlayoffNotFoundError(f"No playoff bracket found for league {league.id} season {league.season}")
    return bracket


def _create_round_one(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    bracket_type: BracketType,
    team_count: int,
    seeds: List[SeedInput],
) -> int:
    by_seed = {s.seed: s for s in seeds}
    created = 0
    for slot in round1_template(team_count):
        side1 = by_seed[slot.seed1]
        side2 = by_seed[slot.seed2]
        create_series(
            repo,
            bracket,
            bracket_type.value,
            1,
            SeriesSide(side1.roster_id, side1.seed, 0.0, slot.bracket_position),
            SeriesSide(side2.roster_id, side2.seed, 0.0, slot.bracket_position),
            slot.bracket_position,
        )
        created += 1
    return created


def generate_bracket(
    session: Session,
    league_id: int,
    playoff_teams: int,
    start_week: int,
    weeks_by_round: Optional[Sequence[int]] = None,
    enable_third_place: bool = False,
    consolation_type: str = CONSOLATION_NONE,
    consolation_teams: Optional[int] = None,
    events: Optional[PendingEvents] = None,
) -> Dict[str, Any]:
    """
    Seed the playoffs from standings and create round 1 of every enabled sub-bracket.

    Validation and conflict checks all run before the first write.

    Raises:
        PlayoffNotFoundError: league does not exist
        PlayoffConfigError: invalid team counts, weeks_by_round or consolation size
        PlayoffConflictError: bracket exists for the season, or the playoff weeks
            overlap regular-season games
    """
    league = _get_league(session, league_id)
    season = league.season
    repo = PlayoffRepository(session)

    if consolation_type not in (CONSOLATION_NONE, CONSOLATION_ENABLED):
        raise PlayoffConfigError(f"consolation_type must be {CONSOLATION_NONE} or {CONSOLATION_ENABLED}")
    if start_week < 1:
        raise PlayoffConfigError(f"start_week must be >= 1, got {start_week}")

    consolation_enabled = consolation_type == CONSOLATION_ENABLED
    standings = get_standings(session, league_id)
    validate_playoff_config(
        playoff_teams,
        weeks_by_round=weeks_by_round,
        consolation_enabled=consolation_enabled,
        consolation_teams=consolation_teams,
        total_league_teams=len(standings),
    )

    rounds = total_rounds(playoff_teams)
    weeks = list(weeks_by_round) if weeks_by_round is not None else default_weeks_by_round(rounds)
    championship_week = last_playoff_week(start_week, weeks, rounds)

    consolation_size: Optional[int] = None
    if consolation_enabled:
        consolation_size = consolation_teams or auto_consolation_teams(len(standings) - playoff_teams)

    if repo.find_bracket(league_id, season):
        raise PlayoffConflictError(f"Playoff bracket already exists for league {league_id} season {season}")

    last_week = championship_week
    if consolation_size:
        last_week = max(last_week, last_playoff_week(start_week, weeks, total_rounds(consolation_size)))
    if repo.has_regular_season_conflict(league_id, season, start_week, last_week):
        raise PlayoffConflictError(
            f"Regular-season matchups already scheduled between weeks {start_week} and {last_week}"
        )

    bracket = repo.create_bracket(
        PlayoffBracket(
            league_id=league_id,
            season=season,
            playoff_teams=playoff_teams,
            total_rounds=rounds,
            start_week=start_week,
            championship_week=championship_week,
            weeks_by_round=weeks,
            status=STATUS_PENDING,
            enable_third_place=enable_third_place,
            consolation_type=consolation_type if consolation_size else CONSOLATION_NONE,
            consolation_teams=consolation_size,
        )
    )

    winners_seeds = seed_from_standings(standings, playoff_teams)
    repo.create_seeds(bracket.id, winners_seeds, BracketType.WINNERS.value)
    games = _create_round_one(repo, bracket, BracketType.WINNERS, playoff_teams, winners_seeds)

    if consolation_size:
        consolation_seeds = seed_from_standings(standings, consolation_size, offset=playoff_teams)
        repo.create_seeds(bracket.id, consolation_seeds, BracketType.CONSOLATION.value)
        games += _create_round_one(repo, bracket, BracketType.CONSOLATION, consolation_size, consolation_seeds)

    logger.info(
        "Generated %d-team playoff bracket %s for league %s season %s (%d round-1 series, consolation=%s)",
        playoff_teams,
        bracket.id,
        league_id,
        season,
        games,
        consolation_size,
    )
    if events is not None:
        events.queue(
            EVENT_BRACKET_GENERATED,
            league_id,
            {
                "bracket_id": bracket.id,
                "season": season,
                "playoff_teams": playoff_teams,
                "consolation_teams": consolation_size,
                "enable_third_place": enable_third_place,
            },
        )

    return build_bracket_view(session, bracket)


def advance_for_week(
    session: Session,
    league_id: int,
    week: int,
    events: Optional[PendingEvents] = None,
) -> Dict[str, Any]:
    """
    Run every enabled sub-bracket engine for one week.

    Safe to repeat: a second call with the same data writes nothing and
    returns the same result.
    """
    league = _get_league(session, league_id)
    repo = PlayoffRepository(session)
    bracket = _get_bracket(repo, league)

    bracket_types = [BracketType.WINNERS]
    if bracket.enable_third_place:
        bracket_types.append(BracketType.THIRD_PLACE)
    if bracket.consolation_enabled:
        bracket_types.append(BracketType.CONSOLATION)

    results: Dict[str, AdvanceResult] = {}
    for bracket_type in bracket_types:
        results[bracket_type.value] = advance_round(repo, bracket, bracket_type, week, events)

    advanced = any(r.advanced for r in results.values())
    if advanced and bracket.status == STATUS_PENDING:
        repo.update_status(bracket, STATUS_ACTIVE)

    logger.info(
        "Advanced league %s week %s: %s (status=%s)",
        league_id,
        week,
        {k: r.message for k, r in results.items()},
        bracket.status,
    )

    return {
        "league_id": league_id,
        "week": week,
        "advanced": advanced,
        "bracket_status": bracket.status,
        "bracket_complete": bracket.status == STATUS_COMPLETED,
        "results": {k: r.to_dict() for k, r in results.items()},
    }


def get_bracket_view(session: Session, league_id: int) -> Optional[Dict[str, Any]]:
    league = _get_league(session, league_id)
    bracket = PlayoffRepository(session).find_bracket(league.id, league.season)
    if not bracket:
        return None
    return build_bracket_view(session, bracket)


def delete_bracket(session: Session, league_id: int, events: Optional[PendingEvents] = None) -> Dict[str, Any]:
    """
    Delete the bracket, its seeds and playoff games.

    Refused once any playoff game is final or has points.
    """
    league = _get_league(session, league_id)
    repo = PlayoffRepository(session)
    bracket = _get_bracket(repo, league)

    if repo.has_started_matchups(league.id, league.season):
        raise PlayoffConflictError("Cannot delete playoff bracket after playoff games have started")

    bracket_id = bracket.id
    repo.delete_bracket(bracket)
    logger.info("Deleted playoff bracket %s for league %s", bracket_id, league_id)
    if events is not None:
        events.queue(EVENT_BRACKET_DELETED, league_id, {"bracket_id": bracket_id, "season": league.season})

    return {"deleted": True, "bracket_id": bracket_id}
