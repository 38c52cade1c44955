"""
Playoff advancement engine.

One shared routine advances any sub-bracket. The three bracket types differ
only in their terminal round, which bracket field the terminal winner is
written to, which seed set they read byes from, and the event they emit.
Those differences live in the _ENGINES table keyed by BracketType.

Per call, for one sub-bracket and one week:
1. Collect complete series whose closing game was played in the week. None -> no-op.
2. All of them must belong to one round.
3. Terminal round -> record the winner (idempotent) and run the completion check.
4. Otherwise wait until every series in the round is complete.
5. WINNERS semifinal boundary -> create the third-place game if enabled.
6. Pair winners for the next round (6-team round 2 uses the bye mapping).
7. Create the next round's games unless that round already exists.

Results describe bracket state, not work done, so repeating a call returns the
same AdvanceResult. Events are queued only when something was written.
"""
import logging
import uuid
from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple

from playoffs.models.playoff_bracket import PlayoffBracket
from playoffs.services.bracket_model import BracketType, round_weeks, total_rounds, week_for_round_game
from playoffs.services.playoff_errors import PlayoffInvariantError
from playoffs.services.playoff_events import (
    EVENT_BRACKET_COMPLETED,
    EVENT_CHAMPION_CROWNED,
    EVENT_CONSOLATION_DECIDED,
    EVENT_ROUND_ADVANCED,
    EVENT_THIRD_PLACE_CREATED,
    EVENT_THIRD_PLACE_DECIDED,
    PendingEvents,
)
from playoffs.services.playoff_repository import (
    FIELD_CHAMPION,
    FIELD_CONSOLATION_WINNER,
    FIELD_THIRD_PLACE,
    PlayoffRepository,
)
from playoffs.services.series import (
    SeriesAggregation,
    SeriesSide,
    resolve_series_loser,
    resolve_series_winner,
)

logger = logging.getLogger(__name__)


@dataclass
class AdvanceResult:
    bracket_type: str
    advanced: bool = False
    series_completed: int = 0
    bracket_complete: bool = False
    winner_roster_id: Optional[int] = None
    current_round: Optional[int] = None
    next_round: Optional[int] = None
    message: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EngineSpec:
    bracket_type: BracketType
    seed_type: BracketType
    winner_field: str
    winner_event: str
    team_count: Callable[[PlayoffBracket], Optional[int]]
    terminal_round: Callable[[PlayoffBracket], int]


_ENGINES: Dict[BracketType, EngineSpec] = {
    BracketType.WINNERS: EngineSpec(
        bracket_type=BracketType.WINNERS,
        seed_type=BracketType.WINNERS,
        winner_field=FIELD_CHAMPION,
        winner_event=EVENT_CHAMPION_CROWNED,
        team_count=lambda b: b.playoff_teams,
        terminal_round=lambda b: b.total_rounds,
    ),
    # Single round, created by WINNERS at the semifinal boundary
    BracketType.THIRD_PLACE: EngineSpec(
        bracket_type=BracketType.THIRD_PLACE,
        seed_type=BracketType.WINNERS,
        winner_field=FIELD_THIRD_PLACE,
        winner_event=EVENT_THIRD_PLACE_DECIDED,
        team_count=lambda b: 2,
        terminal_round=lambda b: b.total_rounds,
    ),
    BracketType.CONSOLATION: EngineSpec(
        bracket_type=BracketType.CONSOLATION,
        seed_type=BracketType.CONSOLATION,
        winner_field=FIELD_CONSOLATION_WINNER,
        winner_event=EVENT_CONSOLATION_DECIDED,
        team_count=lambda b: b.consolation_teams,
        terminal_round=lambda b: total_rounds(b.consolation_teams),
    ),
}


def engine_for(bracket_type: BracketType) -> EngineSpec:
    return _ENGINES[BracketType(bracket_type)]


def advance_round(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    bracket_type: BracketType,
    week: int,
    events: Optional[PendingEvents] = None,
) -> AdvanceResult:
    """
    Advance one sub-bracket for the games finalized in `week`.

    Raises:
        PlayoffInvariantError: series from more than one round closed in the week,
            a final game is missing a score, or a terminal result would be overwritten
    """
    spec = engine_for(bracket_type)
    type_value = spec.bracket_type.value
    result = AdvanceResult(bracket_type=type_value)

    completed = repo.get_finalized_series_ending_in_week(bracket.league_id, bracket.season, week, type_value)
    if not completed:
        result.message = f"No completed {type_value} series to advance in week {week}"
        return result

    rounds = sorted({s.playoff_round for s in completed})
    if len(rounds) != 1:
        raise PlayoffInvariantError(
            f"{type_value} series closing in week {week} span rounds {rounds}; expected exactly one"
        )
    current_round = rounds[0]
    result.current_round = current_round
    result.series_completed = len(completed)

    if current_round == spec.terminal_round(bracket):
        return _record_terminal_winner(repo, bracket, spec, current_round, result, events)

    if not repo.are_all_series_complete_for_round(bracket.league_id, bracket.season, current_round, type_value):
        logger.info(
            "League %s %s round %s: not all series complete yet",
            bracket.league_id,
            type_value,
            current_round,
        )
        result.message = f"Round {current_round} series not all complete"
        return result

    round_series = repo.get_round_series(bracket.league_id, bracket.season, current_round, type_value)
    next_round = current_round + 1
    result.next_round = next_round

    if (
        spec.bracket_type == BracketType.WINNERS
        and bracket.enable_third_place
        and current_round == bracket.total_rounds - 1
    ):
        _create_third_place_game(repo, bracket, round_series, events)

    if repo.round_matchups_exist(bracket.league_id, bracket.season, next_round, type_value):
        # Report the same state as the call that created it
        result.advanced = True
        result.message = f"Round {next_round} created"
        return result

    winners = [resolve_series_winner(s) for s in round_series]
    team_count = spec.team_count(bracket)
    if team_count == 6 and next_round == 2:
        pairings = _bye_round_pairings(repo, bracket, spec, winners)
    else:
        pairings = _adjacent_pairings(winners)

    created = _create_round(repo, bracket, spec, next_round, pairings)
    logger.info(
        "League %s: advanced %d %s winners to round %s",
        bracket.league_id,
        len(winners),
        type_value,
        next_round,
    )
    if created and events is not None:
        events.queue(
            EVENT_ROUND_ADVANCED,
            bracket.league_id,
            {
                "bracket_id": bracket.id,
                "bracket_type": type_value,
                "from_round": current_round,
                "to_round": next_round,
            },
        )

    result.advanced = True
    result.message = f"Round {next_round} created"
    return result


def _record_terminal_winner(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    spec: EngineSpec,
    current_round: int,
    result: AdvanceResult,
    events: Optional[PendingEvents],
) -> AdvanceResult:
    type_value = spec.bracket_type.value
    round_series = repo.get_round_series(bracket.league_id, bracket.season, current_round, type_value)
    if len(round_series) != 1:
        raise PlayoffInvariantError(
            f"{type_value} terminal round {current_round} has {len(round_series)} series; expected 1"
        )
    final_series = round_series[0]
    if not final_series.is_complete:
        result.message = f"{type_value} terminal series not complete"
        return result

    winner = resolve_series_winner(final_series)
    written = repo.set_terminal_winner(bracket, spec.winner_field, winner.roster_id)
    if written:
        logger.info(
            "League %s %s won by roster %s with aggregate %s-%s",
            bracket.league_id,
            type_value,
            winner.roster_id,
            final_series.roster1_total_points,
            final_series.roster2_total_points,
        )
        if events is not None:
            events.queue(
                spec.winner_event,
                bracket.league_id,
                {"bracket_id": bracket.id, "bracket_type": type_value, "roster_id": winner.roster_id},
            )

    if repo.finalize_bracket_if_complete(bracket):
        logger.info("League %s playoff bracket %s completed", bracket.league_id, bracket.id)
        if events is not None:
            events.queue(
                EVENT_BRACKET_COMPLETED,
                bracket.league_id,
                {
                    "bracket_id": bracket.id,
                    "champion_roster_id": bracket.champion_roster_id,
                    "third_place_roster_id": bracket.third_place_roster_id,
                    "consolation_winner_roster_id": bracket.consolation_winner_roster_id,
                },
            )

    result.advanced = True
    result.bracket_complete = True
    result.winner_roster_id = winner.roster_id
    result.message = f"{type_value} winner: roster {winner.roster_id}"
    return result


def _adjacent_pairings(winners: List[SeriesSide]) -> List[Tuple[SeriesSide, SeriesSide, int]]:
    """Pair winners 0-1, 2-3, ... by bracket position. Next-round position is index // 2 + 1."""
    ordered = sorted(winners, key=lambda w: w.bracket_position)
    pairings = []
    for i in range(0, len(ordered) - 1, 2):
        pairings.append((ordered[i], ordered[i + 1], i // 2 + 1))
    if len(ordered) % 2:
        logger.warning("Odd number of winners (%d); roster %s left unpaired", len(ordered), ordered[-1].roster_id)
    return pairings


def _bye_round_pairings(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    spec: EngineSpec,
    winners: List[SeriesSide],
) -> List[Tuple[SeriesSide, SeriesSide, int]]:
    """
    6-team round 2: seed 1 meets the winner of 4v5 (round-1 position 2) at
    position 1, seed 2 meets the winner of 3v6 (position 1) at position 2.
    """
    seeds = repo.get_seeds(bracket.id, spec.seed_type.value)
    bye_by_seed = {s.seed: s for s in seeds if s.has_bye}
    winner_3v6 = next((w for w in winners if w.bracket_position == 1), None)
    winner_4v5 = next((w for w in winners if w.bracket_position == 2), None)
    top, second = bye_by_seed.get(1), bye_by_seed.get(2)

    if top is None or second is None or winner_3v6 is None or winner_4v5 is None:
        logger.warning(
            "6-team %s bye lookup failed for league %s (bye seeds %s); falling back to adjacent pairing",
            spec.bracket_type.value,
            bracket.league_id,
            sorted(bye_by_seed),
        )
        return _adjacent_pairings(winners)

    no_points = Decimal("0.00")
    top_side = SeriesSide(roster_id=top.roster_id, seed=top.seed, aggregate_points=no_points, bracket_position=1)
    second_side = SeriesSide(
        roster_id=second.roster_id, seed=second.seed, aggregate_points=no_points, bracket_position=2
    )
    return [(top_side, winner_4v5, 1), (second_side, winner_3v6, 2)]


def create_series(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    bracket_type: str,
    playoff_round: int,
    side1: SeriesSide,
    side2: SeriesSide,
    bracket_position: int,
) -> bool:
    """Create every game of one series. Returns True if any game was newly inserted."""
    series_length = round_weeks(bracket.weeks_by_round, playoff_round)
    series_id = str(uuid.uuid4()) if series_length > 1 else None

    any_created = False
    for game in range(1, series_length + 1):
        _, created = repo.create_playoff_matchup(
            league_id=bracket.league_id,
            season=bracket.season,
            week=week_for_round_game(bracket.start_week, bracket.weeks_by_round, playoff_round, game),
            roster1_id=side1.roster_id,
            roster2_id=side2.roster_id,
            playoff_round=playoff_round,
            seed1=side1.seed,
            seed2=side2.seed,
            bracket_position=bracket_position,
            bracket_type=bracket_type,
            series_id=series_id,
            series_game=game,
            series_length=series_length,
        )
        any_created = any_created or created
    return any_created


def _create_round(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    spec: EngineSpec,
    playoff_round: int,
    pairings: List[Tuple[SeriesSide, SeriesSide, int]],
) -> bool:
    created = False
    for side1, side2, position in pairings:
        if create_series(repo, bracket, spec.bracket_type.value, playoff_round, side1, side2, position):
            created = True
    return created


def _create_third_place_game(
    repo: PlayoffRepository,
    bracket: PlayoffBracket,
    semifinal_series: List[SeriesAggregation],
    events: Optional[PendingEvents],
) -> bool:
    """Third-place series between the semifinal losers, played alongside the championship."""
    third_place = BracketType.THIRD_PLACE.value
    championship_round = bracket.total_rounds
    if repo.round_matchups_exist(bracket.league_id, bracket.season, championship_round, third_place):
        return False

    losers = [resolve_series_loser(s) for s in semifinal_series]
    if len(losers) != 2:
        logger.warning(
            "Expected 2 semifinal losers for league %s third-place game, got %d",
            bracket.league_id,
            len(losers),
        )
        return False

    losers.sort(key=lambda side: (side.seed, side.roster_id))
    created = create_series(
        repo,
        bracket,
        third_place,
        championship_round,
        losers[0],
        losers[1],
        1,
    )
    if created:
        logger.info("Created third-place series for league %s", bracket.league_id)
        if events is not None:
            events.queue(
                EVENT_THIRD_PLACE_CREATED,
                bracket.league_id,
                {
                    "bracket_id": bracket.id,
                    "roster1_id": losers[0].roster_id,
                    "roster2_id": losers[1].roster_id,
                },
            )
    return created
