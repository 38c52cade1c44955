"""
Playoff Repository: persistence operations for the bracket engine.

Works on a caller-owned Session and never commits: generation and advancement
run inside one transaction the caller opens and closes.

Matchup creation is "insert if absent, report whether it already existed",
backed by the uq_playoff_matchup_slot unique constraint, so two racing callers
can never both write the same slot.
"""
import logging
from collections import OrderedDict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, insert, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from playoffs.models.matchup import Matchup
from playoffs.models.playoff_bracket import STATUS_COMPLETED, PlayoffBracket
from playoffs.models.playoff_seed import PlayoffSeed
from playoffs.services.playoff_errors import PlayoffConflictError, PlayoffInvariantError
from playoffs.services.seeding import SeedInput
from playoffs.services.series import SeriesAggregation, aggregate_series, series_key_for

logger = logging.getLogger(__name__)

# Bracket columns holding terminal results
FIELD_CHAMPION = "champion_roster_id"
FIELD_THIRD_PLACE = "third_place_roster_id"
FIELD_CONSOLATION_WINNER = "consolation_winner_roster_id"


class PlayoffRepository:
    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Brackets
    # ------------------------------------------------------------------

    def find_bracket(self, league_id: int, season: int) -> Optional[PlayoffBracket]:
        return self.session.exec(
            select(PlayoffBracket).where(
                PlayoffBracket.league_id == league_id,
                PlayoffBracket.season == season,
            )
        ).first()

    def create_bracket(self, bracket: PlayoffBracket) -> PlayoffBracket:
        """Insert a bracket; a second bracket for the same (league, season) is a conflict."""
        if self.find_bracket(bracket.league_id, bracket.season):
            raise PlayoffConflictError(
                f"Playoff bracket already exists for league {bracket.league_id} season {bracket.season}"
            )
        try:
            self.session.add(bracket)
            self.session.flush()
        except IntegrityError as exc:
            # Lost a race with another writer; the session is unusable until the caller rolls back
            raise PlayoffConflictError(
                f"Playoff bracket already exists for league {bracket.league_id} season {bracket.season}"
            ) from exc
        return bracket

    def update_status(self, bracket: PlayoffBracket, status: str) -> None:
        if bracket.status == status:
            return
        bracket.status = status
        bracket.updated_at = datetime.utcnow()
        self.session.add(bracket)
        self.session.flush()

    def set_terminal_winner(self, bracket: PlayoffBracket, field: str, roster_id: int) -> bool:
        """
        Record a terminal result. Returns True when the value was newly written.

        Writing the value already stored is a no-op; writing a different one is an
        invariant violation.
        """
        current = getattr(bracket, field)
        if current == roster_id:
            return False
        if current is not None:
            raise PlayoffInvariantError(
                f"Bracket {bracket.id} already has {field}={current}; refusing to overwrite with {roster_id}"
            )
        setattr(bracket, field, roster_id)
        bracket.updated_at = datetime.utcnow()
        self.session.add(bracket)
        self.session.flush()
        return True

    def finalize_bracket_if_complete(self, bracket: PlayoffBracket) -> bool:
        """
        Mark the bracket completed once every enabled sub-bracket has a winner.
        Returns True only on the call that performs the transition.
        """
        if bracket.status == STATUS_COMPLETED:
            return False
        if bracket.champion_roster_id is None:
            return False
        if bracket.enable_third_place and bracket.third_place_roster_id is None:
            return False
        if bracket.consolation_enabled and bracket.consolation_winner_roster_id is None:
            return False
        self.update_status(bracket, STATUS_COMPLETED)
        return True

    def delete_bracket(self, bracket: PlayoffBracket) -> None:
        """Remove a bracket with its seeds and playoff matchups."""
        self.session.execute(
            delete(Matchup).where(
                Matchup.league_id == bracket.league_id,
                Matchup.season == bracket.season,
                Matchup.is_playoff == True,  # noqa: E712
            )
        )
        # Seeds go with the bracket through the delete-orphan cascade
        self.session.delete(bracket)
        self.session.flush()

    # ------------------------------------------------------------------
    # Seeds
    # ------------------------------------------------------------------

    def create_seeds(self, bracket_id: int, seeds: List[SeedInput], bracket_type: str) -> List[PlayoffSeed]:
        created = []
        for s in seeds:
            seed = PlayoffSeed(
                bracket_id=bracket_id,
                roster_id=s.roster_id,
                bracket_type=bracket_type,
                seed=s.seed,
                regular_season_record=s.regular_season_record,
                points_for=s.points_for,
                has_bye=s.has_bye,
            )
            self.session.add(seed)
            created.append(seed)
        self.session.flush()
        return created

    def get_seeds(self, bracket_id: int, bracket_type: str) -> List[PlayoffSeed]:
        return list(
            self.session.exec(
                select(PlayoffSeed)
                .where(PlayoffSeed.bracket_id == bracket_id, PlayoffSeed.bracket_type == bracket_type)
                .order_by(PlayoffSeed.seed)
            ).all()
        )

    # ------------------------------------------------------------------
    # Matchups
    # ------------------------------------------------------------------

    def _dialect_name(self) -> str:
        return self.session.get_bind().dialect.name

    def _insert_ignore(self, values: Dict) -> bool:
        """Insert one matchup row unless its slot is taken. Returns True when a row was written."""
        dialect = self._dialect_name()
        if dialect == "postgresql":
            stmt = pg_insert(Matchup.__table__).values(**values).on_conflict_do_nothing()
        elif dialect == "sqlite":
            stmt = sqlite_insert(Matchup.__table__).values(**values).on_conflict_do_nothing()
        else:
            # No native insert-or-ignore: the savepoint absorbs the unique violation
            try:
                with self.session.begin_nested():
                    self.session.execute(insert(Matchup.__table__).values(**values))
            except IntegrityError:
                return False
            return True
        result = self.session.execute(stmt)
        return (result.rowcount or 0) > 0

    def find_playoff_matchup(
        self,
        league_id: int,
        season: int,
        bracket_type: str,
        playoff_round: int,
        bracket_position: int,
        series_game: int,
    ) -> Optional[Matchup]:
        return self.session.exec(
            select(Matchup).where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.bracket_type == bracket_type,
                Matchup.playoff_round == playoff_round,
                Matchup.bracket_position == bracket_position,
                Matchup.series_game == series_game,
            )
        ).first()

    def create_playoff_matchup(
        self,
        league_id: int,
        season: int,
        week: int,
        roster1_id: int,
        roster2_id: int,
        playoff_round: int,
        seed1: int,
        seed2: int,
        bracket_position: int,
        bracket_type: str,
        series_id: Optional[str] = None,
        series_game: int = 1,
        series_length: int = 1,
    ) -> Tuple[Matchup, bool]:
        """
        Insert one playoff game unless its slot is taken.

        Returns (matchup, created). created is False when a row with the same
        (league, season, bracket_type, round, bracket_position, series_game)
        already existed; the existing row is returned untouched.
        """
        values = {
            "league_id": league_id,
            "season": season,
            "week": week,
            "roster1_id": roster1_id,
            "roster2_id": roster2_id,
            "roster1_points": None,
            "roster2_points": None,
            "is_final": False,
            "is_playoff": True,
            "bracket_type": bracket_type,
            "playoff_round": playoff_round,
            "playoff_seed1": seed1,
            "playoff_seed2": seed2,
            "bracket_position": bracket_position,
            "series_id": series_id,
            "series_game": series_game,
            "series_length": series_length,
            "created_at": datetime.utcnow(),
        }
        self.session.flush()
        created = self._insert_ignore(values)
        if not created:
            logger.warning(
                "Playoff matchup slot already exists: league=%s season=%s %s round=%s position=%s game=%s",
                league_id,
                season,
                bracket_type,
                playoff_round,
                bracket_position,
                series_game,
            )

        matchup = self.find_playoff_matchup(
            league_id, season, bracket_type, playoff_round, bracket_position, series_game
        )
        return matchup, created

    def round_matchups_exist(self, league_id: int, season: int, playoff_round: int, bracket_type: str) -> bool:
        count = self.session.exec(
            select(func.count())
            .select_from(Matchup)
            .where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.playoff_round == playoff_round,
                Matchup.bracket_type == bracket_type,
            )
        ).one()
        return count > 0

    def get_playoff_matchups(self, league_id: int, season: int, bracket_type: str) -> List[Matchup]:
        return list(
            self.session.exec(
                select(Matchup)
                .where(
                    Matchup.league_id == league_id,
                    Matchup.season == season,
                    Matchup.is_playoff == True,  # noqa: E712
                    Matchup.bracket_type == bracket_type,
                )
                .order_by(Matchup.playoff_round, Matchup.bracket_position, Matchup.series_game)
            ).all()
        )

    def has_started_matchups(self, league_id: int, season: int) -> bool:
        """True once any playoff game is final or has points recorded."""
        count = self.session.exec(
            select(func.count())
            .select_from(Matchup)
            .where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.is_playoff == True,  # noqa: E712
                or_(
                    Matchup.is_final == True,  # noqa: E712
                    Matchup.roster1_points.is_not(None),
                    Matchup.roster2_points.is_not(None),
                ),
            )
        ).one()
        return count > 0

    def has_regular_season_conflict(self, league_id: int, season: int, week_start: int, week_end: int) -> bool:
        """True if non-playoff games are already scheduled inside [week_start, week_end]."""
        count = self.session.exec(
            select(func.count())
            .select_from(Matchup)
            .where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.is_playoff == False,  # noqa: E712
                Matchup.week >= week_start,
                Matchup.week <= week_end,
            )
        ).one()
        return count > 0

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------

    def get_series_matchups(self, matchup: Matchup) -> List[Matchup]:
        """All games of the series the matchup belongs to, ordered by series_game."""
        if not matchup.series_id:
            return [matchup]
        return list(
            self.session.exec(
                select(Matchup).where(Matchup.series_id == matchup.series_id).order_by(Matchup.series_game)
            ).all()
        )

    def get_series_aggregation(self, matchup: Matchup) -> SeriesAggregation:
        return aggregate_series(self.get_series_matchups(matchup))

    def get_finalized_series_ending_in_week(
        self, league_id: int, season: int, week: int, bracket_type: str
    ) -> List[SeriesAggregation]:
        """
        Complete series whose last game is played in `week` and is final.

        Only the closing game of a series triggers advancement; intermediate
        games of a two-week series never do.
        """
        last_games = self.session.exec(
            select(Matchup)
            .where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.week == week,
                Matchup.bracket_type == bracket_type,
                Matchup.is_playoff == True,  # noqa: E712
                Matchup.is_final == True,  # noqa: E712
                Matchup.series_game == Matchup.series_length,
            )
            .order_by(Matchup.bracket_position)
        ).all()

        completed: List[SeriesAggregation] = []
        seen = set()
        for game in last_games:
            key = series_key_for(game)
            if key in seen:
                continue
            seen.add(key)
            aggregation = self.get_series_aggregation(game)
            if aggregation.is_complete:
                completed.append(aggregation)
        return completed

    def get_round_series(
        self, league_id: int, season: int, playoff_round: int, bracket_type: str
    ) -> List[SeriesAggregation]:
        """Aggregations for every series in a round, complete or not, by bracket position."""
        games = self.session.exec(
            select(Matchup)
            .where(
                Matchup.league_id == league_id,
                Matchup.season == season,
                Matchup.playoff_round == playoff_round,
                Matchup.bracket_type == bracket_type,
                Matchup.is_playoff == True,  # noqa: E712
            )
            .order_by(Matchup.bracket_position, Matchup.series_game)
        ).all()

        grouped: Dict[str, List[Matchup]] = OrderedDict()
        for game in games:
            grouped.setdefault(series_key_for(game), []).append(game)
        return [aggregate_series(series_games) for series_games in grouped.values()]

    def are_all_series_complete_for_round(
        self, league_id: int, season: int, playoff_round: int, bracket_type: str
    ) -> bool:
        series = self.get_round_series(league_id, season, playoff_round, bracket_type)
        return bool(series) and all(s.is_complete for s in series)
