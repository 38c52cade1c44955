import os

# Keep the app's own engine off disk; every test uses test_engine below
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine, select  # noqa: E402

from playoffs.database import get_session  # noqa: E402
from playoffs.main import app  # noqa: E402
from playoffs.models.league import League, Roster  # noqa: E402
from playoffs.models.matchup import Matchup  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

# ============================================================================
# Test Database Setup with StaticPool
# ============================================================================
# 1. sqlite:///:memory: with StaticPool so ALL sessions share the same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. Models are imported in tests/__init__.py before create_all()
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created and dropped per test so brackets never leak between tests
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    Override MUST be set BEFORE TestClient() and stay in place for the
    entire duration so the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def make_league(session: Session):
    """
    Factory: league with `team_count` rosters whose standings order is roster
    creation order (team 1 has the most wins). Returns (league, rosters).
    """

    def _make(team_count: int, season: int = 2025, name: str = "Test League"):
        league = League(name=name, season=season)
        session.add(league)
        session.commit()
        session.refresh(league)

        rosters = []
        for i in range(team_count):
            roster = Roster(
                league_id=league.id,
                team_name=f"Team {i + 1}",
                wins=20 - i,
                losses=i,
                ties=0,
                points_for=1500.0 - i * 10,
            )
            session.add(roster)
            rosters.append(roster)
        session.commit()
        for roster in rosters:
            session.refresh(roster)
        return league, rosters

    return _make


def playoff_games(session: Session, league_id: int, bracket_type: str = "WINNERS", playoff_round: int = None):
    """Playoff games for a league ordered by round, position and series game."""
    query = select(Matchup).where(
        Matchup.league_id == league_id,
        Matchup.is_playoff == True,  # noqa: E712
        Matchup.bracket_type == bracket_type,
    )
    if playoff_round is not None:
        query = query.where(Matchup.playoff_round == playoff_round)
    query = query.order_by(Matchup.playoff_round, Matchup.bracket_position, Matchup.series_game)
    return list(session.exec(query).all())


def score(session: Session, matchup: Matchup, roster1_points, roster2_points, final: bool = True) -> Matchup:
    """Record a result the way the scoring owner would."""
    matchup.roster1_points = roster1_points
    matchup.roster2_points = roster2_points
    matchup.is_final = final
    session.add(matchup)
    session.commit()
    session.refresh(matchup)
    return matchup


def favorite_wins(session: Session, games):
    """Finalize games so the lower seed (side 1 when it is the better seed) wins."""
    for game in games:
        if (game.playoff_seed1 or 0) <= (game.playoff_seed2 or 0):
            score(session, game, 120.0, 100.0)
        else:
            score(session, game, 100.0, 120.0)
