"""HTTP surface for playoffs: generate, view, advance, delete, and error mapping."""
from fastapi.testclient import TestClient
from sqlmodel import Session

from tests.conftest import favorite_wins, playoff_games


def test_health(client: TestClient):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_generate_and_get_bracket(client: TestClient, session: Session, make_league):
    league, _ = make_league(8)

    response = client.post(
        f"/api/leagues/{league.id}/playoffs/generate",
        json={"playoff_teams": 6, "start_week": 15, "weeks_by_round": [1, 1, 2]},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["bracket"]["playoff_teams"] == 6
    assert data["bracket"]["championship_week"] == 18
    assert [r["name"] for r in data["rounds"]] == ["Wild Card", "Semifinals", "Championship"]
    assert len(data["rounds"][0]["matchups"]) == 2

    response = client.get(f"/api/leagues/{league.id}/playoffs/bracket")
    assert response.status_code == 200
    assert response.json()["bracket"]["id"] == data["bracket"]["id"]


def test_get_bracket_returns_null_before_generation(client: TestClient, make_league):
    league, _ = make_league(4)
    response = client.get(f"/api/leagues/{league.id}/playoffs/bracket")
    assert response.status_code == 200
    assert response.json() is None


def test_error_mapping(client: TestClient, make_league):
    league, _ = make_league(4)
    url = f"/api/leagues/{league.id}/playoffs/generate"

    assert client.post(url, json={"playoff_teams": 5, "start_week": 15}).status_code == 400
    assert client.post(url, json={"playoff_teams": 4, "start_week": 15}).status_code == 201
    assert client.post(url, json={"playoff_teams": 4, "start_week": 15}).status_code == 409
    assert client.post("/api/leagues/999/playoffs/generate", json={"playoff_teams": 4, "start_week": 15}).status_code == 404
    assert client.post(url, json={"playoff_teams": 4, "start_week": 15, "consolation_type": "LADDER"}).status_code == 422


def test_advance_endpoint_is_repeatable(client: TestClient, session: Session, make_league):
    league, _ = make_league(4)
    client.post(f"/api/leagues/{league.id}/playoffs/generate", json={"playoff_teams": 4, "start_week": 15})
    favorite_wins(session, playoff_games(session, league.id, playoff_round=1))

    first = client.post(f"/api/leagues/{league.id}/playoffs/advance", json={"week": 15})
    second = client.post(f"/api/leagues/{league.id}/playoffs/advance", json={"week": 15})
    assert first.status_code == 200
    assert first.json() == second.json()
    assert first.json()["bracket_status"] == "active"
    assert len(first.json()["bracket"]["rounds"][1]["matchups"]) == 1


def test_advance_without_bracket_is_404(client: TestClient, make_league):
    league, _ = make_league(4)
    response = client.post(f"/api/leagues/{league.id}/playoffs/advance", json={"week": 15})
    assert response.status_code == 404


def test_advance_with_missing_score_is_500(client: TestClient, session: Session, make_league):
    league, _ = make_league(4)
    client.post(f"/api/leagues/{league.id}/playoffs/generate", json={"playoff_teams": 4, "start_week": 15})
    game = playoff_games(session, league.id, playoff_round=1)[0]
    game.roster1_points = 101.0
    game.is_final = True
    session.add(game)
    session.commit()

    response = client.post(f"/api/leagues/{league.id}/playoffs/advance", json={"week": 15})
    assert response.status_code == 500
    assert "missing a score" in response.json()["detail"]


def test_delete_bracket(client: TestClient, session: Session, make_league):
    league, _ = make_league(4)
    client.post(f"/api/leagues/{league.id}/playoffs/generate", json={"playoff_teams": 4, "start_week": 15})

    response = client.delete(f"/api/leagues/{league.id}/playoffs/bracket")
    assert response.status_code == 200
    assert response.json()["deleted"] is True
    assert client.get(f"/api/leagues/{league.id}/playoffs/bracket").json() is None


def test_delete_bracket_after_play_started_is_409(client: TestClient, session: Session, make_league):
    league, _ = make_league(4)
    client.post(f"/api/leagues/{league.id}/playoffs/generate", json={"playoff_teams": 4, "start_week": 15})
    favorite_wins(session, playoff_games(session, league.id, playoff_round=1))

    assert client.delete(f"/api/leagues/{league.id}/playoffs/bracket").status_code == 409
