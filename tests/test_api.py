"""HTTP tests for the FastAPI app, using an in-memory bet store."""

import pytest
from fastapi.testclient import TestClient

from betgistics.main import app, get_bet_logger
from betgistics.services.bet_logging import BetLogger
from betgistics.services.bet_store import InMemoryBetStore


@pytest.fixture
def client():
    bet_logger = BetLogger(InMemoryBetStore())
    app.dependency_overrides[get_bet_logger] = lambda: bet_logger
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["app"] == "Betgistics"


def test_health_reports_store(client):
    data = client.get("/health").json()
    assert data["betStore"] == "InMemoryBetStore"
    assert data["durable"] is False


class TestEstimators:
    def test_football_camel_case_payload(self, client):
        payload = {
            "teamPointsFor": 28.5, "teamPointsAgainst": 21.3,
            "opponentPointsFor": 24.2, "opponentPointsAgainst": 26.8,
            "teamOffYards": 395, "teamDefYards": 315,
            "opponentOffYards": 362, "opponentDefYards": 385,
            "teamTurnoverDiff": 8, "opponentTurnoverDiff": -3,
            "spread": -6.5,
        }
        response = client.post("/api/estimate/football", json=payload)
        assert response.status_code == 200
        body = response.json()
        assert body["isError"] is False
        assert body["structuredContent"]["probability"] > 50
        assert body["content"][0]["type"] == "text"

    def test_out_of_range_is_400(self, client):
        payload = {
            "team_points_for": 250, "team_points_against": 108,
            "opponent_points_for": 110, "opponent_points_against": 112,
            "team_fg_pct": 0.48, "opponent_fg_pct": 0.45,
            "spread": -3.5,
        }
        response = client.post("/api/estimate/basketball", json=payload)
        assert response.status_code == 400
        assert response.json()["structuredContent"]["error"] == "invalid_input"

    def test_missing_field_is_422(self, client):
        response = client.post("/api/estimate/football", json={"spread": -3})
        assert response.status_code == 422

    def test_hockey(self, client):
        payload = {"home": {"xgf": 3.2, "xga": 2.8}, "away": {"xgf": 3.0, "xga": 3.1}, "line": 5.5, "betType": "under"}
        body = client.post("/api/estimate/hockey", json=payload).json()
        assert body["structuredContent"]["betType"] == "under"
        assert body["structuredContent"]["probability"] < 50

    def test_by_name(self, client):
        body = client.post(
            "/api/estimate/basketball/by-name",
            json={"team_favorite": "Boston Celtics", "team_underdog": "Charlotte Hornets", "spread": -7.5},
        ).json()
        assert body["structuredContent"]["favorite"] == "Boston Celtics"

    def test_by_name_unknown_team_is_404(self, client):
        response = client.post(
            "/api/estimate/football/by-name",
            json={"teamA": "Qwxyz Blorp", "teamB": "Chiefs", "spread": -3},
        )
        assert response.status_code == 404
        assert response.json()["structuredContent"]["error"] == "team_not_found"


class TestKellyAndOdds:
    def test_kelly(self, client):
        body = client.post("/api/kelly", json={"bankroll": 1000, "odds": -110, "probability": 55, "fraction": 0.5}).json()
        assert body["structuredContent"]["stake"] == pytest.approx(27.5)

    def test_kelly_bad_bankroll(self, client):
        response = client.post("/api/kelly", json={"bankroll": 0, "odds": -110, "probability": 55})
        assert response.status_code == 400
        assert response.json()["structuredContent"]["error"] == "invalid_bankroll"

    def test_convert(self, client):
        body = client.post("/api/odds/convert", json={"odds": 2.5, "fromFormat": "decimal"}).json()
        assert body["structuredContent"]["american"] == 150

    def test_implied(self, client):
        body = client.get("/api/odds/implied", params={"odds": -200}).json()
        assert body["structuredContent"]["impliedProbability"] == pytest.approx(66.67)

    def test_vig(self, client):
        body = client.post("/api/odds/vig", json={"odds1": -110, "odds2": -110}).json()
        assert body["structuredContent"]["vig"]["percentage"] == pytest.approx(4.76)


class TestBets:
    bet = {
        "teamA": "Hawks", "teamB": "Heat", "sport": "nba",
        "spread": -3.5, "probability": 58, "odds": -110, "bankroll": 1000,
        "recommendedStake": 25, "actualWager": 25,
    }

    def test_log_settle_history(self, client):
        logged = client.post("/api/bets/log", params={"session_id": "u1"}, json=self.bet).json()
        bet_id = logged["structuredContent"]["betId"]

        settled = client.put(f"/api/bets/{bet_id}/outcome", json={"result": "loss"})
        assert settled.status_code == 200
        assert settled.json()["structuredContent"]["profit"] == -25

        history = client.get("/api/bets/u1").json()
        assert history["structuredContent"]["summary"]["losses"] == 1

    def test_unknown_bet_is_404(self, client):
        response = client.put("/api/bets/bet_0_missing/outcome", json={"result": "win"})
        assert response.status_code == 404

    def test_bad_result_is_422(self, client):
        response = client.put("/api/bets/bet_0_missing/outcome", json={"result": "maybe"})
        assert response.status_code == 422

    def test_history_limit_bounds(self, client):
        assert client.get("/api/bets/u1", params={"limit": 0}).status_code == 422


class TestOrchestrate:
    def test_success_logs_bet(self, client):
        response = client.post(
            "/api/orchestrate",
            json={"userText": "NBA: Heat vs Hawks, Hawks -3.5, I'm taking Hawks. Game is in Atlanta.", "sessionId": "o1"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["content"][0]["text"].startswith("## Betting Analysis Summary")
        assert body["structuredContent"]["workflow"]["step5_logging"]["success"] is True
        assert client.get("/api/bets/o1").json()["structuredContent"]["total"] == 1

    def test_bankroll_above_cap_is_422(self, client):
        response = client.post("/api/orchestrate", json={"userText": "NBA: Heat vs Hawks, Hawks -3.5, taking Hawks", "bankroll": 5e9})
        assert response.status_code == 422

    def test_default_bankroll_above_cap_is_400(self, client, monkeypatch):
        monkeypatch.setenv("DEFAULT_BANKROLL", "5e9")
        response = client.post("/api/orchestrate", json={"userText": "NBA: Heat vs Hawks, Hawks -3.5, taking Hawks"})
        assert response.status_code == 400
        assert response.json()["structuredContent"]["error"] == "invalid_bankroll"

    def test_parse_failure_is_422_with_clarification(self, client):
        response = client.post("/api/orchestrate", json={"userText": "NBA: Heat vs Hawks, taking Hawks"})
        assert response.status_code == 422
        assert response.json()["detail"]["clarificationNeeded"] == ["spread"]
