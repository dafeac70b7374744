"""Tests for the JSON API routes via FastAPI's TestClient."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from arena.dashboard.app import create_dashboard_app
from arena.engine import TournamentEngine


@pytest.fixture
def engine(mock_settings, oracle) -> TournamentEngine:
    return TournamentEngine.from_settings(mock_settings, oracle=oracle)


@pytest.fixture
def client(engine):
    app = create_dashboard_app(engine=engine)
    with TestClient(app) as test_client:
        yield test_client


def test_health(client, engine) -> None:
    engine.register_agent("a", "erd1", "dca")

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["agents"] == 1
    assert body["running"] is False


def test_price_success(client, primary_source) -> None:
    primary_source.prices = ["31.25"]

    response = client.get("/api/price")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["price"] == "31.25"
    assert body["data"]["source"] == "primary"
    assert body["data"]["indicators"] == {
        "ema20": None,
        "rsi14": None,
        "previous_price": None,
    }


def test_price_unavailable_returns_500(client) -> None:
    response = client.get("/api/price")

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "Failed to fetch price"}


def test_register_and_fetch_agent(client) -> None:
    response = client.post(
        "/api/agents",
        json={"agentId": "alpha", "ownerAddress": "erd1owner", "strategy": "momentum"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["agent_id"] == "alpha"

    detail = client.get("/api/agents/alpha").json()["data"]
    assert detail["rank"] == 1
    assert Decimal(detail["portfolio"]["cash"]) == Decimal("1000")
    assert Decimal(detail["portfolio"]["asset"]) == 0
    assert Decimal(detail["roi"]) == 0


def test_register_duplicate_returns_400(client) -> None:
    payload = {"agentId": "alpha", "ownerAddress": "erd1owner", "strategy": "dca"}
    client.post("/api/agents", json=payload)

    response = client.post("/api/agents", json=payload)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert "already registered" in response.json()["error"]


def test_register_unknown_strategy_returns_400(client) -> None:
    response = client.post(
        "/api/agents",
        json={"agentId": "alpha", "ownerAddress": "erd1owner", "strategy": "yolo"},
    )

    assert response.status_code == 400
    assert "Unknown strategy type" in response.json()["error"]


def test_register_missing_fields_rejected(client) -> None:
    response = client.post("/api/agents", json={"agentId": "alpha"})

    assert response.status_code == 422


def test_unknown_agent_returns_404(client) -> None:
    response = client.get("/api/agents/ghost")

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Agent not found"}
    assert client.get("/api/agents/ghost/audit").status_code == 404


def test_leaderboard_payload(client, engine) -> None:
    engine.register_agent("a", "erd1", "dca")
    engine.register_agent("b", "erd1", "momentum")

    data = client.get("/api/leaderboard").json()["data"]

    assert [row["agent_id"] for row in data["leaderboard"]] == ["a", "b"]
    assert data["statistics"]["total_agents"] == 2
    assert data["lastPrice"] is None


def test_start_and_stop_tournament(client, primary_source) -> None:
    primary_source.prices = ["30"]

    started = client.post("/api/tournament/start").json()
    status = client.get("/api/tournament").json()["data"]
    stopped = client.post("/api/tournament/stop").json()

    assert started == {"success": True, "message": "Tournament started"}
    assert status["running"] is True
    assert status["tick_count"] == 1
    assert status["last_price"] == "30"
    assert stopped["success"] is True
    assert client.get("/api/tournament").json()["data"]["running"] is False


def test_agent_audit_after_trade(client, engine, primary_source) -> None:
    primary_source.prices = [str(50 - i) for i in range(15)]
    engine.register_agent("dip", "erd1", "mean_reversion")
    for _ in range(15):
        client.portal.call(engine.tick)

    entries = client.get("/api/agents/dip/audit").json()["data"]

    assert len(entries) == 1
    assert entries[0]["action"] == "buy"
    assert Decimal(entries[0]["indicators"]["rsi14"]) == 0
