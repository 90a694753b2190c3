"""Integration tests for the HTTP endpoints, driven through the test client."""

import random

import pytest
from starlette.testclient import TestClient

from draft.server.app import create_app
from draft.server.settings import DraftServerSettings
from draft.tests.helpers.websocket import create_game, join_game
from draft.tests.mocks import FakeSleeperClient, FakeStatProvider

PLAYERS = {
    "4046": {"first_name": "Patrick", "last_name": "Mahomes", "position": "QB", "team": "KC", "status": "Active"},
    "4034": {"full_name": "Christian McCaffrey", "position": "RB", "team": "SF", "status": "Active"},
    "9999": {"full_name": "Retired Punter", "position": "P", "team": None},
    "1466": {"full_name": "Travis Kelce", "position": "TE", "team": "KC"},
}

WEEK_STATS = {
    (2021, 3): {
        "4046": {"pts_ppr": 24.5, "opp": "LAC"},
        "4034": {"pts_half_ppr": 11.0},
    },
}


def _settings(**overrides) -> DraftServerSettings:
    values = {
        "database_path": ":memory:",
        "scheduler_enabled": False,
        "current_season": 2022,
        "current_season_completed_weeks": 0,
        "cors_origins": ["http://localhost:5173"],
    }
    values.update(overrides)
    return DraftServerSettings(**values)


@pytest.fixture
def sleeper_client():
    return FakeSleeperClient(players=PLAYERS, stats=WEEK_STATS)


@pytest.fixture
def client(sleeper_client):
    app = create_app(
        _settings(),
        sleeper_client=sleeper_client,
        stat_provider=FakeStatProvider(),
        rng=random.Random(3),
    )
    with TestClient(app) as client:
        yield client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestGameEndpoints:
    def test_create_game(self, client):
        data = create_game(client)

        assert len(data["game_code"]) == 6
        assert data["player_id"] == "1"
        assert data["season"] == 2021
        assert 1 <= data["week"] <= 18

    def test_create_game_syncs_missing_week(self, client, sleeper_client):
        data = create_game(client)
        assert (data["season"], data["week"]) in sleeper_client.stat_requests

    def test_create_game_rejects_blank_name(self, client):
        response = client.post("/api/game/create", json={"player_name": "   "})
        assert response.status_code == 400

    def test_create_game_rejects_unknown_fields(self, client):
        response = client.post("/api/game/create", json={"player_name": "Alice", "admin": True})
        assert response.status_code == 400

    def test_invalid_json(self, client):
        response = client.post(
            "/api/game/create",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_body_too_large(self, client):
        response = client.post("/api/game/create", json={"player_name": "A" * 5000})
        assert response.status_code == 413

    def test_join_game(self, client):
        code = create_game(client)["game_code"]
        assert join_game(client, code) == "2"

    def test_join_game_code_case_insensitive(self, client):
        code = create_game(client)["game_code"]
        assert join_game(client, code.lower()) == "2"

    def test_join_unknown_game(self, client):
        response = client.post("/api/game/join", json={"game_code": "ZZZZZZ", "player_name": "Bob"})
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_join_full_game(self, client):
        code = create_game(client)["game_code"]
        join_game(client, code)

        response = client.post("/api/game/join", json={"game_code": code, "player_name": "Carol"})

        assert response.status_code == 409
        assert response.json()["code"] == "full"

    def test_get_game(self, client):
        created = create_game(client)
        join_game(client, created["game_code"])

        response = client.get(f"/api/game/{created['game_code']}")

        assert response.status_code == 200
        session = response.json()
        assert session["status"] == "waiting"
        assert [p["name"] for p in session["players"]] == ["Alice", "Bob"]
        assert session["picked_players"] == []
        assert "version" in session

    def test_get_unknown_game(self, client):
        assert client.get("/api/game/NOPE12").status_code == 404

    def test_rescore_requires_finished_game(self, client):
        code = create_game(client)["game_code"]

        response = client.post(f"/api/game/{code}/rescore")

        assert response.status_code == 409
        assert response.json()["code"] == "invalid_transition"


class TestPlayerAndStatEndpoints:
    @pytest.fixture
    def synced(self, client):
        assert client.post("/api/sync/players").status_code == 200
        assert client.post("/api/sync/stats/2021/3").status_code == 200
        return client

    def test_sync_players_result(self, client):
        response = client.post("/api/sync/players")

        assert response.status_code == 200
        assert response.json()["result"] == {"inserted": 4, "updated": 0}

    def test_resync_counts_updates(self, synced):
        response = synced.post("/api/sync/players")
        assert response.json()["result"] == {"inserted": 0, "updated": 4}

    def test_list_players_only_fantasy_positions(self, synced):
        names = [p["full_name"] for p in synced.get("/api/players").json()]
        assert "Retired Punter" not in names
        assert "Patrick Mahomes" in names

    def test_list_players_filters(self, synced):
        players = synced.get("/api/players", params={"team": "KC", "position": "TE"}).json()
        assert [p["player_id"] for p in players] == ["1466"]

    def test_list_players_name_search(self, synced):
        players = synced.get("/api/players", params={"search": "mccaff"}).json()
        assert [p["player_id"] for p in players] == ["4034"]

    def test_count_players(self, synced):
        assert synced.get("/api/players/count").json() == {"total": 4, "active": 2}

    def test_stats_exist(self, synced):
        assert synced.get("/api/stats/exists/2021/3").json() == {"exists": True, "count": 2}
        assert synced.get("/api/stats/exists/2021/4").json() == {"exists": False, "count": 0}

    def test_get_player_stats(self, synced):
        record = synced.get("/api/stats/4046/2021/3").json()
        assert record["points"] == 24.5
        assert record["opponent_team"] == "LAC"

    def test_get_missing_player_stats(self, synced):
        response = synced.get("/api/stats/4046/2021/9")
        assert response.status_code == 200
        assert response.json() is None

    def test_calculate_lineup(self, synced):
        response = synced.post(
            "/api/lineup/calculate",
            json={"player_ids": ["4046", "4034", "1466"], "season": 2021, "week": 3},
        )

        data = response.json()
        assert data["total_points"] == pytest.approx(35.5)
        assert data["player_count"] == 2

    def test_calculate_lineup_validates_week(self, synced):
        response = synced.post("/api/lineup/calculate", json={"player_ids": [], "season": 2021, "week": 19})
        assert response.status_code == 400

    def test_sync_stats_rejects_bad_week(self, client):
        assert client.post("/api/sync/stats/2021/0").status_code == 400


class TestSyncFailures:
    @pytest.fixture
    def client(self):
        app = create_app(
            _settings(),
            sleeper_client=FakeSleeperClient(fail=True),
            stat_provider=FakeStatProvider(),
        )
        with TestClient(app) as client:
            yield client

    def test_sync_players_bad_gateway(self, client):
        response = client.post("/api/sync/players")
        assert response.status_code == 502
        assert response.json() == {"error": "Sync failed"}

    def test_create_game_survives_failed_background_sync(self, client):
        response = client.post("/api/game/create", json={"player_name": "Alice"})
        assert response.status_code == 201
