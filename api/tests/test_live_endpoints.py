"""Tests for the live stat-entry HTTP endpoints."""

from __future__ import annotations

import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from scorebook.dependencies.auth import verify_api_key
from scorebook.gateway import GatewayError, MemoryEntityGateway
from scorebook.gateway.memory import MemoryEntityCollection
from scorebook.main import create_app

PREFIX = "/api/live"


class TestLiveEndpoints(unittest.TestCase):
    def setUp(self) -> None:
        self.gateway = MemoryEntityGateway()
        self.app = create_app(self.gateway)
        self.app.dependency_overrides[verify_api_key] = lambda: "test-key"
        self.client = TestClient(self.app)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        self.app.dependency_overrides.clear()

    def _create_game(self, **payload) -> dict:
        body = {"homeTeamName": "Hawks", "awayTeamName": "Owls", **payload}
        response = self.client.post(f"{PREFIX}/games", json=body)
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _add_player(self, game_id: int, name: str = "Jordan Reyes", team: str = "home") -> dict:
        response = self.client.post(
            f"{PREFIX}/games/{game_id}/players",
            json={"name": name, "team": team, "jerseyNumber": 23},
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _open_session(self, game_id: int, player_id: int) -> str:
        response = self.client.post(
            f"{PREFIX}/sessions", json={"playerId": player_id, "gameId": game_id}
        )
        self.assertEqual(response.status_code, 201)
        return response.json()["sessionId"]

    def test_healthcheck(self) -> None:
        response = self.client.get("/healthz")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "ok"})

    def test_create_game_uses_setup_defaults(self) -> None:
        game = self._create_game(quarterLengthMinutes=10)

        self.assertEqual(game["gameClockSeconds"], 600)
        self.assertEqual(game["shotClockSeconds"], 24)
        self.assertEqual(game["quarter"], 1)
        self.assertEqual(game["homeTeamColor"], "#3B82F6")
        self.assertEqual(game["awayTeamColor"], "#F97316")
        self.assertEqual(self.client.get(f"{PREFIX}/games/{game['id']}").json()["id"], game["id"])

    def test_unknown_game_is_404(self) -> None:
        self.assertEqual(self.client.get(f"{PREFIX}/games/42").status_code, 404)
        response = self.client.post(
            f"{PREFIX}/games/42/players", json={"name": "Ghost", "team": "home"}
        )
        self.assertEqual(response.status_code, 404)

    def test_player_team_must_be_a_side(self) -> None:
        game = self._create_game()
        response = self.client.post(
            f"{PREFIX}/games/{game['id']}/players", json={"name": "Ref", "team": "neutral"}
        )

        self.assertEqual(response.status_code, 422)

    def test_stat_entry_flow(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])

        response = self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats",
            json={"category": "two_pointer", "outcome": "made"},
        )
        self.assertTrue(response.json()["accepted"])

        accepted = [
            self.client.post(
                f"{PREFIX}/sessions/{session_id}/free-throws", json={"outcome": "made"}
            ).json()["accepted"]
            for _ in range(4)
        ]
        self.assertEqual(accepted, [True, True, True, False])

        undo = self.client.delete(f"{PREFIX}/sessions/{session_id}/free-throws/last")
        self.assertEqual(undo.json()["buffer"]["free_throws"], ["made", "made"])

        self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats",
            json={"category": "foul", "foulKind": "technical"},
        )
        self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats", json={"category": "assist", "amount": 2}
        )

        confirm = self.client.post(f"{PREFIX}/sessions/{session_id}/confirm")
        self.assertEqual(confirm.status_code, 200)
        body = confirm.json()

        self.assertTrue(body["committed"])
        self.assertEqual(
            [event["eventType"] for event in body["events"]],
            ["2pt_make", "ft_make", "ft_make", "assist", "assist", "foul_technical"],
        )
        self.assertEqual(len({event["batchId"] for event in body["events"]}), 1)
        self.assertEqual(body["playerDelta"]["points"], 4)
        self.assertEqual(body["playerDelta"]["personal_fouls"], 1)
        self.assertTrue(body["gameDelta"]["shot_clock_reset"])
        self.assertEqual(body["player"]["points"], 4)
        self.assertEqual(body["game"]["homeScore"], 4)

        session = self.client.get(f"{PREFIX}/sessions/{session_id}").json()
        self.assertFalse(session["hasPending"])

        feed = self.client.get(f"{PREFIX}/games/{game['id']}/events").json()
        self.assertEqual(len(feed), 6)

        limited = self.client.get(f"{PREFIX}/games/{game['id']}/events", params={"limit": 2})
        self.assertEqual(len(limited.json()), 2)

        box = self.client.get(f"{PREFIX}/games/{game['id']}/box-score").json()
        self.assertTrue(box["ledger_consistent"])
        self.assertEqual(box["teams"]["home"]["score"], 4)
        self.assertEqual(box["teams"]["home"]["players"][0]["ft_pct"], 100.0)

    def test_empty_confirm_commits_nothing(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])

        response = self.client.post(f"{PREFIX}/sessions/{session_id}/confirm")

        self.assertEqual(response.json()["committed"], False)
        self.assertEqual(self.client.get(f"{PREFIX}/games/{game['id']}/events").json(), [])

    def test_shot_requires_outcome(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])

        response = self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats", json={"category": "three_pointer"}
        )

        self.assertEqual(response.status_code, 422)

    def test_unknown_category_rejected(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])

        response = self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats", json={"category": "dunk"}
        )

        self.assertEqual(response.status_code, 422)

    def test_open_session_for_missing_player_is_404(self) -> None:
        game = self._create_game()

        response = self.client.post(f"{PREFIX}/sessions", json={"playerId": 99, "gameId": game["id"]})

        self.assertEqual(response.status_code, 404)

    def test_closed_session_is_gone(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])

        self.assertEqual(self.client.delete(f"{PREFIX}/sessions/{session_id}").status_code, 204)
        self.assertEqual(self.client.get(f"{PREFIX}/sessions/{session_id}").status_code, 404)
        self.assertEqual(
            self.client.post(f"{PREFIX}/sessions/{session_id}/confirm").status_code, 404
        )

    def test_failed_commit_returns_502_and_keeps_buffer(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        session_id = self._open_session(game["id"], player["id"])
        self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats", json={"category": "steal"}
        )
        original = MemoryEntityCollection.update

        async def failing_update(collection, record_id, changes):
            if collection.name == "Player":
                raise GatewayError("write rejected")
            return await original(collection, record_id, changes)

        with patch.object(MemoryEntityCollection, "update", failing_update):
            response = self.client.post(f"{PREFIX}/sessions/{session_id}/confirm")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["detail"]["failedWrites"], ["player"])
        self.assertTrue(self.client.get(f"{PREFIX}/sessions/{session_id}").json()["hasPending"])
        self.assertEqual(self.client.get(f"{PREFIX}/games/{game['id']}/events").json(), [])

    def test_clock_controls(self) -> None:
        game = self._create_game()
        clock_url = f"{PREFIX}/games/{game['id']}/clock"

        state = self.client.get(clock_url).json()
        self.assertFalse(state["running"])
        self.assertEqual(state["gameClockDisplay"], "8:00")

        self.assertTrue(self.client.post(f"{clock_url}/start").json()["running"])
        ticked = self.client.post(f"{clock_url}/tick").json()
        self.assertEqual((ticked["gameClockSeconds"], ticked["shotClockSeconds"]), (479, 23))

        self.assertFalse(self.client.post(f"{clock_url}/pause").json()["running"])
        still = self.client.post(f"{clock_url}/tick").json()
        self.assertEqual(still["gameClockSeconds"], 479)

        self.assertEqual(self.client.post(f"{clock_url}/reset-shot-clock").json()["shotClockSeconds"], 24)
        advanced = self.client.post(f"{clock_url}/next-period").json()
        self.assertEqual((advanced["quarter"], advanced["gameClockSeconds"]), (2, 480))

        self.client.post(f"{clock_url}/start")
        self.client.post(f"{clock_url}/tick")
        self.client.post(f"{clock_url}/pause")
        reset = self.client.post(f"{clock_url}/reset-game-clock").json()
        self.assertEqual(reset["gameClockSeconds"], 480)

        stored = self.client.get(f"{PREFIX}/games/{game['id']}").json()
        self.assertEqual(stored["quarter"], 2)
        self.assertEqual(stored["gameClockSeconds"], 480)

    def test_made_shot_resyncs_mounted_shot_clock(self) -> None:
        game = self._create_game()
        player = self._add_player(game["id"])
        clock_url = f"{PREFIX}/games/{game['id']}/clock"
        self.client.post(f"{clock_url}/start")
        for _ in range(5):
            self.client.post(f"{clock_url}/tick")
        self.client.post(f"{clock_url}/pause")
        self.assertEqual(self.client.get(clock_url).json()["shotClockSeconds"], 19)

        session_id = self._open_session(game["id"], player["id"])
        self.client.post(
            f"{PREFIX}/sessions/{session_id}/stats",
            json={"category": "three_pointer", "outcome": "made"},
        )
        self.client.post(f"{PREFIX}/sessions/{session_id}/confirm")

        self.assertEqual(self.client.get(clock_url).json()["shotClockSeconds"], 24)

    def test_substitution_swaps_court_flags(self) -> None:
        game = self._create_game()
        starter = self.client.post(
            f"{PREFIX}/games/{game['id']}/players",
            json={"name": "Jordan Reyes", "team": "home", "jerseyNumber": 23, "onCourt": True},
        ).json()
        bench = self.client.post(
            f"{PREFIX}/games/{game['id']}/players",
            json={"name": "Sam Ortiz", "team": "home", "jerseyNumber": 4},
        ).json()

        response = self.client.post(
            f"{PREFIX}/games/{game['id']}/substitutions",
            json={"playerOutId": starter["id"], "playerInId": bench["id"]},
        )

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertFalse(body["playerOut"]["onCourt"])
        self.assertTrue(body["playerIn"]["onCourt"])
        self.assertEqual(body["event"]["eventType"], "substitution")
        self.assertEqual(body["event"]["description"], "Sam Ortiz (4) in for Jordan Reyes (23)")

        again = self.client.post(
            f"{PREFIX}/games/{game['id']}/substitutions",
            json={"playerOutId": starter["id"], "playerInId": bench["id"]},
        )
        self.assertEqual(again.status_code, 422)

    def test_timeouts_count_down(self) -> None:
        game = self._create_game(timeoutsPerTeam=1)
        self.assertEqual((game["homeTimeouts"], game["awayTimeouts"]), (1, 1))
        url = f"{PREFIX}/games/{game['id']}/timeouts"

        response = self.client.post(url, json={"team": "home", "durationSeconds": 60})

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body["game"]["homeTimeouts"], 0)
        self.assertEqual(body["game"]["awayTimeouts"], 1)
        self.assertIsNone(body["event"]["playerId"])
        self.assertEqual(body["event"]["description"], "Hawks timeout (60s)")

        exhausted = self.client.post(url, json={"team": "home", "durationSeconds": 30})
        self.assertEqual(exhausted.status_code, 422)

        feed = self.client.get(f"{PREFIX}/games/{game['id']}/events").json()
        self.assertEqual([event["eventType"] for event in feed], ["timeout"])

    def test_clock_adjust_updates_mounted_clock(self) -> None:
        game = self._create_game()
        clock_url = f"{PREFIX}/games/{game['id']}/clock"
        self.client.post(f"{clock_url}/start")
        self.client.post(f"{clock_url}/tick")

        adjusted = self.client.post(
            f"{clock_url}/adjust", json={"gameClockSeconds": 125, "shotClockSeconds": 9}
        ).json()
        self.assertEqual((adjusted["gameClockSeconds"], adjusted["shotClockSeconds"]), (125, 9))

        ticked = self.client.post(f"{clock_url}/tick").json()
        self.client.post(f"{clock_url}/pause")
        self.assertEqual((ticked["gameClockSeconds"], ticked["shotClockSeconds"]), (124, 8))
        stored = self.client.get(f"{PREFIX}/games/{game['id']}").json()
        self.assertEqual(stored["gameClockSeconds"], 124)

        self.assertEqual(self.client.post(f"{clock_url}/adjust", json={}).status_code, 422)
        negative = self.client.post(f"{clock_url}/adjust", json={"shotClockSeconds": -3})
        self.assertEqual(negative.status_code, 422)


class TestApiKeyRequired(unittest.TestCase):
    def test_wrong_key_rejected(self) -> None:
        app = create_app(MemoryEntityGateway())
        with patch("scorebook.dependencies.auth.settings") as mock_settings:
            mock_settings.api_key = "k" * 32
            with TestClient(app) as client:
                missing = client.get(f"{PREFIX}/games")
                wrong = client.get(f"{PREFIX}/games", headers={"X-API-Key": "nope"})
                right = client.get(f"{PREFIX}/games", headers={"X-API-Key": "k" * 32})

        self.assertEqual(missing.status_code, 401)
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(right.status_code, 200)
