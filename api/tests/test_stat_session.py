"""Tests for stat-entry sessions and the session registry."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest

from scorebook.gateway import EntityNotFoundError, GatewayError
from scorebook.gateway.memory import MemoryEntityCollection
from scorebook.services.live_stats import (
    CommitError,
    FoulKind,
    SessionClosedError,
    SessionNotFoundError,
    SessionRegistry,
    ShotOutcome,
    StatCategory,
    StatEntrySession,
)


class TestStatEntrySession:
    @pytest.mark.asyncio
    async def test_open_loads_snapshots(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])

        assert session.player.name == "Jordan Reyes"
        assert session.game.quarter == 2
        assert session.has_pending() is False

    @pytest.mark.asyncio
    async def test_open_missing_player_fails(self, gateway, game) -> None:
        with pytest.raises(EntityNotFoundError):
            await StatEntrySession.open(gateway, 999, game["id"])

    @pytest.mark.asyncio
    async def test_open_player_from_another_game_fails(self, gateway, game, player) -> None:
        other = await gateway.games.create({})

        with pytest.raises(EntityNotFoundError):
            await StatEntrySession.open(gateway, player["id"], other["id"])

    @pytest.mark.asyncio
    async def test_confirm_commits_and_resets(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        session.record(StatCategory.three_pointer, ShotOutcome.made)
        session.record(StatCategory.assist)

        result = await session.confirm()

        assert result is not None
        assert session.has_pending() is False
        assert session.player.points == 13
        assert session.game.home_score == 3
        assert [event["event_type"] for event in result.events] == ["3pt_make", "assist"]
        assert {event["quarter"] for event in result.events} == {2}
        assert {event["game_clock_seconds"] for event in result.events} == {300}

    @pytest.mark.asyncio
    async def test_confirm_reads_clock_at_confirmation(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        session.record(StatCategory.steal)
        await gateway.games.update(game["id"], {"game_clock_seconds": 120, "quarter": 3})

        result = await session.confirm()

        assert result.events[0]["game_clock_seconds"] == 120
        assert result.events[0]["quarter"] == 3

    @pytest.mark.asyncio
    async def test_confirm_uses_latest_player_totals(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        await gateway.players.update(player["id"], {"points": 20})
        session.record(StatCategory.two_pointer, ShotOutcome.made)

        result = await session.confirm()

        assert result.player["points"] == 22

    @pytest.mark.asyncio
    async def test_empty_confirm_commits_nothing(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])

        assert await session.confirm() is None
        assert await gateway.events.list() == []

    @pytest.mark.asyncio
    async def test_failed_confirm_keeps_buffer(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        session.record(StatCategory.foul, FoulKind.personal)
        original = MemoryEntityCollection.bulk_create

        async def failing_bulk_create(self, records):
            if self.name == "GameEvent":
                raise GatewayError("insert failed")
            return await original(self, records)

        with patch.object(MemoryEntityCollection, "bulk_create", failing_bulk_create):
            with pytest.raises(CommitError):
                await session.confirm()

        assert session.has_pending() is True
        assert (await gateway.players.get(player["id"]))["personal_fouls"] == 0

        result = await session.confirm()
        assert result.player["personal_fouls"] == 1

    @pytest.mark.asyncio
    async def test_concurrent_confirms_commit_once(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        session.record(StatCategory.two_pointer, ShotOutcome.made)

        results = await asyncio.gather(session.confirm(), session.confirm())

        assert sum(result is not None for result in results) == 1
        events = await gateway.events.filter({"game_id": game["id"]})
        stored_game = await gateway.games.get(game["id"])
        assert len(events) == 1
        assert events[0]["points"] == stored_game["home_score"] == 2
        assert (await gateway.players.get(player["id"]))["points"] == 12

    @pytest.mark.asyncio
    async def test_closed_session_rejects_input(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        session.record(StatCategory.block)
        session.close()

        assert session.has_pending() is False
        with pytest.raises(SessionClosedError):
            session.record(StatCategory.block)
        with pytest.raises(SessionClosedError):
            await session.confirm()

    @pytest.mark.asyncio
    async def test_free_throw_cap_through_session(self, gateway, game, player) -> None:
        session = await StatEntrySession.open(gateway, player["id"], game["id"])
        accepted = [session.add_free_throw(ShotOutcome.made) for _ in range(4)]

        assert accepted == [True, True, True, False]
        assert session.undo_last_free_throw() is ShotOutcome.made
        assert session.to_dict()["buffer"]["free_throws"] == ["made", "made"]


class TestSessionRegistry:
    @pytest.mark.asyncio
    async def test_open_get_close(self, gateway, game, player) -> None:
        registry = SessionRegistry(gateway)
        session = await registry.open(player["id"], game["id"])

        assert registry.get(session.id) is session
        assert len(registry) == 1

        registry.close(session.id)

        assert session.is_closed
        assert len(registry) == 0
        with pytest.raises(SessionNotFoundError):
            registry.get(session.id)

    @pytest.mark.asyncio
    async def test_close_unknown_session(self, gateway) -> None:
        with pytest.raises(SessionNotFoundError):
            SessionRegistry(gateway).close("missing")

    @pytest.mark.asyncio
    async def test_close_all(self, gateway, game, player) -> None:
        registry = SessionRegistry(gateway)
        first = await registry.open(player["id"], game["id"])
        second = await registry.open(player["id"], game["id"])

        registry.close_all()

        assert first.is_closed and second.is_closed
        assert len(registry) == 0
