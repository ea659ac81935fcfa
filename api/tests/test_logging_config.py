"""Tests for structured JSON logging."""

from __future__ import annotations

import json
import logging

import pytest

from scorebook.logging_config import (
    GameContextFilter,
    JSONFormatter,
    configure_logging,
    current_log_context,
    log_context,
    resolve_log_level,
)


def _record(msg: str = "stats_committed", **extra) -> logging.LogRecord:
    record = logging.LogRecord("scorebook.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_payload_fields(self) -> None:
        payload = json.loads(JSONFormatter("scorebook-api", "development").format(_record()))

        assert payload["message"] == "stats_committed"
        assert payload["level"] == "info"
        assert payload["logger"] == "scorebook.test"
        assert payload["service"] == "scorebook-api"
        assert payload["environment"] == "development"
        assert "timestamp" in payload

    def test_extra_fields_are_merged(self) -> None:
        record = _record(batch_id="abc", event_count=6, failed_writes=["game"])
        payload = json.loads(JSONFormatter("scorebook-api", "development").format(record))

        assert payload["batch_id"] == "abc"
        assert payload["event_count"] == 6
        assert payload["failed_writes"] == ["game"]

    def test_unserializable_extras_fall_back_to_str(self) -> None:
        record = _record(error=ValueError("bad input"))
        payload = json.loads(JSONFormatter("scorebook-api", "development").format(record))

        assert payload["error"] == "bad input"

    def test_context_fields_lead_the_payload(self) -> None:
        record = _record(event_count=2, batch_id="b-1", game_id=7)
        payload = json.loads(JSONFormatter("scorebook-api", "development").format(record))

        keys = list(payload)
        assert keys.index("game_id") < keys.index("event_count")
        assert keys.index("batch_id") < keys.index("event_count")
        assert "session_id" not in payload


class TestLogContext:
    def test_binds_and_restores(self) -> None:
        with log_context(game_id=7, session_id="s1"):
            with log_context(batch_id="b-1", session_id=None):
                assert current_log_context() == {
                    "game_id": 7,
                    "session_id": "s1",
                    "batch_id": "b-1",
                }
            assert current_log_context() == {"game_id": 7, "session_id": "s1"}
        assert current_log_context() == {}

    def test_rejects_unknown_fields(self) -> None:
        with pytest.raises(ValueError):
            with log_context(player_id=3):
                pass

    def test_filter_stamps_records(self) -> None:
        record = _record()
        explicit = _record(game_id=99)
        with log_context(game_id=7, batch_id="b-1"):
            GameContextFilter().filter(record)
            GameContextFilter().filter(explicit)

        assert (record.game_id, record.batch_id) == (7, "b-1")
        assert explicit.game_id == 99

    def test_configured_handler_emits_context(self, capsys: pytest.CaptureFixture[str]) -> None:
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            configure_logging("scorebook-api", "development", "INFO")
            with log_context(game_id=12, session_id="abc"):
                logging.getLogger("scorebook.test").info("stats_committed")
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)

        line = capsys.readouterr().out.strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "stats_committed"
        assert (payload["game_id"], payload["session_id"]) == (12, "abc")


class TestLogLevel:
    def test_defaults_by_environment(self) -> None:
        assert resolve_log_level(None, "production") == logging.INFO
        assert resolve_log_level(None, "development") == logging.DEBUG

    def test_explicit_level(self) -> None:
        assert resolve_log_level(" warning ", "production") == logging.WARNING

    def test_unknown_level_falls_back_to_info(self) -> None:
        assert resolve_log_level("chatty", "development") == logging.INFO

    def test_configure_installs_json_handler(self) -> None:
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            configure_logging("scorebook-api", "production", "ERROR")

            assert root.level == logging.ERROR
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
        finally:
            root.handlers = previous_handlers
            root.setLevel(previous_level)
