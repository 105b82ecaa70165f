"""Unit tests for logging utilities."""

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import orjson
import pytest

from compose_fixture.utils import create_logger, log_level_from_string

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


class TestLogLevelFromString:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("debug", logging.DEBUG),
            ("INFO", logging.INFO),
            ("warning", logging.WARNING),
            ("error", logging.ERROR),
            ("nonsense", logging.INFO),
        ],
    )
    def test_maps_names(self, name: str, expected: int) -> None:
        assert log_level_from_string(name) == expected

    def test_debug_env_overrides_when_respected(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("COMPOSE_FIXTURE_DEBUG", "1")

        assert log_level_from_string("error", respect_env=True) == logging.DEBUG
        assert log_level_from_string("error") == logging.ERROR


class TestCreateLogger:
    def test_text_format_to_stream(self) -> None:
        stream = io.StringIO()
        logger = create_logger(stream=stream)

        logger.info("containers_started", count=2)

        output = stream.getvalue()
        assert "containers_started" in output
        assert "count=2" in output
        assert "[info" in output

    def test_json_format(self) -> None:
        stream = io.StringIO()
        logger = create_logger(log_format="json", stream=stream)

        logger.warning("start_attempt_failed", error="boom")

        entry = orjson.loads(stream.getvalue().splitlines()[0])
        assert entry["event"] == "start_attempt_failed"
        assert entry["error"] == "boom"
        assert entry["level"] == "warning"
        assert "timestamp" in entry

    def test_binds_context(self) -> None:
        stream = io.StringIO()
        logger = create_logger(log_format="json", stream=stream, project="orders")

        logger.info("initializing")

        assert orjson.loads(stream.getvalue())["project"] == "orders"

    def test_filters_below_level(self) -> None:
        stream = io.StringIO()
        logger = create_logger(level="warning", stream=stream)

        logger.info("hidden")
        logger.warning("shown")

        assert "hidden" not in stream.getvalue()
        assert "shown" in stream.getvalue()

    def test_debug_env_enables_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("COMPOSE_FIXTURE_DEBUG", "true")
        stream = io.StringIO()
        logger = create_logger(level="error", stream=stream)

        logger.debug("running_command")

        assert "running_command" in stream.getvalue()

    def test_creates_log_directory_if_missing(self, fs: "FakeFilesystem") -> None:
        log_path = Path("/logs/compose/fixture.log")
        assert not log_path.parent.exists()

        logger = create_logger(log_file=log_path)
        logger.info("cleanup_done")

        assert log_path.parent.exists()
        assert "cleanup_done" in log_path.read_text()

    def test_appends_to_existing_file(self, fs: "FakeFilesystem") -> None:
        log_path = Path("/logs/fixture.log")
        _ = fs.create_file(log_path, contents="earlier\n")

        logger = create_logger(log_file=str(log_path), log_format="json")
        logger.info("initializing")

        lines = log_path.read_text().splitlines()
        assert lines[0] == "earlier"
        assert orjson.loads(lines[1])["event"] == "initializing"
