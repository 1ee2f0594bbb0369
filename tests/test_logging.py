"""Tests for popvars logging helpers."""

import io
import json
import logging

import pytest

from popvars import _logging
from popvars._logging import (
    _get_log_level,
    _log_level_from_string,
    configure_logging,
    create_logger,
    get_logger,
)
from popvars.definition import Definition
from popvars.engine import compile_template, render_all
from popvars.errors import RenderError


class TestLogLevel:
    def test_default_is_warning(self):
        assert _get_log_level() == logging.WARNING

    def test_level_from_env(self, monkeypatch):
        monkeypatch.setenv("POPVARS_LOG_LEVEL", "info")
        assert _get_log_level() == logging.INFO

    def test_debug_env_wins(self, monkeypatch):
        monkeypatch.setenv("POPVARS_LOG_LEVEL", "error")
        monkeypatch.setenv("POPVARS_DEBUG", "1")
        assert _get_log_level() == logging.DEBUG

    def test_from_string(self):
        assert _log_level_from_string("error") == logging.ERROR
        assert _log_level_from_string("bogus") == logging.WARNING

    def test_from_string_respects_debug_env(self, monkeypatch):
        monkeypatch.setenv("POPVARS_DEBUG", "1")
        assert _log_level_from_string("error", respect_env=True) == logging.DEBUG
        assert _log_level_from_string("error") == logging.ERROR


class TestCreateLogger:
    def test_filters_below_level(self):
        stream = io.StringIO()
        log = create_logger(level="warning", stream=stream)
        log.debug("hidden")
        log.warning("shown", row=3)
        output = stream.getvalue()
        assert "hidden" not in output
        assert "shown" in output
        assert "row=3" in output

    def test_json_format(self):
        stream = io.StringIO()
        log = create_logger(level="info", log_format="json", stream=stream)
        log.info("compiled", nodes=2)
        entry = json.loads(stream.getvalue())
        assert entry["event"] == "compiled"
        assert entry["nodes"] == 2
        assert entry["level"] == "info"


class TestSharedLogger:
    def test_get_logger_is_cached(self):
        assert get_logger() is get_logger()

    def test_configure_replaces_shared_logger(self):
        stream = io.StringIO()
        log = configure_logging("debug", stream=stream)
        assert get_logger() is log
        assert _logging._logger is log

    def test_engine_logs_through_shared_logger(self):
        stream = io.StringIO()
        configure_logging("debug", stream=stream)
        definition = Definition.from_records([{"a": "1"}])
        render_all(compile_template("{{ a }}"), definition)
        output = stream.getvalue()
        assert "compiled template" in output
        assert "rendered record" in output

    def test_render_failure_is_logged(self):
        stream = io.StringIO()
        configure_logging("error", stream=stream)
        definition = Definition.from_records([{"a": "1"}])
        with pytest.raises(RenderError):
            render_all(compile_template("{{ b }}"), definition)
        assert "render failed" in stream.getvalue()
