"""
Access log sink: formatters, rotating file handlers, severity -> level mapping.
Run: pytest tests/test_logging_config.py -v
"""
import json
import logging
import uuid

import pytest

from accesslog.errors import ConfigurationError
from accesslog.logging_config import (
    LEVELS,
    SILLY,
    VERBOSE,
    AccessLogger,
    JsonFormatter,
    TextFormatter,
    configure_access_logger,
)
from accesslog.settings import AccessLogSettings


def _record(level=logging.INFO, access=None, msg="request"):
    rec = logging.LogRecord("accesslog.test", level, __file__, 1, msg, None, None)
    if access is not None:
        rec.access = access
    return rec


@pytest.fixture
def settings(tmp_path):
    s = AccessLogSettings(
        LOG_FOLDER=str(tmp_path / "nested" / "logs"),
        CONSOLE=False,
        LOGGER_NAME=f"accesslog.test.{uuid.uuid4().hex}",
    )
    yield s
    logger = logging.getLogger(s.LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _lines(path):
    text = path.read_text().strip()
    return [json.loads(line) for line in text.splitlines()] if text else []


def test_custom_level_names_registered():
    assert logging.getLevelName(VERBOSE) == "VERBOSE"
    assert logging.getLevelName(SILLY) == "SILLY"
    assert LEVELS["warn"] == logging.WARNING
    assert LEVELS["silly"] < LEVELS["debug"] < LEVELS["verbose"] < LEVELS["info"]


def test_json_formatter_merges_fields_and_drops_none():
    line = JsonFormatter().format(_record(access={"method": "GET", "status": None, "url": "/"}))
    payload = json.loads(line)
    assert payload["level"] == "info"
    assert payload["message"] == "request"
    assert payload["method"] == "GET"
    assert payload["url"] == "/"
    assert "status" not in payload
    assert "timestamp" in payload


def test_text_formatter_keeps_field_order():
    line = TextFormatter().format(_record(access={"method": "GET", "url": "/", "status": None}))
    assert line == "info: method=GET url=/ status=-"


def test_text_formatter_colour_and_plain_messages():
    line = TextFormatter(color=True).format(_record(level=logging.WARNING, msg="hello"))
    assert line.startswith("\033[93mwarn\033[0m: ")
    assert line.endswith("hello")


def test_configure_creates_folder_and_is_idempotent(settings, tmp_path):
    logger = configure_access_logger(settings)
    assert (tmp_path / "nested" / "logs").is_dir()
    assert len(logger.handlers) == 2
    assert logger.propagate is False
    assert configure_access_logger(settings) is logger
    assert len(logger.handlers) == 2


def test_console_handler_added(tmp_path):
    s = AccessLogSettings(LOG_FOLDER=str(tmp_path), LOGGER_NAME=f"accesslog.test.{uuid.uuid4().hex}")
    logger = configure_access_logger(s)
    try:
        assert len(logger.handlers) == 3
        console = logger.handlers[-1]
        assert isinstance(console.formatter, TextFormatter)
        assert console.level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_emit_routes_by_severity(settings, tmp_path):
    sink = AccessLogger(configure_access_logger(settings))
    folder = tmp_path / "nested" / "logs"
    sink.emit("info", {"status": "200"})
    sink.emit("warn", {"status": "404"})
    sink.emit("error", {"status": "500"})
    sink.emit("teapot", {"status": "999"})
    for handler in sink.logger.handlers:
        handler.flush()
    access = _lines(folder / "access.log")
    errors = _lines(folder / "error.log")
    assert [(p["level"], p["status"]) for p in access] == [
        ("info", "200"), ("warn", "404"), ("error", "500"), ("error", "999"),
    ]
    assert [p["status"] for p in errors] == ["500", "999"]


def test_emit_below_access_level_is_dropped(tmp_path):
    s = AccessLogSettings(
        LOG_FOLDER=str(tmp_path), CONSOLE=False, ACCESS_LEVEL="warn",
        LOGGER_NAME=f"accesslog.test.{uuid.uuid4().hex}",
    )
    sink = AccessLogger(configure_access_logger(s))
    try:
        sink.emit("verbose", {"status": "200"})
        sink.emit("warn", {"status": "404"})
        for handler in sink.logger.handlers:
            handler.flush()
        assert [p["status"] for p in _lines(tmp_path / "access.log")] == ["404"]
    finally:
        for handler in list(sink.logger.handlers):
            handler.close()
            sink.logger.removeHandler(handler)


def test_text_file_logs(tmp_path):
    s = AccessLogSettings(
        LOG_FOLDER=str(tmp_path), CONSOLE=False, JSON_LOGS=False,
        LOGGER_NAME=f"accesslog.test.{uuid.uuid4().hex}",
    )
    sink = AccessLogger(configure_access_logger(s))
    try:
        sink.emit("info", {"method": "GET", "url": "/"})
        for handler in sink.logger.handlers:
            handler.flush()
        assert (tmp_path / "access.log").read_text() == "info: method=GET url=/\n"
    finally:
        for handler in list(sink.logger.handlers):
            handler.close()
            sink.logger.removeHandler(handler)


def test_json_level_uses_severity_names():
    payload = json.loads(JsonFormatter().format(_record(level=logging.WARNING, access={"status": "404"})))
    assert payload["level"] == "warn"
    assert json.loads(JsonFormatter().format(_record(level=VERBOSE)))["level"] == "verbose"


def test_reusing_logger_name_with_other_handlers_fails(settings, tmp_path):
    configure_access_logger(settings)
    other = AccessLogSettings(
        LOG_FOLDER=str(tmp_path / "other"), CONSOLE=False, LOGGER_NAME=settings.LOGGER_NAME,
    )
    with pytest.raises(ConfigurationError):
        configure_access_logger(other)
    assert not (tmp_path / "other").exists()


def test_reusing_logger_name_with_same_handlers_is_allowed(settings):
    logger = configure_access_logger(settings)
    same = AccessLogSettings(
        LOG_FOLDER=settings.LOG_FOLDER, CONSOLE=False, LOGGER_NAME=settings.LOGGER_NAME, FORMAT="tiny",
    )
    assert configure_access_logger(same) is logger
    assert len(logger.handlers) == 2
