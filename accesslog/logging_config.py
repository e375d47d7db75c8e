"""
Access log sink: severity-named levels, JSON / key=value formatters, rotating file + console handlers.

Handlers per access logger:
- access file: everything at or above ACCESS_LEVEL
- error file: everything at or above ERROR_LEVEL
- console (optional): CONSOLE_LEVEL, text or JSON, optionally coloured
"""
import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from .errors import ConfigurationError
from .settings import AccessLogSettings

VERBOSE = 15
SILLY = 5
logging.addLevelName(VERBOSE, "VERBOSE")
logging.addLevelName(SILLY, "SILLY")

LEVELS: dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
    "silly": SILLY,
}

# numeric level -> severity label written to the log line
_LEVEL_NAMES = {level: name for name, level in LEVELS.items()}

_COLORS = {
    logging.ERROR: "\033[91m",
    logging.WARNING: "\033[93m",
    logging.INFO: "\033[92m",
    VERBOSE: "\033[96m",
    logging.DEBUG: "\033[94m",
    SILLY: "\033[95m",
}
_RESET = "\033[0m"

# logger name -> handler_key() it was configured with
_configured: dict[str, tuple] = {}


def _level_name(record: logging.LogRecord) -> str:
    return _LEVEL_NAMES.get(record.levelno, record.levelname.lower())


def _access_fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = getattr(record, "access", None)
    return fields if isinstance(fields, dict) else {}


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, message, then the access record fields."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": _level_name(record),
            "message": record.getMessage(),
        }
        for key, value in _access_fields(record).items():
            if value is not None:
                payload[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    """`level: key=value key=value` in field order; missing values render as `-`."""

    def __init__(self, color: bool = False):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = _level_name(record)
        if self.color and record.levelno in _COLORS:
            level = f"{_COLORS[record.levelno]}{level}{_RESET}"
        fields = _access_fields(record)
        if fields:
            body = " ".join(f"{k}={'-' if v is None else v}" for k, v in fields.items())
        else:
            body = record.getMessage()
        line = f"{level}: {body}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _file_handler(path: str, formatter: logging.Formatter, level: int, settings: AccessLogSettings) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=settings.MAX_FILE_SIZE, backupCount=settings.MAX_FILES)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def configure_access_logger(settings: AccessLogSettings) -> logging.Logger:
    """
    Attach file (and console) handlers to settings.LOGGER_NAME. Calling again with the same
    handler settings returns the configured logger; reusing the name with different handler
    settings raises ConfigurationError.
    """
    logger = logging.getLogger(settings.LOGGER_NAME)
    key = settings.handler_key()
    if settings.LOGGER_NAME in _configured:
        if _configured[settings.LOGGER_NAME] != key:
            raise ConfigurationError(
                f"Logger {settings.LOGGER_NAME!r} is already configured with different handler settings"
            )
        return logger

    os.makedirs(settings.LOG_FOLDER, exist_ok=True)
    file_formatter: logging.Formatter = JsonFormatter() if settings.JSON_LOGS else TextFormatter()
    logger.addHandler(
        _file_handler(
            os.path.join(settings.LOG_FOLDER, settings.ACCESS_FILE_NAME),
            file_formatter,
            LEVELS[settings.ACCESS_LEVEL],
            settings,
        )
    )
    logger.addHandler(
        _file_handler(
            os.path.join(settings.LOG_FOLDER, settings.ERROR_FILE_NAME),
            file_formatter,
            LEVELS[settings.ERROR_LEVEL],
            settings,
        )
    )
    if settings.CONSOLE:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(JsonFormatter() if settings.CONSOLE_JSON else TextFormatter(color=settings.CONSOLE_COLOR))
        console.setLevel(LEVELS[settings.CONSOLE_LEVEL])
        logger.addHandler(console)

    logger.setLevel(min(LEVELS[settings.ACCESS_LEVEL], LEVELS[settings.ERROR_LEVEL], LEVELS[settings.CONSOLE_LEVEL]))
    logger.propagate = False
    _configured[settings.LOGGER_NAME] = key
    return logger


class AccessLogger:
    """Sink for compiled records: emit(severity, record) on a stdlib logger."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def emit(self, severity: str, record: dict[str, Any]) -> None:
        level = LEVELS.get(severity, logging.ERROR)
        self.logger.log(level, "request", extra={"access": record})
