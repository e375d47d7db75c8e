from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Level = Literal["error", "warn", "info", "verbose", "debug", "silly"]


class AccessLogSettings(BaseSettings):
    """Middleware options. Keyword arguments win over ACCESSLOG_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="ACCESSLOG_", extra="forbid")

    # File transports
    ACCESS_LEVEL: Level = "info"
    ACCESS_FILE_NAME: str = "access.log"
    ERROR_LEVEL: Level = "error"
    ERROR_FILE_NAME: str = "error.log"
    LOG_FOLDER: str = "logs"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB per file before rotation
    MAX_FILES: int = 5
    JSON_LOGS: bool = True

    # Console transport
    CONSOLE: bool = True
    CONSOLE_LEVEL: Level = "debug"
    CONSOLE_COLOR: bool = True
    CONSOLE_JSON: bool = False

    # Log exceptions raised by the wrapped app before re-raising them
    HANDLE_EXCEPTIONS: bool = True
    # Take remote-addr from X-Forwarded-For when behind a proxy
    TRUST_PROXY: bool = False
    LOGGER_NAME: str = "accesslog.access"

    # Registered format name, or a list of token specs registered under a reserved name
    FORMAT: str | list[str] = "combined"

    @classmethod
    def from_options(cls, **options: Any) -> "AccessLogSettings":
        """Build from middleware keyword options (access_level=..., format=...)."""
        return cls(**{key.upper(): value for key, value in options.items()})

    @field_validator("FORMAT")
    @classmethod
    def _format_not_empty(cls, v: str | list[str]) -> str | list[str]:
        if not v:
            raise ValueError("format must be a format name or a non-empty list of tokens")
        return v

    @field_validator("MAX_FILE_SIZE", "MAX_FILES")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    def handler_key(self) -> tuple:
        """Everything that shapes the handlers attached to LOGGER_NAME."""
        return (
            self.ACCESS_LEVEL, self.ACCESS_FILE_NAME, self.ERROR_LEVEL, self.ERROR_FILE_NAME,
            self.LOG_FOLDER, self.MAX_FILE_SIZE, self.MAX_FILES, self.JSON_LOGS,
            self.CONSOLE, self.CONSOLE_LEVEL, self.CONSOLE_COLOR, self.CONSOLE_JSON,
        )
