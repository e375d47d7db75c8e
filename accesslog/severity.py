"""Fixed status code -> severity label lookup used to pick the log level when a request completes."""
from http import HTTPStatus
from types import MappingProxyType

DEFAULT_LEVEL = "error"


def _level_for_class(code: int) -> str:
    if code >= 500:
        return "error"
    if code >= 400:
        return "warn"
    return "info"


STATUS_LEVELS = MappingProxyType({s.value: _level_for_class(s.value) for s in HTTPStatus})


def level_for_status(status_code: int | None) -> str:
    """Severity label for a final status code; unmapped or missing codes fall back to DEFAULT_LEVEL."""
    if status_code is None:
        return DEFAULT_LEVEL
    return STATUS_LEVELS.get(status_code, DEFAULT_LEVEL)
