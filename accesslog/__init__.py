"""Request logging middleware driven by named token formats (morgan-style tokens, stdlib logging sink)."""

from .errors import (
    AccessLogError,
    AlreadyRegisteredError,
    CompileError,
    ConfigurationError,
    MalformedTokenError,
    MissingSimplifierError,
    RegistrationError,
    SimplifierNotFoundError,
    UnknownFormatError,
)
from .exchange import RequestView, ResponseView
from .logging_config import LEVELS, AccessLogger, configure_access_logger
from .middleware import AccessLogMiddleware
from .registry import BUILTIN_FORMATS, Registry
from .settings import AccessLogSettings
from .severity import DEFAULT_LEVEL, STATUS_LEVELS, level_for_status
from .simplifiers import Credentials, parse_basic_auth
from .tokens import Token, parse_token

__all__ = [
    "AccessLogMiddleware",
    "AccessLogSettings",
    "AccessLogger",
    "configure_access_logger",
    "LEVELS",
    "Registry",
    "BUILTIN_FORMATS",
    "Token",
    "parse_token",
    "RequestView",
    "ResponseView",
    "Credentials",
    "parse_basic_auth",
    "STATUS_LEVELS",
    "DEFAULT_LEVEL",
    "level_for_status",
    "AccessLogError",
    "RegistrationError",
    "AlreadyRegisteredError",
    "MissingSimplifierError",
    "MalformedTokenError",
    "CompileError",
    "UnknownFormatError",
    "SimplifierNotFoundError",
    "ConfigurationError",
]
