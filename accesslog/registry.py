"""
Simplifier and format registry plus the format compiler.

A Registry is an explicit value owned by whoever configures the middleware; there is no
module-level instance. Writes happen at configuration time, request handling only reads.
"""
import logging
from collections.abc import Callable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .errors import (
    AlreadyRegisteredError,
    MalformedTokenError,
    MissingSimplifierError,
    RegistrationError,
    SimplifierNotFoundError,
    UnknownFormatError,
)
from .exchange import RequestView, ResponseView
from .simplifiers import Extractor, default_simplifiers, parse_basic_auth
from .tokens import Token, parse_token

logger = logging.getLogger("accesslog.registry")

# key -> Token, in registration order
Format = Mapping[str, Token]

BUILTIN_FORMATS: dict[str, list[str]] = {
    "combined": [
        "remote-addr", "remote-user", "date[web]", "method", "url",
        "http-version", "status", "res[content-length]", "referrer", "user-agent",
    ],
    "common": [
        "remote-addr", "remote-user", "date[web]", "method", "url",
        "http-version", "status", "res[content-length]",
    ],
    "dev": ["method", "url", "status", "response-time", "res[content-length]"],
    "short": [
        "remote-addr", "remote-user", "method", "url", "http-version",
        "status", "res[content-length]", "response-time",
    ],
    "tiny": ["method", "url", "status", "res[content-length]", "response-time"],
}


class Registry:
    """Named simplifiers and formats. Instances are independent of each other."""

    def __init__(self, credentials: Callable[[RequestView], Any] = parse_basic_auth):
        self._simplifiers: dict[str, Extractor] = default_simplifiers(credentials)
        self._formats: dict[str, Format] = {}
        for name, tokens in BUILTIN_FORMATS.items():
            result = self.register_format(name, tokens)
            if isinstance(result, RegistrationError):
                raise result

    @property
    def simplifiers(self) -> Mapping[str, Extractor]:
        return MappingProxyType(self._simplifiers)

    @property
    def formats(self) -> Mapping[str, Format]:
        return MappingProxyType(self._formats)

    def lookup(self, key: str) -> Extractor | None:
        return self._simplifiers.get(key)

    def register_simplifier(self, name: str, func: Extractor) -> Extractor | RegistrationError:
        """Add an extractor under `name` (lowercased). Errors are returned, never raised."""
        if not isinstance(name, str) or not name:
            return RegistrationError("Simplifier name must be a non-empty string")
        if not callable(func):
            return RegistrationError("Simplifier must be callable")
        key = name.lower()
        if key in self._simplifiers:
            return AlreadyRegisteredError("Simplifier", key)
        self._simplifiers[key] = func
        return func

    def register_format(self, name: str, tokens: Sequence[str]) -> Format | RegistrationError:
        """
        Parse `tokens` and store them under `name`. Every referenced key must already be a
        registered simplifier; otherwise nothing is stored and the returned error lists all
        missing keys. Tokens sharing a key collapse to the last one.
        """
        if not isinstance(name, str) or not name:
            return RegistrationError("Format name must be a non-empty string")
        if (
            isinstance(tokens, str)
            or not isinstance(tokens, Sequence)
            or not tokens
            or not all(isinstance(t, str) for t in tokens)
        ):
            return RegistrationError("Format tokens must be a non-empty sequence of strings")
        if name in self._formats:
            return AlreadyRegisteredError("Format", name)
        fmt: dict[str, Token] = {}
        try:
            for text in tokens:
                token = parse_token(text)
                fmt[token.key] = token
        except MalformedTokenError as e:
            return e
        missing = [key for key in fmt if key not in self._simplifiers]
        if missing:
            return MissingSimplifierError(missing)
        frozen = MappingProxyType(fmt)
        self._formats[name] = frozen
        return frozen

    def resolve(self, fmt: str | Format) -> Format:
        if isinstance(fmt, str):
            try:
                return self._formats[fmt]
            except KeyError:
                raise UnknownFormatError(fmt) from None
        return fmt

    def compile(
        self, fmt: str | Format, request: RequestView, response: ResponseView | None
    ) -> dict[str, Any]:
        """
        Evaluate every token of `fmt` against the exchange, keyed by the token's raw text.
        A simplifier that raises yields None for its field instead of failing the record.
        """
        result: dict[str, Any] = {}
        for token in self.resolve(fmt).values():
            func = self._simplifiers.get(token.key)
            if func is None:
                result[token.raw] = None
                continue
            try:
                result[token.raw] = func(request, response, *token.args)
            except Exception:
                logger.warning("simplifier %s failed", token.raw, exc_info=True)
                result[token.raw] = None
        return result

    def simplify(self, text: str, request: RequestView, response: ResponseView | None) -> Any:
        """Evaluate a single token outside any format."""
        token = parse_token(text)
        func = self._simplifiers.get(token.key)
        if func is None:
            raise SimplifierNotFoundError(token.key)
        return func(request, response, *token.args)
