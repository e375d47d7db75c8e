"""
Pure ASGI access-log middleware.

Per request: ARRIVED (stamp start, snapshot remote address) -> HEADERS_SENT (stamp response start
just before http.response.start goes out) -> FINISHED (compile the format, emit at the severity of
the final status). FINISHED fires once, whether the body completed, the app raised, or the client
went away.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .errors import ConfigurationError, RegistrationError
from .exchange import RequestView, ResponseView
from .logging_config import AccessLogger, configure_access_logger
from .registry import Registry
from .settings import AccessLogSettings
from .severity import level_for_status
from .simplifiers import remote_addr

logger = logging.getLogger("accesslog.middleware")

# Name a literal token list is registered under; later lists in the same registry get a numeric suffix
CUSTOM_FORMAT_NAME = "accesslog"


class Sink(Protocol):
    def emit(self, severity: str, record: dict[str, Any]) -> None: ...


class State(enum.Enum):
    ARRIVED = "arrived"
    HEADERS_SENT = "headers_sent"
    FINISHED = "finished"


@dataclass
class Exchange:
    request: RequestView
    response: ResponseView
    state: State = State.ARRIVED


class AccessLogMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        *,
        registry: Registry | None = None,
        sink: Sink | None = None,
        settings: AccessLogSettings | None = None,
        **options: Any,
    ):
        if settings is not None and options:
            raise ConfigurationError("Pass either settings or keyword options, not both")
        self.app = app
        self.settings = settings if settings is not None else AccessLogSettings.from_options(**options)
        self.registry = registry if registry is not None else Registry()
        self.format_name = self._resolve_format(self.settings.FORMAT)
        if sink is None:
            sink = AccessLogger(configure_access_logger(self.settings))
        self.sink = sink
        self.logger: logging.Logger = getattr(sink, "logger", logger)

    def _resolve_format(self, fmt: str | list[str]) -> str:
        if isinstance(fmt, list):
            name = CUSTOM_FORMAT_NAME
            suffix = 1
            while name in self.registry.formats:
                suffix += 1
                name = f"{CUSTOM_FORMAT_NAME}:{suffix}"
            result = self.registry.register_format(name, fmt)
            if isinstance(result, RegistrationError):
                raise ConfigurationError(f"Invalid format: {result}") from result
            return name
        if fmt not in self.registry.formats:
            raise ConfigurationError(f"Unknown format {fmt!r}; registered: {', '.join(self.registry.formats)}")
        return fmt

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = RequestView(scope, trust_proxy=self.settings.TRUST_PROXY)
        request.mark_arrived(remote_addr(request))
        exchange = Exchange(request=request, response=ResponseView())

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start" and exchange.state is State.ARRIVED:
                exchange.response.mark_headers_sent(message)
                exchange.state = State.HEADERS_SENT
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                self.finish(exchange)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if self.settings.HANDLE_EXCEPTIONS:
                self.logger.error("unhandled exception: %s %s", request.method, request.url, exc_info=True)
            raise
        finally:
            self.finish(exchange)

    def finish(self, exchange: Exchange) -> None:
        """Compile and emit the record for `exchange`. Runs at most once per exchange and never raises."""
        if exchange.state is State.FINISHED:
            return
        exchange.state = State.FINISHED
        try:
            severity = level_for_status(exchange.response.status_code)
            record = self.registry.compile(self.format_name, exchange.request, exchange.response)
            self.sink.emit(severity, record)
        except Exception:
            logger.exception("failed to emit access log record")
