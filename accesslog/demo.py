"""Small FastAPI app with the access log installed. Run: uvicorn --factory accesslog.demo:create_app"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse

from .exchange import RequestView
from .middleware import AccessLogMiddleware
from .settings import AccessLogSettings
from .simplifiers import remote_addr


def create_app(*, registry=None, sink=None, settings: AccessLogSettings | None = None, **options) -> FastAPI:
    """Build the demo app; arguments go to AccessLogMiddleware. Route logs share the access logger."""
    settings = settings if settings is not None else AccessLogSettings.from_options(**options)
    logger = getattr(sink, "logger", None) or logging.getLogger(settings.LOGGER_NAME)

    app = FastAPI(title="accesslog demo")
    app.add_middleware(AccessLogMiddleware, registry=registry, sink=sink, settings=settings)

    @app.get("/", response_class=HTMLResponse)
    def index(request: Request):
        logger.debug("Hello from %s", remote_addr(RequestView(request.scope)))
        return HTMLResponse("<h3>Hello from accesslog</h3>")

    @app.get("/server-error")
    def server_error():
        return PlainTextResponse("Ooops...", status_code=500)

    @app.get("/client-error")
    def client_error():
        return PlainTextResponse("Have you tried at / ?", status_code=404)

    @app.get("/unusual-code")
    def unusual_code():
        return PlainTextResponse("I see you...", status_code=305)

    @app.get("/invalid-code")
    def invalid_code():
        return PlainTextResponse("Sprechen sie jiberish?", status_code=999)

    return app
