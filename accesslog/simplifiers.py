"""
Built-in simplifiers: each takes (request, response, *args) and returns a string or None.
Token names follow the morgan conventions (url, method, status, res[header], ...).
"""
import base64
import binascii
from collections.abc import Callable
from datetime import UTC, datetime
from email.utils import format_datetime
from typing import Any, NamedTuple

from starlette.datastructures import Headers

from .exchange import RequestView, ResponseView

Extractor = Callable[..., Any]


class Credentials(NamedTuple):
    name: str
    password: str


def parse_basic_auth(request: RequestView) -> Credentials | None:
    """Decode `Authorization: Basic ...`. Returns None when absent or malformed."""
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "basic" or not value.strip():
        return None
    try:
        decoded = base64.b64decode(value.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    name, sep, password = decoded.partition(":")
    if not sep:
        return None
    return Credentials(name, password)


def _join_header(headers: Headers, field: str) -> str | None:
    values = headers.getlist(field.lower())
    if not values:
        return None
    return ", ".join(values)


def url(request: RequestView, response: ResponseView | None = None) -> str:
    return request.url


def method(request: RequestView, response: ResponseView | None = None) -> str:
    return request.method


def response_time(request: RequestView, response: ResponseView | None, digits: str | int = 3) -> str | None:
    """Milliseconds from request arrival to response header flush."""
    if request.start_at is None or response is None or response.start_at is None:
        return None
    ms = (response.start_at - request.start_at) * 1e3
    return f"{ms:.{int(digits)}f}"


def date(request: RequestView, response: ResponseView | None = None, fmt: str = "web") -> str | None:
    now = datetime.now(UTC)
    fmt = fmt or "web"
    if fmt == "iso":
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if fmt == "web":
        return format_datetime(now, usegmt=True)
    return None


def status(request: RequestView, response: ResponseView | None = None) -> str | None:
    if response is None or not response.headers_sent or response.status_code is None:
        return None
    return str(response.status_code)


def referrer(request: RequestView, response: ResponseView | None = None) -> str | None:
    return request.headers.get("referer") or request.headers.get("referrer")


def remote_addr(request: RequestView, response: ResponseView | None = None) -> str | None:
    return request.ip or request.remote_address or request.peer_address or None


def make_remote_user(credentials: Callable[[RequestView], Any]) -> Extractor:
    """Build the remote-user simplifier around a credential parser returning an object with `.name`."""

    def remote_user(request: RequestView, response: ResponseView | None = None) -> str | None:
        creds = credentials(request)
        return creds.name if creds else None

    return remote_user


def http_version(request: RequestView, response: ResponseView | None = None) -> str:
    return request.http_version


def user_agent(request: RequestView, response: ResponseView | None = None) -> str | None:
    return request.headers.get("user-agent")


def req_header(request: RequestView, response: ResponseView | None, field: str) -> str | None:
    return _join_header(request.headers, field)


def res_header(request: RequestView, response: ResponseView | None, field: str) -> str | None:
    if response is None or not response.headers_sent:
        return None
    return _join_header(response.headers, field)


def default_simplifiers(credentials: Callable[[RequestView], Any] = parse_basic_auth) -> dict[str, Extractor]:
    """Fresh name -> extractor mapping for a new registry."""
    return {
        "url": url,
        "method": method,
        "response-time": response_time,
        "date": date,
        "status": status,
        "referrer": referrer,
        "remote-addr": remote_addr,
        "remote-user": make_remote_user(credentials),
        "http-version": http_version,
        "user-agent": user_agent,
        "req": req_header,
        "res": res_header,
    }
