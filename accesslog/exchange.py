"""Read-only request/response views over ASGI messages, plus per-request timing stamps."""
import time
from datetime import UTC, datetime

from starlette.datastructures import Headers
from starlette.types import Message, Scope


def _original_url(scope: Scope) -> str:
    raw_path = scope.get("raw_path")
    if raw_path:
        path = raw_path.decode("latin-1")
    else:
        path = scope.get("root_path", "") + scope.get("path", "")
    query = scope.get("query_string", b"")
    if query:
        return f"{path}?{query.decode('latin-1')}"
    return path or "/"


def _http_version(version: str) -> str:
    # ASGI reports "1.0", "1.1", "2" or "3"; always render major.minor
    return version if "." in version else f"{version}.0"


def _forwarded_for(headers: Headers) -> str | None:
    xff = headers.get("x-forwarded-for")
    if not xff:
        return None
    ip = xff.split(",")[0].strip()
    return ip or None


class RequestView:
    """Request side of one exchange. `start_at`/`start_time`/`remote_address` are stamped on arrival."""

    def __init__(self, scope: Scope, *, trust_proxy: bool = False):
        self.scope = scope
        self.headers = Headers(raw=list(scope.get("headers") or []))
        self.method: str = scope.get("method", "")
        self.url = _original_url(scope)
        self.http_version = _http_version(scope.get("http_version", "1.1"))
        client = scope.get("client")
        self.peer_address: str | None = client[0] if client else None
        self.ip: str | None = _forwarded_for(self.headers) if trust_proxy else None
        self.remote_address: str | None = None
        self.start_at: float | None = None
        self.start_time: datetime | None = None

    def mark_arrived(self, remote_address: str | None) -> None:
        self.start_at = time.perf_counter()
        self.start_time = datetime.now(UTC)
        self.remote_address = remote_address


class ResponseView:
    """Response side of one exchange. Status and headers exist only once headers_sent is True."""

    def __init__(self):
        self.status_code: int | None = None
        self.headers = Headers()
        self.headers_sent = False
        self.start_at: float | None = None
        self.start_time: datetime | None = None

    def mark_headers_sent(self, message: Message) -> None:
        self.start_at = time.perf_counter()
        self.start_time = datetime.now(UTC)
        self.status_code = message.get("status")
        self.headers = Headers(raw=[(k, v) for k, v in message.get("headers", [])])
        self.headers_sent = True
