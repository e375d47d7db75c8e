import sys
from pathlib import Path

# Allow running from a checkout without installing the package
_root = Path(__file__).resolve().parent.parent
if str(_root) not in sys.path:
    sys.path.insert(0, str(_root))

import pytest

from accesslog.exchange import RequestView, ResponseView
from accesslog.simplifiers import remote_addr


def _raw_headers(headers):
    return [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in headers]


class RecordingSink:
    """In-memory sink: keeps (severity, record) pairs."""

    def __init__(self):
        self.records: list[tuple[str, dict]] = []

    def emit(self, severity, record):
        self.records.append((severity, record))


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_scope():
    def _make(method="GET", path="/", query=b"", headers=(), client=("127.0.0.1", 50000), http_version="1.1"):
        return {
            "type": "http",
            "method": method,
            "path": path,
            "raw_path": path.encode(),
            "query_string": query,
            "headers": _raw_headers(headers),
            "client": client,
            "http_version": http_version,
        }

    return _make


@pytest.fixture
def make_request(make_scope):
    def _make(*, trust_proxy=False, arrived=True, **kwargs):
        request = RequestView(make_scope(**kwargs), trust_proxy=trust_proxy)
        if arrived:
            request.mark_arrived(remote_addr(request))
        return request

    return _make


@pytest.fixture
def make_response():
    def _make(status=200, headers=()):
        response = ResponseView()
        if status is not None:
            response.mark_headers_sent(
                {"type": "http.response.start", "status": status, "headers": _raw_headers(headers)}
            )
        return response

    return _make
