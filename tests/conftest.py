"""Pytest configuration and fixtures."""
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from unittest.mock import patch
from urllib.parse import urlparse

import pytest
import requests

from src.config import reset_settings
from src.node_sdk.basenode import NodeExecutionContext


BASE_URL = "https://diro.test"
API_KEY = "diro_test_key"

Reply = Tuple[int, Any]
Route = Union[Reply, Callable[["RecordedCall"], Reply], BaseException]


class RecordedCall:
    """One request seen by the fake server."""

    def __init__(self, method, url, params=None, json=None, data=None, headers=None, timeout=None):
        self.method = method
        self.url = url
        self.path = urlparse(url).path
        self.params = dict(params or {})
        self.json = json
        self.data = data
        self.headers = dict(headers or {})
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"<{self.method} {self.path} params={self.params}>"


def make_response(status_code: int, body: Any, url: str, method: str) -> requests.Response:
    """Build a real requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = {200: "OK", 204: "No Content", 401: "Unauthorized",
                       404: "Not Found", 500: "Internal Server Error"}.get(status_code, "")
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    response.encoding = "utf-8"
    response.url = url
    response.request = requests.Request(method, url).prepare()
    return response


class FakeDiroServer:
    """
    Stand-in for requests.request that answers from registered routes.

    Routes are keyed by (method, path). A route holds a queue of replies;
    the last reply repeats once the queue is drained. A reply is a
    (status, body) tuple, a callable taking the RecordedCall, or an
    exception instance to raise.
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Route]] = {}
        self.calls: List[RecordedCall] = []

    def add(self, method: str, path: str, body: Any = None, status: int = 200) -> None:
        self.routes.setdefault((method, path), []).append((status, body))

    def add_handler(self, method: str, path: str, handler: Callable[[RecordedCall], Reply]) -> None:
        self.routes.setdefault((method, path), []).append(handler)

    def add_error(self, method: str, path: str, error: BaseException) -> None:
        self.routes.setdefault((method, path), []).append(error)

    def calls_to(self, method: str, path: Optional[str] = None) -> List[RecordedCall]:
        return [
            call for call in self.calls
            if call.method == method and (path is None or call.path == path)
        ]

    def __call__(self, method, url, params=None, json=None, data=None, headers=None,
                 timeout=None, **kwargs):
        call = RecordedCall(method, url, params, json, data, headers, timeout)
        self.calls.append(call)

        queue = self.routes.get((method, call.path))
        if not queue:
            return make_response(404, {"error": "Not found"}, url, method)

        route = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(route, BaseException):
            raise route
        status, body = route(call) if callable(route) else route
        return make_response(status, body, url, method)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch, tmp_path):
    """Isolate every test from DIRO_* variables and .env files."""
    for name in ("DIRO_API_KEY", "DIRO_BASE_URL", "DIRO_LOG_LEVEL", "DIRO_LOG_JSON",
                 "DIRO_HTTP_TIMEOUT_S", "DIRO_ENV"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """setup_logging() replaces root handlers; put them back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_diro():
    """Patch requests.request inside the HTTP client with a FakeDiroServer."""
    server = FakeDiroServer()
    with patch("src.node_sdk.http.requests.request", side_effect=server):
        yield server


@pytest.fixture
def diro_credentials():
    """Credentials as the host hands them to the node."""
    return {"diroApi": {"apiKey": API_KEY, "baseUrl": BASE_URL}}


@pytest.fixture
def make_node(diro_credentials):
    """Build a DiroNode with an execution context attached."""
    from nodepacks.diro.nodes import DiroNode

    def _make(parameters: Dict[str, Any], input_data=None, continue_on_fail=False, credentials=None):
        node = DiroNode()
        node.continue_on_fail = continue_on_fail
        node.set_context(
            NodeExecutionContext(
                parameters=parameters,
                credentials=diro_credentials if credentials is None else credentials,
                input_data=input_data if input_data is not None else [{"json": {}}],
            )
        )
        return node

    return _make


def listing(key: str, items: List[Any], total: int) -> Dict[str, Any]:
    """Body of a Diro listing response."""
    return {"success": True, "data": {key: items, "pagination": {"total": total}}}


def paged_listing(key: str, records: List[Any], total: Optional[int] = None):
    """Handler serving ``records`` by limit/offset like the real API."""
    def handler(call: RecordedCall) -> Reply:
        limit = int(call.params.get("limit", 20))
        offset = int(call.params.get("offset", 0))
        page = records[offset:offset + limit]
        return 200, listing(key, page, len(records) if total is None else total)

    return handler
