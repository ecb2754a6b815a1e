"""
Shared fixtures for the wdclient unit tests.

The remote end is replaced by an in-process stub served through
httpx.MockTransport, so no WebDriver server is needed.
Run: pytest tests/unit -v
"""

import json
import os
import sys
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import httpx
import pytest

# Add sdk to path so we don't need to install it
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../sdk/python"))

from wdclient import Client, Session

BASE_URL = "http://host/"
SESSION_ID = "abc"

Reply = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class StubServer:
    """Scripted remote end: replies are queued per (method, path); the last one repeats."""

    def __init__(self) -> None:
        self._replies: Dict[Tuple[str, str], List[Reply]] = {}
        self.requests: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, json_body: Any = None, content: Optional[bytes] = None) -> "StubServer":
        if content is None and json_body is not None:
            content = json.dumps(json_body).encode()
        self._replies.setdefault((method, path), []).append(
            httpx.Response(status, content=content or b"", headers={"content-type": "application/json"})
        )
        return self

    def on_call(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> "StubServer":
        self._replies.setdefault((method, path), []).append(fn)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        queue = self._replies.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"value": {"error": "unknown command", "message": request.url.path}})
        reply = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(reply):
            return reply(request)
        # fresh copy so a repeated reply can be streamed again
        return httpx.Response(reply.status_code, content=reply.content, headers=reply.headers)

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r.method == method and r.url.path == path)


@pytest.fixture()
def stub():
    return StubServer()


@pytest.fixture()
def client(stub):
    http = httpx.Client(transport=httpx.MockTransport(stub))
    with Client(Session(id=SESSION_ID, url=BASE_URL), http=http) as c:
        yield c
    http.close()
