from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from mcp_joplin_stdio.joplin_client import JoplinClient
from mcp_joplin_stdio.settings import ConnectionConfig

BASE_URL = "http://localhost:41184"
TOKEN = "test-token"


class FakeJoplin:
    """Records requests and answers them from a queue of canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._responses: list[httpx.Response | Exception] = []

    def queue(self, *responses: httpx.Response | Exception) -> None:
        self._responses.extend(responses)

    def queue_json(self, *payloads: Any) -> None:
        self.queue(*(httpx.Response(200, json=p) for p in payloads))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"unexpected request {request.method} {request.url}")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def json_body(self, index: int) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("JOPLIN_TOKEN", "JOPLIN_PORT", "JOPLIN_MAX_PAGES", "MCP_API_KEY", "APPDATA"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def fake_joplin() -> FakeJoplin:
    return FakeJoplin()


@pytest.fixture
def make_client(fake_joplin: FakeJoplin) -> Callable[..., JoplinClient]:
    def factory(**kwargs: Any) -> JoplinClient:
        return JoplinClient(
            ConnectionConfig(base_url=BASE_URL, token=TOKEN),
            transport=httpx.MockTransport(fake_joplin.handler),
            **kwargs,
        )

    return factory
