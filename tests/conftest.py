"""
Shared fixtures: a fake BIND server behind httpx.MockTransport and a
controllable clock for token expiry.
"""

import inspect
import itertools
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Tuple

import httpx
import pytest
import pytest_asyncio

from bindapi.core import BindClient
from bindapi.core.bind_client import LOGIN_PATH

Handler = Callable[[httpx.Request], Any]


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeBank:
    """Answers requests from registered routes and records everything sent.

    The login endpoint hands out ``token-1``, ``token-2``... unless a route
    for it is registered explicitly.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Handler] = {}
        self._token_ids = itertools.count(1)

    def on(self, method: str, path: str, status_code: int = 200, **kwargs: Any) -> None:
        self._routes[(method, path)] = lambda request: httpx.Response(status_code, **kwargs)

    def on_call(self, method: str, path: str, handler: Handler) -> None:
        self._routes[(method, path)] = handler

    def issue_token(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"token": f"token-{next(self._token_ids)}"})

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        handler = self._routes.get(key)
        if handler is None and key == ("POST", LOGIN_PATH):
            handler = self.issue_token
        if handler is None:
            return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "message": f"No route for {key}"}})
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    @property
    def logins(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == LOGIN_PATH]

    @property
    def calls(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path != LOGIN_PATH]

    @property
    def last_call(self) -> httpx.Request:
        return self.calls[-1]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def bank() -> FakeBank:
    return FakeBank()


@pytest.fixture
def make_client(bank, clock):
    def _make(**kwargs: Any) -> BindClient:
        kwargs.setdefault("transport", httpx.MockTransport(bank.handle))
        kwargs.setdefault("clock", clock)
        return BindClient("sandbox_user", "sandbox_password", "sandbox_key", **kwargs)

    return _make


@pytest_asyncio.fixture
async def client(make_client):
    bind = make_client()
    yield bind
    await bind.close()
