"""
Pytest config.

Puts `src/` on sys.path so the tests run without installing the package, and
replaces the upstream API gateway with an in-process `httpx.MockTransport`.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest


def _ensure_src_on_syspath() -> None:
    src_dir = Path(__file__).resolve().parents[1] / "src"
    src_dir_str = str(src_dir)
    if src_dir_str not in sys.path:
        sys.path.insert(0, src_dir_str)


_ensure_src_on_syspath()

from fastapi.testclient import TestClient  # noqa: E402

from hr_admin_bff.api_client import get_upstream_client  # noqa: E402
from hr_admin_bff.main import app  # noqa: E402

UPSTREAM_BASE_URL = "http://upstream.test"


class FakeUpstream:
    """Records every request and answers from a (method, path) routing table."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def respond(
        self,
        method: str,
        path: str,
        status_code: int = 200,
        json: Any = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status_code, content=content, headers=headers)
            return httpx.Response(status_code, json=json, headers=headers)

        self._routes[(method, path)] = _handler

    def fail(self, method: str, path: str, exc: Exception) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            raise exc

        self._routes[(method, path)] = _handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "no such upstream route"})
        return route(request)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream: FakeUpstream):
    async def _upstream_client_override():
        async with httpx.AsyncClient(
            base_url=UPSTREAM_BASE_URL,
            transport=httpx.MockTransport(upstream.handler),
        ) as c:
            yield c

    app.dependency_overrides[get_upstream_client] = _upstream_client_override
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def set_cookie_headers(response: httpx.Response) -> Dict[str, str]:
    """Maps cookie name -> full Set-Cookie header for a response."""
    headers = {}
    for header in response.headers.get_list("set-cookie"):
        name = header.split("=", 1)[0].strip()
        headers[name] = header
    return headers


def cookie_value(set_cookie_header: str) -> str:
    return set_cookie_header.split(";", 1)[0].split("=", 1)[1]
