"""Test helpers — fake probe targets and config builders."""

from __future__ import annotations

import asyncio
from collections import Counter
from typing import Any

import httpx

from healthagg.checks.registry import Configuration


class FakeTargets:
    """Mock transport backend: answers per URL and counts every call."""

    def __init__(self, routes: dict[str, Any] | None = None) -> None:
        self.routes = routes or {}
        self.calls: Counter[str] = Counter()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls[url] += 1
        answer = self.routes.get(url, 200)
        if callable(answer):
            answer = await answer(request)
        if isinstance(answer, int):
            return httpx.Response(answer, text="body")
        return answer

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self), follow_redirects=True)


def make_config(checks: dict[str, list[dict[str, Any]]] | None = None, **kw: Any) -> Configuration:
    return Configuration.model_validate({"checks": checks, **kw})


def probe(name: str, url: str, expected_status: int = 200, timeout: str | float | None = None) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": name, "url": url, "expected_status": expected_status}
    if timeout is not None:
        entry["timeout"] = timeout
    return entry


def sleeping(seconds: float, status: int = 200):
    """Target answer that stalls before responding."""

    async def _answer(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(seconds)
        return httpx.Response(status)

    return _answer
