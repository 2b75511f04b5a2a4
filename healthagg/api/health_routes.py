"""API routes for on-demand health checks.

Endpoints:
  GET  /healthz          — evaluate every configured group
  GET  /healthz/         — redirect to /healthz
  GET  /healthz/{group}  — evaluate a single group (404 if not configured)

Responses are plain text: 200 "OK" or 500 "FAIL". Which probe failed and why
goes to the log only, never into the response body.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse, RedirectResponse

from healthagg.health.engine import EvaluationResult, HealthEvaluator, UnknownGroupError

logger = logging.getLogger(__name__)

health_router = APIRouter()

OK_BODY = "OK\n"
FAIL_BODY = "FAIL\n"


def _render(result: EvaluationResult) -> PlainTextResponse:
    if result.ok:
        return PlainTextResponse(OK_BODY, status_code=200)
    return PlainTextResponse(FAIL_BODY, status_code=500)


def _evaluator(request: Request) -> HealthEvaluator:
    return request.app.state.evaluator


@health_router.get("/healthz", response_class=PlainTextResponse)
async def check_all(request: Request) -> PlainTextResponse:
    """Aggregate check across all groups."""
    return _render(await _evaluator(request).evaluate_all())


@health_router.get("/healthz/", response_class=RedirectResponse)
async def check_redirect() -> RedirectResponse:
    """An empty group name means the aggregate check."""
    return RedirectResponse("/healthz", status_code=303)


@health_router.get("/healthz/{group}", response_class=PlainTextResponse)
async def check_group(group: str, request: Request) -> PlainTextResponse:
    """Check a single named group."""
    try:
        result = await _evaluator(request).evaluate_group(group)
    except UnknownGroupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _render(result)
