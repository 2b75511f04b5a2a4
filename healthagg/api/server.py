"""FastAPI server for the health-check aggregator."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from healthagg import __version__
from healthagg.api.health_routes import health_router
from healthagg.checks.registry import Configuration
from healthagg.config import settings
from healthagg.health.engine import HealthEvaluator

logger = logging.getLogger(__name__)


def create_app(config: Configuration, evaluator: HealthEvaluator | None = None) -> FastAPI:
    """Build the app around an already loaded configuration.

    When no evaluator is passed, one is created on startup and its HTTP
    client closed on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned: HealthEvaluator | None = None
        if getattr(app.state, "evaluator", None) is None:
            owned = HealthEvaluator(config, user_agent=settings.user_agent)
            app.state.evaluator = owned
            logger.info(
                "Health evaluator ready: %d groups, %d checks",
                len(config.checks), config.total_probes(),
            )

        yield

        # Shutdown
        if owned is not None:
            await owned.aclose()
            app.state.evaluator = None

    app = FastAPI(
        title="healthagg - Health Check Aggregator",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.evaluator = evaluator

    app.include_router(health_router)

    return app
