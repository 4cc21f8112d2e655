"""FastAPI application wiring for the gem battle engine."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gembattle.api import routes
from gembattle.api.runtime import ApiState, build_state
from gembattle.config import get_settings

logger = logging.getLogger(__name__)


def create_app(*, state_factory: Callable[[], ApiState] = build_state) -> FastAPI:
    """Build the gem battle app around a fresh run registry.

    Runs are held in memory while the app serves; each one is written to its
    save slots when the app stops, so a restart can resume it.
    """

    @asynccontextmanager
    async def run_registry(app: FastAPI) -> AsyncIterator[None]:
        api_state = state_factory()
        app.state.api_state = api_state
        logger.info("serving runs with %s save slots", api_state.settings.storage_backend)
        try:
            yield
        finally:
            await api_state.save_runs()

    app = FastAPI(title="Gem Battle API", version="0.1.0", lifespan=run_registry)
    settings = get_settings()
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(routes.router)
    return app


app = create_app()
