"""
Votes API

FastAPI application factory: settings, logging, the vote store, routers,
middleware and the shutdown flush.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from votes_api.core.config import Settings, get_settings
from votes_api.core.log_config import configure_logging
from votes_api.core.metrics import Metrics, RequestMetricsMiddleware
from votes_api.domain.votes import lenient_update_policy, strict_update_policy
from votes_api.repositories.json_storage import JsonStorage, PersistenceError
from votes_api.routers import service as service_router
from votes_api.routers import votes as votes_router
from votes_api.services.vote_service import VoteStore

logger = logging.getLogger(__name__)

BASE = os.path.dirname(__file__)
WEB = os.path.join(BASE, "web")


def build_store(settings: Settings) -> VoteStore:
    """Load the data file; a PersistenceError here must stop the process."""
    policy = strict_update_policy if settings.strict_update else lenient_update_policy
    return VoteStore.open(JsonStorage(settings.data_file), update_policy=policy)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler."""
    store: VoteStore = app.state.vote_store
    logger.info("Voting API ready (env=%s)", app.state.settings.app_env)
    logger.info("Using local storage at: %s", store.storage.path)
    yield
    logger.info("Shutting down...")
    try:
        store.flush()
    except PersistenceError:
        logger.exception("Error during shutdown flush")
    else:
        logger.info("Shutdown complete")


def create_app(settings: Optional[Settings] = None, store: Optional[VoteStore] = None) -> FastAPI:
    """Factory compatible with uvicorn --factory."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    if store is None:
        store = build_store(settings)

    app = FastAPI(title="Voting System API", lifespan=lifespan)
    app.state.settings = settings
    app.state.vote_store = store
    app.state.metrics = Metrics() if settings.metrics_enabled else None

    if settings.app_env != "prod":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[
                "http://localhost:3000",
                "http://127.0.0.1:3000",
                "http://localhost:5173",
                "http://127.0.0.1:5173",
            ],
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(RequestMetricsMiddleware, metrics=app.state.metrics)

    app.include_router(service_router.router)
    app.include_router(votes_router.router)

    if os.path.isdir(WEB):
        app.mount("/ui", StaticFiles(directory=WEB, html=True), name="ui")
    else:
        logger.warning("Static UI directory %s not found; /ui disabled", WEB)
    return app
