"""FastAPI application factory with lifespan management."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from demesne.api.dependencies import set_runtime
from demesne.api.routes import api_router
from demesne.api.runtime import ServerRuntime
from demesne.config import ServerConfig
from demesne.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app(config: ServerConfig | None = None, runtime: ServerRuntime | None = None) -> FastAPI:
    """Build and return the fully-configured FastAPI application.

    Pass *runtime* to serve an already-built runtime (tests drive its
    worker pool inline); otherwise one is built from *config* and started.
    """
    if config is None:
        config = runtime.config if runtime is not None else ServerConfig()

    _config = config

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = runtime is None
        rt = runtime
        if owned:
            setup_logging(_config.log_level, _config.access_log)
            rt = ServerRuntime(_config)
            rt.start()
        set_runtime(rt)
        logger.info("API server started, world running.")
        yield
        if owned:
            rt.close()
        set_runtime(None)
        logger.info("API server shutting down.")

    app = FastAPI(
        title="Demesne World Server",
        description=(
            "Action queues and world calendar for a persistent medieval life game.\n\n"
            "## API Groups\n\n"
            "- **Queue** — Start, cancel, inspect and dismiss a player's action queue\n"
            "- **Calendar** — World date, manual tick trigger, admin date override\n"
            "- **Events** — Recent notices (queue finished, level up, season change)\n"
        ),
        version="0.1.0",
        lifespan=lifespan,
        openapi_tags=[
            {"name": "Queue", "description": "Repeatable actions processed in the background, one per player at a time."},
            {"name": "Calendar", "description": "World time advances one week per real day; seasons change every 12 weeks."},
            {"name": "Events", "description": "Player-facing notices recorded by the queue worker and the calendar."},
        ],
    )

    # CORS: allow any origin in dev
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)
    return app
