from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from quotedesk.api.routes import router
from quotedesk.config.settings import Settings, settings
from quotedesk.logging_config import setup_logging
from quotedesk.services.quotes import build_quote_service


logger = logging.getLogger(__name__)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    setup_logging(app_settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with httpx.AsyncClient(
            timeout=app_settings.provider_timeout_seconds,
            follow_redirects=True,
        ) as client:
            app.state.quote_service = build_quote_service(app_settings, client)
            logger.info(
                "Quote service ready (providers: %s)", ", ".join(app_settings.provider_priority)
            )
            yield

    app = FastAPI(title="quotedesk", lifespan=lifespan)
    app.add_middleware(GZipMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.include_router(router, prefix="/api")
    return app


app = create_app()
