"""
FastAPI application assembly for AuthGate.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authgate.config import Settings, get_settings
from authgate.db.connection import build_engine, build_session_factory
from authgate.db.models import Base
from authgate.errors import setup_exception_handlers
from authgate.tokens import TokenIssuer

# Import routers
from authgate.routers import auth, health

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    settings: Settings = app.state.settings

    # ---- Singleton services ----
    engine = build_engine(settings.database_url)
    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)

    # Attach to app.state so routers can access them
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_issuer = TokenIssuer.from_settings(settings)

    logger.info("AuthGate starting up")
    logger.info("  DATABASE         = %s", engine.url.render_as_string(hide_password=True))
    logger.info("  JWT_ALGORITHM    = %s", settings.JWT_ALGORITHM)
    logger.info("  JWT_EXPIRY_DAYS  = %d", settings.JWT_EXPIRY_DAYS)
    logger.info("  BCRYPT_ROUNDS    = %d", settings.BCRYPT_ROUNDS)
    logger.info("  ALLOWED_ORIGINS  = %s", settings.ALLOWED_ORIGINS)

    yield  # Application is running

    engine.dispose()
    logger.info("AuthGate shutting down")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="AuthGate",
        description="Account registration, login and bearer-token session guard",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials="*" not in settings.ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)

    # ---- Routers ----
    app.include_router(health.router)
    app.include_router(auth.router)

    return app
