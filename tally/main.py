"""Tally API — FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tally.core.config import settings
from tally.core.exceptions import register_exception_handlers
from tally.db.base import async_session_factory, init_models
from tally.middleware.request_logging import RequestLoggingMiddleware
from tally.routers.audit_logs import router as audit_logs_router
from tally.routers.auth import router as auth_router
from tally.routers.branding import router as branding_router
from tally.routers.categories import router as categories_router
from tally.routers.contacts import router as contacts_router
from tally.routers.custom_fields import router as custom_fields_router
from tally.routers.divisions import router as divisions_router
from tally.routers.reports import router as reports_router
from tally.routers.uploads import router as uploads_router
from tally.routers.users import router as users_router
from tally.schemas.common import HealthResponse
from tally.services.auth import AuthService

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        await init_models()
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    async with async_session_factory() as session:
        await AuthService(session).ensure_bootstrap_admin()
        await session.commit()

    logger.info("%s started (%s)", settings.app_name, settings.app_env)
    yield


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )

    # --- CORS (credentials: the session travels in a cookie) ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    app.add_middleware(RequestLoggingMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- API routes (/api/*) ---
    for router in (
        auth_router,
        users_router,
        divisions_router,
        branding_router,
        categories_router,
        custom_fields_router,
        uploads_router,
        contacts_router,
        reports_router,
        audit_logs_router,
    ):
        app.include_router(router, prefix="/api")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()
