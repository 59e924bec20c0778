"""
main.py
-------
FastAPI application factory.

Application lifecycle:
  1. create_application() builds the AppContext (engine, object store,
     session store, hasher) once and stores it on app.state.
  2. lifespan creates missing tables on startup and releases the engine on
     shutdown.
  3. Routers are registered; domain errors are turned into HTTP responses
     by the exception handlers below.

Run with:
    uvicorn main:app --reload              # development
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from docportal.api.routes import auth, companies, files
from docportal.context import AppContext, build_context
from docportal.core.config import Settings, get_settings
from docportal.core.errors import PortalError
from docportal.core.logging import configure_logging, get_logger
from docportal.models import Base
from docportal.services.object_store import ObjectStore

logger = get_logger(__name__)


async def create_tables(ctx: AppContext) -> None:
    async with ctx.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Startup:
      - Create any missing tables

    Shutdown:
      - Dispose the async engine (graceful connection pool drain)
    """
    ctx: AppContext = app.state.context
    settings = ctx.settings
    logger.info(
        "Starting up",
        app=settings.APP_NAME,
        env=settings.APP_ENV,
        debug=settings.DEBUG,
        listing_source=settings.FILE_LISTING_SOURCE,
    )
    await create_tables(ctx)
    yield
    logger.info("Shutting down — disposing DB engine")
    await ctx.close()


def create_application(
    settings: Optional[Settings] = None,
    object_store: Optional[ObjectStore] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Multi-tenant document portal: companies register and log in, "
            "an administrator uploads their files, companies download them "
            "through signed URLs."
        ),
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = build_context(settings, object_store=object_store)

    # ── CORS ─────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(files.router)
    app.include_router(companies.router)

    # ── Exception Handlers ────────────────────────────────────────────────────

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            "Request failed",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health Check ──────────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], summary="Service health check")
    async def health() -> dict:
        return {"status": "ok", "app": settings.APP_NAME, "env": settings.APP_ENV}

    # ── Static pages (optional, mounted last so routes win) ──────────────────
    if settings.STATIC_DIR and os.path.isdir(settings.STATIC_DIR):
        app.mount("/", StaticFiles(directory=settings.STATIC_DIR, html=True), name="static")

    return app
