"""
Web Client - Main Application

Server-rendered FastAPI front end for the expense backend.
"""
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import httpx
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware

from .. import __version__
from ..config import Settings, get_settings
from ..logging_config import configure_logging
from .dependencies import GuardRedirect, SessionLoading
from .routes import auth, dashboard
from .templating import STATIC_DIR, render, templates

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings: Settings = app.state.settings
    logger.info(
        "Starting expense portal",
        environment=settings.ENVIRONMENT,
        api_base_url=settings.API_BASE_URL,
    )
    yield
    logger.info("Shutting down expense portal")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the web application.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        transport: Optional httpx transport for backend calls (tests use MockTransport)
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)

    app = FastAPI(
        title="Expense Portal",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url=None,
    )
    app.state.settings = settings
    app.state.api_transport = transport

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE,
        same_site="lax",
        https_only=settings.ENVIRONMENT == "production",
    )
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    @app.exception_handler(GuardRedirect)
    async def guard_redirect_handler(request: Request, exc: GuardRedirect):
        return RedirectResponse(url=exc.url, status_code=303)

    @app.exception_handler(SessionLoading)
    async def session_loading_handler(request: Request, exc: SessionLoading):
        return render(request, "loading.html")

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        error_id = uuid.uuid4().hex[:12]
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            error_id=error_id,
        )
        return templates.TemplateResponse(
            request, "error.html", {"error_id": error_id, "notifications": []}, status_code=500
        )

    app.include_router(auth.router, tags=["auth"])
    app.include_router(dashboard.router, tags=["dashboard"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "expense-portal",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.ENVIRONMENT,
        }

    return app
