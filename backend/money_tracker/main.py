import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from money_tracker.core.config import Settings, settings as default_settings
from money_tracker.core.database import Database
from money_tracker.core.errors import register_exception_handlers
from money_tracker.core.logging import configure_logging
from money_tracker.core.security import TokenService
from money_tracker.api.routes import auth, transactions

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage app lifecycle events.

    Startup: configure logging and connect the database handle
    Shutdown: dispose of the connection pool
    """
    app_settings: Settings = app.state.settings
    configure_logging(app_settings.LOG_LEVEL, app_settings.LOG_FILE)
    app.state.database.connect()
    app.state.started_at = time.monotonic()
    logger.info("Money Tracker API started")
    yield
    app.state.database.dispose()
    logger.info("Money Tracker API stopped")


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Everything a request needs (settings, database handle, token service)
    hangs off app.state, so tests can hand in their own database.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Money Tracker API",
        description="Personal finance tracker: signed transactions per user",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.token_service = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    app.state.started_at = time.monotonic()

    # CORS middleware - allows frontend to make requests to backend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    register_exception_handlers(app)

    # All routes are prefixed with /api for consistency
    app.include_router(auth.router, prefix="/api")
    app.include_router(transactions.router, prefix="/api")

    @app.get("/")
    async def root():
        """Root endpoint - API information"""
        return {"message": "Money Tracker API", "version": "1.0.0"}

    @app.get("/api/health")
    def health(request: Request):
        """Health check endpoint - used by monitoring/deployment tools"""
        state = request.app.state
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": "connected" if state.database.ping() else "disconnected",
            "uptime": round(time.monotonic() - state.started_at, 3),
        }

    return app


app = create_app()
