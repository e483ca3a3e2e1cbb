"""
Event Manager API - Main Application Entry Point

Events, users and registrations over PostgreSQL, featuring:
- A registration transaction that holds a row lock on the event while it
  checks time, duplicates and capacity
- Redis caching of the upcoming-events listing
- Structured logging with request correlation
- Prometheus metrics for registration outcomes and latency
"""

from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from event_manager.api.middleware import RequestLoggingMiddleware
from event_manager.api.router import api_router
from event_manager.core.config import Settings, get_settings
from event_manager.core.exceptions import AppError, InternalError, InvalidInputError
from event_manager.core.logging import get_logger, setup_logging
from event_manager.core.metrics import metrics_endpoint
from event_manager.db.session import Database
from event_manager.services.cache_service import EventCache

logger = get_logger(__name__)


def _error_body(message: str, **extra: Any) -> dict:
    return {"success": False, "message": message, **extra}


def describe_validation_errors(errors: list[dict]) -> str:
    """Collapse pydantic errors into the single message the API returns."""
    missing = [str(err["loc"][-1]) for err in errors if err.get("type") == "missing"]
    if missing:
        if missing == ["body"]:
            return "Request body is required"
        return f"Missing required fields: {', '.join(missing)}"

    first = errors[0]
    cause = (first.get("ctx") or {}).get("error")
    if isinstance(cause, InvalidInputError):
        return cause.message

    field = ".".join(str(part) for part in first["loc"] if part != "body")
    return f"{field}: {first['msg']}" if field else first["msg"]


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        extra = {}
        if isinstance(exc, InternalError) and exc.detail:
            extra["error"] = exc.detail
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message, **extra))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        message = describe_validation_errors(exc.errors())
        logger.info("request_validation_failed", message=message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("unhandled_exception", error=str(exc), error_type=type(exc).__name__, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Internal server error", error=str(exc)),
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle: build and release the shared resources."""
        setup_logging(settings)

        logger.info(
            "application_starting",
            app=settings.APP_NAME,
            version=settings.APP_VERSION,
            environment=settings.ENVIRONMENT,
        )

        database = Database.from_settings(settings)
        if settings.AUTO_CREATE_TABLES:
            await database.create_all()
        app.state.database = database

        cache = await EventCache.connect(settings)
        if not cache.enabled:
            logger.warning("redis_unavailable", message="Running without cache")
        app.state.cache = cache

        yield

        await cache.close()
        await database.dispose()
        logger.info("application_shutdown")

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event and registration management API with capacity-safe registrations",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for Docker and load balancers."""
        database: Optional[Database] = getattr(request.app.state, "database", None)
        cache: Optional[EventCache] = getattr(request.app.state, "cache", None)
        db_ok = await database.ping() if database is not None else False
        return {
            "status": "healthy" if db_ok else "degraded",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "database": "connected" if db_ok else "unavailable",
            "cache": await cache.stats() if cache is not None else {"status": "disabled"},
        }

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "success": True,
            "message": f"{settings.APP_NAME} is running!",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
