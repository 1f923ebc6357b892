"""
FastAPI application factory following kkb_fastapi pattern.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carbonnet.api import (
    activities_router,
    factors_router,
    reports_router,
    statistics_router,
)
from carbonnet.core.config import get_config
from carbonnet.database.base import apply_db_migration, get_db_url, get_engine_kw
from carbonnet.database.session_manager.db_session import Database
from carbonnet.services.exceptions import (
    CarbonNetError,
    DeadlineExceeded,
    ExportIOError,
    InvalidPeriod,
    UnsupportedFormatError,
)
from carbonnet.services.storage import ReportFileStorage
from carbonnet.utils.constants import REPORTS_STORAGE_DIR

logging.basicConfig(
    level=logging.DEBUG, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def register_routers(app: FastAPI):
    """Register all API routers."""
    app.include_router(factors_router)
    app.include_router(activities_router)
    app.include_router(statistics_router)
    app.include_router(reports_router)


def register_exception_handlers(app: FastAPI):
    """Return every error as a JSON ``{"detail": ...}`` body."""

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logging.error(f"HTTPException occurred: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code, content={"detail": str(exc.detail)}
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "detail": jsonable_errors(exc),
                "message": "Validation error",
            },
        )

    @app.exception_handler(CarbonNetError)
    async def carbonnet_exception_handler(request: Request, exc: CarbonNetError):
        if isinstance(exc, (InvalidPeriod, UnsupportedFormatError)):
            status_code = status.HTTP_400_BAD_REQUEST
        elif isinstance(exc, (ExportIOError, DeadlineExceeded)):
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        else:
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logging.error(f"{type(exc).__name__} occurred: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logging.error(f"Exception occurred: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)}
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict]:
    # ctx may hold exception instances, which JSONResponse cannot encode
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Handles migrations (when enabled), database initialization and cleanup.
    """
    logging.info("Application startup")
    config = app.state.config
    if config.section("migrations").get("apply_on_startup", False):
        await apply_db_migration(config)

    async_db_url = get_db_url(config)

    Database.init(async_db_url, engine_kw=get_engine_kw(async_db_url))
    logging.info("Initialized database")

    try:
        yield
    finally:
        await Database.dispose()
        logging.info("Application shutdown")


def get_app(config_file: str) -> FastAPI:
    """
    Application factory function.

    Args:
        config_file: Configuration file name (e.g., "production.toml")

    Returns:
        Configured FastAPI application instance
    """
    config = get_config(config_file)

    app = FastAPI(
        title=config.data.get("api", {}).get("title", "CarbonNet Report Engine API"),
        description=config.data.get("api", {}).get(
            "description", "Emission factor resolution and report aggregation engine"
        ),
        version=config.data.get("api", {}).get("version", "1.0.0"),
        debug=config.data.get("api", {}).get("debug", False),
        lifespan=lifespan,
        # Generate better OpenAPI schema for enums
        generate_unique_id_function=lambda route: (
            f"{route.tags[0]}-{route.name}" if route.tags else route.name
        ),
    )

    app.state.config = config
    app.state.report_storage = ReportFileStorage(
        config.section("reports").get("storage_dir", REPORTS_STORAGE_DIR)
    )

    register_routers(app)
    register_exception_handlers(app)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": app.title,
            "version": app.version,
            "docs": "/docs",
            "redoc": "/redoc",
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "carbonnet-report-engine"}

    # Set up CORS middleware
    origins = [
        "http://localhost:3000",  # For local development
        "http://127.0.0.1:3000",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    return app
