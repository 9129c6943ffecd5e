"""DocVault Backend - Main FastAPI Application

Creates and configures the FastAPI application:
- API routers under /api/v1 (documents, team, notifications, stats, users)
- Middleware (request ID correlation, CORS)
- Exception handlers
- Health and observability endpoints

Run with:
    uvicorn docvault.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import get_settings
from .documents.router import router as documents_router
from .notifications.router import router as notifications_router
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .stats.router import router as stats_router
from .team.router import router as team_router
from .users.router import router as users_router

settings = get_settings()

configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("DocVault API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if settings.VIRUS_SCAN_ENABLED and not settings.VIRUSTOTAL_API_KEY:
        logger.warning(
            "VIRUS_SCAN_ENABLED is set but VIRUSTOTAL_API_KEY is missing: "
            "uploads will stay pending_scan and scan jobs will be dead-lettered"
        )

    yield

    logger.info("DocVault API shutting down...")


_docs_enabled = settings.ENVIRONMENT != "production"

app = FastAPI(
    title="DocVault API",
    description="Versioned document vault with role-based visibility and asynchronous malware scanning",
    version=__version__,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
    openapi_url="/openapi.json" if _docs_enabled else None,
    lifespan=lifespan,
)


# =============================================================================
# MIDDLEWARE CONFIGURATION
# =============================================================================

app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed requests are answered with 400.

    422 is reserved for downloads of versions still awaiting their scan.
    """
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": jsonable_errors(exc),
        },
    )


def jsonable_errors(exc: RequestValidationError):
    # ctx may hold exception instances that are not JSON serializable
    return [
        {key: value for key, value in error.items() if key in ("loc", "msg", "type")}
        for error in exc.errors()
    ]


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Log the full error, return a generic message."""
    logger.error(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(observability_router)
app.include_router(documents_router, prefix=API_PREFIX)
app.include_router(team_router, prefix=API_PREFIX)
app.include_router(notifications_router, prefix=API_PREFIX)
app.include_router(stats_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
