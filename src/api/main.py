"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import InMemoryAccountStore
from src.adapters.repository.postgres import PostgresAccountStore, run_migrations
from src.api.dependencies import build_account_service, build_token_issuer, get_store
from src.api.v1 import router as v1_router
from src.api.v1.routes import error_response
from src.config.settings import get_settings
from src.domain.exceptions import AccountStoreError
from src.domain.ports import AccountStore
from src.domain.results import ErrorKind

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Account Registration API v1 - Register, verify email, log in",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Opens the account store once (pool + migrations for PostgreSQL)
    - Wires the process-wide account service
    - Closes the connection pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.store_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            check=ConnectionPool.check_connection,
            open=True,
        )
        logger.info("Running database migrations...")
        run_migrations(pool)
        store = PostgresAccountStore(pool)
    else:
        logger.warning("Using in-memory account store; accounts are lost on restart")
        store = InMemoryAccountStore()

    tokens = build_token_issuer(settings)
    app.state.store = store
    app.state.token_issuer = tokens
    app.state.account_service = build_account_service(settings, store, tokens=tokens)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="popnplan-accounts",
    description="Account registration with email verification codes and JWT sessions",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed input as validation_failed with the field errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": ErrorKind.VALIDATION_FAILED.value,
            "detail": "Invalid request",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Report any unexpected fault as an opaque internal_error."""
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return error_response(ErrorKind.INTERNAL_ERROR)


@app.get("/health")
def health_check(store: AccountStore = Depends(get_store)) -> JSONResponse:
    """
    Health check endpoint with store validation.

    Returns 200 OK if the account store answers, 503 otherwise.
    """
    try:
        store.ping()
    except AccountStoreError:
        logger.exception("Health check failed")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable"},
        )
    return JSONResponse(content={"status": "healthy"})
