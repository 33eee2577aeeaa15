from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kanban_api.core.exceptions import StoreError
from kanban_api.core.logging import configure_logging, correlation_id_var
from kanban_api.core.settings import get_app_settings
from kanban_api.db.run_migrations import main as run_alembic
from kanban_api.db.session import create_all, dispose_engine, get_engine
from kanban_api.schemas.common import ErrorInfo, ErrorResponse, MessageResponse

# Routers
from kanban_api.api.routes.tags import router as tags_router
from kanban_api.api.routes.users import router as users_router
from kanban_api.api.routes.work_items import router as work_items_router

settings = get_app_settings()

# Configure structured logging once at import
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Liveness probe."},
    {"name": "Users", "description": "Users work items can be assigned to."},
    {"name": "Tags", "description": "Tags attached to work items."},
    {"name": "Work Items", "description": "Work items and their lifecycle."},
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    """
    Prepare the schema on startup (opt-in) and dispose the engine on shutdown.
    """
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        logger.info("Running Alembic migrations: upgrade head")
        # env.py drives its own event loop, so it cannot share this one
        await asyncio.to_thread(run_alembic, ["upgrade", "head"])
        logger.info("Migrations completed.")
    if settings.CREATE_SCHEMA_ON_STARTUP:
        logger.info("Creating missing tables from ORM metadata")
        await create_all(get_engine())
    yield
    await dispose_engine()


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    openapi_tags=openapi_tags,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Enrich request context with correlation_id for logging and error responses.
    Adds 'X-Correlation-ID' to every response.
    """
    corr = request.headers.get("X-Correlation-ID") or request.headers.get("X-Request-ID") or str(uuid4())
    token_corr = correlation_id_var.set(corr)
    request.state.correlation_id = corr

    logger.info("Incoming request %s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
    finally:
        correlation_id_var.reset(token_corr)

    response.headers["X-Correlation-ID"] = corr
    return response


def _build_error_response(
    request: Request,
    status_code: int,
    error_type: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    """Build a standardized ErrorResponse JSONResponse."""
    err = ErrorResponse(
        status=status_code,
        error=ErrorInfo(type=error_type, message=message, details=details),
        correlation_id=getattr(request.state, "correlation_id", None),
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(tz=timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=err.model_dump(mode="json"))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Global handler for HTTPException to produce a standardized error envelope.
    """
    if isinstance(exc.detail, str):
        message, details = exc.detail, None
    else:
        details = exc.detail
        message = str(details.get("message", "HTTP Error")) if isinstance(details, dict) else "HTTP Error"
    return _build_error_response(
        request=request,
        status_code=exc.status_code,
        error_type="http_error",
        message=message,
        details=details,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Global handler for request validation errors with a standard structure.
    """
    return _build_error_response(
        request=request,
        status_code=422,
        error_type="validation_error",
        message="Request validation failed",
        # ctx may carry the raised exception object, which is not JSON serializable
        details=[{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()],
    )


@app.exception_handler(StoreError)
async def store_exception_handler(request: Request, exc: StoreError):
    """
    The store failed outside the defined result codes; the transaction was
    already rolled back by the repository.
    """
    logger.error("Store error during %s: %s", exc.operation, exc.cause)
    return _build_error_response(
        request=request,
        status_code=503,
        error_type="store_error",
        message="The data store could not complete the operation",
        details={"operation": exc.operation},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler to avoid leaking stack traces and to return a structured error.
    """
    logger.exception("Unhandled error processing request")
    return _build_error_response(
        request=request,
        status_code=500,
        error_type="internal_error",
        message="An unexpected error occurred",
        details=None,
    )


api_v1 = APIRouter(prefix="/api/v1")


# PUBLIC_INTERFACE
@api_v1.get(
    "/health",
    response_model=MessageResponse,
    summary="Health Check",
    tags=["Health"],
)
def health_check() -> MessageResponse:
    """Basic liveness health check endpoint."""
    return MessageResponse(message="Healthy")


api_v1.include_router(users_router)
api_v1.include_router(tags_router)
api_v1.include_router(work_items_router)

app.include_router(api_v1)
