"""FastAPI application factory."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.v1 import router as api_router
from core import ErrorKind, ServiceError, configure_logging, render_error
from services import RateLimitMiddleware, get_rate_limiter

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
HEALTH_PATH = f"{API_PREFIX}/health"


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            extra={"path": request.url.path, "error_kind": exc.kind.value, "error_detail": exc.detail},
        )
    return render_error(exc.kind, exc.message)


async def _validation_error_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return render_error(ErrorKind.BAD_REQUEST, "Invalid request body")


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        {"error": str(exc.detail)},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error", extra={"path": request.url.path}, exc_info=exc)
    return render_error(ErrorKind.UPSTREAM, "Internal server error")


def create_app() -> FastAPI:
    configure_logging()
    application = FastAPI(title="Avatar lifecycle API")
    application.add_middleware(
        RateLimitMiddleware,
        limiter_factory=get_rate_limiter,
        exempt_paths={HEALTH_PATH},
    )
    application.add_exception_handler(ServiceError, _service_error_handler)
    application.add_exception_handler(RequestValidationError, _validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, _http_error_handler)
    application.add_exception_handler(Exception, _unhandled_error_handler)
    application.include_router(api_router, prefix=API_PREFIX)
    return application
