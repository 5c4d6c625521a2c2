from __future__ import annotations

import time
import uuid
from contextlib import ExitStack, asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from game_recommender.bootstrap import bootstrap_service
from game_recommender.config import ConfigError
from game_recommender.logging_utils import configure_logger
from game_recommender.service.recommender_service import ResolutionError

from .error_codes import ErrorCode, error_code_for_status
from .errors import get_request_id, make_error, resolution_details, validation_details
from .routes.health import router as health_router
from .routes.recommendations import router as recommendations_router


logger = configure_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Do not emit request completion logs for health endpoints
HEALTHCHECK_PATHS = {"/v1/health", "/v1/ready"}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Open the Mongo client and build the service for the lifetime of the app.

    A failed bootstrap leaves the app running but not ready: recommendation
    routes answer 503 until the process is restarted with working config.
    """
    app.state.recommender_service = None

    with ExitStack() as stack:
        try:
            app.state.recommender_service = stack.enter_context(bootstrap_service(logger=logger))
        except (ConfigError, PyMongoError):
            logger.exception(
                "Bootstrap failed; application will remain not ready",
                extra={"event": "bootstrap.failed"},
            )

        yield

        app.state.recommender_service = None


app = FastAPI(
    title="Game Recommender API",
    version="0.1.0",
    description="Recommends games similar to three liked games",
    lifespan=lifespan,
)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """
    Attach a request id and emit structured lifecycle logs.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    request.state.request_id = request_id

    start = time.perf_counter()
    response = None

    try:
        response = await call_next(request)
        return response

    finally:
        duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
        status_code = getattr(response, "status_code", None)
        path = request.url.path

        if path not in HEALTHCHECK_PATHS:
            logger.info(
                "Request completed",
                extra={
                    "event": "request.completed",
                    "request_id": request_id,
                    "method": request.method,
                    "path": path,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

        if response is not None:
            response.headers[REQUEST_ID_HEADER] = request_id


def _error_response(
    *,
    status_code: int,
    code: ErrorCode,
    message: str,
    request_id: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    payload = make_error(
        code=code.value,
        message=message,
        request_id=request_id,
        details=details,
    ).model_dump()

    return JSONResponse(
        status_code=status_code,
        content=payload,
        headers={REQUEST_ID_HEADER: request_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = get_request_id(request)

    logger.warning(
        "Request validation failed",
        extra={
            "event": "request.validation_error",
            "request_id": request_id,
            "path": request.url.path,
            "code": ErrorCode.VALIDATION_ERROR.value,
        },
    )

    return _error_response(
        status_code=422,
        code=ErrorCode.VALIDATION_ERROR,
        message="Request validation failed",
        request_id=request_id,
        details=validation_details(exc),
    )


@app.exception_handler(ResolutionError)
async def resolution_exception_handler(request: Request, exc: ResolutionError):
    request_id = get_request_id(request)

    logger.info(
        "Seed games not resolved",
        extra={
            "event": "request.resolution_error",
            "request_id": request_id,
            "count": exc.found_count,
            "code": ErrorCode.NOT_FOUND.value,
        },
    )

    return _error_response(
        status_code=404,
        code=ErrorCode.NOT_FOUND,
        message=str(exc),
        request_id=request_id,
        details=resolution_details(exc),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = get_request_id(request)
    code = error_code_for_status(exc.status_code)

    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    details = exc.detail if isinstance(exc.detail, dict) else None

    logger.info(
        "HTTP exception raised",
        extra={
            "event": "request.http_exception",
            "request_id": request_id,
            "path": request.url.path,
            "status_code": exc.status_code,
            "code": code.value,
        },
    )

    return _error_response(
        status_code=exc.status_code,
        code=code,
        message=message,
        request_id=request_id,
        details=details,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = get_request_id(request)

    logger.exception(
        "Unhandled exception",
        extra={
            "event": "error.unhandled_exception",
            "request_id": request_id,
            "path": request.url.path,
            "code": ErrorCode.INTERNAL_ERROR.value,
        },
    )

    return _error_response(
        status_code=500,
        code=ErrorCode.INTERNAL_ERROR,
        message="Internal Server Error",
        request_id=request_id,
        details=None,
    )


app.include_router(health_router, prefix="/v1")
app.include_router(recommendations_router, prefix="/v1")
