"""
Global exception handling and request logging middleware
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError as PydanticValidationError

from jobfit.utils.exceptions import JobFitBaseException, map_to_http_exception
from jobfit.utils.logging_config import get_logger

logger = get_logger(__name__)


def ensure_request_id(request: Request) -> str:
    """Request id shared by every middleware layer, assigned by the outermost one"""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Standardized error body: success flag, timestamp and request id plus the detail fields"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    content = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail
    }
    return JSONResponse(status_code=status_code, content=content, headers={"X-Request-ID": request_id})


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Turns exceptions escaping a route into JSON error responses"""

    async def dispatch(self, request: Request, call_next):
        request_id = ensure_request_id(request)
        context = {"request_id": request_id, "method": request.method, "path": request.url.path}

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except JobFitBaseException as exc:
            logger.error(
                f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
                extra={**context, "error_code": exc.error_code, "details": exc.details}
            )
            http_exc = map_to_http_exception(exc)
            return error_response(request_id, http_exc.status_code, http_exc.detail)

        except PydanticValidationError as exc:
            logger.error(
                f"Data validation error in {request.method} {request.url.path}: {exc}",
                extra={**context, "validation_errors": exc.errors()}
            )
            return error_response(request_id, 400, {
                "error": "Data validation failed",
                "message": "Invalid data format or values",
                "validation_errors": exc.errors(include_url=False, include_context=False),
            })

        except HTTPException as exc:
            logger.warning(
                f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
                extra={**context, "status_code": exc.status_code}
            )
            return error_response(request_id, exc.status_code, exc.detail)

        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {exc}",
                extra={**context, "exception_type": exc.__class__.__name__, "traceback": traceback.format_exc()},
                exc_info=True
            )
            return error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and duration"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = ensure_request_id(request)

        logger.debug(
            f"Request: {request.method} {request.url}",
            extra={
                "request_id": request_id,
                "client_ip": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Request failed: {request.method} {request.url.path} after {time.time() - start_time:.3f}s",
                extra={"request_id": request_id, "exception": str(exc)}
            )
            raise

        logger.info(
            f"Response: {request.method} {request.url.path} - {response.status_code} in {time.time() - start_time:.3f}s",
            extra={"request_id": request_id, "status_code": response.status_code}
        )
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Flags slow requests and reports processing time in a header"""

    def __init__(self, app, slow_request_threshold: float = 2.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if processing_time > self.slow_request_threshold:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                extra={"processing_time": processing_time, "threshold": self.slow_request_threshold}
            )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
