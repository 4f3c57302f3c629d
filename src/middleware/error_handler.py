"""
Unified Error Handling for FastAPI.

Provides:
- Consistent JSON error responses
- Mapping of ingress domain errors (AuthFailed, ValidationFailed) to HTTP codes
- Error logging with request context
"""

import logging
import traceback
import uuid
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..domain.errors import AuthFailed, ValidationFailed

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and returns
    consistent JSON error responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle any errors."""
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        try:
            return await call_next(request)

        except HTTPException:
            # Let HTTP exceptions pass through to FastAPI's handler
            raise

        except Exception as e:
            logger.error(
                f"Unhandled exception [{request_id}]: {type(e).__name__}: {e}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "request_id": request_id,
                },
            )


def get_error_response(
    error: Exception,
    request_id: Optional[str] = None,
    include_traceback: bool = False,
) -> dict:
    """
    Build a standard error response dict.

    Args:
        error: The exception that occurred
        request_id: Optional request ID for tracking
        include_traceback: Whether to include full traceback (dev only)

    Returns:
        Error response dictionary
    """
    response = {"error": str(error)}

    if request_id:
        response["request_id"] = request_id

    if include_traceback:
        response["traceback"] = traceback.format_exc()

    return response


async def _auth_failed_handler(request: Request, exc: AuthFailed) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=get_error_response(exc, getattr(request.state, "request_id", None)),
    )


async def _validation_failed_handler(
    request: Request, exc: ValidationFailed
) -> JSONResponse:
    logger.info(f"Rejected request to {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content=get_error_response(exc, getattr(request.state, "request_id", None)),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map ingress domain errors to HTTP responses; no job is created for them."""
    app.add_exception_handler(AuthFailed, _auth_failed_handler)
    app.add_exception_handler(ValidationFailed, _validation_failed_handler)
