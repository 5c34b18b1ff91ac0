"""
Error Handlers

- ErrorHandlerMiddleware: last line of defence for HTTP requests. Anything
  that escapes the routes is recorded by error_logger and answered with a
  generic 500 carrying the error_id.
- ecoscan_exception_handler: EcoScanError -> {"detail", "code"} with the
  error's status code.
"""

from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ecoscan.core.exceptions import EcoScanError
from ecoscan.services.error_logging import error_logger


def _caller(request: Request):
    # Set by get_current_user_id once the bearer token checked out
    return getattr(request.state, "user_id", None)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            error_id = error_logger.log_error(
                exc,
                request=request,
                user_id=_caller(request),
                severity="critical",
                context={"unhandled": True},
            )
            return JSONResponse(
                status_code=500,
                content={
                    "detail": "Something went wrong on our side, please try again.",
                    "error_id": str(error_id) if error_id else None,
                },
            )


async def ecoscan_exception_handler(request: Request, exc: EcoScanError) -> JSONResponse:
    if exc.status_code >= 500:
        error_logger.log_error(
            exc,
            request=request,
            user_id=_caller(request),
            context={"details": exc.details} if exc.details else None,
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})
