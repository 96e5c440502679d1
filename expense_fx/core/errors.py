from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from expense_fx.services.rates.errors import FailureKind, RateResolutionError

logger = logging.getLogger("expense_fx.errors")

_FAILURE_STATUS = {
    FailureKind.FUTURE_DATE_REJECTED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FailureKind.DATE_TOO_OLD: status.HTTP_422_UNPROCESSABLE_ENTITY,
    FailureKind.NO_RATE_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.NOT_CONFIGURED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_error_handler(request: Request, exc: StarletteHTTPException):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "not_found",
                "detail": f"No route for {request.method} {request.url.path}",
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "detail": exc.detail},
    )


def validation_error_handler(request: Request, exc: RequestValidationError):  # type: ignore
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "detail": jsonable_encoder(exc.errors()),
        },
    )


def rate_resolution_error_handler(request: Request, exc: RateResolutionError):  # type: ignore
    return JSONResponse(
        status_code=_FAILURE_STATUS[exc.kind],
        content={"error": exc.kind.value, "detail": exc.message},
    )


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "detail": "An unexpected error occurred.",
        },
    )
