"""Error Handlers — render payment and proxy failures as JSON envelopes.

Invariants:
    - PaymentError → its own to_response() envelope with its own http_status
    - Declines (4xx) are client outcomes: logged at INFO, never at ERROR
    - 5xx PaymentErrors logged at the level their severity names
    - Request body errors → 400 VALIDATION_ERROR with one detail per field
    - Anything else → 500 INTERNAL_ERROR; the exception text stays in the log

Design Decisions:
    - This is the only place a failed submission is logged with its outcome;
      the pipeline records state, the stages record why
    - Handlers are plain module functions registered with add_exception_handler
      so tests can call them without an app
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from payflow.core.errors import ErrorCategory, ErrorSeverity, PaymentError

logger = logging.getLogger(__name__)

_SEVERITY_LEVELS = {
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def log_level_for(exc: PaymentError) -> int:
    if exc.http_status < 500:
        return logging.INFO
    return _SEVERITY_LEVELS[exc.severity]


async def handle_payment_error(request: Request, exc: PaymentError) -> JSONResponse:
    logger.log(
        log_level_for(exc),
        f"{request.method} {request.url.path} -> {exc.http_status} {exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "stage": exc.context.stage,
            "transaction_id": exc.context.transaction_id,
            "resource_key": exc.context.resource_key,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    fields = [_field_name(e["loc"]) for e in exc.errors()]
    logger.info(
        f"Rejected request body on {request.url.path}: {', '.join(fields)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.WARNING.value,
                "details": [
                    {"field": _field_name(e["loc"]), "message": e["msg"], "type": e["type"]}
                    for e in exc.errors()
                ],
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
            },
        },
    )


def _field_name(loc) -> str:
    return ".".join(str(part) for part in loc)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PaymentError, handle_payment_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
