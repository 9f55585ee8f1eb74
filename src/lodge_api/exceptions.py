"""FastAPI exception handlers for converting LodgeError to HTTP responses.

Every failure leaves the API as the same JSON envelope:
``{"success": false, "error": ..., "error_code": ..., "details": ...}``.

The ErrorCode-to-HTTP status mapping follows REST conventions:
- 400 Bad Request: Validation/business rule violations
- 401 Unauthorized: Authentication required
- 404 Not Found: Resource not found
- 409 Conflict: Overlapping or concurrent bookings, cabins still in use
- 429 Too Many Requests: Rate limiting
- 500 Internal Server Error: Database failures
"""

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from lodge.models.errors import ERROR_MESSAGES, ErrorCode, ErrorResponse, LodgeError
from lodge.utils.logging import get_logger
from lodge_api.models import ValidationErrorDetail

logger = get_logger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Validation errors -> 400 Bad Request
    ErrorCode.VALIDATION_ERROR: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_DATE: HTTP_400_BAD_REQUEST,
    ErrorCode.DISCOUNT_EXCEEDS_PRICE: HTTP_400_BAD_REQUEST,
    # Authentication errors -> 401 Unauthorized
    ErrorCode.AUTH_REQUIRED: HTTP_401_UNAUTHORIZED,
    # Not found errors -> 404 Not Found
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.CABIN_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.CUSTOMER_NOT_FOUND: HTTP_404_NOT_FOUND,
    # Conflicts -> 409 Conflict
    ErrorCode.DATES_UNAVAILABLE: HTTP_409_CONFLICT,
    ErrorCode.BOOKING_CONFLICT: HTTP_409_CONFLICT,
    ErrorCode.ACTIVE_BOOKINGS: HTTP_409_CONFLICT,
    # Rate limiting -> 429 Too Many Requests
    ErrorCode.RATE_LIMITED: HTTP_429_TOO_MANY_REQUESTS,
    # Database failures -> 500
    ErrorCode.DATABASE_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


def _error_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def lodge_error_handler(request: Request, exc: LodgeError) -> JSONResponse:
    """Convert a LodgeError to its status code and error envelope."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "request_failed",
            extra={"path": request.url.path, "error_code": exc.code.value},
        )
    return _error_response(status_code, exc.to_response())


def _format_location(loc: tuple[Any, ...]) -> str:
    # Drop the "body"/"query"/"path" prefix FastAPI adds
    if loc and loc[0] in ("body", "query", "path", "header"):
        loc = loc[1:]
    return ".".join(str(p) for p in loc)


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures as 400 VALIDATION_ERROR.

    The first failure becomes the message. Every failure is listed under
    ``details.errors``.
    """
    errors = [
        ValidationErrorDetail(
            field=_format_location(tuple(err.get("loc", ()))),
            message=str(err.get("msg", "")).removeprefix("Value error, "),
        )
        for err in exc.errors()
    ]
    message = ERROR_MESSAGES[ErrorCode.VALIDATION_ERROR]
    if errors:
        first = errors[0]
        message = f"{first.field}: {first.message}" if first.field else first.message

    body = ErrorResponse(
        error=message,
        error_code=ErrorCode.VALIDATION_ERROR,
        details={"errors": [e.model_dump() for e in errors]},
    )
    return _error_response(HTTP_400_BAD_REQUEST, body)


async def aws_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle database errors that escaped a service.

    The client gets a generic message. The actual error is only logged.
    """
    logger.exception("Unhandled database error: %s", exc, extra={"path": request.url.path})
    body = ErrorResponse(
        error=ERROR_MESSAGES[ErrorCode.DATABASE_ERROR],
        error_code=ErrorCode.DATABASE_ERROR,
    )
    return _error_response(HTTP_500_INTERNAL_SERVER_ERROR, body)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(LodgeError, lodge_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ClientError, aws_error_handler)
    app.add_exception_handler(BotoCoreError, aws_error_handler)
