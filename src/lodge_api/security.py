"""Caller identity for the lodge API.

Authentication happens upstream: API Gateway validates the JWT issued by
Cognito and forwards the subject claim.

Trust Model:
- HTTP API with JWT authorizer: the ``x-user-sub`` header carries the subject
- REST API with Cognito User Pools: claims sit in the Lambda event at
  ``requestContext.authorizer.claims`` (exposed by Mangum as ``aws.event``)
- The backend trusts these values since they come from API Gateway, not
  the client
"""

from fastapi import Request

from lodge.models import ErrorCode, LodgeError
from lodge.utils.logging import get_logger

logger = get_logger(__name__)

USER_SUB_HEADER = "x-user-sub"


def _get_header_case_insensitive(request: Request, header_name: str) -> str | None:
    """Extract header value with case-insensitive lookup."""
    for name, value in request.headers.items():
        if name.lower() == header_name.lower():
            return value.strip() if value else None
    return None


def get_optional_subject(request: Request) -> str | None:
    """Extract the caller's subject, or None for anonymous requests."""
    subject = _get_header_case_insensitive(request, USER_SUB_HEADER)

    if not subject:
        event = request.scope.get("aws.event") or {}
        claims = event.get("requestContext", {}).get("authorizer", {}).get("claims", {})
        subject = (claims.get("sub") or "").strip()

    return subject or None


def get_current_subject(request: Request) -> str:
    """Require an authenticated caller.

    Returns:
        The identity-provider subject of the caller

    Raises:
        LodgeError: AUTH_REQUIRED if no subject was forwarded

    Usage:
        @router.get("/bookings")
        async def list_bookings(subject: str = Depends(get_current_subject)):
            ...
    """
    subject = get_optional_subject(request)
    if not subject:
        logger.warning("auth_subject_missing", extra={"path": request.url.path})
        raise LodgeError(ErrorCode.AUTH_REQUIRED)

    logger.debug(
        "auth_subject_extracted",
        extra={"subject": subject[:8] + "...", "path": request.url.path},
    )
    return subject
