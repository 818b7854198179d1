"""DRF exception handler translating domain errors into HTTP responses.

Configured as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``. Domain errors raised
by the service layer become JSON bodies ``{"detail", "code"}`` with a
status per error kind; anything else is left to DRF's default handler.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from apps.common.errors import Conflict, DomainError, Forbidden, InvalidRequest, NotFound

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Forbidden: status.HTTP_403_FORBIDDEN,
    InvalidRequest: status.HTTP_400_BAD_REQUEST,
    Conflict: status.HTTP_409_CONFLICT,
}


def domain_error_response(exc: DomainError) -> Response:
    """Build the response for a domain error.

    Args:
        exc: The raised domain error.

    Returns:
        Response: ``{"detail", "code"}`` with the mapped status (400 for
        unmapped subclasses).
    """
    code = next(
        (s for cls, s in STATUS_BY_ERROR.items() if isinstance(exc, cls)),
        status.HTTP_400_BAD_REQUEST,
    )
    return Response({"detail": exc.detail, "code": exc.code}, status=code)


def domain_exception_handler(exc, context):
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.warning(
            "domain error",
            extra={"code": exc.code, "detail": exc.detail, "view": type(view).__name__ if view else "-"},
        )
        return domain_error_response(exc)
    return exception_handler(exc, context)
