"""Gateway middleware: request identifiers and payload size limits.

``RequestIdMiddleware`` gives every HTTP request an identifier, read from
the incoming ``X-Request-Id`` header or generated as a UUIDv4. The id is
stored on the request, in the ``REQUEST_ID_CTX`` context variable (picked
up by ``RequestIdFilter`` for log correlation) and echoed back in the
``X-Request-ID`` response header. Each handled request is logged once
with its method, path, status and duration.

``ApiSizeLimitMiddleware`` rejects API requests whose declared body is
larger than ``API_MAX_BYTES`` before any view runs.
"""

import contextvars
import logging
import time
import uuid

from django.conf import settings
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")

logger = logging.getLogger("gateway.access")


class RequestIdMiddleware(MiddlewareMixin):
    """Django middleware that sets and returns a per-request identifier.

    Attributes:
        HEADER (str): Incoming header name as found in ``request.META``.
        RESPONSE_HEADER (str): Header added to outgoing responses.
    """

    HEADER = "HTTP_X_REQUEST_ID"
    RESPONSE_HEADER = "X-Request-ID"

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._started_at = time.monotonic()
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        """Add the request id header and log the handled request.

        The id attached to the request is preferred; the context variable
        is the fallback for responses produced before ``process_request``
        ran (for example by an earlier middleware).
        """
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid
        started = getattr(request, "_started_at", None)
        logger.info(
            "request handled",
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 2) if started else None,
            },
        )
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    def process_request(self, request):
        if request.path.startswith("/api/"):
            clen = request.META.get("CONTENT_LENGTH")
            if clen and clen.isdigit() and int(clen) > settings.API_MAX_BYTES:
                return JsonResponse({"detail": "PAYLOAD_TOO_LARGE", "code": "PAYLOAD_TOO_LARGE"}, status=413)
