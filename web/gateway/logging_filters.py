"""Logging filters for enriching log records with request context.

``RequestIdFilter`` copies the current request id (set by
``RequestIdMiddleware``) onto every record, so the JSON formatter can emit
``%(request_id)s`` for per-request correlation without touching individual
log statements. It is attached to the handlers in ``LOGGING``.
"""

from logging import Filter, LogRecord
from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    """Attach a ``request_id`` attribute to log records.

    Records emitted outside a request (management commands, tests without
    the middleware) get the context variable's default, a hyphen.
    """

    def filter(self, record: LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = REQUEST_ID_CTX.get()
        return True
