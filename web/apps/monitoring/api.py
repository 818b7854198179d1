"""Health probe reporting whether the database answers."""

import logging

from django.db import DatabaseError, connection
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

logger = logging.getLogger(__name__)


@api_view(["GET"])
@authentication_classes([])
@permission_classes([AllowAny])
def health_view(_request):
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1;")
        db_ok = True
    except DatabaseError:
        logger.exception("database health check failed")
        db_ok = False

    return Response(
        {"ok": db_ok, "components": {"db": {"ok": db_ok}}},
        status=200 if db_ok else 503,
    )
