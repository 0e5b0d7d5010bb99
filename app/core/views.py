"""
Infrastructure endpoints that sit outside the payment domain.
"""

from django.conf import settings
from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse


def health_check(request):
    """
    Liveness/readiness probe for the back office API.

    The database is required; the cache only backs refund locks and
    throttling, so a cache outage is reported without failing the probe.

    Returns:
        200 {"status": "healthy", "database": "connected", "cache": ..., "gateway_environment": "SANDBOX"}
        503 when the database is unreachable
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
        "gateway_environment": str(settings.CASHFREE_ENV).upper(),
    }
    is_healthy = True

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except Exception:
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"
        is_healthy = False

    try:
        cache.set("health_check", "ok", timeout=1)
        health_status["cache"] = "connected" if cache.get("health_check") == "ok" else "disconnected"
    except Exception:
        health_status["cache"] = "disconnected"

    return JsonResponse(health_status, status=200 if is_healthy else 503)
