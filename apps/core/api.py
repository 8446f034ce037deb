"""
Health check endpoints.

``GET /health`` is for load balancers and only pings the database.
``GET /health/detailed`` also checks the task broker and object storage.
"""
import logging
import platform
import sys
import time
from typing import Any, Dict

from django.conf import settings
from django.core.files.storage import default_storage
from django.db import connection
from django.http import HttpRequest
from django.utils import timezone
from ninja import Router

from config.storage import is_s3_enabled

logger = logging.getLogger(__name__)

router = Router(tags=["Health"])

STARTED_AT = time.monotonic()

HEALTHY = {'status': 'healthy'}


def check_database() -> dict:
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
        return HEALTHY
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {'status': 'unhealthy', 'details': str(e)}


def check_broker() -> dict:
    """Connect to the Celery broker. Skipped when tasks run inline."""
    if getattr(settings, 'TASK_BACKEND', 'local') != 'celery':
        return {'status': 'skipped', 'details': 'local task backend'}
    try:
        from config.celery import app
        with app.connection_for_write() as conn:
            conn.ensure_connection(max_retries=1)
        return HEALTHY
    except Exception as e:
        logger.error(f"Broker health check failed: {e}")
        return {'status': 'unhealthy', 'details': str(e)}


def check_storage() -> dict:
    backend = 's3' if is_s3_enabled() else 'local'
    try:
        default_storage.exists('.healthcheck')
        return {**HEALTHY, 'backend': backend}
    except Exception as e:
        logger.error(f"Storage health check failed: {e}")
        return {'status': 'unhealthy', 'backend': backend, 'details': str(e)}


@router.get("", response={200: Dict[str, Any], 503: Dict[str, Any]}, auth=None)
def health(request: HttpRequest):
    database = check_database()
    if database['status'] != 'healthy':
        return 503, {'status': 'error', 'database': database}
    return 200, {'status': 'ok'}


@router.get("/detailed", response={200: Dict[str, Any], 503: Dict[str, Any]}, auth=None)
def detailed_health(request: HttpRequest):
    services = {
        'database': check_database(),
        'broker': check_broker(),
        'storage': check_storage(),
    }
    degraded = any(s['status'] == 'unhealthy' for s in services.values())
    return 503 if degraded else 200, {
        'status': 'degraded' if degraded else 'ok',
        'timestamp': timezone.now().isoformat(),
        'uptime': round(time.monotonic() - STARTED_AT, 3),
        'environment': settings.ENVIRONMENT,
        'version': settings.APP_VERSION,
        'services': services,
        'system': {
            'platform': platform.platform(),
            'python_version': sys.version.split()[0],
        },
    }
