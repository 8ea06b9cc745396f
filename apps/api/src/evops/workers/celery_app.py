from celery import Celery
from celery.schedules import crontab

from evops.core.config import settings

celery_app = Celery(
    "evops",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.autodiscover_tasks(["evops.workers.tasks"])

celery_app.conf.beat_schedule = {
    "cleanup-audit-logs": {
        "task": "evops.cleanup_audit_logs",
        "schedule": crontab(hour=settings.AUDIT_CLEANUP_HOUR_UTC, minute=0),
    },
    "cleanup-lockout-records": {
        "task": "evops.cleanup_lockout_records",
        "schedule": settings.LOCKOUT_CLEANUP_HOURS * 60 * 60,
    },
    "cleanup-rate-limit-records": {
        "task": "evops.cleanup_rate_limit_records",
        "schedule": settings.RATE_LIMIT_CLEANUP_MINUTES * 60,
    },
}
celery_app.conf.timezone = "UTC"
