from __future__ import annotations

import logging

from evops.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="evops.cleanup_audit_logs", acks_late=True)
def cleanup_audit_logs_task(days_to_keep: int | None = None) -> dict:
    """Delete one batch of expired audit entries."""
    from evops.db.session import SessionLocal
    from evops.services.audit_service import cleanup_old_logs

    db = SessionLocal()
    try:
        result = cleanup_old_logs(db, days_to_keep=days_to_keep)
        logger.info("cleanup_audit_logs: %s", result)
        return result
    except Exception:
        db.rollback()
        logger.exception("cleanup_audit_logs failed")
        raise
    finally:
        db.close()


@celery_app.task(name="evops.cleanup_lockout_records", acks_late=True)
def cleanup_lockout_records_task() -> dict:
    from evops.db.session import SessionLocal
    from evops.services.lockout_service import cleanup_old_records

    db = SessionLocal()
    try:
        result = cleanup_old_records(db)
        logger.info("cleanup_lockout_records: %s", result)
        return result
    except Exception:
        db.rollback()
        logger.exception("cleanup_lockout_records failed")
        raise
    finally:
        db.close()


@celery_app.task(name="evops.cleanup_rate_limit_records", acks_late=True)
def cleanup_rate_limit_records_task() -> dict:
    from evops.db.session import SessionLocal
    from evops.services.rate_limit_service import cleanup_old_records

    db = SessionLocal()
    try:
        result = cleanup_old_records(db)
        logger.info("cleanup_rate_limit_records: %s", result)
        return result
    except Exception:
        db.rollback()
        logger.exception("cleanup_rate_limit_records failed")
        raise
    finally:
        db.close()
