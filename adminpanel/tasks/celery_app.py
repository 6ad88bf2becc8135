"""Celery app and scheduled maintenance tasks."""

from typing import Optional

from celery import Celery
from celery.schedules import crontab

from adminpanel.core.config import settings

celery_app = Celery(
    "admin_platform",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_soft_time_limit=600,  # 10 min soft limit
    task_time_limit=900,  # 15 min hard limit
    beat_schedule={
        "cleanup-audit-logs": {
            "task": "cleanup_audit_logs",
            "schedule": crontab(hour=3, minute=0),
        },
    },
)


@celery_app.task(name="cleanup_audit_logs")
def cleanup_audit_logs(retention_days: Optional[int] = None) -> dict:
    """Delete audit entries past the retention horizon."""
    from adminpanel.db.session import SessionLocal
    from adminpanel.services.audit_service import AuditService

    days = retention_days or settings.AUDIT_RETENTION_DAYS
    db = SessionLocal()
    try:
        deleted = AuditService(db).cleanup(days)
        return {"deleted": deleted, "retention_days": days}
    finally:
        db.close()
