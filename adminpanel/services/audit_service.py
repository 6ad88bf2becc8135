"""Audit service: append-only audit trail for all mutations.

Recording is best-effort: a failing audit write is rolled back and logged but
never raised, so an audit-store outage cannot abort the operation it
describes.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from adminpanel.models.audit_log import AuditLog
from adminpanel.schemas.schemas import AuditContext, AuditEntryCreate

logger = logging.getLogger("adminpanel.audit")

SENSITIVE_FIELDS = frozenset({"password", "token", "secret", "key", "apiKey", "jwt"})
REDACTED = "[REDACTED]"


def redact_sensitive(value: Any) -> Any:
    """Return a copy of ``value`` with sensitive keys replaced at any depth.

    Key matching is exact and case-sensitive.
    """
    if isinstance(value, dict):
        return {
            k: REDACTED if k in SENSITIVE_FIELDS else redact_sensitive(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact_sensitive(item) for item in value]
    return value


def _to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(redact_sensitive(value), default=str)


def _from_json(raw: Optional[str]) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def serialize_audit_log(entry: AuditLog) -> Dict[str, Any]:
    """Serialize one audit row with its JSON snapshots decoded."""
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "action": entry.action,
        "resource": entry.resource,
        "resource_id": entry.resource_id,
        "old_values": _from_json(entry.old_values),
        "new_values": _from_json(entry.new_values),
        "ip_address": entry.ip_address,
        "user_agent": entry.user_agent,
        "success": entry.success,
        "error": entry.error,
        "timestamp": entry.timestamp,
    }


class AuditService:
    """Records and queries audit log entries."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, entry: AuditEntryCreate) -> Optional[AuditLog]:
        """Persist one entry with sensitive values redacted.

        Returns the stored row, or None when the write failed.
        """
        try:
            row = AuditLog(
                user_id=entry.user_id,
                action=entry.action,
                resource=entry.resource,
                resource_id=str(entry.resource_id) if entry.resource_id is not None else None,
                old_values=_to_json(entry.old_values),
                new_values=_to_json(entry.new_values),
                ip_address=entry.ip_address,
                user_agent=entry.user_agent[:500] if entry.user_agent else None,
                success=entry.success,
                error=entry.error,
            )
            if entry.timestamp is not None:
                row.timestamp = _naive_utc(entry.timestamp)
            self.db.add(row)
            self.db.commit()
        except Exception:
            logger.exception(
                "Failed to record audit entry %s on %s", entry.action, entry.resource
            )
            try:
                self.db.rollback()
            except Exception:
                logger.exception("Rollback after failed audit write also failed")
            return None

        logger.debug(
            "[AUDIT] %s on %s/%s by user %s (success=%s)",
            entry.action, entry.resource, entry.resource_id, entry.user_id, entry.success,
        )
        return row

    def record_for(self, context: Optional[AuditContext], **fields: Any) -> Optional[AuditLog]:
        """Record an entry attributed to the actor and client in ``context``."""
        context = context or AuditContext()
        return self.record(
            AuditEntryCreate(
                user_id=context.actor_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                **fields,
            )
        )

    def _filtered(
        self,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        success: Optional[bool] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ):
        query = self.db.query(AuditLog)
        if user_id is not None:
            query = query.filter(AuditLog.user_id == user_id)
        if action:
            query = query.filter(AuditLog.action.ilike(f"%{action}%"))
        if resource:
            query = query.filter(AuditLog.resource.ilike(f"%{resource}%"))
        if resource_id is not None:
            query = query.filter(AuditLog.resource_id == str(resource_id))
        if success is not None:
            query = query.filter(AuditLog.success == success)
        if start is not None:
            query = query.filter(AuditLog.timestamp >= _naive_utc(start))
        if end is not None:
            query = query.filter(AuditLog.timestamp <= _naive_utc(end))
        return query

    def query_logs(
        self,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        success: Optional[bool] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Dict[str, Any]:
        """Query audit logs with filters and pagination, newest first."""
        query = self._filtered(user_id, action, resource, resource_id, success, start, end)

        total = query.count()
        logs = (
            query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )

        return {
            "logs": [serialize_audit_log(log) for log in logs],
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    def _grouped_counts(self, column, start: datetime, end: datetime, limit: Optional[int] = None):
        count = func.count(AuditLog.id)
        query = (
            self._filtered(start=start, end=end)
            .with_entities(column, count)
            .group_by(column)
            .order_by(count.desc(), column)
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def stats(self, start: datetime, end: datetime) -> Dict[str, Any]:
        """Aggregate counts and rates over a time range."""
        scoped = self._filtered(start=start, end=end)
        total = scoped.count()
        success_count = scoped.filter(AuditLog.success.is_(True)).count()
        error_count = scoped.filter(AuditLog.success.is_(False)).count()

        by_action = self._grouped_counts(AuditLog.action, start, end)
        by_resource = self._grouped_counts(AuditLog.resource, start, end)
        by_user = self._grouped_counts(AuditLog.user_id, start, end, limit=10)

        recent = (
            scoped.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(10).all()
        )

        return {
            "total_actions": total,
            "counts_by_action": {action: n for action, n in by_action},
            "counts_by_resource": {resource: n for resource, n in by_resource},
            "counts_by_user": {
                str(uid) if uid is not None else "anonymous": n for uid, n in by_user
            },
            "success_rate": round(success_count / total * 100, 2) if total else 0.0,
            "error_rate": round(error_count / total * 100, 2) if total else 0.0,
            "top_actions": [{"action": action, "count": n} for action, n in by_action[:5]],
            "recent_activity": [serialize_audit_log(log) for log in recent],
        }

    def user_activity(self, user_id: int, limit: int = 50) -> List[Dict[str, Any]]:
        """Latest entries performed by one user."""
        logs = (
            self._filtered(user_id=user_id)
            .order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .limit(limit)
            .all()
        )
        return [serialize_audit_log(log) for log in logs]

    def resource_history(
        self, resource: str, resource_id: Optional[str] = None, limit: int = 50
    ) -> List[Dict[str, Any]]:
        """Latest entries touching one resource type, optionally one row of it."""
        query = self.db.query(AuditLog).filter(AuditLog.resource == resource)
        if resource_id is not None:
            query = query.filter(AuditLog.resource_id == str(resource_id))
        logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
        return [serialize_audit_log(log) for log in logs]

    def cleanup(self, retention_days: int) -> int:
        """Delete entries older than ``retention_days``; return how many."""
        cutoff = _naive_utc(datetime.now(timezone.utc) - timedelta(days=retention_days))
        deleted = (
            self.db.query(AuditLog)
            .filter(AuditLog.timestamp < cutoff)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Cleaned up %d audit entries older than %d days", deleted, retention_days)
        return deleted
