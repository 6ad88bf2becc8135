"""Audit log model: append-only."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime
from adminpanel.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuditLog(Base):
    """Audit trail for system mutations.

    Rows are inserted by the recorder and deleted only by the retention job.
    ``user_id`` carries no foreign key: entries outlive the acting user.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "grant", "update"
    resource = Column(String(50), nullable=False, index=True)  # user, permission, ...
    resource_id = Column(String(100), nullable=True)
    old_values = Column(Text, nullable=True)
    new_values = Column(Text, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    success = Column(Boolean, default=True, nullable=False)
    error = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=_utcnow, nullable=False, index=True)
