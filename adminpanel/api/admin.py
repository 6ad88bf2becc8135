"""Admin / Audit API router."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adminpanel.api.deps import (
    RequirePermissions,
    get_audit_context,
    get_audit_service,
    get_cache,
)
from adminpanel.core.config import settings
from adminpanel.db.session import get_db
from adminpanel.schemas.schemas import (
    AuditCleanupRequest,
    AuditContext,
    AuditLogListResponse,
    AuditLogOut,
    AuditStatsOut,
    MessageResponse,
)
from adminpanel.services.audit_service import AuditService
from adminpanel.services.cache_service import CacheService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit", response_model=AuditLogListResponse)
async def get_audit_logs(
    user_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    resource: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    success: Optional[bool] = Query(None),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    audit: AuditService = Depends(get_audit_service),
    _: int = Depends(RequirePermissions("read:audit")),
):
    """Query audit logs."""
    return audit.query_logs(
        user_id, action, resource, resource_id, success, start, end, page, page_size
    )


@router.get("/audit/stats", response_model=AuditStatsOut)
async def get_audit_stats(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    audit: AuditService = Depends(get_audit_service),
    _: int = Depends(RequirePermissions("read:audit")),
):
    """Aggregate audit statistics; defaults to the last 30 days."""
    end = end or datetime.now(timezone.utc)
    start = start or end - timedelta(days=30)
    return audit.stats(start, end)


@router.get("/audit/users/{user_id}", response_model=list[AuditLogOut])
async def get_user_activity(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    audit: AuditService = Depends(get_audit_service),
    _: int = Depends(RequirePermissions("read:audit")),
):
    """Latest actions performed by a user."""
    return audit.user_activity(user_id, limit)


@router.get("/audit/resources/{resource}", response_model=list[AuditLogOut])
async def get_resource_history(
    resource: str,
    resource_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    audit: AuditService = Depends(get_audit_service),
    _: int = Depends(RequirePermissions("read:audit")),
):
    """Latest actions on a resource type, optionally one row of it."""
    return audit.resource_history(resource, resource_id, limit)


@router.post("/audit/cleanup", response_model=MessageResponse)
async def cleanup_audit_logs(
    body: AuditCleanupRequest,
    audit: AuditService = Depends(get_audit_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("manage:audit")),
):
    """Purge entries older than the retention horizon."""
    days = body.retention_days or settings.AUDIT_RETENTION_DAYS
    deleted = audit.cleanup(days)
    audit.record_for(
        context,
        action="cleanup",
        resource="audit_log",
        new_values={"retention_days": days, "deleted": deleted},
    )
    return MessageResponse(message=f"Deleted {deleted} audit entries", detail={"deleted": deleted})


@router.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """System health check for the database and Redis."""
    db_ok = False
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        pass

    redis_ok = cache.health_check()

    return {
        "database": "ok" if db_ok else "error",
        "redis": "ok" if redis_ok else "error",
        "status": "healthy" if db_ok else "degraded",
    }
