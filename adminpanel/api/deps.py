"""Shared FastAPI dependencies: services per request and permission gates."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from adminpanel.core.exceptions import AuthorizationError, unauthorized
from adminpanel.core.security import get_optional_user_id
from adminpanel.db.session import get_db
from adminpanel.schemas.schemas import AuditContext
from adminpanel.services.access_guard import AccessGuard, MatchMode, Outcome
from adminpanel.services.audit_service import AuditService
from adminpanel.services.cache_service import CacheService, cache_service
from adminpanel.services.permission_resolver import PermissionResolver
from adminpanel.services.permission_service import PermissionService
from adminpanel.services.user_service import UserService


def get_cache() -> CacheService:
    return cache_service


def get_resolver(
    db: Session = Depends(get_db), cache: CacheService = Depends(get_cache)
) -> PermissionResolver:
    return PermissionResolver(db, cache)


def get_audit_service(db: Session = Depends(get_db)) -> AuditService:
    return AuditService(db)


def get_permission_service(
    db: Session = Depends(get_db),
    resolver: PermissionResolver = Depends(get_resolver),
    audit: AuditService = Depends(get_audit_service),
) -> PermissionService:
    return PermissionService(db, resolver, audit)


def get_user_service(
    db: Session = Depends(get_db),
    resolver: PermissionResolver = Depends(get_resolver),
    audit: AuditService = Depends(get_audit_service),
) -> UserService:
    return UserService(db, resolver, audit)


def get_audit_context(
    request: Request, user_id: Optional[int] = Depends(get_optional_user_id)
) -> AuditContext:
    """Actor id plus client IP and user-agent for audit entries."""
    return AuditContext(
        actor_id=user_id,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent", "")[:500] or None,
    )


class RequirePermissions:
    """Dependency that checks the caller holds the given permissions.

    Returns the caller's user id. Unauthenticated callers get 401 and
    callers lacking permissions get 403 with the missing names.
    """

    def __init__(self, *names: str, mode: MatchMode = "all"):
        self.names = names
        self.mode = mode

    async def __call__(
        self,
        user_id: Optional[int] = Depends(get_optional_user_id),
        resolver: PermissionResolver = Depends(get_resolver),
    ) -> int:
        decision = AccessGuard(resolver).authorize(user_id, self.names, self.mode)
        if decision.outcome is Outcome.unauthenticated:
            raise unauthorized(decision.message)
        if decision.outcome is Outcome.deny:
            raise AuthorizationError(decision.message)
        return user_id
