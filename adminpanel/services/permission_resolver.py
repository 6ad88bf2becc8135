"""Permission resolver: effective permission set per user, cached in Redis."""

import logging
from typing import FrozenSet, Optional, Union

from sqlalchemy.orm import Session

from adminpanel.core.config import settings
from adminpanel.core.exceptions import ResourceNotFoundError
from adminpanel.core.permissions import role_permissions
from adminpanel.models.user import User, UserRole
from adminpanel.services.cache_service import CacheService, cache_service

logger = logging.getLogger("adminpanel.permissions")


class AllPermissions:
    """Marker for admins: membership tests always succeed."""

    _instance: Optional["AllPermissions"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __contains__(self, name: object) -> bool:
        return True

    def __repr__(self) -> str:
        return "ALL_PERMISSIONS"


ALL_PERMISSIONS = AllPermissions()

EffectivePermissions = Union[FrozenSet[str], AllPermissions]


def cache_key(user_id: int) -> str:
    return f"user_permissions:{user_id}"


class PermissionResolver:
    """Computes role-derived plus explicitly granted permission names."""

    def __init__(
        self,
        db: Session,
        cache: Optional[CacheService] = None,
        ttl_seconds: Optional[int] = None,
    ):
        self.db = db
        self.cache = cache or cache_service
        self.ttl_seconds = ttl_seconds or settings.PERMISSION_CACHE_TTL_SECONDS

    def resolve(self, user_id: int) -> EffectivePermissions:
        """Return the effective permission set for a user.

        Raises:
            ResourceNotFoundError: If the user does not exist or is deactivated.
        """
        cached = self.cache.get_json(cache_key(user_id))
        if cached is not None:
            return self._from_cache(cached)

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        if not user.is_active:
            raise ResourceNotFoundError(f"User {user_id} is deactivated")

        if user.is_admin:
            effective: EffectivePermissions = ALL_PERMISSIONS
        else:
            effective = frozenset(role_permissions(UserRole(user.role).value)) | frozenset(
                p.name for p in user.permissions
            )

        self.cache.set_json(cache_key(user_id), self._to_cache(effective), self.ttl_seconds)
        return effective

    def invalidate(self, user_id: int) -> None:
        """Drop the cached set for one user."""
        self.cache.delete(cache_key(user_id))
        logger.debug("Invalidated permission cache for user %s", user_id)

    @staticmethod
    def _to_cache(effective: EffectivePermissions) -> dict:
        if isinstance(effective, AllPermissions):
            return {"all": True}
        return {"all": False, "names": sorted(effective)}

    @staticmethod
    def _from_cache(payload: dict) -> EffectivePermissions:
        if payload.get("all"):
            return ALL_PERMISSIONS
        return frozenset(payload.get("names", []))
