"""Permission service: permission CRUD and explicit grant/revoke."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from adminpanel.core.exceptions import ResourceConflictError, ResourceNotFoundError
from adminpanel.models.permission import Permission
from adminpanel.models.user import User
from adminpanel.schemas.schemas import AuditContext
from adminpanel.services.audit_service import AuditService
from adminpanel.services.permission_resolver import PermissionResolver

logger = logging.getLogger("adminpanel.permissions")


class PermissionService:
    """Mutates permissions and the user <-> permission relation.

    Storage errors propagate unchanged. Every mutation touching a user's
    grants evicts that user's resolver cache entry before returning.
    """

    def __init__(self, db: Session, resolver: PermissionResolver, audit: AuditService):
        self.db = db
        self.resolver = resolver
        self.audit = audit

    # ---- Catalog rows ----

    def list_permissions(self) -> List[Permission]:
        return self.db.query(Permission).order_by(Permission.name).all()

    def get_permission(self, permission_id: int) -> Permission:
        permission = self.db.query(Permission).filter(Permission.id == permission_id).first()
        if not permission:
            raise ResourceNotFoundError(f"Permission {permission_id} not found")
        return permission

    def get_permission_by_name(self, name: str) -> Optional[Permission]:
        return self.db.query(Permission).filter(Permission.name == name).first()

    def create_permission(
        self,
        name: str,
        description: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> Permission:
        """Create a permission.

        Raises:
            ResourceConflictError: If the name is already taken.
        """
        if self.get_permission_by_name(name):
            raise ResourceConflictError(f"A permission named '{name}' already exists")

        permission = Permission(name=name, description=description)
        self.db.add(permission)
        self.db.commit()
        self.db.refresh(permission)

        self.audit.record_for(
            context,
            action="create",
            resource="permission",
            resource_id=str(permission.id),
            new_values={"name": name, "description": description},
        )
        return permission

    def update_permission(
        self,
        permission_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        context: Optional[AuditContext] = None,
    ) -> Permission:
        """Rename or re-describe a permission."""
        permission = self.get_permission(permission_id)
        old_values = {"name": permission.name, "description": permission.description}

        if name and name != permission.name:
            if self.get_permission_by_name(name):
                raise ResourceConflictError(f"A permission named '{name}' already exists")
            permission.name = name
        if description is not None:
            permission.description = description

        affected = [user.id for user in permission.users]
        self.db.commit()
        self.db.refresh(permission)

        # A rename changes the effective names of every holder.
        for user_id in affected:
            self.resolver.invalidate(user_id)

        self.audit.record_for(
            context,
            action="update",
            resource="permission",
            resource_id=str(permission.id),
            old_values=old_values,
            new_values={"name": permission.name, "description": permission.description},
        )
        return permission

    def delete_permission(self, permission_id: int, context: Optional[AuditContext] = None) -> None:
        """Delete a permission; its grants disappear with it."""
        permission = self.get_permission(permission_id)
        old_values = {"name": permission.name, "description": permission.description}
        affected = [user.id for user in permission.users]

        self.db.delete(permission)
        self.db.commit()

        for user_id in affected:
            self.resolver.invalidate(user_id)
        logger.info(
            "Deleted permission %s, removed from %d user(s)", old_values["name"], len(affected)
        )

        self.audit.record_for(
            context,
            action="delete",
            resource="permission",
            resource_id=str(permission_id),
            old_values=old_values,
        )

    # ---- Grants ----

    def _get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    def list_user_permissions(self, user_id: int) -> List[Permission]:
        """Explicit grants only; role-derived names come from the resolver."""
        user = self._get_user(user_id)
        return sorted(user.permissions, key=lambda p: p.name)

    def grant(
        self, user_id: int, permission_id: int, context: Optional[AuditContext] = None
    ) -> User:
        """Grant a permission to a user. Granting a held permission is a no-op.

        Raises:
            ResourceNotFoundError: If the user or the permission does not exist.
        """
        user = self._get_user(user_id)
        permission = self.get_permission(permission_id)

        changed = permission not in user.permissions
        if changed:
            user.permissions.append(permission)
            self.db.commit()
        self.resolver.invalidate(user_id)

        self.audit.record_for(
            context,
            action="grant",
            resource="user_permission",
            resource_id=str(user_id),
            new_values={"permission": permission.name, "changed": changed},
        )
        return user

    def revoke(
        self, user_id: int, permission_id: int, context: Optional[AuditContext] = None
    ) -> User:
        """Revoke a permission from a user. Revoking an unheld permission is a no-op.

        Raises:
            ResourceNotFoundError: If the user or the permission does not exist.
        """
        user = self._get_user(user_id)
        permission = self.get_permission(permission_id)

        changed = permission in user.permissions
        if changed:
            user.permissions.remove(permission)
            self.db.commit()
        self.resolver.invalidate(user_id)

        self.audit.record_for(
            context,
            action="revoke",
            resource="user_permission",
            resource_id=str(user_id),
            old_values={"permission": permission.name, "changed": changed},
        )
        return user
