"""User service: accounts, login, role changes, and last-admin protection."""

import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from adminpanel.core.exceptions import (
    AuthenticationError,
    LastAdminError,
    ResourceConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from adminpanel.core.security import create_access_token, hash_password, verify_password
from adminpanel.models.user import User, UserRole
from adminpanel.schemas.schemas import AuditContext
from adminpanel.services.audit_service import AuditService
from adminpanel.services.permission_resolver import PermissionResolver

logger = logging.getLogger("adminpanel.users")


class UserService:
    """Handles authentication and user management."""

    def __init__(self, db: Session, resolver: PermissionResolver, audit: AuditService):
        self.db = db
        self.resolver = resolver
        self.audit = audit

    def authenticate(
        self, email: str, password: str, context: Optional[AuditContext] = None
    ) -> Dict[str, Any]:
        """Authenticate user and return a JWT access token.

        Raises:
            AuthenticationError: If credentials are invalid.
        """
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            self.audit.record_for(
                context,
                action="login",
                resource="user",
                resource_id=str(user.id) if user else None,
                new_values={"email": email},
                success=False,
                error="Invalid email or password",
            )
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            self.audit.record_for(
                context,
                action="login",
                resource="user",
                resource_id=str(user.id),
                new_values={"email": email},
                success=False,
                error="Account is deactivated",
            )
            raise AuthenticationError("Account is deactivated")

        token_data = {
            "sub": str(user.id),
            "email": user.email,
            "role": user.role.value,
        }
        access_token = create_access_token(token_data)

        user.last_login_at = datetime.now(timezone.utc).replace(tzinfo=None)
        self.db.commit()

        login_context = (context or AuditContext()).model_copy(update={"actor_id": user.id})
        self.audit.record_for(
            login_context, action="login", resource="user", resource_id=str(user.id)
        )

        return {
            "access_token": access_token,
            "token_type": "bearer",
            "user": {
                "id": user.id,
                "email": user.email,
                "full_name": user.full_name,
                "role": user.role.value,
            },
        }

    def create_user(
        self,
        email: str,
        password: Optional[str],
        full_name: Optional[str] = None,
        role: UserRole = UserRole.user,
        context: Optional[AuditContext] = None,
    ) -> User:
        """Create a new user. ``password`` is None for externally authenticated accounts."""
        existing = self.db.query(User).filter(User.email == email).first()
        if existing:
            raise ResourceConflictError(f"User with email {email} already exists")

        user = User(
            email=email,
            hashed_password=hash_password(password) if password else None,
            full_name=full_name,
            role=UserRole(role),
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        self.audit.record_for(
            context,
            action="create",
            resource="user",
            resource_id=str(user.id),
            new_values={"email": user.email, "role": user.role.value},
        )
        return user

    def get_user(self, user_id: int) -> User:
        """Get a user by id."""
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise ResourceNotFoundError(f"User {user_id} not found")
        return user

    def list_users(
        self,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List users with pagination, optional search and role filter."""
        query = self.db.query(User)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(User.email.ilike(pattern), User.full_name.ilike(pattern)))
        if role:
            query = query.filter(User.role == UserRole(role))

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return {"users": users, "total": total, "page": page, "page_size": page_size}

    def _admin_count(self) -> int:
        return self.db.query(User).filter(User.role == UserRole.admin).count()

    def update_user(
        self,
        user_id: int,
        full_name: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
        context: Optional[AuditContext] = None,
    ) -> User:
        """Update a user's name, status, or role.

        Raises:
            LastAdminError: If the change would demote the only admin.
        """
        user = self.get_user(user_id)
        old_values = {
            "email": user.email,
            "full_name": user.full_name,
            "role": user.role.value,
            "is_active": user.is_active,
        }

        new_role = UserRole(role) if role else None
        if new_role and user.is_admin and new_role != UserRole.admin:
            if self._admin_count() <= 1:
                raise LastAdminError("Cannot demote the last administrator")

        if full_name is not None:
            user.full_name = full_name
        if is_active is not None:
            user.is_active = is_active
        if new_role:
            user.role = new_role
        self.db.commit()
        self.db.refresh(user)

        self.resolver.invalidate(user_id)

        self.audit.record_for(
            context,
            action="update",
            resource="user",
            resource_id=str(user_id),
            old_values=old_values,
            new_values={
                k: v
                for k, v in {"full_name": full_name, "role": role, "is_active": is_active}.items()
                if v is not None
            },
        )
        return user

    def delete_user(self, user_id: int, context: Optional[AuditContext] = None) -> None:
        """Delete a user.

        Raises:
            LastAdminError: If the user is the only admin.
        """
        user = self.get_user(user_id)
        if user.is_admin and self._admin_count() <= 1:
            raise LastAdminError("Cannot delete the last administrator")

        old_values = {"email": user.email, "role": user.role.value}
        self.db.delete(user)
        self.db.commit()

        self.resolver.invalidate(user_id)
        logger.info("Deleted user %s (%s)", user_id, old_values["email"])

        self.audit.record_for(
            context,
            action="delete",
            resource="user",
            resource_id=str(user_id),
            old_values=old_values,
        )

    def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
        confirm_password: str,
        context: Optional[AuditContext] = None,
    ) -> None:
        """Change a user's own password after verifying the current one."""
        user = self.get_user(user_id)
        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")
        if new_password != confirm_password:
            raise ValidationError("New passwords do not match")

        user.hashed_password = hash_password(new_password)
        self.db.commit()

        self.audit.record_for(
            context,
            action="password_change",
            resource="user",
            resource_id=str(user_id),
            new_values={"password": new_password},
        )

    def promote_to_admin(self, email: str, context: Optional[AuditContext] = None) -> User:
        """Give the admin role to the user with this email."""
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            raise ResourceNotFoundError(f"User with email {email} not found")
        if user.is_admin:
            return user
        return self.update_user(user.id, role=UserRole.admin.value, context=context)
