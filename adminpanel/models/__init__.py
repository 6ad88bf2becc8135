"""Models package: import all models so metadata is complete."""

from adminpanel.models.permission import Permission, user_permissions
from adminpanel.models.user import User, UserRole
from adminpanel.models.audit_log import AuditLog

__all__ = ["Permission", "user_permissions", "User", "UserRole", "AuditLog"]
