"""Permission catalog and the static role -> permission table.

The catalog is fixed at deploy time. Rows are materialized in the database by
``adminpanel.db.seeds.seed_permissions`` with an upsert keyed on name.
"""

from typing import Dict, List, Tuple, TypedDict


class PermissionDefinition(TypedDict):
    name: str
    description: str


PERMISSION_DEFINITIONS: Tuple[PermissionDefinition, ...] = (
    # Users management
    {"name": "create:users", "description": "Create users"},
    {"name": "read:users", "description": "View users"},
    {"name": "update:users", "description": "Edit users"},
    {"name": "delete:users", "description": "Delete users"},
    {"name": "export:users", "description": "Export user data"},
    {"name": "read:analytics", "description": "View user metrics"},
    {"name": "read:user", "description": "View own account information"},
    {"name": "update:user", "description": "Update own account information"},

    # Permissions management
    {"name": "create:permissions", "description": "Create new permissions"},
    {"name": "read:permissions", "description": "View the permission list"},
    {"name": "update:permissions", "description": "Edit existing permissions"},
    {"name": "delete:permissions", "description": "Delete permissions"},
    {"name": "export:permissions", "description": "Export permissions"},

    # Profile & settings
    {"name": "read:profile", "description": "View own profile"},
    {"name": "update:profile", "description": "Update own profile"},
    {"name": "read:settings", "description": "View application settings"},
    {"name": "update:settings", "description": "Update application settings"},

    # Notifications
    {"name": "send:notifications", "description": "Send notifications to users"},
    {"name": "manage:notifications", "description": "Manage and purge notifications"},

    # Audit trail
    {"name": "read:audit", "description": "View the audit trail"},
    {"name": "manage:audit", "description": "Purge old audit entries"},
)

PERMISSION_NAMES: List[str] = [d["name"] for d in PERMISSION_DEFINITIONS]

# Admins bypass every check at resolution time; their list is informational.
ROLE_PERMISSIONS: Dict[str, Tuple[str, ...]] = {
    "user": (
        "read:profile",
        "update:profile",
        "read:settings",
        "update:settings",
    ),
    "admin": (
        "create:users",
        "read:users",
        "update:users",
        "delete:users",
        "create:permissions",
        "read:permissions",
        "update:permissions",
        "delete:permissions",
        "read:settings",
        "update:settings",
        "read:analytics",
        "export:users",
        "export:permissions",
        "read:audit",
        "manage:audit",
    ),
}


def list_definitions() -> Tuple[PermissionDefinition, ...]:
    """Return the ordered catalog of permission definitions."""
    return PERMISSION_DEFINITIONS


def role_permissions(role: str) -> Tuple[str, ...]:
    """Return the permission names a role carries implicitly."""
    return ROLE_PERMISSIONS.get(role, ())
