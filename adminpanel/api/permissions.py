"""Permissions API router: catalog rows and user grants."""

from typing import List

from fastapi import APIRouter, Depends

from adminpanel.api.deps import (
    RequirePermissions,
    get_audit_context,
    get_permission_service,
    get_resolver,
)
from adminpanel.core.permissions import list_definitions
from adminpanel.schemas.schemas import (
    AuditContext,
    EffectivePermissionsOut,
    MessageResponse,
    PermissionCreate,
    PermissionDefinitionOut,
    PermissionOut,
    PermissionUpdate,
)
from adminpanel.services.permission_resolver import AllPermissions, PermissionResolver
from adminpanel.services.permission_service import PermissionService

router = APIRouter(tags=["permissions"])


@router.get("/permissions", response_model=List[PermissionOut])
async def list_permissions(
    service: PermissionService = Depends(get_permission_service),
    _: int = Depends(RequirePermissions("read:permissions")),
):
    return service.list_permissions()


@router.get("/permissions/definitions", response_model=List[PermissionDefinitionOut])
async def permission_definitions(
    _: int = Depends(RequirePermissions("read:permissions")),
):
    """The static catalog shipped with this release."""
    return list(list_definitions())


@router.get("/permissions/{permission_id}", response_model=PermissionOut)
async def get_permission(
    permission_id: int,
    service: PermissionService = Depends(get_permission_service),
    _: int = Depends(RequirePermissions("read:permissions")),
):
    return service.get_permission(permission_id)


@router.post("/permissions", response_model=PermissionOut, status_code=201)
async def create_permission(
    body: PermissionCreate,
    service: PermissionService = Depends(get_permission_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("create:permissions")),
):
    return service.create_permission(body.name, body.description, context)


@router.put("/permissions/{permission_id}", response_model=PermissionOut)
async def update_permission(
    permission_id: int,
    body: PermissionUpdate,
    service: PermissionService = Depends(get_permission_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("update:permissions")),
):
    return service.update_permission(permission_id, body.name, body.description, context)


@router.delete("/permissions/{permission_id}", response_model=MessageResponse)
async def delete_permission(
    permission_id: int,
    service: PermissionService = Depends(get_permission_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("delete:permissions")),
):
    service.delete_permission(permission_id, context)
    return MessageResponse(message="Permission deleted")


@router.get("/users/{user_id}/permissions", response_model=List[PermissionOut])
async def list_user_permissions(
    user_id: int,
    service: PermissionService = Depends(get_permission_service),
    _: int = Depends(RequirePermissions("read:permissions")),
):
    """Explicit grants held by a user."""
    return service.list_user_permissions(user_id)


@router.get("/users/{user_id}/permissions/effective", response_model=EffectivePermissionsOut)
async def effective_user_permissions(
    user_id: int,
    resolver: PermissionResolver = Depends(get_resolver),
    _: int = Depends(RequirePermissions("read:permissions")),
):
    effective = resolver.resolve(user_id)
    if isinstance(effective, AllPermissions):
        return EffectivePermissionsOut(user_id=user_id, all=True)
    return EffectivePermissionsOut(user_id=user_id, permissions=sorted(effective))


@router.post("/users/{user_id}/permissions/{permission_id}", response_model=List[PermissionOut])
async def grant_permission(
    user_id: int,
    permission_id: int,
    service: PermissionService = Depends(get_permission_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("update:permissions", "update:users", mode="any")),
):
    user = service.grant(user_id, permission_id, context)
    return sorted(user.permissions, key=lambda p: p.name)


@router.delete("/users/{user_id}/permissions/{permission_id}", response_model=List[PermissionOut])
async def revoke_permission(
    user_id: int,
    permission_id: int,
    service: PermissionService = Depends(get_permission_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("update:permissions", "update:users", mode="any")),
):
    user = service.revoke(user_id, permission_id, context)
    return sorted(user.permissions, key=lambda p: p.name)
