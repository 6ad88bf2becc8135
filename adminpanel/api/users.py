"""Users API router: admin user management."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from adminpanel.api.auth import user_out
from adminpanel.api.deps import RequirePermissions, get_audit_context, get_user_service
from adminpanel.schemas.schemas import (
    AuditContext,
    MessageResponse,
    UserCreateRequest,
    UserListResponse,
    UserOut,
    UserUpdateRequest,
)
from adminpanel.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None, pattern="^(user|admin)$"),
    users: UserService = Depends(get_user_service),
    _: int = Depends(RequirePermissions("read:users")),
):
    result = users.list_users(page, page_size, search, role)
    return UserListResponse(
        users=[user_out(u) for u in result["users"]],
        total=result["total"],
        page=result["page"],
        page_size=result["page_size"],
    )


@router.post("", response_model=UserOut, status_code=201)
async def create_user(
    body: UserCreateRequest,
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("create:users")),
):
    user = users.create_user(body.email, body.password, body.full_name, body.role, context)
    return user_out(user)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(
    user_id: int,
    users: UserService = Depends(get_user_service),
    _: int = Depends(RequirePermissions("read:users")),
):
    return user_out(users.get_user(user_id))


@router.put("/{user_id}", response_model=UserOut)
async def update_user(
    user_id: int,
    body: UserUpdateRequest,
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("update:users")),
):
    """Update a user's role, name, or status."""
    user = users.update_user(user_id, body.full_name, body.role, body.is_active, context)
    return user_out(user)


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
    _: int = Depends(RequirePermissions("delete:users")),
):
    users.delete_user(user_id, context)
    return MessageResponse(message="User deleted")
