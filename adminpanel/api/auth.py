"""Auth API router: login, register, me."""

from fastapi import APIRouter, Depends

from adminpanel.api.deps import (
    get_audit_context,
    get_resolver,
    get_user_service,
)
from adminpanel.core.security import get_current_user_id
from adminpanel.schemas.schemas import (
    AuditContext,
    ChangePasswordRequest,
    EffectivePermissionsOut,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from adminpanel.services.permission_resolver import AllPermissions, PermissionResolver
from adminpanel.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


def user_out(user) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role.value,
        is_active=user.is_active,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
):
    """Authenticate and return a JWT access token."""
    return users.authenticate(body.email, body.password, context)


@router.post("/register", response_model=UserOut, status_code=201)
async def register(
    body: RegisterRequest,
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
):
    """Register a new user with the default role."""
    user = users.create_user(body.email, body.password, body.full_name, context=context)
    return user_out(user)


@router.get("/me", response_model=UserOut)
async def get_me(
    user_id: int = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
):
    """Get current user profile."""
    return user_out(users.get_user(user_id))


@router.get("/me/permissions", response_model=EffectivePermissionsOut)
async def get_my_permissions(
    user_id: int = Depends(get_current_user_id),
    resolver: PermissionResolver = Depends(get_resolver),
):
    """Effective permissions of the current user."""
    effective = resolver.resolve(user_id)
    if isinstance(effective, AllPermissions):
        return EffectivePermissionsOut(user_id=user_id, all=True)
    return EffectivePermissionsOut(user_id=user_id, permissions=sorted(effective))


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    body: ChangePasswordRequest,
    user_id: int = Depends(get_current_user_id),
    users: UserService = Depends(get_user_service),
    context: AuditContext = Depends(get_audit_context),
):
    """Change the current user's password."""
    users.change_password(
        user_id, body.current_password, body.new_password, body.confirm_password, context
    )
    return MessageResponse(message="Password changed")
