"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from datetime import datetime


# ---- Auth ----
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=4)

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[Dict[str, Any]] = None

class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None

class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
    confirm_password: str


# ---- User ----
class UserOut(BaseModel):
    id: int
    email: str
    full_name: Optional[str] = None
    role: str
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class UserCreateRequest(BaseModel):
    email: str = Field(..., min_length=4)
    password: str = Field(..., min_length=6)
    full_name: Optional[str] = None
    role: Literal["user", "admin"] = "user"

class UserUpdateRequest(BaseModel):
    full_name: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None
    is_active: Optional[bool] = None

class UserListResponse(BaseModel):
    users: List[UserOut]
    total: int
    page: int
    page_size: int


# ---- Permission ----
class PermissionCreate(BaseModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = None

class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = None

class PermissionOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True

class PermissionDefinitionOut(BaseModel):
    name: str
    description: str

class EffectivePermissionsOut(BaseModel):
    user_id: int
    all: bool = False
    permissions: List[str] = []


# ---- Audit ----
class AuditContext(BaseModel):
    """Who is acting, and from where; attached to every audited mutation."""
    actor_id: Optional[int] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

class AuditEntryCreate(BaseModel):
    """One entry handed to the audit recorder."""
    user_id: Optional[int] = None
    action: str
    resource: str
    resource_id: Optional[str] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool = True
    error: Optional[str] = None
    timestamp: Optional[datetime] = None

class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    resource_id: Optional[str] = None
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    success: bool
    error: Optional[str] = None
    timestamp: datetime

class AuditLogListResponse(BaseModel):
    logs: List[AuditLogOut]
    total: int
    page: int
    page_size: int

class TopAction(BaseModel):
    action: str
    count: int

class AuditStatsOut(BaseModel):
    total_actions: int
    counts_by_action: Dict[str, int]
    counts_by_resource: Dict[str, int]
    counts_by_user: Dict[str, int]
    success_rate: float
    error_rate: float
    top_actions: List[TopAction]
    recent_activity: List[AuditLogOut]

class AuditCleanupRequest(BaseModel):
    retention_days: Optional[int] = Field(None, ge=1)


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None
