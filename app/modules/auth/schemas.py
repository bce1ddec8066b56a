from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum

from app.common.validators import IsoTimestamp


class UserRole(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    STAFF = "staff"


class InvitableRole(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"


def _validate_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError('La contraseña debe tener al menos 8 caracteres')
    return v


# User schemas
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    username: str = Field(..., min_length=2, max_length=100)
    organization_name: str = Field(..., min_length=2, max_length=200)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _validate_password(v)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserOut(BaseModel):
    id: UUID
    email: EmailStr
    username: str
    is_active: bool
    onboarding_completed: bool
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    username: str = Field(..., min_length=2, max_length=100)

    @field_validator('username')
    @classmethod
    def strip_username(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError('El nombre de usuario debe tener al menos 2 caracteres')
        return v


class MembershipOut(BaseModel):
    id: UUID
    tenant_id: UUID
    role: UserRole
    is_active: bool
    joined_at: datetime
    organization_name: str

    class Config:
        from_attributes = True


# Token schemas
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
    memberships: List[MembershipOut] = []
    active_tenant_id: Optional[UUID] = None
    refresh_token: Optional[str] = None


class ContextTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    tenant_id: UUID
    organization_name: str
    user_role: UserRole


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class OrganizationSelectionRequest(BaseModel):
    tenant_id: UUID


# Password reset
class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str
    new_password: str = Field(..., min_length=8)

    @field_validator('new_password')
    @classmethod
    def validate_password(cls, v):
        return _validate_password(v)


# Tenant members
class TenantUserOut(BaseModel):
    user_id: UUID
    email: str
    username: str
    role: UserRole
    joined_at: IsoTimestamp


class TenantUsersResponse(BaseModel):
    items: List[TenantUserOut]
    total: int


class RoleUpdate(BaseModel):
    role: UserRole


# Invitations
class InvitationCreate(BaseModel):
    email: EmailStr
    role: InvitableRole = InvitableRole.STAFF


class InvitationCreated(BaseModel):
    id: UUID
    email: str
    role: InvitableRole
    link: str


class InvitationOut(BaseModel):
    id: UUID
    email: str
    role: str
    status: str
    created_at: IsoTimestamp

    class Config:
        from_attributes = True


class InvitationDetails(BaseModel):
    email: str
    role: UserRole = UserRole.STAFF
    organization_name: str


class InvitationAccept(BaseModel):
    token: str
    username: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=8)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _validate_password(v)


# Route access policy
class RouteAccessDecision(BaseModel):
    path: str
    allowed: bool
    redirect_to: Optional[str] = None


# Auth context schemas
class AuthContext(BaseModel):
    user_id: UUID
    username: str = ""
    tenant_id: Optional[UUID] = None
    user_role: Optional[UserRole] = None
    memberships: List[MembershipOut] = []
