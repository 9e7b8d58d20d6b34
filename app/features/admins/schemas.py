"""
Pydantic schemas for admin account requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field, ConfigDict

from app.features.roles.schemas import RoleSummary, PermissionGrant


class AdminBase(BaseModel):
    """Base admin schema with common fields."""
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr


class AdminCreate(AdminBase):
    """Schema for creating a new admin."""
    password: str = Field(..., min_length=1, max_length=255)
    role_id: str = Field(..., min_length=1, description="Role assigned to the admin")


class AdminUpdate(BaseModel):
    """Schema for updating an admin. Passwords are changed via reset-password only."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    role_id: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class PasswordReset(BaseModel):
    """Schema for resetting another admin's password."""
    new_password: str = Field(..., max_length=255)


class AdminResponse(AdminBase):
    """Schema for admin responses."""
    id: str
    role_id: str
    role: Optional[RoleSummary] = None
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminProfile(AdminResponse):
    """The current admin, with the grants of their role."""
    permissions: List[PermissionGrant] = []


class AdminListResponse(BaseModel):
    """Schema for paginated admin list."""
    items: List[AdminResponse]
    total: int
    page: int
    page_size: int
    pages: int
