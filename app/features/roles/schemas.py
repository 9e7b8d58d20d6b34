"""
Pydantic schemas for role management.
"""
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class PermissionGrant(BaseModel):
    """Actions a role may perform on one resource."""
    resource: str = Field(..., min_length=1, max_length=100, description="Resource id (e.g., 'posts')")
    actions: List[str] = Field(default_factory=list, description="Action ids (e.g., ['view', 'edit'])")

    model_config = ConfigDict(from_attributes=True)


class RoleBase(BaseModel):
    """Base role schema."""
    name: str = Field(..., min_length=1, max_length=100, description="Unique role name")
    description: str = Field("", max_length=1000, description="Role description")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Role name must not be blank")
        return v


class RoleCreate(RoleBase):
    """Schema for creating a new role."""
    permissions: List[PermissionGrant] = Field(default_factory=list)
    is_active: bool = True


class RoleUpdate(BaseModel):
    """
    Schema for updating a role.

    Omitted fields are left unchanged. When `version` is sent, the update is
    rejected if the role changed since that version was read.
    """
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    permissions: Optional[List[PermissionGrant]] = None
    is_active: Optional[bool] = None
    version: Optional[int] = Field(None, ge=1, description="Version the client last read")


class RoleResponse(RoleBase):
    """Schema for role response."""
    id: str
    permissions: List[PermissionGrant] = []
    is_active: bool
    is_default: bool
    version: int
    created_by_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RoleSummary(BaseModel):
    """Minimal role info embedded in admin responses."""
    id: str
    name: str
    is_active: bool
    is_default: bool

    model_config = ConfigDict(from_attributes=True)


class ResourceAccess(BaseModel):
    """One row of the permission matrix."""
    resource: str
    name: str
    actions: List[str]
    total_actions: int
    summary: str


class RoleMatrixResponse(BaseModel):
    """Schema for a role's permission matrix."""
    role_id: str
    role_name: str
    resources: List[ResourceAccess]
