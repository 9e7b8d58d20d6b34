"""
Pydantic schemas for the permission catalog and permission checks.
"""
from typing import List, Optional
from pydantic import BaseModel, Field


class ActionResponse(BaseModel):
    id: str
    name: str
    description: str


class ResourceResponse(BaseModel):
    id: str
    name: str
    description: str
    actions: List[ActionResponse]


class PermissionStructureResponse(BaseModel):
    """The full resource x action catalog, for rendering role forms."""
    resources: List[ResourceResponse]


class PermissionCheckRequest(BaseModel):
    """Schema for checking if the current admin has a permission."""
    resource: str = Field(..., description="Resource id")
    action: str = Field(..., description="Action id")


class PermissionCheckResponse(BaseModel):
    """Schema for permission check response."""
    has_permission: bool
    reason: Optional[str] = None
