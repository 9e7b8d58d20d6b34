"""
Permission catalog and permission check routes.
"""
from fastapi import APIRouter, Depends

from app.features.admins.dependencies import get_current_admin
from app.features.admins.models import Admin
from app.features.permissions import catalog
from app.features.permissions.decisions import authorize
from app.features.permissions.dependencies import require_any_permission
from app.features.permissions.schemas import (
    PermissionStructureResponse,
    PermissionCheckRequest,
    PermissionCheckResponse,
)


router = APIRouter()


@router.get("/structure", response_model=PermissionStructureResponse)
async def get_permission_structure(
    current_admin: Admin = Depends(
        require_any_permission([("roles", "view"), ("roles", "create"), ("roles", "edit")])
    )
):
    """Available resources and actions, used to render the role form."""
    return catalog.as_structure()


@router.post("/check", response_model=PermissionCheckResponse)
async def check_permission(
    check: PermissionCheckRequest,
    current_admin: Admin = Depends(get_current_admin)
):
    """Check whether the current admin may perform an action on a resource."""
    allowed = authorize(current_admin, check.resource, check.action)

    reason = None
    if not allowed:
        if not current_admin.role.is_active:
            reason = "Role is inactive"
        else:
            reason = f"Role '{current_admin.role.name}' does not grant {check.action} on {check.resource}"

    return PermissionCheckResponse(has_permission=allowed, reason=reason)
