"""
Role management API routes.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.admins.models import Admin
from app.features.permissions.decisions import permission_matrix
from app.features.permissions.dependencies import require_permission
from app.features.roles import service
from app.features.roles.schemas import (
    RoleCreate,
    RoleUpdate,
    RoleResponse,
    RoleMatrixResponse,
)


router = APIRouter()


@router.get("", response_model=List[RoleResponse])
async def list_roles(
    skip: int = 0,
    limit: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "view"))
):
    """List all roles in creation order."""
    return await service.list_roles(db, skip=skip, limit=limit)


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    role: RoleCreate,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "create"))
):
    """Create a new role."""
    return await service.create_role(
        db,
        name=role.name,
        description=role.description,
        grants=role.permissions,
        is_active=role.is_active,
        acting_admin=current_admin,
    )


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "view"))
):
    """Get a specific role by ID."""
    return await service.get_role(db, role_id)


@router.get("/{role_id}/matrix", response_model=RoleMatrixResponse)
async def get_role_matrix(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "view"))
):
    """Per-resource access summary of a role."""
    role = await service.get_role(db, role_id)
    return RoleMatrixResponse(
        role_id=role.id,
        role_name=role.name,
        resources=permission_matrix(role),
    )


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_update: RoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "edit"))
):
    """Update a role. Send `version` to reject concurrent edits."""
    return await service.update_role(
        db, role_id, role_update.model_dump(exclude_unset=True), acting_admin=current_admin
    )


@router.delete("/{role_id}")
async def delete_role(
    role_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: Admin = Depends(require_permission("roles", "delete"))
):
    """Delete a role. Default roles and roles still assigned to admins are refused."""
    role = await service.delete_role(db, role_id, acting_admin=current_admin)
    return {"message": "Role deleted successfully", "purge_at": role.purge_at}
