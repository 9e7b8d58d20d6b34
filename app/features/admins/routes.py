"""
Admin account management routes.
"""
from typing import Annotated
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.core.rate_limit import limiter
from app.features.admins import service
from app.features.admins.dependencies import get_current_admin
from app.features.admins.models import Admin
from app.features.admins.schemas import (
    AdminCreate,
    AdminUpdate,
    AdminResponse,
    AdminProfile,
    AdminListResponse,
    PasswordReset,
)
from app.features.permissions.dependencies import require_permission


router = APIRouter(tags=["admins"])


@router.get("/me", response_model=AdminProfile)
async def get_current_admin_profile(
    admin: Annotated[Admin, Depends(get_current_admin)]
):
    """Current admin with the grants of their role."""
    grants = admin.role.permissions if admin.role.is_active else []
    return AdminProfile(**AdminResponse.model_validate(admin).model_dump(), permissions=grants)


@router.get("", response_model=AdminListResponse)
async def list_admins(
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "view"))],
    page: int = 1,
    limit: int = 10,
    search: str = "",
):
    """List admins, newest first, optionally filtered by name or email."""
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    items, total = await service.list_admins(db, page=page, limit=limit, search=search)
    return AdminListResponse(
        items=[AdminResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=limit,
        pages=service.page_count(total, limit),
    )


@router.post("", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def create_admin(
    data: AdminCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "create"))],
):
    """Create an admin account."""
    return await service.create_admin(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        role_id=data.role_id,
        acting_admin=admin,
    )


@router.get("/{admin_id}", response_model=AdminResponse)
async def get_admin(
    admin_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "view"))],
):
    """Get an admin by ID."""
    return await service.get_admin(db, admin_id)


@router.put("/{admin_id}", response_model=AdminResponse)
async def update_admin(
    admin_id: str,
    data: AdminUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "edit"))],
):
    """Update an admin's name, email, role or active flag."""
    return await service.update_admin(db, admin, admin_id, data.model_dump(exclude_unset=True))


@router.delete("/{admin_id}")
async def delete_admin(
    admin_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "delete"))],
):
    """Delete an admin account (an admin cannot delete themself)."""
    deleted = await service.delete_admin(db, admin, admin_id)
    return {"message": "Admin deleted successfully", "purge_at": deleted.purge_at}


@router.post("/{admin_id}/reset-password")
@limiter.limit(config.RESET_PASSWORD_RATE_LIMIT)
async def reset_admin_password(
    request: Request,
    admin_id: str,
    data: PasswordReset,
    db: Annotated[AsyncSession, Depends(get_db)],
    admin: Annotated[Admin, Depends(require_permission("admins", "manage"))],
):
    """Reset another admin's password and revoke their sessions."""
    await service.reset_password(db, admin_id, data.new_password, acting_admin=admin)
    return {"message": "Password reset successfully"}
