"""
Route protection built on the authorization decision.

Every admin-initiated mutation in the system is gated through
require_permission; a False decision becomes HTTP 403.
"""
from typing import List
from fastapi import Depends, HTTPException, status

from app.features.admins.dependencies import get_current_admin
from app.features.admins.models import Admin
from app.features.permissions.decisions import authorize
from app.utils import get_logger


log = get_logger(__name__)


def require_permission(resource: str, action: str):
    """
    FastAPI dependency to require a specific permission.

    Usage:
        @router.post("/posts")
        async def create_post(
            admin: Admin = Depends(require_permission("posts", "create"))
        ):
            # Admin's role grants create on posts
            pass

    Returns:
        Dependency function that returns the current admin if authorized

    Raises:
        HTTPException: 403 if the admin's role does not grant the action
    """
    async def permission_dependency(
        current_admin: Admin = Depends(get_current_admin)
    ) -> Admin:
        if not authorize(current_admin, resource, action):
            log.debug(f"Admin {current_admin.id} denied {action} on {resource}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required permission: {action} {resource}"
            )
        return current_admin

    return permission_dependency


def require_any_permission(permissions: List[tuple[str, str]]):
    """
    FastAPI dependency to require ANY of the specified permissions.

    Usage:
        @router.get("/reports")
        async def get_reports(
            admin: Admin = Depends(require_any_permission([("users", "export"), ("posts", "export")]))
        ):
            pass
    """
    async def permission_dependency(
        current_admin: Admin = Depends(get_current_admin)
    ) -> Admin:
        for resource, action in permissions:
            if authorize(current_admin, resource, action):
                return current_admin

        log.debug(f"Admin {current_admin.id} denied all of {permissions}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Requires one of {permissions}"
        )

    return permission_dependency
