"""
FastAPI dependencies for admin authentication.
"""
from typing import Annotated
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.base import utcnow
from app.core.database.engine import get_db
from app.features.admins.models import Admin
from app.features.admins.auth import verify_jwt_token


security = HTTPBearer()


async def get_current_admin(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Admin:
    """
    Get the current authenticated admin from the JWT token.

    This dependency:
    1. Extracts JWT from Authorization header
    2. Verifies the signature and expiry
    3. Loads the admin (with role) from the database
    4. Rejects tokens issued before the last credential reset
    5. Updates last_login_at timestamp

    Usage:
        @router.get("/me")
        async def get_me(admin: Admin = Depends(get_current_admin)):
            return admin
    """
    payload = verify_jwt_token(credentials.credentials)
    admin_id = payload.get("sub")

    result = await db.execute(
        select(Admin).where(Admin.id == admin_id, Admin.deleted_at.is_(None))
    )
    admin = result.scalar_one_or_none()

    if admin is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("ver") != admin.token_version:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is deactivated",
        )

    # Update last login time
    admin.last_login_at = utcnow()
    await db.commit()
    await db.refresh(admin)
    await db.refresh(admin, attribute_names=["role"])

    return admin


def get_authorization_header(request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"
