"""
Admin account management and account-level guards.

The acting admin is always passed in explicitly; nothing here reads the
current request.
"""
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.retention import purge_expired
from app.core.errors import (
    DuplicateNameError,
    NotFoundError,
    PrivilegeEscalationError,
    SelfProtectionError,
    ValidationError,
    WeakCredentialError,
)
from app.features.admins.auth import hash_password
from app.features.admins.models import Admin
from app.features.permissions.decisions import unheld_grants
from app.features.roles import service as role_service
from app.features.roles.models import Role
from app.utils import get_logger


log = get_logger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def check_credential_strength(credential: Optional[str]) -> None:
    if credential is None or len(credential) < config.MIN_PASSWORD_LENGTH:
        raise WeakCredentialError(
            f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters",
            field="password",
        )


def can_delete(acting_admin_id: str, target_admin_id: str) -> bool:
    """An admin can never delete their own account."""
    return acting_admin_id != target_admin_id


async def _ensure_unique_email(db: AsyncSession, email: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Admin.id).where(Admin.email == email, Admin.deleted_at.is_(None))
    if exclude_id:
        stmt = stmt.where(Admin.id != exclude_id)
    result = await db.execute(stmt)
    if result.first() is not None:
        raise DuplicateNameError("Admin with this email already exists", field="email")


def _actor(acting_admin: Optional[Admin]) -> Optional[str]:
    return acting_admin.id if acting_admin is not None else None


def _ensure_assignable(acting_admin: Optional[Admin], role: Role) -> None:
    """An admin can only hand out a role whose grants they hold themselves."""
    if acting_admin is None:
        return
    if unheld_grants(acting_admin, role.permissions):
        raise PrivilegeEscalationError(
            f"Cannot assign role '{role.name}': it grants permissions you do not hold",
            field="role_id",
        )


def _ensure_outranks(acting_admin: Optional[Admin], target: Admin) -> None:
    """Managing another admin requires holding every grant of their role."""
    if acting_admin is None or acting_admin.id == target.id:
        return
    role = target.role
    if role is None or not role.is_active:
        return
    if unheld_grants(acting_admin, role.permissions):
        raise PrivilegeEscalationError(
            "Cannot manage an admin whose role grants permissions you do not hold"
        )


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def _resolve_role(db: AsyncSession, role_id: str) -> Role:
    try:
        return await role_service.get_role(db, role_id)
    except NotFoundError:
        raise ValidationError("Invalid role", field="role_id") from None


async def get_admin(db: AsyncSession, admin_id: str) -> Admin:
    result = await db.execute(
        select(Admin).where(Admin.id == admin_id, Admin.deleted_at.is_(None))
    )
    admin = result.scalar_one_or_none()
    if admin is None:
        raise NotFoundError("Admin not found")
    return admin


async def list_admins(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    search: str = "",
) -> Tuple[List[Admin], int]:
    """
    Page through non-deleted admins, newest first.

    `search` matches name or email, case-insensitively. LIKE wildcards in it
    are matched literally.
    """
    conditions = [Admin.deleted_at.is_(None)]
    if search:
        pattern = f"%{_escape_like(search.lower())}%"
        conditions.append(or_(
            func.lower(Admin.name).like(pattern, escape="\\"),
            Admin.email.like(pattern, escape="\\"),
        ))

    total_result = await db.execute(select(func.count(Admin.id)).where(*conditions))
    total = total_result.scalar_one()

    result = await db.execute(
        select(Admin)
        .where(*conditions)
        .order_by(Admin.created_at.desc(), Admin.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return list(result.scalars().all()), total


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


async def create_admin(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    role_id: str,
    acting_admin: Optional[Admin] = None,
) -> Admin:
    """
    Create an admin account.

    `acting_admin` None means a system action (seed script).

    Raises:
        ValidationError: blank name or unknown role
        WeakCredentialError: password too short
        DuplicateNameError: email already used
        PrivilegeEscalationError: role grants more than the acting admin holds
    """
    if not name or not name.strip():
        raise ValidationError("Name is required", field="name")
    check_credential_strength(password)
    email = _normalize_email(email)
    await _ensure_unique_email(db, email)
    role = await _resolve_role(db, role_id)
    _ensure_assignable(acting_admin, role)

    admin = Admin(
        name=name.strip(),
        email=email,
        password_hash=hash_password(password),
        role_id=role.id,
        is_active=True,
    )
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    await db.refresh(admin, attribute_names=["role"])

    log.info(f"Audit: admin={_actor(acting_admin)} action=create resource=admin:{admin.id} role={role.name!r}")
    return admin


async def update_admin(
    db: AsyncSession,
    acting_admin: Optional[Admin],
    admin_id: str,
    patch: Dict[str, Any],
) -> Admin:
    """
    Update name, email, role or active flag of an admin.

    Raises:
        NotFoundError: unknown admin
        SelfProtectionError: acting admin deactivating themself or changing their own role
        PrivilegeEscalationError: target or new role outranks the acting admin
        DuplicateNameError: email already used
        ValidationError: unknown role
    """
    admin = await get_admin(db, admin_id)
    is_self = acting_admin is not None and acting_admin.id == admin.id

    if patch.get("is_active") is False and is_self:
        raise SelfProtectionError("Cannot deactivate your own account")
    _ensure_outranks(acting_admin, admin)

    role = None
    if patch.get("role_id") is not None:
        role = await _resolve_role(db, patch["role_id"])
        if role.id != admin.role_id:
            if is_self:
                raise SelfProtectionError("Cannot change your own role", field="role_id")
            _ensure_assignable(acting_admin, role)

    if patch.get("name") is not None:
        if not patch["name"].strip():
            raise ValidationError("Name is required", field="name")
        admin.name = patch["name"].strip()
    if patch.get("email") is not None:
        email = _normalize_email(patch["email"])
        if email != admin.email:
            await _ensure_unique_email(db, email, exclude_id=admin.id)
            admin.email = email
    if role is not None:
        admin.role_id = role.id
    if patch.get("is_active") is not None:
        admin.is_active = bool(patch["is_active"])

    await db.commit()
    await db.refresh(admin)
    # Reload the role relationship after a reassignment
    await db.refresh(admin, attribute_names=["role"])

    log.info(f"Audit: admin={_actor(acting_admin)} action=update resource=admin:{admin.id} fields={sorted(patch)}")
    return admin


async def delete_admin(
    db: AsyncSession,
    acting_admin: Optional[Admin],
    admin_id: str,
    now: Optional[datetime] = None,
) -> Admin:
    """
    Soft-delete an admin account.

    Raises:
        SelfProtectionError: acting admin deleting their own account
        NotFoundError: unknown admin
        PrivilegeEscalationError: target outranks the acting admin
    """
    if acting_admin is not None and not can_delete(acting_admin.id, admin_id):
        raise SelfProtectionError("Cannot delete your own account")

    admin = await get_admin(db, admin_id)
    _ensure_outranks(acting_admin, admin)

    admin.mark_deleted(config.SOFT_DELETE_RETENTION_DAYS, now)
    admin.is_active = False
    await db.commit()
    await db.refresh(admin)

    log.info(f"Audit: admin={_actor(acting_admin)} action=delete resource=admin:{admin.id} purge_at={admin.purge_at}")
    return admin


async def reset_password(
    db: AsyncSession,
    admin_id: str,
    new_credential: str,
    acting_admin: Optional[Admin] = None,
) -> Admin:
    """
    Replace an admin's credential and invalidate their existing sessions.

    Raises:
        WeakCredentialError: credential shorter than MIN_PASSWORD_LENGTH
        NotFoundError: unknown admin
        PrivilegeEscalationError: target outranks the acting admin
    """
    check_credential_strength(new_credential)
    admin = await get_admin(db, admin_id)
    _ensure_outranks(acting_admin, admin)

    admin.password_hash = hash_password(new_credential)
    admin.token_version += 1
    await db.commit()
    await db.refresh(admin)

    log.info(f"Audit: admin={_actor(acting_admin)} action=reset_password resource=admin:{admin.id}")
    return admin


async def purge_deleted_admins(db: AsyncSession, now: Optional[datetime] = None) -> int:
    return await purge_expired(db, Admin, now)
