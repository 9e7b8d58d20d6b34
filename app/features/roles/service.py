"""
Role registry: CRUD over roles and the rules that guard it.

Functions take an AsyncSession and raise app.core.errors.DomainError
subclasses; routes translate those into HTTP responses.
"""
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.retention import purge_expired
from app.core.errors import (
    DuplicateNameError,
    NotFoundError,
    PrivilegeEscalationError,
    ProtectedRoleError,
    RoleInUseError,
    StaleWriteError,
    ValidationError,
)
from app.features.permissions import catalog
from app.features.permissions.decisions import grant_pairs, unheld_grants
from app.features.roles.models import Role
from app.utils import get_logger

if TYPE_CHECKING:
    from app.features.admins.models import Admin


log = get_logger(__name__)


SUPER_ADMIN = "Super Admin"

DEFAULT_ROLES: List[Dict[str, Any]] = [
    {
        "name": SUPER_ADMIN,
        "description": "Full access to all features and admin management",
        "permissions": "ALL",  # Special case - gets every catalog grant
    },
    {
        "name": "User Manager",
        "description": "Manage users and their data",
        "permissions": [
            {"resource": "users", "actions": ["view", "create", "edit", "delete", "export"]},
            {"resource": "posts", "actions": ["view"]},
            {"resource": "events", "actions": ["view"]},
        ],
    },
    {
        "name": "Content Moderator",
        "description": "Manage posts and content",
        "permissions": [
            {"resource": "users", "actions": ["view"]},
            {"resource": "posts", "actions": ["view", "edit", "delete"]},
            {"resource": "events", "actions": ["view", "edit", "delete"]},
        ],
    },
    {
        "name": "Viewer",
        "description": "View-only access to all data",
        "permissions": [
            {"resource": "users", "actions": ["view"]},
            {"resource": "posts", "actions": ["view"]},
            {"resource": "events", "actions": ["view"]},
        ],
    },
]


def _actor(acting_admin: Optional["Admin"]) -> Optional[str]:
    return acting_admin.id if acting_admin is not None else None


def _ensure_grantable(acting_admin: Optional["Admin"], grants: Iterable[Any]) -> None:
    """An admin can only hand out permissions their own role grants them."""
    if acting_admin is None:
        return
    unheld = unheld_grants(acting_admin, grants)
    if unheld:
        missing = ", ".join(f"{action} {resource}" for resource, action in unheld)
        raise PrivilegeEscalationError(
            f"Cannot grant permissions you do not hold: {missing}",
            field="permissions",
        )


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Role name is required", field="name")
    return name.strip()


async def _ensure_unique_name(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    stmt = select(Role.id).where(Role.name == name, Role.deleted_at.is_(None))
    if exclude_id:
        stmt = stmt.where(Role.id != exclude_id)
    result = await db.execute(stmt)
    if result.first() is not None:
        raise DuplicateNameError("Role with this name already exists", field="name")


async def count_admins_with_role(db: AsyncSession, role_id: str) -> int:
    from app.features.admins.models import Admin

    result = await db.execute(
        select(func.count(Admin.id)).where(Admin.role_id == role_id, Admin.deleted_at.is_(None))
    )
    return result.scalar_one()


async def get_role(db: AsyncSession, role_id: str) -> Role:
    """Get a non-deleted role by id."""
    result = await db.execute(
        select(Role).where(Role.id == role_id, Role.deleted_at.is_(None))
    )
    role = result.scalar_one_or_none()
    if role is None:
        raise NotFoundError("Role not found")
    return role


async def get_role_by_name(db: AsyncSession, name: str) -> Optional[Role]:
    result = await db.execute(
        select(Role).where(Role.name == name, Role.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def list_roles(db: AsyncSession, skip: int = 0, limit: Optional[int] = None) -> List[Role]:
    """Non-deleted roles in creation order (ties broken by id)."""
    stmt = (
        select(Role)
        .where(Role.deleted_at.is_(None))
        .order_by(Role.created_at.asc(), Role.id.asc())
        .offset(skip)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_role(
    db: AsyncSession,
    name: str,
    description: str = "",
    grants: Iterable[Any] = (),
    is_active: bool = True,
    acting_admin: Optional["Admin"] = None,
) -> Role:
    """
    Create a non-default role.

    `acting_admin` is recorded as the creator; None means a system action
    (seeding, scripts) and skips the grant ceiling check.

    Raises:
        ValidationError: blank name
        DuplicateNameError: name already used by a non-deleted role
        InvalidGrantError: grant outside the catalog
        PrivilegeEscalationError: grant the acting admin does not hold
    """
    name = _clean_name(name)
    permissions = catalog.normalize_grants(grants)
    _ensure_grantable(acting_admin, permissions)
    await _ensure_unique_name(db, name)
    created_by_id = _actor(acting_admin)

    role = Role(
        name=name,
        description=description or "",
        permissions=permissions,
        is_active=is_active,
        is_default=False,
        created_by_id=created_by_id,
    )
    db.add(role)
    await db.commit()
    await db.refresh(role)

    log.info(f"Audit: admin={created_by_id} action=create resource=role:{role.id} name={role.name!r}")
    return role


async def update_role(
    db: AsyncSession,
    role_id: str,
    patch: Dict[str, Any],
    acting_admin: Optional["Admin"] = None,
) -> Role:
    """
    Apply a partial update to a role.

    `patch` may contain name, description, permissions, is_active and version.
    A patch that changes nothing is accepted as-is, whatever version it carries,
    so replaying the same update is harmless.

    Grants added by the patch must be held by `acting_admin`; reactivating a
    role counts as granting all of its permissions again.

    Raises:
        NotFoundError: unknown role
        ValidationError: blank name
        DuplicateNameError: new name already used
        InvalidGrantError: grant outside the catalog
        ProtectedRoleError: renaming or deactivating a default role
        StaleWriteError: version does not match and the patch changes the role
        PrivilegeEscalationError: added grant the acting admin does not hold
    """
    role = await get_role(db, role_id)

    changes: Dict[str, Any] = {}
    if patch.get("name") is not None:
        name = _clean_name(patch["name"])
        if name != role.name:
            changes["name"] = name
    if patch.get("description") is not None and patch["description"] != role.description:
        changes["description"] = patch["description"]
    if patch.get("permissions") is not None:
        permissions = catalog.normalize_grants(patch["permissions"])
        if permissions != role.permissions:
            changes["permissions"] = permissions
    if patch.get("is_active") is not None and bool(patch["is_active"]) != role.is_active:
        changes["is_active"] = bool(patch["is_active"])

    if not changes:
        return role

    expected_version = patch.get("version")
    if expected_version is not None and expected_version != role.version:
        raise StaleWriteError(
            f"Role was modified (version {role.version}, expected {expected_version})",
            field="version",
        )

    if role.is_default and ("name" in changes or changes.get("is_active") is False):
        raise ProtectedRoleError("Default roles cannot be renamed or deactivated")

    if changes.get("is_active") is True:
        _ensure_grantable(acting_admin, changes.get("permissions", role.permissions))
    elif "permissions" in changes:
        added = grant_pairs(changes["permissions"]) - grant_pairs(role.permissions)
        _ensure_grantable(acting_admin, [{"resource": r, "actions": [a]} for r, a in added])

    if "name" in changes:
        await _ensure_unique_name(db, changes["name"], exclude_id=role.id)

    for key, value in changes.items():
        setattr(role, key, value)
    role.version += 1

    await db.commit()
    await db.refresh(role)

    log.info(f"Audit: admin={_actor(acting_admin)} action=update resource=role:{role.id} fields={sorted(changes)} version={role.version}")
    return role


async def delete_role(
    db: AsyncSession,
    role_id: str,
    now: Optional[datetime] = None,
    acting_admin: Optional["Admin"] = None,
) -> Role:
    """
    Soft-delete a role.

    Raises:
        NotFoundError: unknown role
        ProtectedRoleError: default role
        RoleInUseError: role assigned to at least one admin
    """
    role = await get_role(db, role_id)

    if role.is_default:
        raise ProtectedRoleError("Cannot delete default roles.")

    admin_count = await count_admins_with_role(db, role.id)
    if admin_count > 0:
        raise RoleInUseError(f"Cannot delete role. It is assigned to {admin_count} admin(s).")

    role.mark_deleted(config.SOFT_DELETE_RETENTION_DAYS, now)
    await db.commit()
    await db.refresh(role)

    log.info(f"Audit: admin={_actor(acting_admin)} action=delete resource=role:{role.id} purge_at={role.purge_at}")
    return role


async def seed_default_roles(db: AsyncSession) -> List[Role]:
    """
    Create the default roles that do not exist yet.

    Idempotent: existing default roles are left untouched, so edits made
    through the API survive restarts. A custom role that already carries a
    default name is adopted as that default role (the Super Admin one also
    regains every catalog grant).
    """
    roles = []
    for definition in DEFAULT_ROLES:
        role = await get_role_by_name(db, definition["name"])
        if role is None:
            grants = definition["permissions"]
            role = Role(
                name=definition["name"],
                description=definition["description"],
                permissions=catalog.all_grants() if grants == "ALL" else catalog.normalize_grants(grants),
                is_active=True,
                is_default=True,
            )
            db.add(role)
            await db.flush()
            log.info(f"Created default role: {role.name}")
        elif not role.is_default:
            log.warning(f"Adopting existing role {role.name!r} ({role.id}) as a default role")
            role.is_default = True
            role.is_active = True
            if definition["permissions"] == "ALL":
                role.permissions = catalog.all_grants()
            role.version += 1
        else:
            log.debug(f"Default role already exists: {role.name}")
        roles.append(role)

    await db.commit()
    for role in roles:
        await db.refresh(role)
    return roles


async def purge_deleted_roles(db: AsyncSession, now: Optional[datetime] = None) -> int:
    """Hard-delete expired soft-deleted roles no admin row references anymore."""
    from app.features.admins.models import Admin

    still_referenced = select(Admin.role_id)
    return await purge_expired(db, Role, now, Role.id.not_in(still_referenced))
