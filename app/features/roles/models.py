"""
Role model.

A role is a named bundle of permission grants. Grants are stored as a JSON
list of {"resource": ..., "actions": [...]} entries, validated against the
static catalog in app.features.permissions.catalog before they are written.
"""
from typing import Any, Dict, List
from sqlalchemy import String, Text, Boolean, Integer, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin, SoftDeleteMixin, generate_ulid


class Role(Base, TimestampMixin, SoftDeleteMixin):
    """
    Admin role.

    Name uniqueness is enforced among non-deleted roles by the service layer,
    so a soft-deleted role does not block reuse of its name.
    Default roles (e.g. Super Admin) are seeded by the system and cannot be deleted.
    """
    __tablename__ = "roles"

    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # [{"resource": "posts", "actions": ["view", "edit"]}, ...]
    permissions: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Incremented on every effective change; used to reject stale writes
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Admin id of the creator; null for seeded roles
    created_by_id: Mapped[str | None] = mapped_column(String(26), nullable=True)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name!r}, default={self.is_default})>"
