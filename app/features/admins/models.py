"""
Admin account model with ULID primary keys.
"""
from datetime import datetime
from sqlalchemy import String, Boolean, Integer, ForeignKey, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database.base import Base, TimestampMixin, SoftDeleteMixin, generate_ulid
from app.features.roles.models import Role


class Admin(Base, TimestampMixin, SoftDeleteMixin):
    """
    Back-office admin account.

    Every admin holds exactly one role. Email uniqueness is enforced among
    non-deleted admins by the service layer.
    """
    __tablename__ = "admins"

    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role_id: Mapped[str] = mapped_column(
        String(26),
        ForeignKey("roles.id"),
        nullable=False,
        index=True
    )

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Bumped on credential reset; tokens carrying an older value are rejected
    token_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    role: Mapped[Role] = relationship(
        Role,
        foreign_keys=[role_id],
        lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Admin(id={self.id}, email={self.email!r})>"
