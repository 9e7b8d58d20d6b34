"""
Hard purge of soft-deleted rows whose retention window has passed.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.base import utcnow
from app.utils import get_logger


log = get_logger(__name__)


async def purge_expired(
    db: AsyncSession,
    model: Any,
    now: datetime | None = None,
    *criteria: Any,
) -> int:
    """
    Permanently delete rows of `model` whose purge_at is in the past.

    `model` must use SoftDeleteMixin. Extra SQLAlchemy `criteria` narrow the
    rows further, e.g. to skip rows that are still referenced.

    Returns:
        Number of purged rows
    """
    now = now or utcnow()
    stmt = select(model.id).where(
        model.deleted_at.is_not(None),
        model.purge_at.is_not(None),
        model.purge_at <= now,
        *criteria,
    )
    result = await db.execute(stmt)
    ids = list(result.scalars().all())

    if not ids:
        log.debug(f"No {model.__tablename__} rows eligible for purge")
        return 0

    await db.execute(delete(model).where(model.id.in_(ids)))
    await db.commit()

    log.info(f"Purged {len(ids)} {model.__tablename__} rows soft-deleted before {now.isoformat()}")
    return len(ids)
