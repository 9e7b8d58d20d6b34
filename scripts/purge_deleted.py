"""
Permanently delete admins and roles whose soft-delete retention has expired.

Meant to be run periodically (e.g. daily from cron).

Usage:
    uv run python -m scripts.purge_deleted
"""
import asyncio

from app.core.database.engine import AsyncSessionLocal
from app.features.admins.service import purge_deleted_admins
from app.features.roles.service import purge_deleted_roles
from app.utils import get_logger


log = get_logger(__name__)


async def purge() -> None:
    async with AsyncSessionLocal() as db:
        # Admins first so their roles become unreferenced
        admins = await purge_deleted_admins(db)
        roles = await purge_deleted_roles(db)
    log.info(f"Purge finished: {admins} admins, {roles} roles")


if __name__ == "__main__":
    asyncio.run(purge())
