"""
Seed script to populate the default roles and the first super admin.

Run this script after database initialization to create:
- Default system roles (Super Admin, User Manager, Content Moderator, Viewer)
- A Super Admin account, when SUPER_ADMIN_EMAIL and SUPER_ADMIN_PASSWORD are set

Usage:
    uv run python -m scripts.seed_roles
"""
import asyncio

from app.core import config
from app.core.database.engine import AsyncSessionLocal, init_db
from app.core.errors import DuplicateNameError
from app.features.admins.service import create_admin
from app.features.roles.service import SUPER_ADMIN, seed_default_roles
from app.utils import get_logger


log = get_logger(__name__)


async def seed() -> None:
    await init_db()

    async with AsyncSessionLocal() as db:
        roles = await seed_default_roles(db)
        log.info(f"{len(roles)} default roles present")

        if not (config.SUPER_ADMIN_EMAIL and config.SUPER_ADMIN_PASSWORD):
            log.warning("SUPER_ADMIN_EMAIL/SUPER_ADMIN_PASSWORD not set, skipping super admin")
            return

        super_admin_role = next(role for role in roles if role.name == SUPER_ADMIN)
        try:
            admin = await create_admin(
                db,
                name=config.SUPER_ADMIN_NAME,
                email=config.SUPER_ADMIN_EMAIL,
                password=config.SUPER_ADMIN_PASSWORD,
                role_id=super_admin_role.id,
            )
            log.info(f"Created super admin {admin.email}")
        except DuplicateNameError:
            log.info(f"Super admin {config.SUPER_ADMIN_EMAIL} already exists")


if __name__ == "__main__":
    asyncio.run(seed())
