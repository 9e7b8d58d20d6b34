"""Shared pytest fixtures for the permission engine tests."""

import os
import tempfile
from collections.abc import AsyncIterator
from datetime import datetime, timedelta, timezone
from typing import Any

# Configure before any app module reads the environment
_db_dir = tempfile.mkdtemp(prefix="permission-engine-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["SEED_DEFAULT_ROLES"] = "0"
os.environ["RESET_PASSWORD_RATE_LIMIT"] = "1000/minute"

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.base import Base
from app.core.database.engine import AsyncSessionLocal, engine, import_models
from app.features.admins.models import Admin
from app.features.admins.service import create_admin
from app.features.roles.models import Role
from app.features.roles.service import seed_default_roles


TEST_PASSWORD = "correct-horse"


@pytest_asyncio.fixture(autouse=True)
async def _reset_schema() -> AsyncIterator[None]:
    """Give every test an empty schema."""
    import_models()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture()
async def db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture()
async def default_roles(db: AsyncSession) -> dict[str, Role]:
    """Seeded default roles keyed by name."""
    roles = await seed_default_roles(db)
    return {role.name: role for role in roles}


@pytest_asyncio.fixture()
async def make_admin(db: AsyncSession):
    """Factory creating admins with a given role."""
    counter = {"n": 0}

    async def _make(role: Role, name: str | None = None, email: str | None = None) -> Admin:
        counter["n"] += 1
        n = counter["n"]
        return await create_admin(
            db,
            name=name or f"Admin {n}",
            email=email or f"admin{n}@example.com",
            password=TEST_PASSWORD,
            role_id=role.id,
        )

    return _make


@pytest_asyncio.fixture()
async def super_admin(make_admin, default_roles: dict[str, Role]) -> Admin:
    return await make_admin(default_roles["Super Admin"], name="Super Administrator", email="superadmin@example.com")


@pytest_asyncio.fixture()
async def viewer(make_admin, default_roles: dict[str, Role]) -> Admin:
    return await make_admin(default_roles["Viewer"], name="Vera Viewer", email="viewer@example.com")


def make_token(admin: Admin, **overrides: Any) -> str:
    claims = {
        "sub": admin.id,
        "ver": admin.token_version,
        "exp": datetime.now(timezone.utc) + timedelta(hours=1),
    }
    claims.update(overrides)
    return jwt.encode(claims, "test-secret", algorithm="HS256")


def auth_headers(admin: Admin, **overrides: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(admin, **overrides)}"}


@pytest_asyncio.fixture()
async def client() -> AsyncIterator[AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI app."""
    from app.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest.fixture()
def fresh_session():
    """Open a new session, e.g. to read state written by an API call."""
    return AsyncSessionLocal


@pytest.fixture()
def headers_for():
    """Bearer headers for an admin; keyword overrides replace token claims."""
    return auth_headers
