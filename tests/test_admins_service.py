from datetime import timedelta

import pytest
from sqlalchemy import select

from app.core.database.base import utcnow
from app.core.errors import (
    DuplicateNameError,
    NotFoundError,
    PrivilegeEscalationError,
    SelfProtectionError,
    ValidationError,
    WeakCredentialError,
)
from app.features.admins import service
from app.features.admins.auth import verify_password
from app.features.admins.models import Admin
from app.features.roles import service as role_service

TEST_PASSWORD = "correct-horse"


def test_can_delete_other_but_not_self() -> None:
    assert service.can_delete("a", "b") is True
    assert service.can_delete("a", "a") is False


@pytest.mark.asyncio
async def test_create_admin_normalizes_email(db, default_roles) -> None:
    admin = await service.create_admin(
        db,
        name="  Grace  ",
        email="  Grace@Example.COM ",
        password=TEST_PASSWORD,
        role_id=default_roles["Viewer"].id,
    )

    assert admin.email == "grace@example.com"
    assert admin.name == "Grace"
    assert admin.role.name == "Viewer"
    assert admin.token_version == 1
    assert admin.password_hash != TEST_PASSWORD
    assert verify_password(TEST_PASSWORD, admin.password_hash)


@pytest.mark.asyncio
async def test_create_admin_duplicate_email_ignores_case(db, default_roles, make_admin) -> None:
    await make_admin(default_roles["Viewer"], email="dup@example.com")

    with pytest.raises(DuplicateNameError):
        await make_admin(default_roles["Viewer"], email="DUP@example.com")


@pytest.mark.asyncio
async def test_create_admin_unknown_role(db, default_roles) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await service.create_admin(db, "Grace", "grace@example.com", TEST_PASSWORD, "missing")

    assert exc_info.value.field == "role_id"


@pytest.mark.asyncio
async def test_create_admin_weak_password(db, default_roles) -> None:
    with pytest.raises(WeakCredentialError):
        await service.create_admin(db, "Grace", "grace@example.com", "abc", default_roles["Viewer"].id)

    assert (await db.execute(select(Admin))).first() is None


@pytest.mark.asyncio
async def test_reset_password_enforces_minimum_length(db, viewer) -> None:
    with pytest.raises(WeakCredentialError):
        await service.reset_password(db, viewer.id, "abc")

    admin = await service.reset_password(db, viewer.id, "abcdef")

    assert verify_password("abcdef", admin.password_hash)
    assert not verify_password(TEST_PASSWORD, admin.password_hash)
    assert admin.token_version == 2


@pytest.mark.asyncio
async def test_reset_password_unknown_admin(db) -> None:
    with pytest.raises(NotFoundError):
        await service.reset_password(db, "missing", "abcdef")


@pytest.mark.asyncio
async def test_update_admin_fields(db, default_roles, viewer) -> None:
    updated = await service.update_admin(db, None, viewer.id, {
        "name": "Vera V.",
        "email": "VERA@example.com",
        "role_id": default_roles["User Manager"].id,
    })

    assert updated.name == "Vera V."
    assert updated.email == "vera@example.com"
    assert updated.role.name == "User Manager"


@pytest.mark.asyncio
async def test_update_admin_email_taken(db, default_roles, make_admin, viewer) -> None:
    other = await make_admin(default_roles["Viewer"], email="other@example.com")

    with pytest.raises(DuplicateNameError):
        await service.update_admin(db, None, other.id, {"email": "Viewer@example.com"})


@pytest.mark.asyncio
async def test_admin_cannot_deactivate_self(db, viewer) -> None:
    with pytest.raises(SelfProtectionError):
        await service.update_admin(db, viewer, viewer.id, {"is_active": False})

    deactivated = await service.update_admin(db, None, viewer.id, {"is_active": False})
    assert deactivated.is_active is False


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(db, super_admin) -> None:
    with pytest.raises(SelfProtectionError) as exc_info:
        await service.delete_admin(db, super_admin, super_admin.id)

    assert str(exc_info.value) == "Cannot delete your own account"
    assert (await service.get_admin(db, super_admin.id)).is_active is True


@pytest.mark.asyncio
async def test_delete_admin_is_soft(db, super_admin, viewer) -> None:
    deleted = await service.delete_admin(db, super_admin, viewer.id)

    assert deleted.is_deleted
    assert deleted.is_active is False
    assert deleted.purge_at - deleted.deleted_at == timedelta(days=90)
    with pytest.raises(NotFoundError):
        await service.get_admin(db, viewer.id)
    # The address becomes available again
    replacement = await service.create_admin(db, "Vera", "viewer@example.com", TEST_PASSWORD, viewer.role_id)
    assert replacement.id != viewer.id


@pytest.mark.asyncio
async def test_list_admins_search_and_pagination(db, default_roles, make_admin) -> None:
    viewer_role = default_roles["Viewer"]
    for n in range(5):
        await make_admin(viewer_role, name=f"Ops {n}", email=f"ops{n}@example.com")
    await make_admin(viewer_role, name="Finance Lead", email="money@example.com")

    first_page, total = await service.list_admins(db, page=1, limit=4)
    second_page, _ = await service.list_admins(db, page=2, limit=4)

    assert total == 6
    assert len(first_page) == 4
    assert len(second_page) == 2
    assert {a.id for a in first_page}.isdisjoint({a.id for a in second_page})
    assert service.page_count(total, 4) == 2

    found, found_total = await service.list_admins(db, search="OPS")
    assert found_total == 5
    assert {a.email for a in found} == {f"ops{n}@example.com" for n in range(5)}

    by_email, _ = await service.list_admins(db, search="money")
    assert [a.name for a in by_email] == ["Finance Lead"]


@pytest.mark.asyncio
async def test_list_admins_hides_deleted(db, super_admin, viewer) -> None:
    await service.delete_admin(db, super_admin, viewer.id)

    items, total = await service.list_admins(db)

    assert total == 1
    assert [a.id for a in items] == [super_admin.id]


@pytest.mark.asyncio
async def test_purge_deleted_admins(db, super_admin, make_admin, default_roles) -> None:
    old = await make_admin(default_roles["Viewer"])
    recent = await make_admin(default_roles["Viewer"])
    await service.delete_admin(db, super_admin, old.id, now=utcnow() - timedelta(days=91))
    await service.delete_admin(db, super_admin, recent.id)

    assert await service.purge_deleted_admins(db) == 1

    remaining = set((await db.execute(select(Admin.id))).scalars().all())
    assert remaining == {super_admin.id, recent.id}


async def _admin_editor(db, make_admin):
    role = await role_service.create_role(db, "Admin Editor", "", [{"resource": "admins", "actions": ["view", "create", "edit", "manage"]}])
    return await make_admin(role, name="Eddie Editor", email="editor@example.com")


@pytest.mark.asyncio
async def test_admin_cannot_change_own_role(db, default_roles, make_admin) -> None:
    editor = await _admin_editor(db, make_admin)

    with pytest.raises(SelfProtectionError) as exc_info:
        await service.update_admin(db, editor, editor.id, {"role_id": default_roles["Super Admin"].id})

    assert exc_info.value.field == "role_id"
    assert (await service.get_admin(db, editor.id)).role.name == "Admin Editor"
    # Re-sending the current role is harmless
    same = await service.update_admin(db, editor, editor.id, {"role_id": editor.role_id, "name": "Eddie"})
    assert same.name == "Eddie"


@pytest.mark.asyncio
async def test_cannot_assign_role_with_unheld_grants(db, default_roles, make_admin) -> None:
    editor = await _admin_editor(db, make_admin)
    nobody = await role_service.create_role(db, "Nobody", "", [])
    target = await make_admin(nobody)

    with pytest.raises(PrivilegeEscalationError):
        await service.update_admin(db, editor, target.id, {"role_id": default_roles["Super Admin"].id})
    with pytest.raises(PrivilegeEscalationError):
        await service.create_admin(db, "Root", "root@example.com", TEST_PASSWORD, default_roles["Super Admin"].id, acting_admin=editor)

    promoted = await service.update_admin(db, editor, target.id, {"role_id": editor.role_id})
    assert promoted.role.name == "Admin Editor"


@pytest.mark.asyncio
async def test_cannot_manage_higher_ranked_admin(db, super_admin, make_admin) -> None:
    editor = await _admin_editor(db, make_admin)

    with pytest.raises(PrivilegeEscalationError):
        await service.update_admin(db, editor, super_admin.id, {"email": "taken-over@example.com"})
    with pytest.raises(PrivilegeEscalationError):
        await service.reset_password(db, super_admin.id, "new-secret", acting_admin=editor)
    with pytest.raises(PrivilegeEscalationError):
        await service.delete_admin(db, editor, super_admin.id)

    untouched = await service.get_admin(db, super_admin.id)
    assert untouched.email == "superadmin@example.com"
    assert untouched.token_version == 1
    assert verify_password(TEST_PASSWORD, untouched.password_hash)


@pytest.mark.asyncio
async def test_list_admins_search_matches_wildcards_literally(db, default_roles, make_admin) -> None:
    await make_admin(default_roles["Viewer"], name="Plain Name", email="plain@example.com")
    await make_admin(default_roles["Viewer"], name="Under_Score", email="under@example.com")

    percent, percent_total = await service.list_admins(db, search="%")
    underscore, _ = await service.list_admins(db, search="_")

    assert percent == [] and percent_total == 0
    assert [a.name for a in underscore] == ["Under_Score"]
