from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.core.errors import NotFoundError
from app.features.permissions import catalog
from app.features.permissions.decisions import authorize, permission_matrix, summarize, unheld_grants


def make_role(permissions, is_active=True, deleted_at=None):
    return SimpleNamespace(permissions=permissions, is_active=is_active, deleted_at=deleted_at)


def make_admin(role, is_active=True, deleted_at=None):
    return SimpleNamespace(role=role, is_active=is_active, deleted_at=deleted_at)


def super_admin_role():
    return make_role(catalog.all_grants())


def test_no_grant_denies_every_action() -> None:
    admin = make_admin(make_role([{"resource": "posts", "actions": ["view"]}]))

    for action in catalog.get_actions_for("users"):
        assert authorize(admin, "users", action.id) is False


def test_grant_allows_exactly_listed_actions() -> None:
    admin = make_admin(make_role([{"resource": "posts", "actions": ["view", "edit"]}]))

    allowed = {a.id for a in catalog.get_actions_for("posts") if authorize(admin, "posts", a.id)}

    assert allowed == {"view", "edit"}
    assert authorize(admin, "posts", "teleport") is False


def test_view_does_not_imply_edit() -> None:
    admin = make_admin(make_role([{"resource": "posts", "actions": ["view"]}]))

    assert authorize(admin, "posts", "view") is True
    assert authorize(admin, "posts", "edit") is False


def test_inactive_admin_is_never_authorized() -> None:
    admin = make_admin(super_admin_role(), is_active=False)

    assert authorize(admin, "users", "delete") is False
    for resource in catalog.list_resources():
        for action in resource.actions:
            assert authorize(admin, resource.id, action.id) is False


def test_deleted_admin_is_never_authorized() -> None:
    admin = make_admin(super_admin_role(), deleted_at=datetime.now(timezone.utc))

    assert authorize(admin, "users", "view") is False


def test_inactive_role_grants_nothing() -> None:
    admin = make_admin(make_role(catalog.all_grants(), is_active=False))

    assert authorize(admin, "users", "view") is False


def test_admin_without_role_is_denied() -> None:
    assert authorize(make_admin(None), "users", "view") is False
    assert authorize(None, "users", "view") is False


def test_unknown_resource_or_action_is_false_not_error() -> None:
    admin = make_admin(super_admin_role())

    assert authorize(admin, "spaceships", "view") is False
    assert authorize(admin, "users", "") is False
    assert authorize(admin, "", "") is False


def test_super_admin_role_grants_everything() -> None:
    admin = make_admin(super_admin_role())

    assert authorize(admin, "users", "delete") is True
    assert authorize(admin, "admins", "manage") is True


def test_summarize_classifications() -> None:
    total = len(catalog.get_actions_for("posts"))

    partial = make_role([{"resource": "posts", "actions": ["view", "edit"]}])
    full = make_role([{"resource": "posts", "actions": list(catalog.get_resource("posts").action_ids)}])
    view_only = make_role([{"resource": "posts", "actions": ["view"]}])
    single_edit = make_role([{"resource": "posts", "actions": ["edit"]}])

    assert summarize(partial, "posts") == f"Partial: 2 of {total}"
    assert summarize(full, "posts") == "Full access"
    assert summarize(view_only, "posts") == "View only"
    assert summarize(single_edit, "posts") == f"Partial: 1 of {total}"
    assert summarize(view_only, "users") == "No access"


def test_summarize_unknown_resource() -> None:
    with pytest.raises(NotFoundError):
        summarize(make_role([]), "spaceships")


def test_permission_matrix_covers_catalog() -> None:
    role = make_role([{"resource": "settings", "actions": ["view", "edit", "manage"]}])

    matrix = permission_matrix(role)

    assert [row["resource"] for row in matrix] == [r.id for r in catalog.list_resources()]
    settings = next(row for row in matrix if row["resource"] == "settings")
    assert settings["summary"] == "Full access"
    assert settings["total_actions"] == 3
    assert all(row["summary"] == "No access" for row in matrix if row["resource"] != "settings")


def test_unheld_grants_lists_missing_pairs() -> None:
    admin = make_admin(make_role([{"resource": "roles", "actions": ["view", "edit"]}]))

    missing = unheld_grants(admin, [
        {"resource": "roles", "actions": ["view", "delete"]},
        {"resource": "admins", "actions": ["view"]},
    ])

    assert missing == [("admins", "view"), ("roles", "delete")]
    assert unheld_grants(admin, [{"resource": "roles", "actions": ["edit"]}]) == []
    assert unheld_grants(make_admin(super_admin_role()), catalog.all_grants()) == []


def test_inactive_role_holds_nothing_to_hand_out() -> None:
    admin = make_admin(make_role(catalog.all_grants(), is_active=False))

    assert unheld_grants(admin, [{"resource": "posts", "actions": ["view"]}]) == [("posts", "view")]
