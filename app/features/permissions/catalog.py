"""
Static catalog of protected resources and the actions each one declares.

The catalog is fixed at import time and is not editable at runtime. Roles
store grants as {"resource": <resource id>, "actions": [<action ids>]} and
every grant is validated against this catalog before it is persisted.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Dict, List

from app.core.errors import InvalidGrantError, NotFoundError


@dataclass(frozen=True)
class Action:
    id: str
    name: str
    description: str


@dataclass(frozen=True)
class Resource:
    id: str
    name: str
    description: str
    actions: tuple[Action, ...]

    @property
    def action_ids(self) -> tuple[str, ...]:
        return tuple(action.id for action in self.actions)


def _actions(noun: str, *action_ids: str) -> tuple[Action, ...]:
    templates = {
        "view": ("View {0}", "Can view {1} list and details"),
        "create": ("Create {0}", "Can create new {1}"),
        "edit": ("Edit {0}", "Can edit {1}"),
        "delete": ("Delete {0}", "Can delete {1}"),
        "export": ("Export {0}", "Can export {1} data"),
        "manage": ("Manage {0}", "Full {1} management access"),
    }
    return tuple(
        Action(
            id=action_id,
            name=templates[action_id][0].format(noun),
            description=templates[action_id][1].format(noun, noun.lower()),
        )
        for action_id in action_ids
    )


CRUD_ACTIONS = ("view", "create", "edit", "delete", "export", "manage")


RESOURCES: tuple[Resource, ...] = (
    Resource("users", "User Management", "Manage users and their data",
             _actions("Users", *CRUD_ACTIONS)),
    Resource("posts", "Post Management", "Manage posts and content",
             _actions("Posts", *CRUD_ACTIONS)),
    Resource("events", "Event Management", "Manage events and schedules",
             _actions("Events", *CRUD_ACTIONS)),
    Resource("educational-programs", "Educational Programs", "Manage the educational program taxonomy",
             _actions("Programs", *CRUD_ACTIONS)),
    Resource("institutes", "Institutes", "Manage institutes",
             _actions("Institutes", *CRUD_ACTIONS)),
    Resource("organisations", "Organisations", "Manage organisations",
             _actions("Organisations", *CRUD_ACTIONS)),
    Resource("schools", "Schools", "Manage schools",
             _actions("Schools", *CRUD_ACTIONS)),
    Resource("cities", "Cities", "Manage the world city list",
             _actions("Cities", *CRUD_ACTIONS)),
    Resource("activity_logs", "Activity Logs", "View system activity and audit logs",
             _actions("Logs", "view", "export", "manage")),
    Resource("settings", "System Settings", "Manage system configuration",
             _actions("Settings", "view", "edit", "manage")),
    Resource("roles", "Role Management", "Manage admin roles and permissions",
             _actions("Roles", "view", "create", "edit", "delete", "manage")),
    Resource("admins", "Admin Management", "Manage admin accounts",
             _actions("Admins", "view", "create", "edit", "delete", "manage")),
)

_BY_ID: Dict[str, Resource] = {resource.id: resource for resource in RESOURCES}


def list_resources() -> tuple[Resource, ...]:
    """Return every resource in stable catalog order."""
    return RESOURCES


def get_resource(resource_id: str) -> Resource:
    try:
        return _BY_ID[resource_id]
    except KeyError:
        raise NotFoundError(f"Unknown resource: {resource_id}", field="resource") from None


def get_actions_for(resource_id: str) -> tuple[Action, ...]:
    """Return the actions declared for a resource; NotFoundError if unknown."""
    return get_resource(resource_id).actions


def all_grants() -> List[Dict[str, Any]]:
    """Every resource with every action; the Super Admin grant set."""
    return [{"resource": r.id, "actions": list(r.action_ids)} for r in RESOURCES]


def normalize_grants(grants: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Validate grants against the catalog and return them in canonical form.

    Accepts dicts or objects with `resource` and `actions` attributes.
    Duplicate actions collapse, repeated resources merge, grants with no
    actions are dropped, and output follows catalog order for both resources
    and actions.

    Raises:
        InvalidGrantError: unknown resource or undeclared action
    """
    merged: Dict[str, set[str]] = {}
    for grant in grants:
        if isinstance(grant, dict):
            resource_id = grant.get("resource")
            actions = grant.get("actions") or []
        else:
            resource_id = getattr(grant, "resource", None)
            actions = getattr(grant, "actions", None) or []

        resource = _BY_ID.get(resource_id) if isinstance(resource_id, str) else None
        if resource is None:
            raise InvalidGrantError(f"Unknown resource: {resource_id}", field="permissions")

        unknown = [a for a in actions if a not in resource.action_ids]
        if unknown:
            raise InvalidGrantError(
                f"Actions {unknown} are not declared for resource {resource_id}",
                field="permissions",
            )
        merged.setdefault(resource_id, set()).update(actions)

    normalized = []
    for resource in RESOURCES:
        granted = merged.get(resource.id)
        if not granted:
            continue
        normalized.append({
            "resource": resource.id,
            "actions": [a for a in resource.action_ids if a in granted],
        })
    return normalized


def as_structure() -> Dict[str, Any]:
    """Render the catalog the way the role form consumes it."""
    return {
        "resources": [
            {
                "id": r.id,
                "name": r.name,
                "description": r.description,
                "actions": [
                    {"id": a.id, "name": a.name, "description": a.description}
                    for a in r.actions
                ],
            }
            for r in RESOURCES
        ]
    }
