"""
Authorization decisions.

Pure functions over an admin and its role. They never touch the database and
never raise for well-formed string input.
"""
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.features.permissions import catalog


NO_ACCESS = "No access"
VIEW_ONLY = "View only"
FULL_ACCESS = "Full access"


def _find_grant(permissions: Optional[Iterable[Any]], resource_id: str) -> Optional[List[str]]:
    for grant in permissions or []:
        if isinstance(grant, dict):
            resource, actions = grant.get("resource"), grant.get("actions")
        else:
            resource, actions = getattr(grant, "resource", None), getattr(grant, "actions", None)
        if resource == resource_id:
            return list(actions or [])
    return None


def authorize(admin: Any, resource_id: str, action_id: str) -> bool:
    """
    Decide whether `admin` may perform `action_id` on `resource_id`.

    Denies when the admin is inactive or deleted, has no role, the role is
    inactive or deleted, the role has no grant for the resource, or the grant
    does not list the action. There are no wildcards and no implied actions.
    """
    if admin is None or not getattr(admin, "is_active", False):
        return False
    if getattr(admin, "deleted_at", None) is not None:
        return False

    role = getattr(admin, "role", None)
    if role is None or not getattr(role, "is_active", False):
        return False
    if getattr(role, "deleted_at", None) is not None:
        return False

    actions = _find_grant(getattr(role, "permissions", None), resource_id)
    if actions is None:
        return False
    return action_id in actions


def grant_pairs(grants: Optional[Iterable[Any]]) -> Set[Tuple[str, str]]:
    pairs = set()
    for grant in grants or []:
        if isinstance(grant, dict):
            resource, actions = grant.get("resource"), grant.get("actions")
        else:
            resource, actions = getattr(grant, "resource", None), getattr(grant, "actions", None)
        pairs.update((resource, action) for action in actions or [])
    return pairs


def unheld_grants(admin: Any, grants: Optional[Iterable[Any]]) -> List[Tuple[str, str]]:
    """(resource, action) pairs in `grants` that `admin` is not authorized for."""
    return sorted(
        (resource, action)
        for resource, action in grant_pairs(grants)
        if not authorize(admin, resource, action)
    )


def summarize(role: Any, resource_id: str) -> str:
    """
    Classify a role's access to one resource for the permission matrix.

    Raises:
        NotFoundError: unknown resource
    """
    total = len(catalog.get_actions_for(resource_id))
    actions = _find_grant(getattr(role, "permissions", None), resource_id)

    if not actions:
        return NO_ACCESS
    granted = set(actions)
    if len(granted) == total:
        return FULL_ACCESS
    if granted == {"view"}:
        return VIEW_ONLY
    return f"Partial: {len(granted)} of {total}"


def permission_matrix(role: Any) -> List[Dict[str, Any]]:
    """Summary of `role` for every catalog resource, in catalog order."""
    matrix = []
    for resource in catalog.list_resources():
        matrix.append({
            "resource": resource.id,
            "name": resource.name,
            "actions": _find_grant(getattr(role, "permissions", None), resource.id) or [],
            "total_actions": len(resource.actions),
            "summary": summarize(role, resource.id),
        })
    return matrix
