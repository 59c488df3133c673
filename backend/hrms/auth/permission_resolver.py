"""
Permission Resolver - pure lookups against a permission matrix.

All functions here are total: missing users, empty role lists, unknown roles,
unknown modules and unknown actions resolve to ``False`` (or an empty result),
never to an exception.

Two resolution rules coexist on purpose:
- action checks (``can_perform`` and friends) consult the PRIMARY role only,
  i.e. ``user.roles[0]``;
- ``accessible_modules`` unions the modules of EVERY role the user carries.
"""
from __future__ import annotations

from collections.abc import Iterable

from ..schemas.auth import AuthenticatedUser
from .permission_matrix import (
    PERMISSION_MATRIX,
    ROLE_ALIASES,
    Action,
    Module,
    ModulePermission,
    PermissionMatrix,
)


def normalize_role_name(role_name: str) -> str:
    """Upper-case the first letter, lower-case the rest, hyphens become spaces."""
    if not role_name:
        return ""
    name = role_name.strip()
    return (name[:1].upper() + name[1:].lower()).replace("-", " ")


def resolve_matrix_key(role_name: str | None) -> str | None:
    """Map a role tag (``"hr"``, ``"admin-delegate"``) to its matrix key."""
    if not isinstance(role_name, str):
        return None
    normalized = normalize_role_name(role_name)
    if not normalized:
        return None
    return ROLE_ALIASES.get(normalized, normalized)


def parse_module(module: Module | str | None) -> Module | None:
    if isinstance(module, Module):
        return module
    if not isinstance(module, str):
        return None
    try:
        return Module(module.strip().lower())
    except ValueError:
        return None


def parse_action(action: Action | str | None) -> Action | None:
    if isinstance(action, Action):
        return action
    if not isinstance(action, str):
        return None
    try:
        return Action(action.strip().lower())
    except ValueError:
        return None


def primary_role(user: AuthenticatedUser | None) -> str | None:
    roles = getattr(user, "roles", None) or ()
    return roles[0] if roles else None


def module_permission(
    role_name: str | None,
    module: Module | str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> ModulePermission | None:
    key = resolve_matrix_key(role_name)
    parsed = parse_module(module)
    if key is None or parsed is None:
        return None
    row = matrix.get(key)
    if row is None:
        return None
    return row.get(parsed)


def role_can_perform(
    role_name: str | None,
    module: Module | str | None,
    action: Action | str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> bool:
    """Check one (module, action) pair for an explicitly named role."""
    parsed_action = parse_action(action)
    if parsed_action is None:
        return False
    permission = module_permission(role_name, module, matrix=matrix)
    if permission is None:
        return False
    return permission.allows(parsed_action)


def can_perform(
    user: AuthenticatedUser | None,
    module: Module | str | None,
    action: Action | str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> bool:
    """
    Check whether the user's primary role grants ``action`` on ``module``.

    Args:
        user: The authenticated user, or None
        module: Module name; lower-cased before lookup
        action: One of view/create/edit/approve

    Returns:
        bool: True only when the matrix explicitly grants the action
    """
    if user is None:
        return False
    return role_can_perform(primary_role(user), module, action, matrix=matrix)


def can_view(user: AuthenticatedUser | None, module: Module | str, **kwargs) -> bool:
    return can_perform(user, module, Action.VIEW, **kwargs)


def can_create(user: AuthenticatedUser | None, module: Module | str, **kwargs) -> bool:
    return can_perform(user, module, Action.CREATE, **kwargs)


def can_edit(user: AuthenticatedUser | None, module: Module | str, **kwargs) -> bool:
    return can_perform(user, module, Action.EDIT, **kwargs)


def can_approve(user: AuthenticatedUser | None, module: Module | str, **kwargs) -> bool:
    return can_perform(user, module, Action.APPROVE, **kwargs)


def role_has_module_access(
    role_name: str | None,
    module: Module | str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> bool:
    permission = module_permission(role_name, module, matrix=matrix)
    return permission is not None and permission.grants_any()


def has_module_access(
    user: AuthenticatedUser | None,
    module: Module | str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> bool:
    """True if the primary role is granted at least one action on ``module``."""
    if user is None:
        return False
    return role_has_module_access(primary_role(user), module, matrix=matrix)


def modules_for_roles(
    roles: Iterable[str],
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> list[str]:
    modules: set[str] = set()
    for role_name in roles:
        key = resolve_matrix_key(role_name)
        row = matrix.get(key) if key is not None else None
        if not row:
            continue
        modules.update(
            module.value for module, permission in row.items() if permission.grants_any()
        )
    return sorted(modules)


def accessible_modules(
    user: AuthenticatedUser | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> list[str]:
    """Sorted union of the modules every one of the user's roles can reach."""
    if user is None:
        return []
    return modules_for_roles(getattr(user, "roles", None) or (), matrix=matrix)


def role_module_detail(
    role_name: str | None,
    *,
    matrix: PermissionMatrix = PERMISSION_MATRIX,
) -> dict[str, ModulePermission] | None:
    """
    Per-module permissions of one role, for diagnostic screens.

    Returns:
        dict | None: Module name -> permission record, or None if the role
        has no matrix row
    """
    key = resolve_matrix_key(role_name)
    row = matrix.get(key) if key is not None else None
    if row is None:
        return None
    return {
        module.value: row[module]
        for module in sorted(row, key=lambda m: m.value)
    }
