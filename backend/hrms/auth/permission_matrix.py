"""
Permission Matrix - the single authoritative role -> module -> action table.

Every resolver entry point (permission checks, the authorization context,
navigation gating, the role-access debug screen) reads this table. There is
no second copy anywhere in the codebase.

The matrix is validated at import time: every built-in role must declare every
module, even when all four actions are denied. A missing entry would silently
fall through to deny-by-default, so it is treated as a build failure instead.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final


# ============================================================================
# CLOSED VOCABULARIES
# ============================================================================

class Module(str, Enum):
    """Functional areas of the HRMS. Values are the lower-case matrix keys."""
    EMPLOYEES = "employees"
    PAYROLL = "payroll"
    ATTENDANCE = "attendance"
    LEAVE = "leave"
    EXPENSES = "expenses"
    ASSETS = "assets"
    EXIT = "exit"
    REPORTS = "reports"
    ORGANIZATION = "organization"


class Action(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    APPROVE = "approve"


class Role(str, Enum):
    """
    Built-in roles. Values are the normalized matrix keys, not the
    lower-case tags carried on the user record.
    """
    ADMIN = "Admin"
    HR_MANAGER = "HR Manager"
    MANAGER = "Manager"
    FINANCE = "Finance"
    EMPLOYEE = "Employee"


# Normalized tag spellings that do not equal their matrix key.
ROLE_ALIASES: Final[Mapping[str, str]] = MappingProxyType({
    "Hr": Role.HR_MANAGER.value,
    "Hr manager": Role.HR_MANAGER.value,
})


# ============================================================================
# PERMISSION RECORDS
# ============================================================================

@dataclass(frozen=True)
class ModulePermission:
    view: bool = False
    create: bool = False
    edit: bool = False
    approve: bool = False

    def allows(self, action: Action) -> bool:
        return bool(getattr(self, Action(action).value))

    def grants_any(self) -> bool:
        return self.view or self.create or self.edit or self.approve

    def as_dict(self) -> dict[str, bool]:
        return {action.value: getattr(self, action.value) for action in Action}


DENY_ALL: Final[ModulePermission] = ModulePermission()
FULL_ACCESS: Final[ModulePermission] = ModulePermission(True, True, True, True)

PermissionMatrix = Mapping[str, Mapping[Module, ModulePermission]]


def _perm(view: bool, create: bool, edit: bool, approve: bool) -> ModulePermission:
    return ModulePermission(view=view, create=create, edit=edit, approve=approve)


def freeze_matrix(
    rows: Mapping[str, Mapping[Module, ModulePermission]],
) -> PermissionMatrix:
    """Wrap a role table in read-only mappings."""
    return MappingProxyType({
        (role.value if isinstance(role, Enum) else role): MappingProxyType(dict(modules))
        for role, modules in rows.items()
    })


# ============================================================================
# THE MATRIX
# ============================================================================

PERMISSION_MATRIX: Final[PermissionMatrix] = freeze_matrix({
    Role.ADMIN.value: {module: FULL_ACCESS for module in Module},
    Role.HR_MANAGER.value: {
        Module.EMPLOYEES: _perm(True, True, True, False),
        Module.PAYROLL: _perm(True, False, False, False),
        Module.ATTENDANCE: _perm(True, False, False, False),
        Module.LEAVE: _perm(True, False, False, True),
        Module.EXPENSES: _perm(True, False, False, False),
        Module.ASSETS: _perm(True, True, True, False),
        Module.EXIT: _perm(True, False, False, False),
        Module.REPORTS: _perm(True, False, False, False),
        Module.ORGANIZATION: DENY_ALL,
    },
    Role.MANAGER.value: {
        Module.EMPLOYEES: _perm(True, False, False, False),
        Module.PAYROLL: _perm(True, False, False, False),
        Module.ATTENDANCE: _perm(True, False, False, False),
        Module.LEAVE: _perm(True, False, False, True),
        Module.EXPENSES: DENY_ALL,
        Module.ASSETS: DENY_ALL,
        Module.EXIT: DENY_ALL,
        Module.REPORTS: _perm(True, False, False, False),
        Module.ORGANIZATION: DENY_ALL,
    },
    Role.FINANCE.value: {
        Module.EMPLOYEES: _perm(True, False, False, False),
        Module.PAYROLL: _perm(True, True, True, True),
        Module.ATTENDANCE: DENY_ALL,
        Module.LEAVE: DENY_ALL,
        Module.EXPENSES: _perm(True, False, False, True),
        Module.ASSETS: DENY_ALL,
        Module.EXIT: DENY_ALL,
        Module.REPORTS: _perm(True, False, False, False),
        Module.ORGANIZATION: DENY_ALL,
    },
    Role.EMPLOYEE.value: {
        Module.EMPLOYEES: DENY_ALL,
        Module.PAYROLL: _perm(True, False, False, False),
        Module.ATTENDANCE: _perm(True, True, False, False),
        Module.LEAVE: _perm(True, True, False, False),
        Module.EXPENSES: _perm(True, True, True, False),
        Module.ASSETS: _perm(True, False, False, False),
        Module.EXIT: DENY_ALL,
        Module.REPORTS: DENY_ALL,
        Module.ORGANIZATION: DENY_ALL,
    },
})

EMPTY_MATRIX: Final[PermissionMatrix] = freeze_matrix({})


# ============================================================================
# COMPLETENESS - FAIL-FAST ENFORCEMENT
# ============================================================================

def matrix_errors(
    matrix: PermissionMatrix,
    *,
    require_roles: bool = True,
    modules: frozenset[Module] = frozenset(Module),
) -> list[str]:
    """
    Collect every completeness problem in a matrix.

    Args:
        matrix: The table to check
        require_roles: Whether every built-in Role must have a row
        modules: Modules each row must declare

    Returns:
        list[str]: Human-readable problems, empty when the matrix is complete
    """
    errors: list[str] = []

    if require_roles:
        for role in Role:
            if role.value not in matrix:
                errors.append(f"Role '{role.value}' has no matrix row")

    for role_key, row in matrix.items():
        for module in sorted(modules, key=lambda m: m.value):
            if module not in row:
                errors.append(f"Role '{role_key}' is missing module '{module.value}'")
        for module, permission in row.items():
            if not isinstance(module, Module):
                errors.append(f"Role '{role_key}' declares unknown module '{module}'")
            if not isinstance(permission, ModulePermission):
                errors.append(
                    f"Role '{role_key}' module '{module}' is not a ModulePermission"
                )

    return errors


def validate_matrix(matrix: PermissionMatrix, *, require_roles: bool = True) -> None:
    """
    Raise if the matrix is incomplete.

    Raises:
        RuntimeError: Listing every missing role row or module entry
    """
    errors = matrix_errors(matrix, require_roles=require_roles)
    if errors:
        raise RuntimeError(
            "Permission matrix validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        )


# Run validation on import
validate_matrix(PERMISSION_MATRIX)
