"""Sidebar navigation filtered by the authorization context."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .authorization_context import AuthorizationContext
from .permission_matrix import Module

ANY_ROLE = "*"


@dataclass(frozen=True)
class NavItem:
    label: str
    path: str | None = None
    roles: tuple[str, ...] = (ANY_ROLE,)
    module: Module | None = None
    children: tuple["NavItem", ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "path": self.path,
            "module": self.module.value if self.module else None,
            "children": [child.as_dict() for child in self.children],
        }


NAVIGATION: tuple[NavItem, ...] = (
    NavItem("Dashboard", path="/dashboard"),
    NavItem(
        "Organization Setup",
        roles=("admin",),
        module=Module.ORGANIZATION,
        children=(
            NavItem("Company Master", "/organization/company", ("admin",), Module.ORGANIZATION),
            NavItem("Branches", "/organization/branches", ("admin",), Module.ORGANIZATION),
            NavItem("Departments", "/organization/departments", ("admin",), Module.ORGANIZATION),
            NavItem("Designations", "/organization/designations", ("admin",), Module.ORGANIZATION),
            NavItem("Roles & Permissions", "/organization/roles", ("admin",), Module.ORGANIZATION),
        ),
    ),
    NavItem("Role & Module Access Debug", path="/debug/roles", roles=("admin",)),
    NavItem(
        "Employee Management",
        roles=("admin", "hr"),
        module=Module.EMPLOYEES,
        children=(
            NavItem("Employee List", "/employees", ("admin", "hr"), Module.EMPLOYEES),
            NavItem("Register Employee", "/employees/register", ("admin", "hr"), Module.EMPLOYEES),
        ),
    ),
    NavItem(
        "Attendance Management",
        roles=("admin", "hr", "manager", "employee"),
        module=Module.ATTENDANCE,
        children=(
            NavItem("Check-In/Out", "/attendance/capture", ("employee", "manager"), Module.ATTENDANCE),
            NavItem(
                "Attendance Log",
                "/attendance/log",
                ("admin", "hr", "manager", "employee"),
                Module.ATTENDANCE,
            ),
            NavItem("Override Management", "/attendance/override", ("admin", "hr"), Module.ATTENDANCE),
            NavItem("Shift Management", "/attendance/shift", ("admin", "hr"), Module.ATTENDANCE),
        ),
    ),
    NavItem(
        "Leave Management",
        roles=("admin", "hr", "manager", "employee"),
        module=Module.LEAVE,
        children=(
            NavItem("Apply Leave", "/leave/apply", ("employee",), Module.LEAVE),
            NavItem("Leave Balance", "/leave/balance", ("admin", "hr", "employee"), Module.LEAVE),
            NavItem("Leave Approvals", "/leave/approvals", ("hr", "manager"), Module.LEAVE),
            NavItem("Leave Config", "/leave/config", ("admin", "hr"), Module.LEAVE),
        ),
    ),
    NavItem(
        "Payroll",
        roles=("admin", "hr", "finance", "manager", "employee"),
        module=Module.PAYROLL,
        children=(
            NavItem(
                "Salary Structure",
                "/payroll/structure",
                ("admin", "finance", "hr", "manager"),
                Module.PAYROLL,
            ),
            NavItem("Process Payroll", "/payroll/process", ("admin",), Module.PAYROLL),
            NavItem(
                "Payslips",
                "/payroll/payslips",
                ("admin", "hr", "finance", "manager", "employee"),
                Module.PAYROLL,
            ),
        ),
    ),
    NavItem(
        "Expenses",
        roles=("admin", "finance", "employee"),
        module=Module.EXPENSES,
        children=(
            NavItem("Expense Claims", "/expenses/claims", ("employee",), Module.EXPENSES),
            NavItem("Approve Claims", "/expenses/approvals", ("admin", "finance"), Module.EXPENSES),
        ),
    ),
    NavItem(
        "Assets",
        roles=("admin", "hr", "employee"),
        module=Module.ASSETS,
        children=(
            NavItem("Asset List", "/assets/list", ("admin", "hr"), Module.ASSETS),
            NavItem("My Assets", "/assets/my-assets", ("employee",), Module.ASSETS),
        ),
    ),
    NavItem(
        "Exit & Offboarding",
        roles=("admin", "hr"),
        module=Module.EXIT,
        children=(
            NavItem("Resignations", "/exit/resignations", ("admin", "hr"), Module.EXIT),
            NavItem("Exit Checklist", "/exit/checklist", ("admin", "hr"), Module.EXIT),
        ),
    ),
    NavItem(
        "Reports",
        roles=("admin", "hr", "finance", "manager"),
        module=Module.REPORTS,
        children=(
            NavItem("Attendance Reports", "/reports/attendance", ("admin", "hr", "manager"), Module.REPORTS),
            NavItem("Leave Reports", "/reports/leave", ("admin", "hr"), Module.REPORTS),
            NavItem("Payroll Reports", "/reports/payroll", ("admin", "finance"), Module.REPORTS),
            NavItem("Finance Reports", "/reports/finance", ("admin", "finance"), Module.REPORTS),
            NavItem(
                "Analytics",
                "/reports/analytics",
                ("admin", "hr", "finance", "manager"),
                Module.REPORTS,
            ),
        ),
    ),
)


def item_is_visible(item: NavItem, context: AuthorizationContext) -> bool:
    if item.module is None:
        # Unmoduled entries still honour an explicit allow-list.
        return ANY_ROLE in item.roles or context.has_any_role(item.roles)
    if context.loading:
        return False
    if ANY_ROLE not in item.roles and not context.has_any_role(item.roles):
        return False
    return context.has_module_access(item.module)


def visible_navigation(
    context: AuthorizationContext,
    items: tuple[NavItem, ...] = NAVIGATION,
) -> list[NavItem]:
    """
    Filter the menu for the bound user.

    Groups are dropped when none of their children survive.
    """
    if context.user is None:
        return []

    visible: list[NavItem] = []
    for item in items:
        if not item_is_visible(item, context):
            continue
        if item.children:
            children = tuple(visible_navigation(context, item.children))
            if not children:
                continue
            item = NavItem(item.label, item.path, item.roles, item.module, children)
        visible.append(item)
    return visible


def referenced_modules(items: tuple[NavItem, ...] = NAVIGATION) -> frozenset[Module]:
    modules: set[Module] = set()
    for item in items:
        if item.module is not None:
            modules.add(item.module)
        modules.update(referenced_modules(item.children))
    return frozenset(modules)
