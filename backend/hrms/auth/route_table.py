"""Declarative mapping of HRMS screens to their route guards.

Each key is a page path; the value says whether the page is public, needs only
an authenticated session, or needs a role allow-list / module permission.

Role tags in allow-lists are lower-case and compared case-insensitively.
Every module named here must exist in every row of the permission matrix;
the test suite enforces that.
"""
from __future__ import annotations

from dataclasses import dataclass

from .permission_matrix import Action, Module
from .route_guard import AuthorizationQuery, ProtectedRoute, PublicRoute, RouteGuard


@dataclass(frozen=True)
class RouteRule:
    title: str
    allowed_roles: tuple[str, ...] | None = None
    required_module: Module | None = None
    required_action: Action | None = None
    public: bool = False
    fallback_path: str | None = None

    @property
    def query(self) -> AuthorizationQuery:
        return AuthorizationQuery(
            allowed_roles=self.allowed_roles,
            required_module=self.required_module,
            required_action=self.required_action,
        )


def _roles(*roles: str) -> tuple[str, ...]:
    return roles


ROUTE_TABLE: dict[str, RouteRule] = {
    # Public
    "/login": RouteRule("Sign in", public=True),
    "/signup": RouteRule("Sign up", public=True),
    # Authenticated only
    "/dashboard": RouteRule("Dashboard"),
    "/profile": RouteRule("My Profile"),
    "/debug/roles": RouteRule("Role & Module Access Debug"),
    # Organization
    "/organization/company": RouteRule("Company Master", allowed_roles=_roles("admin")),
    "/organization/branches": RouteRule("Branches", allowed_roles=_roles("admin")),
    "/organization/departments": RouteRule("Departments", allowed_roles=_roles("admin")),
    "/organization/designations": RouteRule("Designations", allowed_roles=_roles("admin")),
    "/organization/roles": RouteRule("Roles & Permissions", allowed_roles=_roles("admin")),
    # Employees
    "/employees": RouteRule("Employee List", allowed_roles=_roles("admin", "hr")),
    "/employees/register": RouteRule("Register Employee", allowed_roles=_roles("admin", "hr")),
    # Attendance
    "/attendance/capture": RouteRule("Check-In/Out", allowed_roles=_roles("employee", "manager")),
    "/attendance/log": RouteRule(
        "Attendance Log", required_module=Module.ATTENDANCE, required_action=Action.VIEW
    ),
    "/attendance/override": RouteRule("Override Management", allowed_roles=_roles("admin", "hr")),
    "/attendance/shift": RouteRule("Shift Management", allowed_roles=_roles("admin", "hr")),
    # Leave
    "/leave/apply": RouteRule("Apply Leave", required_module=Module.LEAVE, required_action=Action.CREATE),
    "/leave/balance": RouteRule("Leave Balance", allowed_roles=_roles("admin", "hr", "employee")),
    "/leave/approvals": RouteRule(
        "Leave Approvals", required_module=Module.LEAVE, required_action=Action.APPROVE
    ),
    "/leave/config": RouteRule("Leave Config", allowed_roles=_roles("admin", "hr")),
    # Payroll
    "/payroll/structure": RouteRule(
        "Salary Structure", allowed_roles=_roles("admin", "finance", "hr", "manager")
    ),
    "/payroll/process": RouteRule("Process Payroll", allowed_roles=_roles("admin")),
    "/payroll/payslips": RouteRule("Payslips", required_module=Module.PAYROLL, required_action=Action.VIEW),
    # Expenses
    "/expenses/claims": RouteRule(
        "Expense Claims", required_module=Module.EXPENSES, required_action=Action.CREATE
    ),
    "/expenses/approvals": RouteRule(
        "Approve Claims", required_module=Module.EXPENSES, required_action=Action.APPROVE
    ),
    # Assets
    "/assets/list": RouteRule("Asset List", allowed_roles=_roles("admin", "hr")),
    "/assets/my-assets": RouteRule("My Assets", required_module=Module.ASSETS),
    # Exit & offboarding
    "/exit/resignations": RouteRule("Resignations", allowed_roles=_roles("admin", "hr")),
    "/exit/checklist": RouteRule("Exit Checklist", allowed_roles=_roles("admin", "hr")),
    # Reports
    "/reports/attendance": RouteRule(
        "Attendance Reports", allowed_roles=_roles("admin", "hr", "manager")
    ),
    "/reports/leave": RouteRule("Leave Reports", allowed_roles=_roles("admin", "hr")),
    "/reports/payroll": RouteRule("Payroll Reports", allowed_roles=_roles("admin", "finance")),
    "/reports/finance": RouteRule("Finance Reports", allowed_roles=_roles("admin", "finance")),
    "/reports/analytics": RouteRule("Analytics", required_module=Module.REPORTS, required_action=Action.VIEW),
}


def rule_for(path: str) -> RouteRule:
    return ROUTE_TABLE[path]


def guard_for(path: str) -> RouteGuard | PublicRoute:
    rule = rule_for(path)
    if rule.public:
        return PublicRoute()
    if rule.allowed_roles is None and rule.required_module is None:
        return ProtectedRoute(fallback_path=rule.fallback_path)
    return RouteGuard(
        allowed_roles=rule.allowed_roles,
        required_module=rule.required_module,
        required_action=rule.required_action,
        fallback_path=rule.fallback_path,
    )


def referenced_modules() -> frozenset[Module]:
    return frozenset(
        rule.required_module
        for rule in ROUTE_TABLE.values()
        if rule.required_module is not None
    )
