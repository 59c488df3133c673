"""
Role-based authorization for the HRMS.

- permission_matrix: the single role -> module -> action table
- permission_resolver: pure, total lookups against a matrix
- authorization_context: resolver bound to the authenticated user
- route_guard / route_table: page gating
- navigation: sidebar gating
- role_config: optional remote source of the matrix
"""
from .authorization_context import AuthorizationContext, AuthorizationProvider, AuthorizationState
from .permission_matrix import PERMISSION_MATRIX, Action, Module, ModulePermission, Role
from .route_guard import GuardDecision, GuardOutcome, ProtectedRoute, PublicRoute, RouteGuard

__all__ = [
    "PERMISSION_MATRIX",
    "Action",
    "AuthorizationContext",
    "AuthorizationProvider",
    "AuthorizationState",
    "GuardDecision",
    "GuardOutcome",
    "Module",
    "ModulePermission",
    "ProtectedRoute",
    "PublicRoute",
    "Role",
    "RouteGuard",
]
