"""
Route Guard - decides whether a protected screen renders, redirects or waits.

Evaluation order for ``RouteGuard.evaluate`` (first match wins):

1. authentication or authorization still loading -> LOADING
2. not authenticated                             -> REDIRECT to login (replace)
3. role allow-list given and not intersected     -> REDIRECT to fallback
4. module given and no access to it at all       -> REDIRECT to fallback
5. module and action given and action not granted -> REDIRECT to fallback
6. otherwise                                     -> RENDER

Role allow-lists and module/action requirements are independent: an
allow-list never consults the matrix and a module check never consults the
allow-list.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from ..schemas.auth import AuthState
from .authorization_context import AuthorizationContext
from .permission_matrix import Action, Module

logger = logging.getLogger("hrms.guard")

DEFAULT_LOGIN_PATH = "/login"
DEFAULT_DASHBOARD_PATH = "/dashboard"


class GuardOutcome(str, Enum):
    LOADING = "loading"
    REDIRECT = "redirect"
    RENDER = "render"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    location: str | None = None
    replace: bool = False
    reason: str = ""

    @classmethod
    def loading(cls) -> "GuardDecision":
        return cls(GuardOutcome.LOADING, reason="loading")

    @classmethod
    def render(cls) -> "GuardDecision":
        return cls(GuardOutcome.RENDER, reason="granted")

    @classmethod
    def redirect(cls, location: str, reason: str) -> "GuardDecision":
        return cls(GuardOutcome.REDIRECT, location=location, replace=True, reason=reason)


@dataclass(frozen=True)
class AuthorizationQuery:
    allowed_roles: tuple[str, ...] | None = None
    required_module: Module | str | None = None
    required_action: Action | str | None = None

    @property
    def is_role_list(self) -> bool:
        return self.allowed_roles is not None

    @property
    def is_module_action(self) -> bool:
        return self.required_module is not None and self.required_action is not None

    @property
    def is_module_only(self) -> bool:
        return self.required_module is not None and self.required_action is None

    def denial_reason(self, context: AuthorizationContext) -> str | None:
        """Reason code for the first failing requirement, None when satisfied."""
        if self.allowed_roles is not None and not context.has_any_role(self.allowed_roles):
            return "role_not_allowed"
        if self.required_module is not None:
            if not context.has_module_access(self.required_module):
                return "module_denied"
            if self.required_action is not None and not context.can_perform_module_action(
                self.required_module, self.required_action
            ):
                return "action_denied"
        return None

    def is_satisfied_by(self, context: AuthorizationContext) -> bool:
        return self.denial_reason(context) is None


def _allow_list(roles: str | tuple[str, ...] | list[str] | None) -> tuple[str, ...] | None:
    if roles is None:
        return None
    if isinstance(roles, str):
        return (roles,)
    return tuple(roles)


class RouteGuard:
    def __init__(
        self,
        *,
        allowed_roles: str | tuple[str, ...] | list[str] | None = None,
        required_module: Module | str | None = None,
        required_action: Action | str | None = None,
        fallback_path: str | None = None,
    ) -> None:
        self.query = AuthorizationQuery(
            allowed_roles=_allow_list(allowed_roles),
            required_module=required_module,
            required_action=required_action,
        )
        self.fallback_path = fallback_path

    def evaluate(
        self,
        auth: AuthState,
        context: AuthorizationContext,
        *,
        login_path: str = DEFAULT_LOGIN_PATH,
        dashboard_path: str = DEFAULT_DASHBOARD_PATH,
    ) -> GuardDecision:
        if auth.is_loading or context.loading:
            return GuardDecision.loading()

        if not auth.is_authenticated or auth.user is None:
            return GuardDecision.redirect(login_path, "unauthenticated")

        reason = self.query.denial_reason(context)
        if reason is not None:
            return self._deny(auth, self.fallback_path or dashboard_path, reason)

        return GuardDecision.render()

    def _deny(self, auth: AuthState, fallback: str, reason: str) -> GuardDecision:
        logger.info(
            "Route guard denied reason=%s roles=%s query=%s",
            reason,
            list(auth.user.roles) if auth.user else [],
            self.query,
        )
        return GuardDecision.redirect(fallback, reason)

    def __repr__(self) -> str:
        return f"RouteGuard(query={self.query!r}, fallback_path={self.fallback_path!r})"


class PublicRoute:
    """Login/signup pages: authenticated users are sent to the dashboard."""

    def __init__(self, *, redirect_path: str | None = None) -> None:
        self.redirect_path = redirect_path

    def evaluate(
        self,
        auth: AuthState,
        context: AuthorizationContext,
        *,
        login_path: str = DEFAULT_LOGIN_PATH,
        dashboard_path: str = DEFAULT_DASHBOARD_PATH,
    ) -> GuardDecision:
        # Role data is irrelevant here; only the authentication decision matters.
        if auth.is_loading:
            return GuardDecision.loading()
        if auth.is_authenticated:
            return GuardDecision.redirect(self.redirect_path or dashboard_path, "already_authenticated")
        return GuardDecision.render()

    def __repr__(self) -> str:
        return f"PublicRoute(redirect_path={self.redirect_path!r})"


class ProtectedRoute(RouteGuard):
    """Authentication-only guard (dashboard, profile)."""

    def __init__(self, *, fallback_path: str | None = None) -> None:
        super().__init__(fallback_path=fallback_path)
