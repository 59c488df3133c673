"""
Authorization Context - the permission resolver bound to the current user.

``AuthorizationProvider`` is created once per process (stored on
``app.state``) and owns the active permission matrix plus the role-data
loading flag. ``bind()`` turns an ``AuthState`` into an immutable
``AuthorizationContext``; every login, logout or loading change produces a
fresh context rather than mutating the previous one.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from enum import Enum

from ..domain.ports.role_config import RoleConfigSource
from ..errors import RoleConfigError
from ..schemas.auth import AuthenticatedUser, AuthState
from . import permission_resolver as resolver
from .permission_matrix import (
    EMPTY_MATRIX,
    PERMISSION_MATRIX,
    Action,
    Module,
    PermissionMatrix,
    validate_matrix,
)

logger = logging.getLogger("hrms.authz")

ContextListener = Callable[["AuthorizationContext"], None]


class AuthorizationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"


class AuthorizationContext:
    """Query surface handed to guards, navigation and page handlers."""

    __slots__ = ("_auth", "_matrix", "_roles_loading")

    def __init__(
        self,
        auth: AuthState,
        *,
        matrix: PermissionMatrix = PERMISSION_MATRIX,
        roles_loading: bool = False,
    ) -> None:
        self._auth = auth
        self._matrix = matrix
        self._roles_loading = roles_loading

    @property
    def auth(self) -> AuthState:
        return self._auth

    @property
    def user(self) -> AuthenticatedUser | None:
        return self._auth.user

    @property
    def roles(self) -> tuple[str, ...]:
        return self._auth.user.roles if self._auth.user is not None else ()

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    @property
    def loading(self) -> bool:
        return self._auth.is_loading or self._roles_loading

    @property
    def state(self) -> AuthorizationState:
        if self.loading:
            return AuthorizationState.LOADING
        if self._auth.user is None or not self._auth.is_authenticated:
            return AuthorizationState.UNINITIALIZED
        return AuthorizationState.READY

    def has_any_role(self, roles: Iterable[str]) -> bool:
        """True if any of the user's role tags appears in ``roles`` (case-insensitive)."""
        wanted = {role.casefold() for role in roles if isinstance(role, str)}
        return any(role.casefold() in wanted for role in self.roles)

    def has_module_access(self, module: Module | str) -> bool:
        return resolver.has_module_access(self.user, module, matrix=self._matrix)

    def can_perform_module_action(self, module: Module | str, action: Action | str) -> bool:
        return resolver.can_perform(self.user, module, action, matrix=self._matrix)

    def can_perform_action(
        self, role: str, module: Module | str, action: Action | str
    ) -> bool:
        """Check a role other than the current user's, e.g. a team manager."""
        return resolver.role_can_perform(role, module, action, matrix=self._matrix)

    def accessible_modules(self) -> list[str]:
        return resolver.accessible_modules(self.user, matrix=self._matrix)

    def __repr__(self) -> str:
        user_id = self.user.id if self.user is not None else None
        return f"AuthorizationContext(user={user_id!r}, state={self.state.value})"


class AuthorizationProvider:
    """
    Process-scoped owner of the permission matrix.

    Without a role-config source the built-in matrix is used and the provider
    is never loading. With a source, ``load()`` must be awaited; until it
    settles every bound context reports ``loading=True``. A failed or
    timed-out fetch leaves an empty matrix (deny-all) and ends loading.
    """

    def __init__(
        self,
        source: RoleConfigSource | None = None,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._source = source
        self._timeout_seconds = timeout_seconds
        self._matrix: PermissionMatrix = PERMISSION_MATRIX if source is None else EMPTY_MATRIX
        self._loading = source is not None
        self._current = AuthorizationContext(
            AuthState.anonymous(), matrix=self._matrix, roles_loading=self._loading
        )
        self._listeners: list[ContextListener] = []

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    @property
    def current(self) -> AuthorizationContext:
        return self._current

    def subscribe(self, listener: ContextListener) -> Callable[[], None]:
        """Register a callback fired whenever the bound context changes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def context_for(self, auth: AuthState) -> AuthorizationContext:
        """Build a context for ``auth`` without touching the current binding."""
        return AuthorizationContext(auth, matrix=self._matrix, roles_loading=self._loading)

    def bind(self, auth: AuthState) -> AuthorizationContext:
        """Replace the current binding with one for ``auth``."""
        previous = self._current
        self._current = self.context_for(auth)
        if (
            previous.user != self._current.user
            or previous.loading != self._current.loading
        ):
            self._notify()
        return self._current

    async def load(self) -> PermissionMatrix:
        if self._source is None:
            return self._matrix

        self._set_loading(True)
        try:
            matrix = await asyncio.wait_for(
                self._source.fetch(), timeout=self._timeout_seconds
            )
            validate_matrix(matrix, require_roles=False)
        except asyncio.TimeoutError:
            logger.warning(
                "Role configuration fetch timed out after %ss; denying all module access",
                self._timeout_seconds,
            )
            matrix = EMPTY_MATRIX
        except (RoleConfigError, RuntimeError) as exc:
            logger.warning(
                "Role configuration unavailable; denying all module access error=%s", exc
            )
            matrix = EMPTY_MATRIX
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Unexpected role configuration failure; denying all module access",
                exc_info=exc,
            )
            matrix = EMPTY_MATRIX
        else:
            logger.info("Loaded role configuration roles=%s", sorted(matrix))

        self._matrix = matrix
        self._set_loading(False)
        return matrix

    def _set_loading(self, loading: bool) -> None:
        self._loading = loading
        self._current = self.context_for(self._current.auth)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._current)
