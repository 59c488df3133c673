import logging
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth.authorization_context import AuthorizationContext, AuthorizationProvider
from .auth.route_guard import GuardOutcome
from .auth.route_table import guard_for
from .config import settings
from .errors import AuthError, GuardPending, GuardRedirect, InternalError
from .schemas.auth import AuthState
from .security.token_inspection import ExpiredTokenError, InvalidTokenError, user_from_token

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger("hrms.auth")


def _request_token(
    request: Request, credentials: HTTPAuthorizationCredentials | None
) -> str | None:
    if credentials is not None and credentials.scheme.lower() == "bearer":
        return credentials.credentials
    return request.cookies.get(settings.session_cookie_name) or None


async def get_auth_state(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthState:
    token = _request_token(request, credentials)
    if token is None:
        return AuthState.anonymous()

    try:
        user = user_from_token(token)
    except ExpiredTokenError:
        logger.info("Session token expired path=%s", request.url.path)
        return AuthState.anonymous()
    except InvalidTokenError:
        logger.info("Session token rejected path=%s", request.url.path)
        return AuthState.anonymous()

    return AuthState.signed_in(user)


def get_authorization_provider(request: Request) -> AuthorizationProvider:
    provider = getattr(request.app.state, "authorization_provider", None)
    if provider is None:
        raise InternalError(details={"reason": "authorization provider not configured"})
    return provider


async def get_authorization_context(
    auth: AuthState = Depends(get_auth_state),
    provider: AuthorizationProvider = Depends(get_authorization_provider),
) -> AuthorizationContext:
    return provider.context_for(auth)


async def require_authenticated(
    context: AuthorizationContext = Depends(get_authorization_context),
) -> AuthorizationContext:
    """JSON endpoints: 401 instead of a login redirect."""
    if not context.auth.is_authenticated or context.user is None:
        raise AuthError("Not authenticated")
    return context


def guard_route(path: str) -> Callable:
    """
    Page dependency enforcing the route table entry for ``path``.

    Raises:
        GuardPending: While authentication or role data is still loading
        GuardRedirect: When the guard sends the user elsewhere
    """
    guard = guard_for(path)

    async def dependency(
        context: AuthorizationContext = Depends(get_authorization_context),
    ) -> AuthorizationContext:
        decision = guard.evaluate(
            context.auth,
            context,
            login_path=settings.login_path,
            dashboard_path=settings.dashboard_path,
        )
        if decision.outcome is GuardOutcome.LOADING:
            raise GuardPending()
        if decision.outcome is GuardOutcome.REDIRECT:
            raise GuardRedirect(decision.location or settings.dashboard_path, reason=decision.reason)
        return context

    return dependency
