from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable

import jwt
from pydantic import ValidationError as PydanticValidationError

from ..config import settings
from ..schemas.auth import AuthenticatedUser


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(Exception):
    """Raised when a token has expired."""


def _parse_token_payload(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError from exc


def validate_access_token(token: str) -> Dict[str, Any]:
    payload = _parse_token_payload(token)

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise InvalidTokenError()

    roles = payload.get("roles")
    if not isinstance(roles, list) or not roles or not all(isinstance(r, str) for r in roles):
        raise InvalidTokenError()

    return payload


def user_from_token(token: str) -> AuthenticatedUser:
    payload = validate_access_token(token)
    try:
        return AuthenticatedUser(
            id=payload["sub"],
            name=payload.get("name") or "",
            email=payload.get("email"),
            roles=tuple(payload["roles"]),
        )
    except PydanticValidationError as exc:
        raise InvalidTokenError from exc


def create_access_token(
    user_id: str,
    roles: Iterable[str],
    *,
    name: str = "",
    email: str | None = None,
    expires_in: timedelta = timedelta(minutes=30),
) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": user_id,
        "roles": list(roles),
        "name": name,
        "iat": now,
        "exp": now + expires_in,
    }
    if email is not None:
        payload["email"] = email
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
