# src/metricboard/auth.py

"""Caller role resolution.

Token issuance lives elsewhere; this module only reads the ``role`` claim of
an HS256 bearer token and gates mutations on it.
"""

import logging
import os
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from metricboard.enums import Role
from metricboard.exceptions import ForbiddenError, InvalidEnumValueError, UnauthorizedError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

EDITOR_ROLES = (Role.ADMIN, Role.MODERATOR)


def _secret() -> str:
    """The signing secret. There is no built-in default.

    Raises:
        UnauthorizedError: If JWT_SECRET is not configured
    """
    secret = os.getenv("JWT_SECRET")
    if not secret:
        logger.error("JWT_SECRET is not set; rejecting bearer tokens")
        raise UnauthorizedError("Token verification is not configured")
    return secret


def _algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def create_role_token(role: Role | str, subject: str = "service") -> str:
    """Sign a token carrying a role claim. Used by tooling and tests."""
    claims = {"sub": subject, "role": Role.parse(role).value}
    return jwt.encode(claims, _secret(), algorithm=_algorithm())


def decode_role(token: str) -> Role:
    """
    Returns the role carried by a bearer token.

    A token without a role claim belongs to a plain user.

    Raises:
        UnauthorizedError: If the token is invalid or names an unknown role
    """
    try:
        claims = jwt.decode(token, _secret(), algorithms=[_algorithm()])
    except JWTError as e:
        logger.info("Rejected bearer token", extra={"reason": str(e)})
        raise UnauthorizedError("Invalid bearer token") from e

    try:
        return Role.parse(claims.get("role", Role.USER.value))
    except InvalidEnumValueError as e:
        raise UnauthorizedError(f"Unknown role '{claims.get('role')}'") from e


async def get_caller_role(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Role:
    """FastAPI dependency resolving the caller's role. Required on every route."""
    if credentials is None:
        raise UnauthorizedError()
    return decode_role(credentials.credentials)


def require_roles(*allowed: Role) -> Callable:
    """Build a dependency that admits only the given roles."""

    async def _check(role: Role = Depends(get_caller_role)) -> Role:
        if role not in allowed:
            raise ForbiddenError(role.value)
        return role

    return _check


require_editor = require_roles(*EDITOR_ROLES)
