"""JWT access token validation (python-jose).

Tokens are issued outside this service by an identity provider that shares
``JWT_SECRET``. An access token carries ``sub`` (the employee id),
``type="access"`` and ``exp``. The role is never taken from the token; it is
always read from the employee record when the caller is resolved.
"""

from __future__ import annotations

import uuid

from jose import ExpiredSignatureError, JWTError, jwt

from leave_planner.common.exceptions import AuthenticationException
from leave_planner.config import settings


def decode_access_token(token: str) -> uuid.UUID:
    """Validate *token* and return the employee id it was issued for."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise AuthenticationException("Token has expired.")
    except JWTError:
        raise AuthenticationException("Invalid token.")

    if payload.get("type") != "access":
        raise AuthenticationException("Invalid token type.")

    try:
        return uuid.UUID(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationException("Invalid token subject.")
