"""Bearer-token authentication.

Tokens are HS256 JWTs carrying ``sub`` (user id), ``role`` and optionally
``email``. Issuing them belongs to the identity service; ``encode_token`` is
provided for development tooling and tests.
"""

from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from orderflow.access.guard import Principal, Role, ensure_admin
from orderflow.config import get_settings
from orderflow.errors import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


def encode_token(principal: Principal, expires_in: timedelta = timedelta(hours=1)) -> str:
    settings = get_settings()
    claims = {
        "sub": principal.user_id,
        "role": principal.role.value,
        "exp": datetime.now(UTC) + expires_in,
    }
    if principal.email:
        claims["email"] = principal.email
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Principal:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token has expired", code="token_expired") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid token", code="invalid_token") from exc

    if not claims.get("sub"):
        raise AuthenticationError("Token has no subject", code="invalid_token")
    try:
        role = Role(claims.get("role", Role.USER.value))
    except ValueError as exc:
        raise AuthenticationError("Token has an unknown role", code="invalid_token") from exc
    return Principal(user_id=str(claims["sub"]), role=role, email=claims.get("email"))


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")
    return decode_token(credentials.credentials)


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    ensure_admin(principal)
    return principal
