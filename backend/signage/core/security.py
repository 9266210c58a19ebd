"""Bearer token verification for identities issued by the auth provider."""

from typing import Annotated

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError
from pydantic import BaseModel

from signage.core.config import Settings, get_settings
from signage.core.errors import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


class AuthenticatedUser(BaseModel):
    """Identity claims extracted from a verified token."""

    uid: str
    email: str = ""
    name: str | None = None
    email_verified: bool = False


def verify_id_token(token: str, settings: Settings) -> AuthenticatedUser:
    """Verify a signed ID token and return its identity claims."""
    options = {"require": ["sub"], "verify_aud": settings.auth_audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret_key,
            algorithms=[settings.auth_algorithm],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            options=options,
        )
    except InvalidTokenError as e:
        raise AuthenticationError(f"Invalid token: {e}") from None

    uid = payload.get("user_id") or payload.get("sub")
    if not uid:
        raise AuthenticationError("Token has no subject")

    return AuthenticatedUser(
        uid=str(uid),
        email=payload.get("email") or "",
        name=payload.get("name"),
        email_verified=bool(payload.get("email_verified", False)),
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> AuthenticatedUser:
    """Resolve the caller's identity from the Authorization header."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("No token provided")
    return verify_id_token(credentials.credentials, get_settings())


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
