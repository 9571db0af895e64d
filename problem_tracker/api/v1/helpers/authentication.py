"""
Bearer-token authentication.

Tokens are issued by the external identity provider; this service only
verifies them. The ``sub`` claim is the owner id that scopes every tracker.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from problem_tracker.api.v1.helpers.responses import unauthorized_response
from problem_tracker.config import settings

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedOwner:
    """The verified caller. Every store call is scoped to ``owner_id``."""

    owner_id: str
    claims: dict[str, Any] = field(default_factory=dict)


def create_access_token(
    subject: str, expires_delta: timedelta | None = None, **claims: Any
) -> str:
    """Mint an HS256 token in the provider's shape. Used by tests and local tooling."""
    to_encode: dict[str, Any] = {"sub": subject, **claims}
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    to_encode.update({"exp": expire})
    if settings.jwt_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.jwt_audience
    if settings.jwt_issuer and "iss" not in to_encode:
        to_encode["iss"] = settings.jwt_issuer
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithms[0])


def validate_jwt_token(jwt_token: str) -> AuthenticatedOwner:
    try:
        payload = jwt.decode(
            jwt_token,
            settings.jwt_secret_key,
            algorithms=settings.jwt_algorithms,
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
            options={"verify_aud": settings.jwt_audience is not None},
        )
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise unauthorized_response("Invalid JWT")

    owner_id = payload.get("sub")
    if not owner_id:
        raise unauthorized_response("Unauthorized - No user ID found")
    return AuthenticatedOwner(owner_id=owner_id, claims=payload)


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> AuthenticatedOwner:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise unauthorized_response("No authentication method found")
    return validate_jwt_token(credentials.credentials)
