"""Bearer-token protection for the API.

Tokens are issued by the identity provider (Supabase Auth); this service only
verifies their HS256 signature against the shared JWT secret
(env: ``KENNEDY_JWT_SECRET``, falling back to ``SUPABASE_JWT_SECRET``).

Without a configured secret every request is refused with 503, unless
``KENNEDY_AUTH_DISABLED=1`` explicitly opens the API (local development).
A configured secret always wins over that switch.
"""

from __future__ import annotations

import os
from typing import Any

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from kennedy.logging import get_logger

logger = get_logger(__name__)

JWT_ALGORITHMS = ["HS256"]

_BEARER = HTTPBearer(auto_error=False)


def _is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _jwt_secret() -> str | None:
    raw = os.getenv("KENNEDY_JWT_SECRET") or os.getenv("SUPABASE_JWT_SECRET")
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


def decode_token(token: str, secret: str) -> dict[str, Any]:
    """Verify ``token`` and return its claims.

    Raises :class:`jwt.InvalidTokenError` (or a subclass such as
    :class:`jwt.ExpiredSignatureError`) when the token is not acceptable.
    """

    return jwt.decode(
        token,
        secret,
        algorithms=JWT_ALGORITHMS,
        options={"verify_aud": False},
    )


def require_token(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Depends(_BEARER),
) -> dict[str, Any] | None:
    """FastAPI dependency guarding the ``/api`` routes."""

    secret = _jwt_secret()
    if secret is None:
        if _is_truthy(os.getenv("KENNEDY_AUTH_DISABLED")):
            request.state.user = None
            return None
        logger.error("KENNEDY_JWT_SECRET is not set; refusing /api request")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication is not configured: set KENNEDY_JWT_SECRET.",
        )

    if bearer is None or not bearer.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Acceso denegado: Token requerido",
        )

    try:
        claims = decode_token(bearer.credentials, secret)
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Token inválido o expirado",
        ) from exc

    request.state.user = claims
    return claims
