"""Bearer-token middleware.

Tokens are minted by the login surface. This layer only verifies them and
puts the claims the tenancy guard needs on ``request.state.user``; deciding
whether a route may be called anonymously is left to the route.
"""

import logging

from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from docspace.config import settings

logger = logging.getLogger(__name__)

_OPEN_PATHS = frozenset({"/api/v1/health", "/api/v1/health/ready", "/openapi.json"})
_OPEN_PREFIXES = ("/docs", "/redoc")


def anonymous(error: str | None = None) -> dict:
    user = {"sub": "anonymous", "role": None, "org_id": None}
    if error:
        user["_auth_error"] = error
    return user


def decode_token(token: str) -> dict:
    """Verify signature, expiry, issuer and audience; raise ValueError otherwise."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except JWTError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise ValueError(str(exc)) from exc


def claims_from_header(authorization: str) -> dict:
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return anonymous()
    try:
        payload = decode_token(token.strip())
    except ValueError:
        return anonymous("invalid_token")
    if payload.get("type", "access") != "access":
        return anonymous("not_access_token")
    return {
        "sub": payload.get("sub", ""),
        "role": payload.get("role"),
        "org_id": payload.get("org_id"),
        "email": payload.get("email", ""),
    }


class AuthMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path
        if path in _OPEN_PATHS or path.startswith(_OPEN_PREFIXES):
            request.state.user = anonymous()
        else:
            request.state.user = claims_from_header(request.headers.get("authorization", ""))
        return await call_next(request)
