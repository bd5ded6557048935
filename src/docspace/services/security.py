"""Password hashing and access-token minting.

Sessions are issued by the external login surface, which checks passwords
stored in the ``salt:sha256`` form written here; ``create_access_token``
mints the same claim set.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

from jose import jwt

from docspace.config import settings


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()
    return f"{salt}:{digest}"


def create_access_token(
    user_id: str,
    role: str,
    organization_id: str | None,
    email: str = "",
    expires_minutes: int | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    minutes = expires_minutes or settings.jwt_access_token_expire_minutes
    payload = {
        "sub": user_id,
        "role": role,
        "org_id": organization_id,
        "email": email,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
        "type": "access",
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
