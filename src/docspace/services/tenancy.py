"""Tenancy guard: resolve the caller's organization and enforce role gates.

The organization id always comes from the authenticated session claims,
never from request bodies or query strings.
"""

from dataclasses import dataclass

from docspace.errors.exceptions import AuthenticationError, AuthorizationError
from docspace.models.enums import UserRole


@dataclass(frozen=True)
class TenantContext:
    user_id: str
    role: str
    organization_id: str | None
    email: str = ""

    @property
    def is_org_admin(self) -> bool:
        return self.role in (UserRole.ORG_ADMIN, UserRole.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN


def require_organization_id(organization_id: str | None) -> str:
    """Return the organization id or refuse to run an unscoped query."""
    if not organization_id:
        raise AuthorizationError("No organization is associated with this session")
    return organization_id


def tenant_from_claims(user: dict | None) -> TenantContext:
    """Build a TenantContext from the claims the auth middleware attached."""
    if user and "_auth_error" in user:
        raise AuthenticationError(user["_auth_error"])
    if not user or user.get("sub") in (None, "", "anonymous"):
        raise AuthenticationError("Authentication required")
    return TenantContext(
        user_id=user["sub"],
        role=user.get("role") or UserRole.USER,
        organization_id=user.get("org_id") or None,
        email=user.get("email", ""),
    )


def require_role(tenant: TenantContext, *roles: str) -> TenantContext:
    if tenant.role not in roles:
        raise AuthorizationError(f"Requires one of: {', '.join(roles)}")
    return tenant
