"""Organization lifecycle: slugs, expiry and organization users."""

import logging
import re
import secrets
import string
from datetime import datetime, timedelta, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.organization import OrganizationRow
from docspace.db.models.user import UserRow
from docspace.errors.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from docspace.models.enums import AccessLevel, OrganizationStatus, UserRole
from docspace.models.organization import OrganizationCreate, OrganizationUpdate
from docspace.models.user import UserCreate
from docspace.repositories.chat_repo import ChatRepository
from docspace.repositories.organization_repo import OrganizationRepository
from docspace.repositories.user_repo import UserRepository
from docspace.repositories.workspace_access_repo import WorkspaceAccessRepository
from docspace.repositories.workspace_repo import WorkspaceRepository
from docspace.services.id_generator import generate_id
from docspace.services.security import hash_password

logger = logging.getLogger(__name__)

_SLUG_ALPHABET = string.ascii_lowercase + string.digits
_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    """Lower-case, URL-safe slug; runs of anything else collapse to '-'."""
    slug = _NON_SLUG.sub("-", name.lower()).strip("-")
    if not slug:
        raise ValidationError(f"Cannot derive a slug from '{name}'")
    return slug


def random_suffix(length: int = 6) -> str:
    return "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(length))


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_expired(organization: OrganizationRow, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return now > _as_aware(organization.expires_at)


class OrganizationService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.organizations = OrganizationRepository(session)
        self.users = UserRepository(session)

    async def get(self, organization_id: str) -> OrganizationRow:
        organization = await self.organizations.get(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id)
        return organization

    async def list_with_user_counts(self) -> list[tuple[OrganizationRow, int]]:
        return await self.organizations.list_with_user_counts()

    async def _unique_slug(self, name: str) -> str:
        slug = slugify(name)
        while await self.organizations.get_by_slug(slug) is not None:
            slug = f"{slugify(name)}-{random_suffix()}"
        return slug

    async def create(self, data: OrganizationCreate) -> OrganizationRow:
        slug = await self._unique_slug(data.name)
        try:
            organization = await self.organizations.create(
                organization_id=generate_id("org_"),
                name=data.name,
                slug=slug,
                status=OrganizationStatus.ACTIVE,
                expires_at=datetime.now(timezone.utc) + timedelta(days=data.expiry_days),
            )
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(f"Organization slug '{slug}' is already taken") from exc
        logger.info("Created organization %s with slug %s", organization.organization_id, slug)
        return organization

    async def update(self, organization_id: str, data: OrganizationUpdate) -> OrganizationRow:
        """Update name, status or expiry. The slug never changes."""
        organization = await self.get(organization_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        await self.organizations.update(organization, **fields)
        await self.session.commit()
        return organization

    async def ensure_active(self, organization_id: str) -> OrganizationRow:
        """Reject sessions of inactive or expired organizations.

        An active organization past its expiry is flipped to ``expired``.
        """
        organization = await self.organizations.get(organization_id)
        if organization is None:
            raise AuthorizationError("Organization not found")

        if is_expired(organization) and organization.status == OrganizationStatus.ACTIVE:
            organization.status = OrganizationStatus.EXPIRED
            await self.session.commit()
            logger.info("Organization %s expired", organization_id)

        if organization.status != OrganizationStatus.ACTIVE:
            raise AuthorizationError(f"Organization is {organization.status}")
        return organization

    async def create_user(self, organization_id: str, data: UserCreate) -> UserRow:
        await self.get(organization_id)
        email = data.email.lower()
        if await self.users.get_by_email(email) is not None:
            raise ConflictError(f"A user with email {email} already exists")
        try:
            user = await self.users.create(
                user_id=generate_id("usr_"),
                email=email,
                hashed_password=hash_password(data.password),
                firstname=data.firstname,
                lastname=data.lastname,
                role=data.role,
                organization_id=organization_id,
            )
            if data.role == UserRole.ORG_ADMIN:
                await self._grant_admin_everywhere(user.user_id, organization_id)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(f"A user with email {email} already exists") from exc
        logger.info("Created %s %s in organization %s", data.role, user.user_id, organization_id)
        return user

    async def _grant_admin_everywhere(self, user_id: str, organization_id: str) -> None:
        grants = WorkspaceAccessRepository(self.session)
        for workspace in await WorkspaceRepository(self.session).list_by_org(organization_id):
            await grants.create(
                access_id=generate_id("acc_"),
                user_id=user_id,
                workspace_id=workspace.workspace_id,
                access_level=AccessLevel.ADMIN,
            )

    async def upsert_super_admin(
        self, email: str, password: str, firstname: str = "", lastname: str = ""
    ) -> tuple[UserRow, bool]:
        """Create a super admin, or promote and re-password an existing user.

        Returns (user, created).
        """
        email = email.lower()
        user = await self.users.get_by_email(email)
        if user is None:
            user = await self.users.create(
                user_id=generate_id("usr_"),
                email=email,
                hashed_password=hash_password(password),
                firstname=firstname,
                lastname=lastname,
                role=UserRole.SUPER_ADMIN,
                organization_id=None,
            )
            created = True
        else:
            await self.users.update(
                user,
                hashed_password=hash_password(password),
                role=UserRole.SUPER_ADMIN,
                organization_id=None,
            )
            created = False
        await self.session.commit()
        return user, created

    async def remove_super_admin(self, email: str) -> bool:
        user = await self.users.get_by_email(email.lower())
        if user is None or user.role != UserRole.SUPER_ADMIN:
            return False
        await self.users.delete_row(user)
        await self.session.commit()
        return True

    async def delete_user(self, organization_id: str | None, user_id: str, acting_user_id: str) -> None:
        """Remove a user of the organization with their grants and chats."""
        if user_id == acting_user_id:
            raise ValidationError("You cannot delete your own account")
        user = await self.users.get_in_org(user_id, organization_id)
        if user is None:
            raise NotFoundError("User", user_id)

        grants_removed = await WorkspaceAccessRepository(self.session).delete_for_user(user_id)
        chats_removed = await ChatRepository(self.session).delete_for_user(user_id, organization_id)
        await self.users.delete_row(user)
        await self.session.commit()
        logger.info(
            "Deleted user %s from %s (%d grants, %d chats)",
            user_id, organization_id, grants_removed, chats_removed,
        )
