"""Repository for User records."""

from sqlalchemy import select

from docspace.db.models.user import UserRow
from docspace.models.enums import UserRole
from docspace.repositories.base import OrgScopedRepository


class UserRepository(OrgScopedRepository[UserRow]):
    model = UserRow

    async def get_by_email(self, email: str) -> UserRow | None:
        stmt = select(UserRow).where(UserRow.email == email)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_org(self, organization_id: str | None) -> list[UserRow]:
        stmt = self.scoped(select(UserRow), organization_id).order_by(UserRow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_org_admins(self, organization_id: str | None) -> list[UserRow]:
        stmt = self.scoped(
            select(UserRow).where(UserRow.role == UserRole.ORG_ADMIN),
            organization_id,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def existing_ids_in_org(self, organization_id: str | None, user_ids: list[str]) -> set[str]:
        if not user_ids:
            return set()
        stmt = self.scoped(
            select(UserRow.user_id).where(UserRow.user_id.in_(user_ids)),
            organization_id,
        )
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    async def list_super_admins(self) -> list[UserRow]:
        stmt = (
            select(UserRow)
            .where(UserRow.role == UserRole.SUPER_ADMIN)
            .order_by(UserRow.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
