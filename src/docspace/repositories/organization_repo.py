"""Organization repository."""

from sqlalchemy import func, select

from docspace.db.models.organization import OrganizationRow
from docspace.db.models.user import UserRow
from docspace.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[OrganizationRow]):
    model = OrganizationRow

    async def get(self, organization_id: str) -> OrganizationRow | None:
        return await self.load(organization_id)

    async def get_by_slug(self, slug: str) -> OrganizationRow | None:
        stmt = select(OrganizationRow).where(OrganizationRow.slug == slug)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_with_user_counts(self) -> list[tuple[OrganizationRow, int]]:
        stmt = (
            select(OrganizationRow, func.count(UserRow.user_id))
            .outerjoin(UserRow, UserRow.organization_id == OrganizationRow.organization_id)
            .group_by(OrganizationRow.organization_id)
            .order_by(OrganizationRow.created_at.desc())
        )
        result = await self.session.execute(stmt)
        return [(row, count) for row, count in result.all()]
