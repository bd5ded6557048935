"""Workspace repository. Every query is filtered by organization."""

from sqlalchemy import func, select

from docspace.db.models.document import DocumentRow
from docspace.db.models.workspace import WorkspaceAccessRow, WorkspaceRow
from docspace.repositories.base import OrgScopedRepository


class WorkspaceRepository(OrgScopedRepository[WorkspaceRow]):
    model = WorkspaceRow

    async def get(self, workspace_id: str, organization_id: str | None) -> WorkspaceRow | None:
        return await self.get_in_org(workspace_id, organization_id)

    async def get_by_name(self, organization_id: str | None, name: str) -> WorkspaceRow | None:
        stmt = self.scoped(select(WorkspaceRow).where(WorkspaceRow.name == name), organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_with_counts(self, organization_id: str | None) -> list[tuple[WorkspaceRow, int]]:
        """Workspaces of the organization with their document counts, newest first."""
        stmt = self.scoped(
            select(WorkspaceRow, func.count(DocumentRow.document_id))
            .outerjoin(DocumentRow, DocumentRow.workspace_id == WorkspaceRow.workspace_id)
            .group_by(WorkspaceRow.workspace_id),
            organization_id,
        ).order_by(WorkspaceRow.created_at.desc())
        result = await self.session.execute(stmt)
        return [(row, count) for row, count in result.all()]

    async def list_by_org(self, organization_id: str | None) -> list[WorkspaceRow]:
        stmt = self.scoped(select(WorkspaceRow), organization_id).order_by(WorkspaceRow.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: str, organization_id: str | None) -> list[tuple[WorkspaceRow, str]]:
        """Workspaces the user holds a grant on, with the grant's access level."""
        stmt = self.scoped(
            select(WorkspaceRow, WorkspaceAccessRow.access_level)
            .join(WorkspaceAccessRow, WorkspaceAccessRow.workspace_id == WorkspaceRow.workspace_id)
            .where(WorkspaceAccessRow.user_id == user_id),
            organization_id,
        ).order_by(WorkspaceRow.created_at.desc())
        result = await self.session.execute(stmt)
        return [(row, level) for row, level in result.all()]
