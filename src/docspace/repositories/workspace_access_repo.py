"""Workspace access (grant) repository.

Grants carry no organization column; tenancy is enforced through a join on
the owning workspace.
"""

from sqlalchemy import delete, select

from docspace.db.models.user import UserRow
from docspace.db.models.workspace import WorkspaceAccessRow, WorkspaceRow
from docspace.repositories.base import BaseRepository
from docspace.services.tenancy import require_organization_id


class WorkspaceAccessRepository(BaseRepository[WorkspaceAccessRow]):
    model = WorkspaceAccessRow

    async def get(self, user_id: str, workspace_id: str) -> WorkspaceAccessRow | None:
        stmt = select(WorkspaceAccessRow).where(
            WorkspaceAccessRow.user_id == user_id,
            WorkspaceAccessRow.workspace_id == workspace_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_workspace(self, workspace_id: str) -> list[WorkspaceAccessRow]:
        return await self.find(WorkspaceAccessRow.workspace_id == workspace_id)

    async def list_for_user(self, user_id: str, organization_id: str | None) -> list[WorkspaceAccessRow]:
        org_id = require_organization_id(organization_id)
        stmt = (
            select(WorkspaceAccessRow)
            .join(WorkspaceRow, WorkspaceRow.workspace_id == WorkspaceAccessRow.workspace_id)
            .where(
                WorkspaceAccessRow.user_id == user_id,
                WorkspaceRow.organization_id == org_id,
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_with_users(
        self, workspace_id: str, organization_id: str | None
    ) -> list[tuple[WorkspaceAccessRow, UserRow]]:
        org_id = require_organization_id(organization_id)
        stmt = (
            select(WorkspaceAccessRow, UserRow)
            .join(UserRow, UserRow.user_id == WorkspaceAccessRow.user_id)
            .join(WorkspaceRow, WorkspaceRow.workspace_id == WorkspaceAccessRow.workspace_id)
            .where(
                WorkspaceAccessRow.workspace_id == workspace_id,
                WorkspaceRow.organization_id == org_id,
                UserRow.organization_id == org_id,
            )
            .order_by(UserRow.email)
        )
        result = await self.session.execute(stmt)
        return [(grant, user) for grant, user in result.all()]

    async def delete_for_workspace(self, workspace_id: str) -> int:
        stmt = delete(WorkspaceAccessRow).where(WorkspaceAccessRow.workspace_id == workspace_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_user(self, user_id: str, workspace_ids: list[str] | None = None) -> int:
        stmt = delete(WorkspaceAccessRow).where(WorkspaceAccessRow.user_id == user_id)
        if workspace_ids is not None:
            stmt = stmt.where(WorkspaceAccessRow.workspace_id.in_(workspace_ids))
        result = await self.session.execute(stmt)
        return result.rowcount or 0
