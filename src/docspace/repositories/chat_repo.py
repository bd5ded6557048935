"""Chat repository (only the operations the workspace core needs)."""

from sqlalchemy import delete, func, update

from docspace.db.models.chat import ChatRow
from docspace.repositories.base import OrgScopedRepository


class ChatRepository(OrgScopedRepository[ChatRow]):
    model = ChatRow

    async def detach_workspace(self, workspace_id: str, workspace_name: str, organization_id: str | None) -> int:
        """Null out the workspace reference; blank or missing name snapshots get ``workspace_name``."""
        stmt = self.scoped(
            update(ChatRow)
            .where(ChatRow.workspace_id == workspace_id)
            .values(
                workspace_id=None,
                workspace_name=func.coalesce(func.nullif(ChatRow.workspace_name, ""), workspace_name),
            ),
            organization_id,
        ).execution_options(synchronize_session=False)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_user(self, user_id: str, organization_id: str | None) -> int:
        stmt = self.scoped(delete(ChatRow).where(ChatRow.user_id == user_id), organization_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
