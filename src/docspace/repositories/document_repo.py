"""Document repository. Every query is filtered by organization."""

from sqlalchemy import delete, func, select

from docspace.db.models.document import DocumentRow
from docspace.repositories.base import OrgScopedRepository


class DocumentRepository(OrgScopedRepository[DocumentRow]):
    model = DocumentRow

    async def get(self, document_id: str, organization_id: str | None) -> DocumentRow | None:
        return await self.get_in_org(document_id, organization_id)

    async def list_by_workspace(self, workspace_id: str, organization_id: str | None) -> list[DocumentRow]:
        """Documents of a workspace, newest first."""
        stmt = self.scoped(
            select(DocumentRow).where(DocumentRow.workspace_id == workspace_id),
            organization_id,
        ).order_by(DocumentRow.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_workspace(self, workspace_id: str, organization_id: str | None) -> int:
        stmt = self.scoped(
            select(func.count(DocumentRow.document_id)).where(DocumentRow.workspace_id == workspace_id),
            organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def get_by_filepath(self, filepath: str, organization_id: str | None) -> DocumentRow | None:
        stmt = self.scoped(select(DocumentRow).where(DocumentRow.filepath == filepath), organization_id)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_original(
        self, document_id: str, workspace_id: str, organization_id: str | None
    ) -> DocumentRow | None:
        """Return the document only if it is an original in the given workspace."""
        stmt = self.scoped(
            select(DocumentRow).where(
                DocumentRow.document_id == document_id,
                DocumentRow.workspace_id == workspace_id,
                DocumentRow.file_type == "original",
            ),
            organization_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_id(self, document_id: str, organization_id: str | None) -> int:
        stmt = self.scoped(delete(DocumentRow).where(DocumentRow.document_id == document_id), organization_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_workspace(self, workspace_id: str, organization_id: str | None) -> int:
        stmt = self.scoped(delete(DocumentRow).where(DocumentRow.workspace_id == workspace_id), organization_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0
