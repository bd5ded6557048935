"""Document reads, tree views and single-document deletion."""

import logging
from urllib.parse import quote

from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.document import DocumentRow
from docspace.errors.exceptions import NotFoundError, StorageError
from docspace.models.document import DocumentDetail, DocumentResponse, FileNode
from docspace.repositories.document_repo import DocumentRepository
from docspace.services.file_tree import build_file_tree, sort_tree
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.paths import file_extension
from docspace.services.storage import FileStorage

logger = logging.getLogger(__name__)

UNREADABLE_CONTENT = "Unable to read file content"


class DocumentService:
    def __init__(
        self,
        session: AsyncSession,
        storage: FileStorage,
        indexer: IndexingClient,
        locks: WorkspaceLocks,
        public_base_url: str,
    ):
        self.session = session
        self.storage = storage
        self.indexer = indexer
        self.locks = locks
        self.public_base_url = public_base_url.rstrip("/")
        self.documents = DocumentRepository(session)

    async def _require(self, document_id: str, organization_id: str | None) -> DocumentRow:
        document = await self.documents.get(document_id, organization_id)
        if document is None:
            raise NotFoundError("Document", document_id)
        return document

    def public_url(self, filepath: str) -> str:
        return f"{self.public_base_url}/{quote(filepath.removeprefix('public/'))}"

    async def list_documents(self, workspace_id: str, organization_id: str | None) -> list[DocumentResponse]:
        rows = await self.documents.list_by_workspace(workspace_id, organization_id)
        return [DocumentResponse.model_validate(row) for row in rows]

    async def tree(self, workspace_id: str, organization_id: str | None) -> list[FileNode]:
        rows = await self.documents.list_by_workspace(workspace_id, organization_id)
        return sort_tree(build_file_tree(rows))

    async def get_detail(self, document_id: str, organization_id: str | None) -> tuple[DocumentRow, DocumentDetail]:
        """Metadata plus public URL; text files also carry their content."""
        document = await self._require(document_id, organization_id)
        content = ""
        if file_extension(document.filepath) == "txt":
            try:
                content = await self.storage.read_text(document.filepath)
            except StorageError as exc:
                logger.error("Error reading text file %s: %s", document.filepath, exc)
                content = UNREADABLE_CONTENT
        detail = DocumentDetail(
            document_id=document.document_id,
            filepath=document.filepath,
            url=self.public_url(document.filepath),
            content=content,
            created_at=document.created_at,
        )
        return document, detail

    async def get_download_url(self, document_id: str, organization_id: str | None) -> tuple[DocumentRow, str]:
        document = await self._require(document_id, organization_id)
        return document, self.public_url(document.filepath)

    async def delete(self, document_id: str, organization_id: str | None) -> None:
        """Index delete first (failure aborts), then unlink, then the row."""
        document = await self._require(document_id, organization_id)

        async with self.locks.shared(document.workspace_id):
            await self.indexer.delete_document(
                document.workspace_id, document.document_id, document.original_file_id
            )
            try:
                removed = await self.storage.delete_file(document.filepath)
            except StorageError as exc:
                logger.error("Failed to delete file %s: %s", document.filepath, exc)
            else:
                if not removed:
                    logger.warning("File %s was already missing", document.filepath)

            await self.documents.delete_by_id(document_id, organization_id)
            await self.session.commit()

        logger.info("Deleted document %s from workspace %s", document_id, document.workspace_id)
