"""Workspace Lifecycle Manager: create, rename/update, delete with cascade."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.db.models.workspace import WorkspaceRow
from docspace.errors.exceptions import ConflictError, NotFoundError, StorageError
from docspace.models.enums import DeleteState
from docspace.models.workspace import UserWorkspace, WorkspaceCreate, WorkspaceResponse, WorkspaceUpdate
from docspace.repositories.chat_repo import ChatRepository
from docspace.repositories.document_repo import DocumentRepository
from docspace.repositories.organization_repo import OrganizationRepository
from docspace.repositories.workspace_repo import WorkspaceRepository
from docspace.services.access_grants import AccessGrantManager
from docspace.services.id_generator import generate_id
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.paths import rewrite_workspace_prefix, workspace_folder
from docspace.services.storage import FileStorage
from docspace.services.tenancy import TenantContext, require_organization_id

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "A workspace with this name already exists"


def _to_response(workspace: WorkspaceRow, item_count: int | None = None) -> WorkspaceResponse:
    response = WorkspaceResponse.model_validate(workspace)
    response.item_count = item_count
    return response


class WorkspaceService:
    def __init__(
        self,
        session: AsyncSession,
        storage: FileStorage,
        indexer: IndexingClient,
        locks: WorkspaceLocks,
    ):
        self.session = session
        self.storage = storage
        self.indexer = indexer
        self.locks = locks
        self.workspaces = WorkspaceRepository(session)
        self.documents = DocumentRepository(session)
        self.chats = ChatRepository(session)
        self.grants = AccessGrantManager(session)

    async def _require(self, workspace_id: str, organization_id: str | None) -> WorkspaceRow:
        workspace = await self.workspaces.get(workspace_id, organization_id)
        if workspace is None:
            raise NotFoundError("Workspace", workspace_id)
        return workspace

    async def _org_slug(self, organization_id: str) -> str:
        organization = await OrganizationRepository(self.session).get(organization_id)
        if organization is None:
            raise NotFoundError("Organization", organization_id)
        return organization.slug

    # ---- Reads ----------------------------------------------------------------

    async def list_all(self, organization_id: str | None) -> list[WorkspaceResponse]:
        rows = await self.workspaces.list_with_counts(organization_id)
        return [_to_response(row, count) for row, count in rows]

    async def list_mine(self, tenant: TenantContext) -> list[UserWorkspace]:
        rows = await self.workspaces.list_for_user(tenant.user_id, tenant.organization_id)
        return [
            UserWorkspace(
                workspace_id=row.workspace_id,
                name=row.name,
                description=row.description,
                access_level=level,
                created_at=row.created_at,
            )
            for row, level in rows
        ]

    async def get(self, workspace_id: str, organization_id: str | None) -> WorkspaceResponse:
        workspace = await self._require(workspace_id, organization_id)
        count = await self.documents.count_by_workspace(workspace_id, organization_id)
        return _to_response(workspace, count)

    async def ensure_can_view(self, tenant: TenantContext, workspace_id: str) -> WorkspaceRow:
        """Org admins see every workspace; other users need a grant."""
        workspace = await self._require(workspace_id, tenant.organization_id)
        if not tenant.is_org_admin and await self.grants.grants.get(tenant.user_id, workspace_id) is None:
            raise NotFoundError("Workspace", workspace_id)
        return workspace

    async def get_config(self, workspace_id: str, organization_id: str | None) -> dict:
        workspace = await self._require(workspace_id, organization_id)
        return workspace.config or {"workspace": workspace.name, "fields": []}

    async def update_config(self, workspace_id: str, organization_id: str | None, config: dict) -> dict:
        workspace = await self._require(workspace_id, organization_id)
        workspace.config = config
        await self.session.commit()
        return config

    # ---- Create ---------------------------------------------------------------

    async def create(self, organization_id: str | None, data: WorkspaceCreate) -> WorkspaceResponse:
        org_id = require_organization_id(organization_id)
        if await self.workspaces.get_by_name(org_id, data.name):
            raise ConflictError(DUPLICATE_NAME_MESSAGE)

        try:
            workspace = await self.workspaces.create(
                workspace_id=generate_id("ws_"),
                name=data.name,
                description=data.description,
                organization_id=org_id,
                config=data.config,
            )
            await self.grants.set_workspace_access(workspace.workspace_id, org_id, data.user_ids)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError(DUPLICATE_NAME_MESSAGE) from exc
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Created workspace %s (%s) in %s", workspace.workspace_id, workspace.name, org_id)
        return _to_response(workspace, 0)

    # ---- Update / rename ------------------------------------------------------

    async def update(self, workspace_id: str, organization_id: str | None, data: WorkspaceUpdate) -> WorkspaceResponse:
        org_id = require_organization_id(organization_id)
        workspace = await self._require(workspace_id, org_id)

        if data.name is None or data.name == workspace.name:
            await self._apply_update(workspace, org_id, data, new_name=None)
        else:
            async with self.locks.exclusive(workspace_id):
                await self._apply_update(workspace, org_id, data, new_name=data.name)

        count = await self.documents.count_by_workspace(workspace_id, org_id)
        return _to_response(workspace, count)

    async def _apply_update(
        self, workspace: WorkspaceRow, org_id: str, data: WorkspaceUpdate, new_name: str | None
    ) -> None:
        workspace_id = workspace.workspace_id
        old_name = workspace.name
        slug = None
        folder_moved = False

        if data.user_ids is None:
            selected = await self.grants.current_view_user_ids(workspace_id)
        else:
            selected = data.user_ids

        try:
            if new_name is not None:
                if await self.workspaces.get_by_name(org_id, new_name):
                    raise ConflictError(DUPLICATE_NAME_MESSAGE)
                slug = await self._org_slug(org_id)
                rewritten = 0
                for doc in await self.documents.list_by_workspace(workspace_id, org_id):
                    new_path = rewrite_workspace_prefix(doc.filepath, slug, old_name, new_name)
                    if new_path != doc.filepath:
                        doc.filepath = new_path
                        rewritten += 1
                workspace.name = new_name
                await self.session.flush()
                folder_moved = await self.storage.rename_dir(
                    workspace_folder(slug, old_name), workspace_folder(slug, new_name)
                )
                logger.info(
                    "Renaming workspace %s from %s to %s: %d paths rewritten, folder moved: %s",
                    workspace_id, old_name, new_name, rewritten, folder_moved,
                )

            if data.description is not None:
                workspace.description = data.description
            if data.config is not None:
                workspace.config = data.config

            await self.grants.set_workspace_access(workspace_id, org_id, selected)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            if folder_moved:
                await self._restore_folder(slug, new_name, old_name)
            if isinstance(exc, IntegrityError):
                raise ConflictError(DUPLICATE_NAME_MESSAGE) from exc
            raise

    async def _restore_folder(self, slug: str, current_name: str, original_name: str) -> None:
        try:
            await self.storage.rename_dir(workspace_folder(slug, current_name), workspace_folder(slug, original_name))
        except (ConflictError, StorageError) as exc:
            logger.error(
                "Could not move folder of workspace %s back to %s: %s", current_name, original_name, exc
            )

    # ---- Delete ---------------------------------------------------------------

    async def delete(self, workspace_id: str, organization_id: str | None) -> dict:
        """Delete a workspace and cascade to index, files, chats, grants and documents.

        An index purge failure aborts before anything local changes. File
        removal failures are logged and skipped.
        """
        org_id = require_organization_id(organization_id)
        workspace = await self._require(workspace_id, org_id)

        async with self.locks.exclusive(workspace_id):
            state = DeleteState.ACTIVE
            name = workspace.name
            documents = await self.documents.list_by_workspace(workspace_id, org_id)
            slug = await self._org_slug(org_id)

            if documents:
                state = self._advance(workspace_id, state, DeleteState.PURGING_INDEX)
                await self.indexer.delete_workspace(workspace_id)

            state = self._advance(workspace_id, state, DeleteState.DELETING_FILES)
            for doc in documents:
                try:
                    await self.storage.delete_file(doc.filepath)
                except StorageError as exc:
                    logger.error("Failed to delete file %s: %s", doc.filepath, exc)
            try:
                await self.storage.remove_tree(workspace_folder(slug, name))
            except StorageError as exc:
                logger.error("Failed to remove folder of workspace %s: %s", workspace_id, exc)

            try:
                state = self._advance(workspace_id, state, DeleteState.DETACHING_CHATS)
                chats_detached = await self.chats.detach_workspace(workspace_id, name, org_id)

                state = self._advance(workspace_id, state, DeleteState.DELETING_GRANTS)
                await self.grants.revoke_all_access(workspace_id)

                state = self._advance(workspace_id, state, DeleteState.DELETING_DOCUMENTS)
                documents_deleted = await self.documents.delete_for_workspace(workspace_id, org_id)

                state = self._advance(workspace_id, state, DeleteState.DELETING_ROW)
                await self.workspaces.delete_row(workspace)
                await self.session.commit()
            except Exception:
                await self.session.rollback()
                logger.error("Deleting workspace %s failed while %s", workspace_id, state)
                raise

            state = self._advance(workspace_id, state, DeleteState.DELETED)
        return {
            "workspace_id": workspace_id,
            "state": state,
            "documents_deleted": documents_deleted,
            "chats_detached": chats_detached,
        }

    @staticmethod
    def _advance(workspace_id: str, current: DeleteState, target: DeleteState) -> DeleteState:
        logger.debug("Workspace %s delete: %s -> %s", workspace_id, current, target)
        return target
