"""Access Grant Manager: the user <-> workspace relation.

Invariant: every org_admin of an organization holds an ``admin`` grant on
every workspace of that organization. ``set_workspace_access`` re-establishes
it whenever a workspace is created or updated.

None of these methods commit; they run inside the caller's unit of work.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docspace.errors.exceptions import ConflictError, NotFoundError, ValidationError
from docspace.models.enums import AccessLevel, UserRole
from docspace.models.user import WorkspaceAccessFlag
from docspace.models.workspace import AccessGrantResponse
from docspace.repositories.user_repo import UserRepository
from docspace.repositories.workspace_access_repo import WorkspaceAccessRepository
from docspace.repositories.workspace_repo import WorkspaceRepository
from docspace.services.id_generator import generate_id

logger = logging.getLogger(__name__)


class AccessGrantManager:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.grants = WorkspaceAccessRepository(session)
        self.users = UserRepository(session)
        self.workspaces = WorkspaceRepository(session)

    async def _require_workspace(self, workspace_id: str, organization_id: str | None):
        workspace = await self.workspaces.get(workspace_id, organization_id)
        if workspace is None:
            raise NotFoundError("Workspace", workspace_id)
        return workspace

    async def _require_user(self, user_id: str, organization_id: str | None):
        user = await self.users.get_in_org(user_id, organization_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    async def desired_access(
        self, organization_id: str | None, selected_user_ids: list[str]
    ) -> dict[str, AccessLevel]:
        """Map of user id -> level the workspace should end up with.

        Selected users get ``view``; org admins get ``admin`` and win when a
        user is in both sets.
        """
        selected = list(dict.fromkeys(selected_user_ids))
        known = await self.users.existing_ids_in_org(organization_id, selected)
        unknown = [user_id for user_id in selected if user_id not in known]
        if unknown:
            raise ValidationError(
                "Selected users do not belong to this organization",
                details={"user_ids": unknown},
            )

        desired = {user_id: AccessLevel.VIEW for user_id in selected}
        for admin in await self.users.list_org_admins(organization_id):
            desired[admin.user_id] = AccessLevel.ADMIN
        return desired

    async def set_workspace_access(
        self,
        workspace_id: str,
        organization_id: str | None,
        selected_user_ids: list[str],
    ) -> dict[str, AccessLevel]:
        """Reconcile the workspace's stored grants with the desired set.

        Rows not in the desired set are removed, rows with the wrong level are
        updated and missing rows are inserted. Returns the desired map.
        """
        await self._require_workspace(workspace_id, organization_id)
        desired = await self.desired_access(organization_id, selected_user_ids)

        removed = changed = 0
        existing: set[str] = set()
        for grant in await self.grants.list_for_workspace(workspace_id):
            level = desired.get(grant.user_id)
            if level is None:
                await self.session.delete(grant)
                removed += 1
                continue
            existing.add(grant.user_id)
            if grant.access_level != level:
                grant.access_level = level
                changed += 1

        await self.session.flush()

        added = 0
        for user_id, level in desired.items():
            if user_id in existing:
                continue
            self.session.add(
                self.grants.model(
                    access_id=generate_id("acc_"),
                    user_id=user_id,
                    workspace_id=workspace_id,
                    access_level=level,
                )
            )
            added += 1
        await self.session.flush()

        logger.info(
            "Reconciled access for workspace %s: %d added, %d changed, %d removed",
            workspace_id, added, changed, removed,
        )
        return desired

    async def current_view_user_ids(self, workspace_id: str) -> list[str]:
        """Users holding a view-level grant on the workspace."""
        return [
            grant.user_id
            for grant in await self.grants.list_for_workspace(workspace_id)
            if grant.access_level == AccessLevel.VIEW
        ]

    async def revoke_all_access(self, workspace_id: str) -> int:
        return await self.grants.delete_for_workspace(workspace_id)

    async def list_access(self, workspace_id: str, organization_id: str | None) -> list[AccessGrantResponse]:
        await self._require_workspace(workspace_id, organization_id)
        rows = await self.grants.list_with_users(workspace_id, organization_id)
        return [
            AccessGrantResponse(
                user_id=user.user_id,
                access_level=grant.access_level,
                email=user.email,
                firstname=user.firstname,
                lastname=user.lastname,
                role=user.role,
            )
            for grant, user in rows
        ]

    async def grant_access(
        self,
        workspace_id: str,
        user_id: str,
        organization_id: str | None,
        level: AccessLevel = AccessLevel.VIEW,
    ):
        await self._require_workspace(workspace_id, organization_id)
        await self._require_user(user_id, organization_id)

        if await self.grants.get(user_id, workspace_id) is not None:
            raise ConflictError("User already has access to this workspace")
        try:
            return await self.grants.create(
                access_id=generate_id("acc_"),
                user_id=user_id,
                workspace_id=workspace_id,
                access_level=level,
            )
        except IntegrityError as exc:
            await self.session.rollback()
            raise ConflictError("User already has access to this workspace") from exc

    async def revoke_access(self, workspace_id: str, user_id: str, organization_id: str | None) -> bool:
        await self._require_workspace(workspace_id, organization_id)
        await self._require_user(user_id, organization_id)
        return await self.grants.delete_for_user(user_id, [workspace_id]) > 0

    async def update_user_workspaces(
        self,
        user_id: str,
        organization_id: str | None,
        add: list[str],
        remove: list[str],
    ) -> dict[str, list[str]]:
        """Batch add/remove view grants for one user."""
        user = await self._require_user(user_id, organization_id)

        org_workspace_ids = {ws.workspace_id for ws in await self.workspaces.list_by_org(organization_id)}
        unknown = [ws_id for ws_id in [*add, *remove] if ws_id not in org_workspace_ids]
        if unknown:
            raise ValidationError(
                "Workspaces do not belong to this organization",
                details={"workspace_ids": unknown},
            )
        if remove and user.role == UserRole.ORG_ADMIN:
            raise ValidationError("Organization admins keep admin access to every workspace")

        held = {grant.workspace_id for grant in await self.grants.list_for_user(user_id, organization_id)}
        added = []
        for workspace_id in dict.fromkeys(add):
            if workspace_id in held or workspace_id in remove:
                continue
            self.session.add(
                self.grants.model(
                    access_id=generate_id("acc_"),
                    user_id=user_id,
                    workspace_id=workspace_id,
                    access_level=AccessLevel.VIEW,
                )
            )
            added.append(workspace_id)

        removed = [ws_id for ws_id in dict.fromkeys(remove) if ws_id in held]
        if removed:
            await self.grants.delete_for_user(user_id, removed)
        await self.session.flush()
        return {"added": added, "removed": removed}

    async def list_user_workspaces(self, user_id: str, organization_id: str | None) -> list[WorkspaceAccessFlag]:
        """Every workspace of the organization, flagged with the user's access."""
        await self._require_user(user_id, organization_id)
        held = {grant.workspace_id for grant in await self.grants.list_for_user(user_id, organization_id)}
        return [
            WorkspaceAccessFlag(
                workspace_id=ws.workspace_id,
                name=ws.name,
                has_access=ws.workspace_id in held,
            )
            for ws in await self.workspaces.list_by_org(organization_id)
        ]
