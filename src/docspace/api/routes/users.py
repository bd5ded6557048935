"""User administration routes, always within the caller's organization."""

from fastapi import APIRouter

from docspace.dependencies import DBSession, OrgAdmin
from docspace.models.user import UserCreate, UserResponse, WorkspaceBatchAccessRequest, WorkspaceGrantRequest
from docspace.repositories.user_repo import UserRepository
from docspace.services.access_grants import AccessGrantManager
from docspace.services.org_service import OrganizationService

router = APIRouter(tags=["Users"])


@router.get("/users")
async def list_users(tenant: OrgAdmin, db: DBSession) -> list[dict]:
    users = await UserRepository(db).list_by_org(tenant.organization_id)
    return [UserResponse.model_validate(user).model_dump(mode="json") for user in users]


@router.post("/users", status_code=201)
async def create_user(body: UserCreate, tenant: OrgAdmin, db: DBSession) -> dict:
    user = await OrganizationService(db).create_user(tenant.organization_id, body)
    return {"success": True, "user": UserResponse.model_validate(user).model_dump(mode="json")}


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, tenant: OrgAdmin, db: DBSession) -> dict:
    await OrganizationService(db).delete_user(tenant.organization_id, user_id, tenant.user_id)
    return {"success": True, "user_id": user_id}


@router.get("/users/{user_id}/workspaces")
async def list_user_workspaces(user_id: str, tenant: OrgAdmin, db: DBSession) -> list[dict]:
    flags = await AccessGrantManager(db).list_user_workspaces(user_id, tenant.organization_id)
    return [flag.model_dump(mode="json") for flag in flags]


@router.post("/users/{user_id}/workspaces", status_code=201)
async def grant_workspace(user_id: str, body: WorkspaceGrantRequest, tenant: OrgAdmin, db: DBSession) -> dict:
    await AccessGrantManager(db).grant_access(body.workspace_id, user_id, tenant.organization_id)
    await db.commit()
    return {"success": True, "user_id": user_id, "workspace_id": body.workspace_id}


@router.delete("/users/{user_id}/workspaces")
async def revoke_workspace(user_id: str, workspace_id: str, tenant: OrgAdmin, db: DBSession) -> dict:
    removed = await AccessGrantManager(db).revoke_access(workspace_id, user_id, tenant.organization_id)
    await db.commit()
    return {"success": True, "removed": removed}


@router.post("/users/{user_id}/workspaces/batch")
async def update_user_workspaces(
    user_id: str, body: WorkspaceBatchAccessRequest, tenant: OrgAdmin, db: DBSession
) -> dict:
    changes = await AccessGrantManager(db).update_user_workspaces(
        user_id, tenant.organization_id, body.add, body.remove
    )
    await db.commit()
    return {"success": True, **changes}
