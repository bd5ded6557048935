"""Workspace API routes."""

from fastapi import APIRouter

from docspace.dependencies import CurrentTenant, Documents, OrgAdmin, Workspaces
from docspace.models.workspace import WorkspaceConfigUpdate, WorkspaceCreate, WorkspaceUpdate
from docspace.services.access_grants import AccessGrantManager

router = APIRouter(tags=["Workspaces"])


@router.get("/workspaces")
async def list_workspaces(tenant: OrgAdmin, service: Workspaces) -> list[dict]:
    workspaces = await service.list_all(tenant.organization_id)
    return [ws.model_dump(mode="json") for ws in workspaces]


@router.post("/workspaces", status_code=201)
async def create_workspace(body: WorkspaceCreate, tenant: OrgAdmin, service: Workspaces) -> dict:
    workspace = await service.create(tenant.organization_id, body)
    return {"success": True, "workspace": workspace.model_dump(mode="json")}


@router.get("/workspaces/mine")
async def list_my_workspaces(tenant: CurrentTenant, service: Workspaces) -> list[dict]:
    """Workspaces the caller holds a grant on, with the grant's level."""
    workspaces = await service.list_mine(tenant)
    return [ws.model_dump(mode="json") for ws in workspaces]


@router.get("/workspaces/{workspace_id}")
async def get_workspace(workspace_id: str, tenant: CurrentTenant, service: Workspaces) -> dict:
    await service.ensure_can_view(tenant, workspace_id)
    workspace = await service.get(workspace_id, tenant.organization_id)
    return workspace.model_dump(mode="json")


@router.patch("/workspaces/{workspace_id}")
async def update_workspace(
    workspace_id: str, body: WorkspaceUpdate, tenant: OrgAdmin, service: Workspaces
) -> dict:
    workspace = await service.update(workspace_id, tenant.organization_id, body)
    return {"success": True, "workspace": workspace.model_dump(mode="json")}


@router.delete("/workspaces/{workspace_id}")
async def delete_workspace(workspace_id: str, tenant: OrgAdmin, service: Workspaces) -> dict:
    result = await service.delete(workspace_id, tenant.organization_id)
    return {"success": True, **result}


@router.get("/workspaces/{workspace_id}/documents")
async def list_workspace_documents(
    workspace_id: str, tenant: CurrentTenant, service: Workspaces, documents: Documents
) -> list[dict]:
    await service.ensure_can_view(tenant, workspace_id)
    docs = await documents.list_documents(workspace_id, tenant.organization_id)
    return [doc.model_dump(mode="json") for doc in docs]


@router.get("/workspaces/{workspace_id}/tree")
async def get_workspace_tree(
    workspace_id: str, tenant: CurrentTenant, service: Workspaces, documents: Documents
) -> list[dict]:
    await service.ensure_can_view(tenant, workspace_id)
    nodes = await documents.tree(workspace_id, tenant.organization_id)
    return [node.model_dump(mode="json") for node in nodes]


@router.get("/workspaces/{workspace_id}/access")
async def list_workspace_access(workspace_id: str, tenant: OrgAdmin, service: Workspaces) -> list[dict]:
    grants = await AccessGrantManager(service.session).list_access(workspace_id, tenant.organization_id)
    return [grant.model_dump(mode="json") for grant in grants]


@router.get("/workspaces/{workspace_id}/config")
async def get_workspace_config(workspace_id: str, tenant: CurrentTenant, service: Workspaces) -> dict:
    await service.ensure_can_view(tenant, workspace_id)
    return await service.get_config(workspace_id, tenant.organization_id)


@router.put("/workspaces/{workspace_id}/config")
async def update_workspace_config(
    workspace_id: str, body: WorkspaceConfigUpdate, tenant: OrgAdmin, service: Workspaces
) -> dict:
    config = await service.update_config(workspace_id, tenant.organization_id, body.config)
    return {"success": True, "config": config}
