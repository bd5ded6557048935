"""Document API routes."""

from fastapi import APIRouter

from docspace.dependencies import CurrentTenant, Documents, OrgAdmin, Workspaces

router = APIRouter(tags=["Documents"])


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str, tenant: CurrentTenant, documents: Documents, workspaces: Workspaces
) -> dict:
    row, detail = await documents.get_detail(document_id, tenant.organization_id)
    await workspaces.ensure_can_view(tenant, row.workspace_id)
    return detail.model_dump(mode="json")


@router.get("/documents/{document_id}/download")
async def get_download_url(
    document_id: str, tenant: CurrentTenant, documents: Documents, workspaces: Workspaces
) -> dict:
    row, url = await documents.get_download_url(document_id, tenant.organization_id)
    await workspaces.ensure_can_view(tenant, row.workspace_id)
    return {"url": url}


@router.delete("/documents/{document_id}")
async def delete_document(document_id: str, tenant: OrgAdmin, documents: Documents) -> dict:
    await documents.delete(document_id, tenant.organization_id)
    return {"success": True, "document_id": document_id}
