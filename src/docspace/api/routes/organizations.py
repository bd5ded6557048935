"""Organization administration routes (super admin only)."""

from fastapi import APIRouter

from docspace.dependencies import DBSession, SuperAdmin
from docspace.models.organization import OrganizationCreate, OrganizationResponse, OrganizationUpdate
from docspace.models.user import UserCreate, UserResponse
from docspace.services.org_service import OrganizationService

router = APIRouter(tags=["Organizations"])


def _org_dict(organization, user_count: int | None = None) -> dict:
    response = OrganizationResponse.model_validate(organization)
    response.user_count = user_count
    return response.model_dump(mode="json")


@router.get("/organizations")
async def list_organizations(tenant: SuperAdmin, db: DBSession) -> list[dict]:
    rows = await OrganizationService(db).list_with_user_counts()
    return [_org_dict(org, count) for org, count in rows]


@router.post("/organizations", status_code=201)
async def create_organization(body: OrganizationCreate, tenant: SuperAdmin, db: DBSession) -> dict:
    organization = await OrganizationService(db).create(body)
    return {"success": True, "organization": _org_dict(organization, 0)}


@router.get("/organizations/{organization_id}")
async def get_organization(organization_id: str, tenant: SuperAdmin, db: DBSession) -> dict:
    organization = await OrganizationService(db).get(organization_id)
    return _org_dict(organization)


@router.patch("/organizations/{organization_id}")
async def update_organization(
    organization_id: str, body: OrganizationUpdate, tenant: SuperAdmin, db: DBSession
) -> dict:
    organization = await OrganizationService(db).update(organization_id, body)
    return {"success": True, "organization": _org_dict(organization)}


@router.post("/organizations/{organization_id}/users", status_code=201)
async def create_organization_user(
    organization_id: str, body: UserCreate, tenant: SuperAdmin, db: DBSession
) -> dict:
    user = await OrganizationService(db).create_user(organization_id, body)
    return {"success": True, "user": UserResponse.model_validate(user).model_dump(mode="json")}
