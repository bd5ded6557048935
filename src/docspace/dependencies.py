"""FastAPI dependency injection providers."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docspace.config import settings
from docspace.errors.exceptions import AuthorizationError
from docspace.models.enums import UserRole
from docspace.services.document_service import DocumentService
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.org_service import OrganizationService
from docspace.services.storage import FileStorage
from docspace.services.tenancy import TenantContext, require_organization_id, require_role, tenant_from_claims
from docspace.services.upload_coordinator import UploadCoordinator
from docspace.services.workspace_lifecycle import WorkspaceService


async def get_db(request: Request) -> AsyncGenerator:
    """Yield a database session from the app's session factory."""
    session_factory = request.app.state.db_session_factory
    async with session_factory() as session:
        yield session


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.db_session_factory


def get_storage(request: Request) -> FileStorage:
    return request.app.state.storage


def get_indexer(request: Request) -> IndexingClient:
    return request.app.state.indexer


def get_locks(request: Request) -> WorkspaceLocks:
    return request.app.state.workspace_locks


def get_trace_id(request: Request) -> str:
    """Extract trace_id from request state (set by middleware)."""
    return getattr(request.state, "trace_id", "unknown")


async def get_current_tenant(request: Request, db: AsyncSession = Depends(get_db)) -> TenantContext:
    """Resolve the caller's tenant from the session claims.

    Members of an organization are rejected once it is no longer active.
    """
    tenant = tenant_from_claims(getattr(request.state, "user", None))
    if tenant.organization_id:
        await OrganizationService(db).ensure_active(tenant.organization_id)
    request.state.tenant = tenant
    return tenant


async def get_org_tenant(tenant: TenantContext = Depends(get_current_tenant)) -> TenantContext:
    """A tenant that is bound to an organization."""
    require_organization_id(tenant.organization_id)
    return tenant


async def require_org_admin(tenant: TenantContext = Depends(get_org_tenant)) -> TenantContext:
    return require_role(tenant, UserRole.ORG_ADMIN, UserRole.SUPER_ADMIN)


async def require_super_admin(tenant: TenantContext = Depends(get_current_tenant)) -> TenantContext:
    if not tenant.is_super_admin:
        raise AuthorizationError("Requires super admin")
    return tenant


def get_workspace_service(
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    indexer: IndexingClient = Depends(get_indexer),
    locks: WorkspaceLocks = Depends(get_locks),
) -> WorkspaceService:
    return WorkspaceService(db, storage, indexer, locks)


def get_document_service(
    db: AsyncSession = Depends(get_db),
    storage: FileStorage = Depends(get_storage),
    indexer: IndexingClient = Depends(get_indexer),
    locks: WorkspaceLocks = Depends(get_locks),
) -> DocumentService:
    return DocumentService(db, storage, indexer, locks, settings.public_base_url)


def get_upload_coordinator(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    storage: FileStorage = Depends(get_storage),
    indexer: IndexingClient = Depends(get_indexer),
    locks: WorkspaceLocks = Depends(get_locks),
) -> UploadCoordinator:
    return UploadCoordinator(session_factory, storage, indexer, locks)


# Type aliases for dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
TraceId = Annotated[str, Depends(get_trace_id)]
CurrentTenant = Annotated[TenantContext, Depends(get_org_tenant)]
OrgAdmin = Annotated[TenantContext, Depends(require_org_admin)]
SuperAdmin = Annotated[TenantContext, Depends(require_super_admin)]
Workspaces = Annotated[WorkspaceService, Depends(get_workspace_service)]
Documents = Annotated[DocumentService, Depends(get_document_service)]
Uploads = Annotated[UploadCoordinator, Depends(get_upload_coordinator)]
