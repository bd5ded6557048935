"""Upload Coordinator: validate -> store -> index -> record.

Per-file states::

    pending -> validating -> stored -> indexed -> recorded
                   |           |         |
                   +-----------+---------+--> failed

Every step after the bytes hit the disk pushes an undo action onto a
compensation stack; a failure unwinds the stack and re-raises.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from docspace.errors.exceptions import ConflictError, DocspaceError, NotFoundError, ValidationError
from docspace.models.document import BatchSummary, BatchUploadResponse, DocumentResponse, UploadResult
from docspace.models.enums import FileType, UploadState
from docspace.repositories.document_repo import DocumentRepository
from docspace.repositories.organization_repo import OrganizationRepository
from docspace.repositories.workspace_repo import WorkspaceRepository
from docspace.services.id_generator import generate_file_id
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.paths import file_extension, file_name, is_in_workspace, normalize_storage_path
from docspace.services.saga import CompensationStack
from docspace.services.storage import FileStorage
from docspace.services.tenancy import require_organization_id

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = frozenset({"pdf", "docx", "doc", "txt", "xlsx", "xls", "csv", "rtf"})


@dataclass
class UploadFile:
    filename: str
    content: bytes
    # Workspace-relative path, e.g. "Contracts/agreement.pdf".
    filepath: str


@dataclass
class UploadOptions:
    """Settings shared by every file of one upload request."""

    workspace_id: str
    file_type: str = FileType.ORIGINAL
    original_file_id: str | None = None
    impact_date: str | date | None = None
    parent_name: str | None = None


@dataclass
class _UploadContext:
    organization_id: str
    org_slug: str
    workspace_id: str
    workspace_name: str
    file_type: FileType
    original_file_id: str | None = None
    parent_name: str | None = None
    impact_date: date | None = None


@dataclass
class _FilePlan:
    document_id: str
    filepath: str
    state: UploadState = UploadState.PENDING
    compensation: CompensationStack = field(default_factory=CompensationStack)


def parse_impact_date(value: str | date | None) -> date | None:
    """Accept a date, an ISO date string or an ISO datetime string."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError as exc:
        raise ValidationError(f"Invalid impact date: {value}") from exc


class UploadCoordinator:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: FileStorage,
        indexer: IndexingClient,
        locks: WorkspaceLocks,
    ):
        self.session_factory = session_factory
        self.storage = storage
        self.indexer = indexer
        self.locks = locks

    async def upload(self, organization_id: str | None, options: UploadOptions, upload: UploadFile) -> UploadResult:
        """Upload one file; any failure is raised after compensation."""
        async with self.locks.shared(options.workspace_id):
            ctx = await self._prepare(organization_id, options)
            return await self._process(ctx, upload, batch=False)

    async def upload_batch(
        self, organization_id: str | None, options: UploadOptions, uploads: list[UploadFile]
    ) -> BatchUploadResponse:
        """Upload files concurrently; one failure never aborts the others.

        Request-level problems (unknown workspace, bad revision linkage) are
        raised before any file is touched.
        """
        if not uploads:
            raise ValidationError("No files to upload")

        async with self.locks.shared(options.workspace_id):
            ctx = await self._prepare(organization_id, options)
            results = await asyncio.gather(
                *(self._process_reporting(ctx, upload) for upload in uploads)
            )

        successful = sum(1 for result in results if result.success)
        summary = BatchSummary(total=len(results), successful=successful, failed=len(results) - successful)
        logger.info(
            "Batch upload to workspace %s: %d total, %d successful, %d failed",
            ctx.workspace_id, summary.total, summary.successful, summary.failed,
        )
        return BatchUploadResponse(results=list(results), summary=summary)

    async def _prepare(self, organization_id: str | None, options: UploadOptions) -> _UploadContext:
        """Resolve organization, workspace and revision linkage in a short-lived session."""
        org_id = require_organization_id(organization_id)
        try:
            file_type = FileType(options.file_type)
        except ValueError as exc:
            raise ValidationError(f"Unsupported document type: {options.file_type}") from exc
        impact_date = parse_impact_date(options.impact_date)

        async with self.session_factory() as session:
            organization = await OrganizationRepository(session).get(org_id)
            if organization is None:
                raise NotFoundError("Organization", org_id)
            workspace = await WorkspaceRepository(session).get(options.workspace_id, org_id)
            if workspace is None:
                raise NotFoundError("Workspace", options.workspace_id)

            parent_name = options.parent_name
            original_file_id = options.original_file_id or None
            if file_type != FileType.ORIGINAL:
                if not original_file_id:
                    raise ValidationError(f"A {file_type} must reference its original document")
                original = await DocumentRepository(session).get_original(
                    original_file_id, workspace.workspace_id, org_id
                )
                if original is None:
                    raise ValidationError(
                        "Original document not found in this workspace",
                        details={"original_file_id": original_file_id},
                    )
                parent_name = parent_name or file_name(original.filepath)
            elif original_file_id:
                raise ValidationError("An original document cannot reference another original")

            return _UploadContext(
                organization_id=org_id,
                org_slug=organization.slug,
                workspace_id=workspace.workspace_id,
                workspace_name=workspace.name,
                file_type=file_type,
                original_file_id=original_file_id,
                parent_name=parent_name,
                impact_date=impact_date,
            )

    async def _process_reporting(self, ctx: _UploadContext, upload: UploadFile) -> UploadResult:
        try:
            return await self._process(ctx, upload, batch=True)
        except DocspaceError as exc:
            return UploadResult(filename=upload.filename, success=False, state=UploadState.FAILED, error=exc.message)
        except Exception as exc:
            logger.exception("Unexpected failure uploading %s", upload.filename)
            return UploadResult(filename=upload.filename, success=False, state=UploadState.FAILED, error=str(exc))

    async def _process(self, ctx: _UploadContext, upload: UploadFile, batch: bool) -> UploadResult:
        plan = _FilePlan(document_id=generate_file_id(), filepath="")
        plan.compensation.label = upload.filename
        try:
            plan.state = UploadState.VALIDATING
            plan.filepath = await self._validate(ctx, upload)

            await self.storage.write_new(plan.filepath, upload.content)
            plan.state = UploadState.STORED
            plan.compensation.push("delete stored file", lambda: self.storage.delete_file(plan.filepath))

            await self.indexer.upload(
                content=upload.content,
                filename=upload.filename,
                file_id=plan.document_id,
                workspace_id=ctx.workspace_id,
                filepath=plan.filepath,
                is_original=ctx.file_type == FileType.ORIGINAL,
                is_revision=ctx.file_type == FileType.REVISION,
                parent_id=ctx.original_file_id,
                parent_name=ctx.parent_name,
                revision_date=ctx.impact_date,
                batch=batch,
            )
            plan.state = UploadState.INDEXED
            plan.compensation.push(
                "delete document row", lambda: self._delete_row(plan.document_id, ctx.organization_id)
            )

            document = await self._record(ctx, plan)
            plan.state = UploadState.RECORDED
            plan.compensation.clear()
        except Exception as exc:
            failed_at = plan.state
            plan.state = UploadState.FAILED
            if plan.compensation:
                await plan.compensation.unwind()
            logger.warning("Upload of %s failed while %s: %s", upload.filename, failed_at, exc)
            raise

        logger.info("Uploaded %s as document %s", plan.filepath, plan.document_id)
        return UploadResult(filename=upload.filename, success=True, state=plan.state, document=document)

    async def _validate(self, ctx: _UploadContext, upload: UploadFile) -> str:
        """Return the canonical storage path; no side effects."""
        extension = file_extension(upload.filename)
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"Unsupported file type: .{extension}" if extension else "File has no extension")

        filepath = normalize_storage_path(ctx.org_slug, upload.filepath)
        if not is_in_workspace(filepath, ctx.org_slug, ctx.workspace_name):
            raise ValidationError(
                f"File path must be inside workspace '{ctx.workspace_name}'",
                details={"filepath": upload.filepath},
            )
        if file_extension(filepath) not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"Unsupported file type in path: {upload.filepath}")

        async with self.session_factory() as session:
            if await DocumentRepository(session).get_by_filepath(filepath, ctx.organization_id):
                raise ConflictError(f"A document already exists at {filepath}", details={"filepath": filepath})
        return filepath

    async def _record(self, ctx: _UploadContext, plan: _FilePlan) -> DocumentResponse:
        async with self.session_factory() as session:
            row = await DocumentRepository(session).create(
                document_id=plan.document_id,
                workspace_id=ctx.workspace_id,
                organization_id=ctx.organization_id,
                filepath=plan.filepath,
                file_type=ctx.file_type,
                original_file_id=ctx.original_file_id,
                impact_date=ctx.impact_date,
            )
            await session.commit()
            return DocumentResponse.model_validate(row)

    async def _delete_row(self, document_id: str, organization_id: str) -> None:
        async with self.session_factory() as session:
            await DocumentRepository(session).delete_by_id(document_id, organization_id)
            await session.commit()
