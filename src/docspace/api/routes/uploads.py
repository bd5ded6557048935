"""Upload API routes (multipart)."""

from fastapi import APIRouter, File, Form, UploadFile

from docspace.dependencies import OrgAdmin, Uploads
from docspace.errors.exceptions import ValidationError
from docspace.models.enums import FileType
from docspace.services.upload_coordinator import UploadFile as PendingUpload
from docspace.services.upload_coordinator import UploadOptions

router = APIRouter(tags=["Uploads"])


@router.post("/uploads", status_code=201)
async def upload_document(
    tenant: OrgAdmin,
    coordinator: Uploads,
    file: UploadFile = File(...),
    workspace_id: str = Form(...),
    filepath: str = Form(...),
    file_type: str = Form(FileType.ORIGINAL.value),
    original_file_id: str | None = Form(None),
    impact_date: str | None = Form(None),
    parent_name: str | None = Form(None),
) -> dict:
    options = UploadOptions(
        workspace_id=workspace_id,
        file_type=file_type,
        original_file_id=original_file_id,
        impact_date=impact_date,
        parent_name=parent_name,
    )
    upload = PendingUpload(filename=file.filename or "", content=await file.read(), filepath=filepath)
    result = await coordinator.upload(tenant.organization_id, options, upload)
    return {"success": True, "document": result.document.model_dump(mode="json")}


@router.post("/uploads/batch")
async def upload_batch(
    tenant: OrgAdmin,
    coordinator: Uploads,
    files: list[UploadFile] = File(...),
    filepaths: list[str] = Form(...),
    workspace_id: str = Form(...),
    file_type: str = Form(FileType.ORIGINAL.value),
    original_file_id: str | None = Form(None),
    impact_date: str | None = Form(None),
    parent_name: str | None = Form(None),
) -> dict:
    """Upload several files; per-file results are returned in input order."""
    if len(files) != len(filepaths):
        raise ValidationError("Each file needs exactly one filepath")

    options = UploadOptions(
        workspace_id=workspace_id,
        file_type=file_type,
        original_file_id=original_file_id,
        impact_date=impact_date,
        parent_name=parent_name,
    )
    uploads = [
        PendingUpload(filename=file.filename or "", content=await file.read(), filepath=path)
        for file, path in zip(files, filepaths)
    ]
    response = await coordinator.upload_batch(tenant.organization_id, options, uploads)
    return response.model_dump(mode="json")
