"""Upload Coordinator tests: state machine, compensation and batches."""

from datetime import date

import pytest
from sqlalchemy import func, select

from docspace.db.models.document import DocumentRow
from docspace.errors.exceptions import ConflictError, IndexingServiceError, NotFoundError, ValidationError
from docspace.models.enums import FileType, UploadState
from docspace.repositories.document_repo import DocumentRepository
from docspace.services.upload_coordinator import UploadCoordinator, UploadFile, UploadOptions, parse_impact_date


@pytest.fixture
def coordinator(session_factory, storage, indexer, locks):
    return UploadCoordinator(session_factory, storage, indexer, locks)


async def _document_count(session_factory) -> int:
    async with session_factory() as session:
        return (await session.execute(select(func.count(DocumentRow.document_id)))).scalar_one()


def _pdf(path: str, body: bytes = b"%PDF-1.7 test") -> UploadFile:
    return UploadFile(filename=path.rsplit("/", 1)[-1], content=body, filepath=path)


@pytest.mark.asyncio
async def test_upload_stores_indexes_and_records(acme, seed, coordinator, storage, indexing_service):
    ws = await seed.workspace(acme["org"], "Contracts")

    result = await coordinator.upload(
        acme["org"].organization_id,
        UploadOptions(workspace_id=ws.workspace_id),
        _pdf("Contracts/agreement.pdf"),
    )

    assert result.success is True
    assert result.state == UploadState.RECORDED
    doc = result.document
    assert doc.filepath == "Workspaces/acme/Contracts/agreement.pdf"
    assert doc.file_type == FileType.ORIGINAL
    assert (storage.root / doc.filepath).read_bytes() == b"%PDF-1.7 test"

    [form] = indexing_service.uploads
    assert form["fileID"] == doc.document_id
    assert form["filepath"] == doc.filepath
    assert form["workspace"] == ws.workspace_id
    assert form["key"] == "test-key"
    assert form["index"] == "idbms"
    assert form["isOriginal"] == "true"
    assert form["isRevision"] == "false"
    assert form["file"] == "%PDF-1.7 test"
    assert "batch" not in form
    assert "parentID" not in form


@pytest.mark.asyncio
async def test_indexing_failure_leaves_no_row_and_no_file(
    acme, seed, coordinator, storage, indexing_service, session_factory
):
    ws = await seed.workspace(acme["org"], "Contracts")
    indexing_service.fail_filenames.add("agreement.pdf")

    with pytest.raises(IndexingServiceError):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            _pdf("Contracts/agreement.pdf"),
        )

    assert not (storage.root / "Workspaces/acme/Contracts/agreement.pdf").exists()
    assert await _document_count(session_factory) == 0


@pytest.mark.asyncio
async def test_record_failure_removes_stored_file(
    acme, seed, coordinator, storage, indexing_service, session_factory, monkeypatch
):
    ws = await seed.workspace(acme["org"], "Contracts")

    async def failing_create(self, **fields):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(DocumentRepository, "create", failing_create)

    with pytest.raises(RuntimeError, match="insert failed"):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            _pdf("Contracts/agreement.pdf"),
        )

    assert len(indexing_service.uploads) == 1
    assert not (storage.root / "Workspaces/acme/Contracts/agreement.pdf").exists()
    assert await _document_count(session_factory) == 0


@pytest.mark.asyncio
async def test_unsupported_extension_rejected_before_side_effects(
    acme, seed, coordinator, storage, indexing_service
):
    ws = await seed.workspace(acme["org"], "Contracts")

    with pytest.raises(ValidationError, match="Unsupported file type"):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            UploadFile(filename="tool.exe", content=b"MZ", filepath="Contracts/tool.exe"),
        )

    assert indexing_service.requests == []
    assert not (storage.root / "Workspaces").exists()


@pytest.mark.asyncio
async def test_path_outside_workspace_rejected(acme, seed, coordinator):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.workspace(acme["org"], "HR")

    with pytest.raises(ValidationError, match="inside workspace"):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            _pdf("HR/salaries.pdf"),
        )


@pytest.mark.asyncio
async def test_existing_path_is_a_conflict(acme, seed, coordinator, indexing_service):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.document(ws, "Workspaces/acme/Contracts/agreement.pdf")

    with pytest.raises(ConflictError):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            _pdf("Workspaces/Contracts/agreement.pdf"),
        )
    assert indexing_service.requests == []


@pytest.mark.asyncio
async def test_existing_file_on_disk_is_a_conflict_and_kept(acme, seed, coordinator, storage, indexing_service):
    ws = await seed.workspace(acme["org"], "Contracts")
    target = storage.root / "Workspaces/acme/Contracts/agreement.pdf"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"already here")

    with pytest.raises(ConflictError):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=ws.workspace_id),
            _pdf("Contracts/agreement.pdf"),
        )

    assert target.read_bytes() == b"already here"
    assert indexing_service.requests == []


@pytest.mark.asyncio
async def test_revision_requires_original_in_same_workspace(acme, seed, coordinator):
    ws = await seed.workspace(acme["org"], "Contracts")
    other_ws = await seed.workspace(acme["org"], "HR")
    foreign_original = await seed.document(other_ws, "Workspaces/acme/HR/policy.pdf")
    org_id = acme["org"].organization_id

    with pytest.raises(ValidationError, match="must reference"):
        await coordinator.upload(
            org_id, UploadOptions(workspace_id=ws.workspace_id, file_type="revision"), _pdf("Contracts/r.pdf")
        )

    with pytest.raises(ValidationError, match="Original document not found"):
        await coordinator.upload(
            org_id,
            UploadOptions(
                workspace_id=ws.workspace_id,
                file_type="amendment",
                original_file_id=foreign_original.document_id,
            ),
            _pdf("Contracts/r.pdf"),
        )


@pytest.mark.asyncio
async def test_unknown_type_and_workspace(acme, seed, coordinator, locks):
    ws = await seed.workspace(acme["org"], "Contracts")
    org_id = acme["org"].organization_id

    with pytest.raises(ValidationError, match="Unsupported document type"):
        await coordinator.upload(
            org_id, UploadOptions(workspace_id=ws.workspace_id, file_type="draft"), _pdf("Contracts/a.pdf")
        )
    with pytest.raises(NotFoundError):
        await coordinator.upload(org_id, UploadOptions(workspace_id="ws_missing"), _pdf("Contracts/a.pdf"))
    assert locks._gates == {}


@pytest.mark.asyncio
async def test_other_org_workspace_is_not_found(acme, seed, coordinator):
    other = await seed.org(name="Globex", slug="globex")
    foreign_ws = await seed.workspace(other, "Contracts")

    with pytest.raises(NotFoundError):
        await coordinator.upload(
            acme["org"].organization_id,
            UploadOptions(workspace_id=foreign_ws.workspace_id),
            _pdf("Contracts/a.pdf"),
        )


@pytest.mark.asyncio
async def test_original_then_revision_end_to_end(acme, seed, coordinator, indexing_service, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    org_id = acme["org"].organization_id

    original = await coordinator.upload(
        org_id, UploadOptions(workspace_id=ws.workspace_id), _pdf("Contracts/agreement.pdf")
    )
    revision = await coordinator.upload(
        org_id,
        UploadOptions(
            workspace_id=ws.workspace_id,
            file_type="revision",
            original_file_id=original.document.document_id,
            impact_date="2024-03-15T10:30:00.000Z",
        ),
        _pdf("Contracts/Revisions/agreement-v2.pdf"),
    )

    assert original.document.filepath == "Workspaces/acme/Contracts/agreement.pdf"
    assert revision.document.original_file_id == original.document.document_id
    assert revision.document.impact_date == date(2024, 3, 15)

    form = indexing_service.uploads[1]
    assert form["isOriginal"] == "false"
    assert form["isRevision"] == "true"
    assert form["parentID"] == original.document.document_id
    assert form["parentName"] == "agreement.pdf"
    assert form["revisionDate"] == "2024-03-15"

    async with session_factory() as session:
        row = await session.get(DocumentRow, revision.document.document_id)
        assert row.impact_date == date(2024, 3, 15)
        assert row.file_type == "revision"


@pytest.mark.asyncio
async def test_batch_partial_failure(acme, seed, coordinator, indexing_service, storage, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    indexing_service.fail_filenames.add("broken.pdf")

    response = await coordinator.upload_batch(
        acme["org"].organization_id,
        UploadOptions(workspace_id=ws.workspace_id),
        [_pdf("Contracts/one.pdf"), _pdf("Contracts/broken.pdf"), _pdf("Contracts/two.pdf")],
    )

    assert response.summary.model_dump() == {"total": 3, "successful": 2, "failed": 1}
    assert [r.filename for r in response.results] == ["one.pdf", "broken.pdf", "two.pdf"]
    assert [r.success for r in response.results] == [True, False, True]
    assert response.results[1].state == UploadState.FAILED
    assert "HTTP 500" in response.results[1].error
    assert all(form.get("batch") == "true" for form in indexing_service.uploads)
    assert not (storage.root / "Workspaces/acme/Contracts/broken.pdf").exists()
    assert await _document_count(session_factory) == 2


@pytest.mark.asyncio
async def test_batch_reports_validation_failures_per_file(acme, seed, coordinator):
    ws = await seed.workspace(acme["org"], "Contracts")

    response = await coordinator.upload_batch(
        acme["org"].organization_id,
        UploadOptions(workspace_id=ws.workspace_id),
        [_pdf("Contracts/a.pdf"), UploadFile(filename="x.zip", content=b"", filepath="Contracts/x.zip")],
    )

    assert response.summary.failed == 1
    assert response.results[1].error.startswith("Unsupported file type")


@pytest.mark.asyncio
async def test_empty_batch_rejected(acme, seed, coordinator):
    ws = await seed.workspace(acme["org"], "Contracts")
    with pytest.raises(ValidationError):
        await coordinator.upload_batch(acme["org"].organization_id, UploadOptions(workspace_id=ws.workspace_id), [])


def test_parse_impact_date_variants():
    assert parse_impact_date(None) is None
    assert parse_impact_date("") is None
    assert parse_impact_date("2024-03-15") == date(2024, 3, 15)
    assert parse_impact_date(date(2024, 3, 15)) == date(2024, 3, 15)
    with pytest.raises(ValidationError):
        parse_impact_date("next tuesday")
