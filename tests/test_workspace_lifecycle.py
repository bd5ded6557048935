"""Workspace Lifecycle Manager tests: create, rename and cascading delete."""

import pytest
from sqlalchemy import select

from docspace.db.models import ChatRow, DocumentRow, WorkspaceAccessRow, WorkspaceRow
from docspace.errors.exceptions import AuthorizationError, ConflictError, IndexingServiceError, NotFoundError
from docspace.models.enums import AccessLevel, DeleteState
from docspace.models.workspace import WorkspaceCreate, WorkspaceUpdate
from docspace.services.workspace_lifecycle import WorkspaceService


@pytest.fixture
async def make_service(session_factory, storage, indexer, locks):
    """Each call opens a fresh session, like one request would."""
    sessions = []

    def _make():
        session = session_factory()
        sessions.append(session)
        return WorkspaceService(session, storage, indexer, locks)

    yield _make
    for session in sessions:
        await session.close()


async def _all(session_factory, stmt):
    async with session_factory() as session:
        return list((await session.execute(stmt)).scalars().all())


def _place(storage, relative: str, body: bytes = b"data") -> None:
    target = storage.root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(body)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_grants_selected_users_and_admins(acme, make_service, session_factory):
    org_id = acme["org"].organization_id

    created = await make_service().create(
        org_id, WorkspaceCreate(name="Contracts", user_ids=[acme["alice"].user_id])
    )

    assert created.name == "Contracts"
    assert created.item_count == 0
    grants = await _all(
        session_factory,
        select(WorkspaceAccessRow).where(WorkspaceAccessRow.workspace_id == created.workspace_id),
    )
    levels = {grant.user_id: grant.access_level for grant in grants}
    assert levels == {
        acme["alice"].user_id: AccessLevel.VIEW,
        acme["admin"].user_id: AccessLevel.ADMIN,
    }


@pytest.mark.asyncio
async def test_create_duplicate_name_conflicts(acme, seed, make_service):
    await seed.workspace(acme["org"], "Contracts")

    with pytest.raises(ConflictError, match="already exists"):
        await make_service().create(acme["org"].organization_id, WorkspaceCreate(name="Contracts"))


@pytest.mark.asyncio
async def test_same_name_allowed_in_another_org(acme, seed, make_service):
    other = await seed.org(name="Globex", slug="globex")
    await seed.workspace(other, "Contracts")

    created = await make_service().create(acme["org"].organization_id, WorkspaceCreate(name="Contracts"))
    assert created.organization_id == acme["org"].organization_id


@pytest.mark.asyncio
async def test_create_without_organization_is_refused(make_service):
    with pytest.raises(AuthorizationError):
        await make_service().create(None, WorkspaceCreate(name="Contracts"))


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_counts_documents(acme, seed, make_service):
    contracts = await seed.workspace(acme["org"], "Contracts")
    await seed.workspace(acme["org"], "HR")
    await seed.document(contracts, "Workspaces/acme/Contracts/a.pdf")
    await seed.document(contracts, "Workspaces/acme/Contracts/b.pdf")

    listed = await make_service().list_all(acme["org"].organization_id)

    assert {ws.name: ws.item_count for ws in listed} == {"Contracts": 2, "HR": 0}


@pytest.mark.asyncio
async def test_config_defaults_to_name_and_empty_fields(acme, seed, make_service):
    ws = await seed.workspace(acme["org"], "Contracts")
    org_id = acme["org"].organization_id

    assert await make_service().get_config(ws.workspace_id, org_id) == {"workspace": "Contracts", "fields": []}

    config = {"workspace": "Contracts", "fields": [{"name": "party", "type": "text"}]}
    await make_service().update_config(ws.workspace_id, org_id, config)
    assert await make_service().get_config(ws.workspace_id, org_id) == config


# ---------------------------------------------------------------------------
# Rename
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rename_rewrites_paths_and_moves_folder(acme, seed, make_service, storage, session_factory):
    contracts = await seed.workspace(acme["org"], "Contracts")
    hr = await seed.workspace(acme["org"], "HR")
    moved = await seed.document(contracts, "Workspaces/acme/Contracts/2024/a.pdf")
    untouched = await seed.document(hr, "Workspaces/acme/HR/policy.pdf")
    _place(storage, moved.filepath, b"contract")
    _place(storage, untouched.filepath)

    result = await make_service().update(
        contracts.workspace_id, acme["org"].organization_id, WorkspaceUpdate(name="Legal")
    )

    assert result.name == "Legal"
    assert result.item_count == 1
    async with session_factory() as session:
        assert (await session.get(DocumentRow, moved.document_id)).filepath == "Workspaces/acme/Legal/2024/a.pdf"
        assert (await session.get(DocumentRow, untouched.document_id)).filepath == "Workspaces/acme/HR/policy.pdf"
    assert (storage.root / "Workspaces/acme/Legal/2024/a.pdf").read_bytes() == b"contract"
    assert not (storage.root / "Workspaces/acme/Contracts").exists()
    assert (storage.root / "Workspaces/acme/HR/policy.pdf").exists()


@pytest.mark.asyncio
async def test_rename_only_touches_exact_workspace_prefix(acme, seed, make_service, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    sibling = await seed.workspace(acme["org"], "Contracts Archive")
    doc = await seed.document(sibling, "Workspaces/acme/Contracts Archive/old.pdf")

    await make_service().update(ws.workspace_id, acme["org"].organization_id, WorkspaceUpdate(name="Legal"))

    async with session_factory() as session:
        assert (await session.get(DocumentRow, doc.document_id)).filepath == "Workspaces/acme/Contracts Archive/old.pdf"


@pytest.mark.asyncio
async def test_rename_to_existing_name_conflicts(acme, seed, make_service):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.workspace(acme["org"], "HR")

    with pytest.raises(ConflictError):
        await make_service().update(ws.workspace_id, acme["org"].organization_id, WorkspaceUpdate(name="HR"))


@pytest.mark.asyncio
async def test_rename_onto_existing_folder_rolls_back(acme, seed, make_service, storage, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    doc = await seed.document(ws, "Workspaces/acme/Contracts/a.pdf")
    _place(storage, doc.filepath)
    # A stray folder left behind on disk under the target name.
    _place(storage, "Workspaces/acme/Legal/stray.pdf")

    with pytest.raises(ConflictError):
        await make_service().update(ws.workspace_id, acme["org"].organization_id, WorkspaceUpdate(name="Legal"))

    async with session_factory() as session:
        assert (await session.get(WorkspaceRow, ws.workspace_id)).name == "Contracts"
        assert (await session.get(DocumentRow, doc.document_id)).filepath == "Workspaces/acme/Contracts/a.pdf"
    assert (storage.root / "Workspaces/acme/Contracts/a.pdf").exists()


@pytest.mark.asyncio
async def test_update_without_user_ids_keeps_viewers(acme, seed, make_service, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.grant(acme["alice"], ws)

    await make_service().update(
        ws.workspace_id, acme["org"].organization_id, WorkspaceUpdate(description="Signed agreements")
    )

    grants = await _all(
        session_factory, select(WorkspaceAccessRow).where(WorkspaceAccessRow.workspace_id == ws.workspace_id)
    )
    assert {g.user_id: g.access_level for g in grants} == {
        acme["alice"].user_id: AccessLevel.VIEW,
        acme["admin"].user_id: AccessLevel.ADMIN,
    }


@pytest.mark.asyncio
async def test_update_replaces_viewers(acme, seed, make_service, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.grant(acme["alice"], ws)

    await make_service().update(
        ws.workspace_id, acme["org"].organization_id, WorkspaceUpdate(user_ids=[acme["bob"].user_id])
    )

    grants = await _all(
        session_factory, select(WorkspaceAccessRow).where(WorkspaceAccessRow.workspace_id == ws.workspace_id)
    )
    assert {g.user_id for g in grants} == {acme["bob"].user_id, acme["admin"].user_id}


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_cascades(acme, seed, make_service, storage, session_factory, indexing_service):
    ws = await seed.workspace(acme["org"], "Contracts")
    keep = await seed.workspace(acme["org"], "HR")
    original = await seed.document(ws, "Workspaces/acme/Contracts/a.pdf")
    await seed.document(ws, "Workspaces/acme/Contracts/a-v2.pdf", "revision", original.document_id)
    kept_doc = await seed.document(keep, "Workspaces/acme/HR/policy.pdf")
    _place(storage, "Workspaces/acme/Contracts/a.pdf")
    _place(storage, "Workspaces/acme/Contracts/a-v2.pdf")
    _place(storage, kept_doc.filepath)
    await seed.grant(acme["alice"], ws)
    chat = await seed.chat(acme["alice"], ws)

    result = await make_service().delete(ws.workspace_id, acme["org"].organization_id)

    assert result["state"] == DeleteState.DELETED
    assert result["documents_deleted"] == 2
    assert result["chats_detached"] == 1

    [purge] = indexing_service.deletes
    assert purge["deleteWorkspace"] == "true"
    assert purge["workspace"] == ws.workspace_id

    assert not (storage.root / "Workspaces/acme/Contracts").exists()
    assert (storage.root / kept_doc.filepath).exists()

    async with session_factory() as session:
        assert await session.get(WorkspaceRow, ws.workspace_id) is None
        detached = await session.get(ChatRow, chat.chat_id)
        assert detached.workspace_id is None
        assert detached.workspace_name == "Contracts"
    assert await _all(session_factory, select(DocumentRow).where(DocumentRow.workspace_id == ws.workspace_id)) == []
    assert await _all(
        session_factory, select(WorkspaceAccessRow).where(WorkspaceAccessRow.workspace_id == ws.workspace_id)
    ) == []
    assert len(await _all(session_factory, select(DocumentRow))) == 1


@pytest.mark.asyncio
async def test_delete_empty_workspace_skips_index(acme, seed, make_service, indexing_service):
    ws = await seed.workspace(acme["org"], "Empty")

    result = await make_service().delete(ws.workspace_id, acme["org"].organization_id)

    assert result["documents_deleted"] == 0
    assert indexing_service.requests == []


@pytest.mark.asyncio
async def test_delete_backfills_blank_chat_workspace_name(acme, seed, make_service, session_factory):
    ws = await seed.workspace(acme["org"], "Board")
    blank = await seed.chat(acme["alice"], ws, workspace_name="")
    named = await seed.chat(acme["alice"], ws, workspace_name="Board (2023)")

    await make_service().delete(ws.workspace_id, acme["org"].organization_id)

    async with session_factory() as session:
        assert (await session.get(ChatRow, blank.chat_id)).workspace_name == "Board"
        assert (await session.get(ChatRow, named.chat_id)).workspace_name == "Board (2023)"


@pytest.mark.asyncio
async def test_delete_aborts_when_index_purge_fails(
    acme, seed, make_service, storage, session_factory, indexing_service
):
    ws = await seed.workspace(acme["org"], "Contracts")
    doc = await seed.document(ws, "Workspaces/acme/Contracts/a.pdf")
    _place(storage, doc.filepath)
    indexing_service.fail_deletes = True

    with pytest.raises(IndexingServiceError):
        await make_service().delete(ws.workspace_id, acme["org"].organization_id)

    assert (storage.root / doc.filepath).exists()
    async with session_factory() as session:
        assert await session.get(WorkspaceRow, ws.workspace_id) is not None
        assert await session.get(DocumentRow, doc.document_id) is not None


@pytest.mark.asyncio
async def test_delete_tolerates_missing_files(acme, seed, make_service, session_factory):
    ws = await seed.workspace(acme["org"], "Contracts")
    await seed.document(ws, "Workspaces/acme/Contracts/never-written.pdf")

    result = await make_service().delete(ws.workspace_id, acme["org"].organization_id)

    assert result["documents_deleted"] == 1


@pytest.mark.asyncio
async def test_delete_other_org_workspace_not_found(acme, seed, make_service):
    other = await seed.org(name="Globex", slug="globex")
    foreign = await seed.workspace(other, "Contracts")

    with pytest.raises(NotFoundError):
        await make_service().delete(foreign.workspace_id, acme["org"].organization_id)
