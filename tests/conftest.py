"""Shared test fixtures."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qsl

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from docspace.db.engine import create_all_tables, create_db_engine, create_session_factory
from docspace.db.models import ChatRow, DocumentRow, OrganizationRow, UserRow, WorkspaceAccessRow, WorkspaceRow
from docspace.services.id_generator import generate_file_id, generate_id
from docspace.services.indexing_client import IndexingClient
from docspace.services.locks import WorkspaceLocks
from docspace.services.security import create_access_token, hash_password
from docspace.services.storage import FileStorage


# ---------------------------------------------------------------------------
# Fake indexing service
# ---------------------------------------------------------------------------

def _parse_form(request: httpx.Request) -> dict[str, str]:
    content_type = request.headers.get("content-type", "")
    body = request.content
    if content_type.startswith("application/x-www-form-urlencoded"):
        return dict(parse_qsl(body.decode()))

    boundary = content_type.split("boundary=", 1)[1].encode()
    fields: dict[str, str] = {}
    for part in body.split(b"--" + boundary):
        if b"\r\n\r\n" not in part:
            continue
        head, value = part.split(b"\r\n\r\n", 1)
        marker = b'name="'
        start = head.find(marker)
        if start < 0:
            continue
        name = head[start + len(marker):head.index(b'"', start + len(marker))].decode()
        fields[name] = value.removesuffix(b"\r\n").decode(errors="replace")
    return fields


class FakeIndexingService:
    """Stands in for the remote indexing service behind an httpx.MockTransport."""

    def __init__(self):
        self.requests: list[tuple[str, dict[str, str]]] = []
        self.fail_filenames: set[str] = set()
        self.fail_deletes = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = _parse_form(request)
        self.requests.append((request.url.path, form))
        if request.url.path == "/api/upload/" and form.get("filename") in self.fail_filenames:
            return httpx.Response(500, text="ingestion failed")
        if request.url.path == "/api/delete/" and self.fail_deletes:
            return httpx.Response(503, text="vector store unavailable")
        return httpx.Response(200, json={"status": "ok"})

    def calls_to(self, path: str) -> list[dict[str, str]]:
        return [form for call_path, form in self.requests if call_path == path]

    @property
    def uploads(self) -> list[dict[str, str]]:
        return self.calls_to("/api/upload/")

    @property
    def deletes(self) -> list[dict[str, str]]:
        return self.calls_to("/api/delete/")


# ---------------------------------------------------------------------------
# Seeding
# ---------------------------------------------------------------------------

class Seeder:
    """Inserts rows directly, each in its own short-lived session."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def _add(self, row):
        async with self.session_factory() as session:
            session.add(row)
            await session.commit()
        return row

    async def org(self, name: str = "Acme", slug: str = "acme", status: str = "active",
                  expires_at: datetime | None = None) -> OrganizationRow:
        return await self._add(OrganizationRow(
            organization_id=generate_id("org_"),
            name=name,
            slug=slug,
            status=status,
            expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=30),
        ))

    async def user(self, org: OrganizationRow | None, email: str, role: str = "user") -> UserRow:
        return await self._add(UserRow(
            user_id=generate_id("usr_"),
            email=email,
            hashed_password=hash_password("Secret123!"),
            firstname=email.split("@")[0].title(),
            lastname="Tester",
            role=role,
            organization_id=org.organization_id if org else None,
        ))

    async def workspace(self, org: OrganizationRow, name: str, config: dict | None = None) -> WorkspaceRow:
        return await self._add(WorkspaceRow(
            workspace_id=generate_id("ws_"),
            name=name,
            organization_id=org.organization_id,
            config=config,
        ))

    async def grant(self, user: UserRow, workspace: WorkspaceRow, level: str = "view") -> WorkspaceAccessRow:
        return await self._add(WorkspaceAccessRow(
            access_id=generate_id("acc_"),
            user_id=user.user_id,
            workspace_id=workspace.workspace_id,
            access_level=level,
        ))

    async def document(self, workspace: WorkspaceRow, filepath: str, file_type: str = "original",
                       original_file_id: str | None = None) -> DocumentRow:
        return await self._add(DocumentRow(
            document_id=generate_file_id(),
            workspace_id=workspace.workspace_id,
            organization_id=workspace.organization_id,
            filepath=filepath,
            file_type=file_type,
            original_file_id=original_file_id,
        ))

    async def chat(self, user: UserRow, workspace: WorkspaceRow, title: str = "Question",
                   workspace_name: str | None = None) -> ChatRow:
        return await self._add(ChatRow(
            chat_id=generate_id("chat_"),
            title=title,
            user_id=user.user_id,
            organization_id=user.organization_id,
            workspace_id=workspace.workspace_id,
            workspace_name=workspace_name,
        ))


def auth_headers(user: UserRow) -> dict[str, str]:
    token = create_access_token(user.user_id, user.role, user.organization_id, user.email)
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite so concurrent sessions see each other's commits."""
    engine = create_db_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def storage(tmp_path):
    _storage = FileStorage(tmp_path / "public")
    _storage.initialize()
    return _storage


@pytest.fixture
def indexing_service():
    return FakeIndexingService()


@pytest.fixture
def indexer(indexing_service):
    return IndexingClient(
        base_url="http://indexer.test",
        api_key="test-key",
        index="idbms",
        transport=httpx.MockTransport(indexing_service.handler),
    )


@pytest.fixture
def locks():
    return WorkspaceLocks()


@pytest.fixture
def app(db_engine, session_factory, storage, indexer, locks):
    """Create a test application instance bound to the test database."""
    from docspace.main import create_app

    _app = create_app()
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    _app.state.storage = storage
    _app.state.indexer = indexer
    _app.state.workspace_locks = locks
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def acme(seed):
    """An organization with one org admin and two regular users."""
    org = await seed.org()
    admin = await seed.user(org, "admin@acme.test", role="org_admin")
    alice = await seed.user(org, "alice@acme.test")
    bob = await seed.user(org, "bob@acme.test")
    return {"org": org, "admin": admin, "alice": alice, "bob": bob}


@pytest.fixture
def headers_for():
    """Bearer headers for a seeded user."""
    return auth_headers
