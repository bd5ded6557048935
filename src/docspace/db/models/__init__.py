"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from docspace.db.models.organization import OrganizationRow
from docspace.db.models.user import UserRow
from docspace.db.models.workspace import WorkspaceAccessRow, WorkspaceRow
from docspace.db.models.document import DocumentRow
from docspace.db.models.chat import ChatRow

__all__ = [
    "OrganizationRow",
    "UserRow",
    "WorkspaceRow",
    "WorkspaceAccessRow",
    "DocumentRow",
    "ChatRow",
]
