"""Workspace and workspace access tables."""

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from docspace.db.base import Base, TimestampMixin


class WorkspaceRow(Base, TimestampMixin):
    __tablename__ = "workspaces"
    __table_args__ = (
        UniqueConstraint("name", "organization_id", name="uq_workspaces_name_org"),
    )

    workspace_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    organization_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("organizations.organization_id"), nullable=False, index=True
    )
    # Dynamic field schema for the chat form; stored verbatim.
    config: Mapped[dict | None] = mapped_column(JSON, nullable=True)


class WorkspaceAccessRow(Base, TimestampMixin):
    __tablename__ = "workspace_access"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_workspace_access_user_workspace"),
    )

    access_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.user_id"), nullable=False, index=True
    )
    workspace_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("workspaces.workspace_id"), nullable=False, index=True
    )
    access_level: Mapped[str] = mapped_column(String(20), nullable=False, default="view")
