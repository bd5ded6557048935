"""Chat table (owned by the chat surface; workspace deletion detaches it)."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docspace.db.base import Base, TimestampMixin


class ChatRow(Base, TimestampMixin):
    __tablename__ = "chats"

    chat_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("users.user_id"), nullable=False, index=True
    )
    organization_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("organizations.organization_id"), nullable=False, index=True
    )
    workspace_id: Mapped[str | None] = mapped_column(
        String(128),
        ForeignKey("workspaces.workspace_id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Snapshot kept readable after the workspace is deleted.
    workspace_name: Mapped[str | None] = mapped_column(Text, nullable=True)
