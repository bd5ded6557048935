"""Document table."""

from datetime import date

from sqlalchemy import Date, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docspace.db.base import Base, TimestampMixin


class DocumentRow(Base, TimestampMixin):
    __tablename__ = "documents"

    # Same UUID that is sent to the indexing service as fileID.
    document_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    workspace_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("workspaces.workspace_id"), nullable=False, index=True
    )
    organization_id: Mapped[str] = mapped_column(
        String(128), ForeignKey("organizations.organization_id"), nullable=False, index=True
    )
    filepath: Mapped[str] = mapped_column(Text, nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False, default="original")
    original_file_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    impact_date: Mapped[date | None] = mapped_column(Date, nullable=True)
