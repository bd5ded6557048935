"""User table."""

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from docspace.db.base import Base, TimestampMixin


class UserRow(Base, TimestampMixin):
    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str | None] = mapped_column(Text, nullable=True)
    firstname: Mapped[str | None] = mapped_column(String(64), nullable=True)
    lastname: Mapped[str | None] = mapped_column(String(64), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    # NULL only for super admins
    organization_id: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("organizations.organization_id"), nullable=True, index=True
    )
