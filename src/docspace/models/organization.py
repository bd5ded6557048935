"""Pydantic models for organizations."""

from datetime import datetime

from pydantic import BaseModel, Field

from docspace.models.enums import OrganizationStatus


class OrganizationCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    expiry_days: int = Field(30, ge=1)


class OrganizationUpdate(BaseModel):
    # Slug is immutable; stored file paths embed it.
    name: str | None = Field(None, min_length=1, max_length=255)
    status: OrganizationStatus | None = None
    expires_at: datetime | None = None


class OrganizationResponse(BaseModel):
    organization_id: str
    name: str
    slug: str
    status: OrganizationStatus
    expires_at: datetime
    user_count: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
