"""Pydantic models for workspaces and access grants."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from docspace.errors.exceptions import ValidationError
from docspace.models.enums import AccessLevel
from docspace.services.paths import validate_segment


def _folder_safe(name: str) -> str:
    # The name becomes a directory under the organization folder.
    try:
        return validate_segment(name, "Workspace name")
    except ValidationError as exc:
        raise ValueError(exc.message) from exc


class WorkspaceCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    user_ids: list[str] = Field(default_factory=list)
    config: dict[str, Any] | None = None

    @field_validator("name")
    @classmethod
    def _name_is_folder_safe(cls, value: str) -> str:
        return _folder_safe(value)


class WorkspaceUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    # None keeps the current view-level users; admins are re-granted either way.
    user_ids: list[str] | None = None
    config: dict[str, Any] | None = None

    @field_validator("name")
    @classmethod
    def _name_is_folder_safe(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return _folder_safe(value)


class WorkspaceResponse(BaseModel):
    workspace_id: str
    name: str
    description: str | None = None
    organization_id: str
    config: dict[str, Any] | None = None
    item_count: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserWorkspace(BaseModel):
    """A workspace as seen by one user, with that user's access level."""

    workspace_id: str
    name: str
    description: str | None = None
    access_level: AccessLevel
    created_at: datetime | None = None


class AccessGrantResponse(BaseModel):
    user_id: str
    access_level: AccessLevel
    email: str
    firstname: str | None = None
    lastname: str | None = None
    role: str


class WorkspaceConfigUpdate(BaseModel):
    config: dict[str, Any]
