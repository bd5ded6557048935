"""Pydantic models for users and per-user workspace access."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    firstname: str = Field("", max_length=64)
    lastname: str = Field("", max_length=64)
    role: Literal["user", "org_admin"] = "user"


class UserResponse(BaseModel):
    user_id: str
    email: str
    firstname: str | None
    lastname: str | None
    role: str
    organization_id: str | None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class WorkspaceAccessFlag(BaseModel):
    workspace_id: str
    name: str
    has_access: bool


class WorkspaceGrantRequest(BaseModel):
    workspace_id: str


class WorkspaceBatchAccessRequest(BaseModel):
    add: list[str] = Field(default_factory=list)
    remove: list[str] = Field(default_factory=list)
