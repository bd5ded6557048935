"""Pydantic models for documents, the file tree, and uploads."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from docspace.models.enums import FileType, NodeType, UploadState


class DocumentResponse(BaseModel):
    document_id: str
    workspace_id: str
    organization_id: str
    filepath: str
    file_type: FileType
    original_file_id: str | None = None
    impact_date: date | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class DocumentDetail(BaseModel):
    document_id: str
    filepath: str
    url: str
    content: str = ""
    created_at: datetime | None = None


class FileNode(BaseModel):
    """One folder or file in a workspace tree."""

    name: str
    type: NodeType
    path: str
    document_id: str | None = None
    file_type: FileType | None = None
    created_at: datetime | None = None
    children: list[FileNode] = Field(default_factory=list)


class UploadResult(BaseModel):
    filename: str
    success: bool
    state: UploadState
    document: DocumentResponse | None = None
    error: str | None = None


class BatchSummary(BaseModel):
    total: int
    successful: int
    failed: int


class BatchUploadResponse(BaseModel):
    success: bool = True
    results: list[UploadResult]
    summary: BatchSummary
