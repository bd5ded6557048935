"""Response envelopes shared by every route."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="forbid")

    code: str
    message: str
    details: Any = None
    trace_id: str = Field(min_length=8, max_length=128)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorResponse(BaseModel):
    """Body of every failed request."""

    model_config = ConfigDict(extra="forbid")

    success: bool = False
    error: ErrorDetail
