"""Saved specification schemas for API request/response validation."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SpecCreate(BaseModel):
    """Request schema for saving a generated specification."""

    name: str | None = Field(default=None, max_length=500)
    idea_text: str = ""
    generated_document: str
    selected_module_ids: list[str] = Field(default_factory=list)


class SpecUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    name: str | None = Field(default=None, max_length=500)
    idea_text: str | None = None
    generated_document: str | None = None
    selected_module_ids: list[str] | None = None


class SpecListResponse(BaseModel):

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    selected_module_ids: list[str] = Field(default_factory=list)
    created_at: datetime
    saved_at: datetime


class SpecResponse(SpecListResponse):

    idea_text: str
    generated_document: str
