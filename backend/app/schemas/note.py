from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class NoteCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=20000)
    is_pinned: bool = False


class NoteUpdateRequest(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=20000)
    is_pinned: bool | None = None


class NoteResponse(BaseModel):
    id: UUID
    stage_id: UUID
    author_id: UUID | None
    content: str
    is_pinned: bool
    round_number: int | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteListResponse(BaseModel):
    notes: list[NoteResponse]
    total: int
