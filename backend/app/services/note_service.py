"""
Stage notes.

Editors post notes; a note can be changed or removed by its author or by a
project admin.
"""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import PermissionLevel
from app.models.activity_log import ActivityType
from app.models.note import Note
from app.models.phase import Stage
from app.models.user import User
from app.schemas.note import NoteCreateRequest, NoteListResponse, NoteResponse, NoteUpdateRequest
from app.services.activity_service import ActivityService

logger = logging.getLogger(__name__)


class NoteService:

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_notes(self, stage: Stage, round_number: int | None = None) -> NoteListResponse:
        """Pinned notes first, then newest first."""
        query = select(Note).where(Note.stage_id == stage.id)
        if round_number is not None:
            query = query.where(Note.round_number == round_number)
        try:
            result = await self.db.execute(
                query.order_by(Note.is_pinned.desc(), Note.created_at.desc())
            )
        except SQLAlchemyError:
            logger.exception("Listing notes of stage %s failed", stage.id)
            return NoteListResponse(notes=[], total=0)
        notes = [NoteResponse.model_validate(n) for n in result.scalars().all()]
        return NoteListResponse(notes=notes, total=len(notes))

    async def create_note(self, stage: Stage, data: NoteCreateRequest, author: User) -> NoteResponse:
        note = Note(
            stage_id=stage.id,
            author_id=author.id,
            content=data.content,
            is_pinned=data.is_pinned,
            round_number=stage.current_round if stage.allows_rounds else None,
        )
        self.db.add(note)
        await self.db.flush()
        await ActivityService(self.db).record_for_stage(
            stage, ActivityType.comment_added, author, {"note_id": str(note.id)}
        )
        await self.db.flush()
        return NoteResponse.model_validate(note)

    async def _get_for_change(
        self, stage: Stage, note_id: UUID, actor: User, permission: PermissionLevel
    ) -> Note:
        result = await self.db.execute(
            select(Note).where(Note.id == note_id, Note.stage_id == stage.id)
        )
        note = result.scalar_one_or_none()
        if note is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "NOTE_NOT_FOUND", "message": "Note not found"},
            )
        if note.author_id != actor.id and permission != PermissionLevel.admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"code": "NOT_NOTE_AUTHOR", "message": "Only the author or an admin can change this note"},
            )
        return note

    async def update_note(
        self,
        stage: Stage,
        note_id: UUID,
        data: NoteUpdateRequest,
        actor: User,
        permission: PermissionLevel,
    ) -> NoteResponse:
        note = await self._get_for_change(stage, note_id, actor, permission)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(note, field, value)
        await self.db.flush()
        return NoteResponse.model_validate(note)

    async def delete_note(
        self, stage: Stage, note_id: UUID, actor: User, permission: PermissionLevel
    ) -> None:
        note = await self._get_for_change(stage, note_id, actor, permission)
        await self.db.delete(note)
        await self.db.flush()
