from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import get_session_context, require_group_member
from app.database.sqlite_client import get_db
from app.modules.auth.schemas import SessionContext
from app.modules.lecture_notes.schemas import (
    AttachRequest, EventLimit, LectureNoteCreate, LectureNoteList, LectureNoteResponse,
    NoteScope, TitleUpdate
)
from app.modules.lecture_notes.service import LectureNoteService

router = APIRouter(prefix="/lecture-notes", tags=["lecture-notes"])


def get_note_service(
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db)
) -> LectureNoteService:
    return LectureNoteService(db, context)


@router.get("", response_model=LectureNoteList)
async def list_notes(
    scope: NoteScope = Query("all"),
    event_id: Optional[int] = Query(None),
    service: LectureNoteService = Depends(get_note_service)
):
    """Notes visible to the caller, optionally only those attached to one class"""
    return service.list_notes(scope, event_id)


@router.post("", response_model=LectureNoteResponse, status_code=201)
async def create_note(
    note_data: LectureNoteCreate,
    service: LectureNoteService = Depends(get_note_service)
):
    return service.create_note(note_data)


@router.get("/check-limit", response_model=EventLimit)
async def check_limit(
    event_id: int = Query(...),
    context: SessionContext = Depends(require_group_member),
    service: LectureNoteService = Depends(get_note_service)
):
    """How many notes a class already has and whether one more fits"""
    return service.check_limit(event_id)


@router.get("/{note_id}", response_model=LectureNoteResponse)
async def get_note(
    note_id: int,
    service: LectureNoteService = Depends(get_note_service)
):
    return service.get_note(note_id)


@router.put("/{note_id}/title", response_model=LectureNoteResponse)
async def rename_note(
    note_id: int,
    update: TitleUpdate,
    service: LectureNoteService = Depends(get_note_service)
):
    """Rename a note (author only)"""
    return service.update_title(note_id, update.title)


@router.post("/{note_id}/attach", response_model=LectureNoteResponse)
async def attach_note(
    note_id: int,
    attach: AttachRequest,
    service: LectureNoteService = Depends(get_note_service)
):
    """Attach the note to a class, or detach it with a null event id"""
    return service.attach_to_event(note_id, attach.schedule_event_id)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: int,
    service: LectureNoteService = Depends(get_note_service)
):
    """Delete a note (author only)"""
    service.delete_note(note_id)
    return None
