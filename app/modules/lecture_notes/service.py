import json
import logging
from typing import List, Optional

from sqlalchemy import and_, false, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import Conflict, InfraError, NotAuthorized, NotFound, ValidationError
from app.modules.auth.schemas import SessionContext
from app.modules.lecture_notes.models import LectureNote
from app.modules.lecture_notes.schemas import (
    EventLimit, LectureNoteCreate, LectureNoteList, LectureNoteResponse
)
from app.modules.schedule.models import ScheduleEvent

logger = logging.getLogger(__name__)


def _decode_urls(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    try:
        urls = json.loads(raw)
    except ValueError:
        return []
    return [u for u in urls if isinstance(u, str)] if isinstance(urls, list) else []


class LectureNoteService:
    def __init__(self, db: Session, context: SessionContext):
        self.db = db
        self.context = context

    def _notes_query(self):
        """
        Notes outer-joined with the caller's group events. A reference to an event
        that is gone or belongs to another group simply doesn't join.
        """
        group_id = self.context.group_id
        join_on = and_(
            ScheduleEvent.id == LectureNote.schedule_event_id,
            ScheduleEvent.group_id == group_id if group_id is not None else false(),
        )
        return self.db.query(LectureNote, ScheduleEvent.id, ScheduleEvent.title, ScheduleEvent.day)\
            .outerjoin(ScheduleEvent, join_on)

    def _to_response(self, note: LectureNote, event_id, event_title, event_day) -> LectureNoteResponse:
        attached = event_id is not None
        return LectureNoteResponse(
            id=note.id,
            group_id=note.group_id,
            title=note.title,
            content=note.content,
            schedule_event_id=event_id if attached else None,
            event_title=event_title if attached else None,
            event_day=event_day if attached else None,
            audio_transcript=note.audio_transcript,
            slides_text=note.slides_text,
            file_name=note.file_name,
            audio_url=note.audio_url,
            image_urls=_decode_urls(note.image_urls),
            image_count=note.image_count or 0,
            created_by=note.created_by,
            created_at=note.created_at,
        )

    def _visible(self, note: LectureNote) -> bool:
        if note.created_by == self.context.phone:
            return True
        return note.group_id is not None and note.group_id == self.context.group_id

    def _get_owned_note(self, note_id: int) -> LectureNote:
        note = self.db.get(LectureNote, note_id)
        if note is None or not self._visible(note):
            raise NotFound("Lecture note not found")
        if note.created_by != self.context.phone:
            raise NotAuthorized("Only the author can change this note")
        return note

    def _get_group_event(self, event_id: int) -> ScheduleEvent:
        event = self.db.get(ScheduleEvent, event_id)
        if event is None or self.context.group_id is None or event.group_id != self.context.group_id:
            raise NotFound("Schedule event not found")
        return event

    def _attached_count(self, event_id: int) -> int:
        return self.db.query(func.count(LectureNote.id))\
            .filter(LectureNote.schedule_event_id == event_id)\
            .scalar()

    def _ensure_capacity(self, event_id: int, already_written: bool = False):
        count = self._attached_count(event_id)
        limit = settings.max_notes_per_event
        if (count > limit) if already_written else (count >= limit):
            if already_written:
                self.db.rollback()
            logger.warning(f"Attachment cap reached for event {event_id}")
            raise Conflict(f"This class already has the maximum number of notes attached ({limit})")

    def list_notes(self, scope: str = "all", event_id: Optional[int] = None) -> LectureNoteList:
        """Notes visible to the caller, newest first"""
        phone, group_id = self.context.phone, self.context.group_id
        query = self._notes_query()
        if scope == "mine":
            query = query.filter(LectureNote.created_by == phone)
        elif scope == "group":
            if group_id is None:
                return LectureNoteList(notes=[])
            query = query.filter(LectureNote.group_id == group_id)
        elif group_id is not None:
            query = query.filter(or_(LectureNote.created_by == phone, LectureNote.group_id == group_id))
        else:
            query = query.filter(LectureNote.created_by == phone)
        if event_id is not None:
            query = query.filter(ScheduleEvent.id == event_id)
        rows = query.order_by(LectureNote.created_at.desc(), LectureNote.id.desc()).all()
        return LectureNoteList(notes=[self._to_response(*row) for row in rows])

    def get_note(self, note_id: int) -> LectureNoteResponse:
        row = self._notes_query().filter(LectureNote.id == note_id).first()
        if row is None or not self._visible(row[0]):
            raise NotFound("Lecture note not found")
        return self._to_response(*row)

    def create_note(self, note_data: LectureNoteCreate) -> LectureNoteResponse:
        """Create a note, optionally attached to one of the group's classes"""
        title = note_data.title.strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        if note_data.schedule_event_id is not None:
            self._get_group_event(note_data.schedule_event_id)
            self._ensure_capacity(note_data.schedule_event_id)

        urls = [u for u in note_data.image_urls if u]
        note = LectureNote(
            group_id=None if note_data.personal else self.context.group_id,
            schedule_event_id=note_data.schedule_event_id,
            title=title,
            content=note_data.content,
            audio_transcript=note_data.audio_transcript,
            slides_text=note_data.slides_text,
            file_name=note_data.file_name,
            audio_url=note_data.audio_url,
            image_urls=json.dumps(urls) if urls else None,
            image_count=len(urls),
            created_by=self.context.phone,
        )
        try:
            self.db.add(note)
            self.db.flush()
            if note.schedule_event_id is not None:
                self._ensure_capacity(note.schedule_event_id, already_written=True)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating lecture note for {self.context.phone}: {e}")
            raise InfraError()
        logger.info(f"Lecture note {note.id} created by {self.context.phone}")
        return self.get_note(note.id)

    def update_title(self, note_id: int, title: str) -> LectureNoteResponse:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        note = self._get_owned_note(note_id)
        try:
            note.title = title
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error renaming lecture note {note_id}: {e}")
            raise InfraError()
        return self.get_note(note_id)

    def delete_note(self, note_id: int) -> bool:
        note = self._get_owned_note(note_id)
        try:
            self.db.delete(note)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting lecture note {note_id}: {e}")
            raise InfraError()
        logger.info(f"Lecture note {note_id} deleted by {self.context.phone}")
        return True

    def _detachable_by_admin(self, note_id: int) -> Optional[LectureNote]:
        """A note someone else attached to one of the caller's group classes, when the caller is its admin"""
        if not self.context.is_group_admin:
            return None
        note = self.db.get(LectureNote, note_id)
        if note is None or note.created_by == self.context.phone or note.schedule_event_id is None:
            return None
        event = self.db.get(ScheduleEvent, note.schedule_event_id)
        if event is None or event.group_id != self.context.group_id:
            return None
        return note

    def attach_to_event(self, note_id: int, event_id: Optional[int]) -> LectureNoteResponse:
        """Attach to a class of the caller's group, or detach with None"""
        if event_id is None:
            note = self._detachable_by_admin(note_id)
            if note is not None:
                return self._admin_detach(note)
        note = self._get_owned_note(note_id)
        if event_id is not None:
            self._get_group_event(event_id)
            if note.schedule_event_id == event_id:
                return self.get_note(note_id)
            self._ensure_capacity(event_id)
        try:
            note.schedule_event_id = event_id
            self.db.flush()
            if event_id is not None:
                self._ensure_capacity(event_id, already_written=True)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error attaching lecture note {note_id} to event {event_id}: {e}")
            raise InfraError()
        if event_id is None:
            logger.info(f"Lecture note {note_id} detached")
        else:
            logger.info(f"Lecture note {note_id} attached to event {event_id}")
        return self.get_note(note_id)

    def _admin_detach(self, note: LectureNote) -> LectureNoteResponse:
        event_id = note.schedule_event_id
        try:
            note.schedule_event_id = None
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error detaching lecture note {note.id} from event {event_id}: {e}")
            raise InfraError()
        logger.info(f"Lecture note {note.id} detached from event {event_id} by group admin {self.context.phone}")
        return self._to_response(note, None, None, None)

    def check_limit(self, event_id: int) -> EventLimit:
        self._get_group_event(event_id)
        count = self._attached_count(event_id)
        return EventLimit(
            event_id=event_id,
            count=count,
            limit=settings.max_notes_per_event,
            can_attach=count < settings.max_notes_per_event,
        )
