from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field

from app.core.schemas import CamelModel

NoteScope = Literal["all", "mine", "group"]


class LectureNoteCreate(BaseModel):
    title: str
    content: str
    audio_transcript: Optional[str] = None
    slides_text: Optional[str] = None
    file_name: Optional[str] = None
    audio_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    schedule_event_id: Optional[int] = None
    personal: bool = False  # keep the note out of the group library


class TitleUpdate(BaseModel):
    title: str


class AttachRequest(BaseModel):
    # null detaches the note
    schedule_event_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("schedule_event_id", "scheduleEventId")
    )


class LectureNoteResponse(BaseModel):
    id: int
    group_id: Optional[int] = None
    title: str
    content: str
    schedule_event_id: Optional[int] = None
    event_title: Optional[str] = None
    event_day: Optional[str] = None
    audio_transcript: Optional[str] = None
    slides_text: Optional[str] = None
    file_name: Optional[str] = None
    audio_url: Optional[str] = None
    image_urls: List[str] = Field(default_factory=list)
    image_count: int = 0
    created_by: str
    created_at: datetime


class LectureNoteList(BaseModel):
    notes: List[LectureNoteResponse]


class EventLimit(CamelModel):
    event_id: int
    count: int
    limit: int
    can_attach: bool
