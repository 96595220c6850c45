import re
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from app.core.schemas import CamelModel

Day = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]
EventType = Literal["lecture", "practice", "lab", "exam"]
WeekNumber = Literal[1, 2]

TIME_SLOT_RE = re.compile(r"^\d{1,2}:\d{2}-\d{1,2}:\d{2}$")


def _check_slot(value: str) -> str:
    value = (value or "").replace(" ", "")
    if not TIME_SLOT_RE.match(value):
        raise ValueError("Time slot must look like '8:30-10:00'")
    return value


class ScheduleEventCreate(CamelModel):
    # Empty titles are accepted here and rejected by the schedule rules
    title: str = ""
    day: Day
    time_slot: str
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    location: Optional[str] = None
    teacher: Optional[str] = None
    type: EventType = "lecture"
    week_number: WeekNumber = 1

    @field_validator("time_slot")
    @classmethod
    def _slot(cls, v: str) -> str:
        return _check_slot(v)


class ScheduleEventUpdate(CamelModel):
    title: Optional[str] = None
    day: Optional[Day] = None
    time_slot: Optional[str] = None
    location: Optional[str] = None
    teacher: Optional[str] = None
    type: Optional[EventType] = None
    week_number: Optional[WeekNumber] = None

    @field_validator("time_slot")
    @classmethod
    def _slot(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_slot(v)


class WeekEventItem(ScheduleEventCreate):
    # Existing events keep their id; items without one are inserted
    id: Optional[int] = None


class WeekReplace(CamelModel):
    events: List[WeekEventItem] = Field(default_factory=list)


class ScheduleEventResponse(CamelModel):
    id: int
    title: str
    day: str
    time_slot: str
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    location: Optional[str] = None
    teacher: Optional[str] = None
    type: str
    week_number: int


class WeekScheduleResponse(CamelModel):
    events: List[ScheduleEventResponse]
    current_week: int
    week1_count: int
    week2_count: int
    max_per_week: int
    max_per_day: int


class AllEventsResponse(CamelModel):
    events: List[ScheduleEventResponse]


class ScheduleMeta(CamelModel):
    days: List[str]
    time_slots: List[str]
    event_types: List[str]
    max_per_day: int
    max_per_week: int
    max_notes_per_event: int
