"""
Schedule consistency rules.

validate_event checks a candidate against the events already in the same
group and week. Rules run in a fixed order and only the first failure is
reported:

1. slot_taken     - another event occupies the same (day, time_slot)
2. day_full       - the day already holds max_per_day events
3. week_full      - the week already holds max_per_week events
4. title_required - the title is empty after stripping
"""

from typing import Iterable, NamedTuple, Optional, Protocol

from app.config import settings

SLOT_TAKEN = "slot_taken"
DAY_FULL = "day_full"
WEEK_FULL = "week_full"
TITLE_REQUIRED = "title_required"


class EventLike(Protocol):
    day: str
    time_slot: str


class Candidate(NamedTuple):
    title: str
    day: str
    time_slot: str
    week_number: int


class EventRejection(NamedTuple):
    code: str
    reason: str


def validate_event(
    existing_events_for_week: Iterable[EventLike],
    candidate: Candidate,
    max_per_day: Optional[int] = None,
    max_per_week: Optional[int] = None,
) -> Optional[EventRejection]:
    max_per_day = settings.max_events_per_day if max_per_day is None else max_per_day
    max_per_week = settings.max_events_per_week if max_per_week is None else max_per_week
    existing = list(existing_events_for_week)
    same_day = [e for e in existing if e.day == candidate.day]

    if any(e.time_slot == candidate.time_slot for e in same_day):
        return EventRejection(
            SLOT_TAKEN,
            f"Time slot {candidate.time_slot} on {candidate.day} is already taken in week {candidate.week_number}",
        )
    if len(same_day) >= max_per_day:
        return EventRejection(DAY_FULL, f"A day cannot hold more than {max_per_day} classes")
    if len(existing) >= max_per_week:
        return EventRejection(
            WEEK_FULL, f"Week {candidate.week_number} cannot hold more than {max_per_week} classes"
        )
    if not (candidate.title or "").strip():
        return EventRejection(TITLE_REQUIRED, "Title is required")
    return None


def split_time_slot(time_slot: str):
    """'8:30-10:00' -> ('8:30', '10:00')"""
    start, _, end = time_slot.partition("-")
    return start.strip(), end.strip()
