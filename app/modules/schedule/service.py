import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import Conflict, InfraError, NotFound, ValidationError
from app.modules.lecture_notes.models import LectureNote
from app.modules.schedule.models import DAYS, EVENT_TYPES, ScheduleEvent
from app.modules.schedule.schemas import (
    AllEventsResponse, ScheduleEventCreate, ScheduleEventResponse, ScheduleEventUpdate,
    ScheduleMeta, WeekReplace, WeekScheduleResponse
)
from app.modules.schedule.validation import (
    TITLE_REQUIRED, Candidate, EventRejection, split_time_slot, validate_event
)

logger = logging.getLogger(__name__)


def _minutes(clock: Optional[str]) -> int:
    try:
        hours, minutes = (clock or "").split(":")
        return int(hours) * 60 + int(minutes)
    except ValueError:
        return 0


def _sort_key(event: ScheduleEvent):
    day_index = DAYS.index(event.day) if event.day in DAYS else len(DAYS)
    return event.week_number, day_index, _minutes(split_time_slot(event.time_slot)[0])


class ScheduleService:
    def __init__(self, db: Session):
        self.db = db

    def _week_events(self, group_id: int, week: int, exclude_id: Optional[int] = None) -> List[ScheduleEvent]:
        query = self.db.query(ScheduleEvent)\
            .filter(ScheduleEvent.group_id == group_id, ScheduleEvent.week_number == week)
        if exclude_id is not None:
            query = query.filter(ScheduleEvent.id != exclude_id)
        return sorted(query.all(), key=_sort_key)

    def _week_count(self, group_id: int, week: int) -> int:
        return self.db.query(func.count(ScheduleEvent.id))\
            .filter(ScheduleEvent.group_id == group_id, ScheduleEvent.week_number == week)\
            .scalar()

    def _day_count(self, group_id: int, week: int, day: str) -> int:
        return self.db.query(func.count(ScheduleEvent.id))\
            .filter(
                ScheduleEvent.group_id == group_id,
                ScheduleEvent.week_number == week,
                ScheduleEvent.day == day,
            )\
            .scalar()

    def _get_event(self, group_id: int, event_id: int) -> ScheduleEvent:
        event = self.db.get(ScheduleEvent, event_id)
        if event is None or event.group_id != group_id:
            raise NotFound("Schedule event not found")
        return event

    def _raise_rejection(self, rejection: EventRejection, prefix: str = ""):
        logger.warning(f"Schedule event rejected ({rejection.code}): {rejection.reason}")
        if rejection.code == TITLE_REQUIRED:
            raise ValidationError(prefix + rejection.reason)
        raise Conflict(prefix + rejection.reason)

    def _recheck_caps(self, group_id: int, week: int, day: str):
        """Caps counted again after the write is flushed, inside the same transaction"""
        if self._day_count(group_id, week, day) > settings.max_events_per_day:
            self.db.rollback()
            raise Conflict(f"A day cannot hold more than {settings.max_events_per_day} classes")
        if self._week_count(group_id, week) > settings.max_events_per_week:
            self.db.rollback()
            raise Conflict(f"Week {week} cannot hold more than {settings.max_events_per_week} classes")

    def _detach_notes(self, event_ids: List[int]):
        if not event_ids:
            return
        self.db.query(LectureNote)\
            .filter(LectureNote.schedule_event_id.in_(event_ids))\
            .update({LectureNote.schedule_event_id: None}, synchronize_session=False)

    def list_week(self, group_id: int, week: int) -> WeekScheduleResponse:
        """Events of one week plus per-week counts"""
        events = self._week_events(group_id, week)
        return WeekScheduleResponse(
            events=[ScheduleEventResponse.model_validate(e) for e in events],
            current_week=week,
            week1_count=self._week_count(group_id, 1),
            week2_count=self._week_count(group_id, 2),
            max_per_week=settings.max_events_per_week,
            max_per_day=settings.max_events_per_day,
        )

    def list_all(self, group_id: int) -> AllEventsResponse:
        events = self.db.query(ScheduleEvent).filter(ScheduleEvent.group_id == group_id).all()
        return AllEventsResponse(
            events=[ScheduleEventResponse.model_validate(e) for e in sorted(events, key=_sort_key)]
        )

    def add_event(self, group_id: int, event_data: ScheduleEventCreate) -> ScheduleEventResponse:
        """Add one event after checking slot and capacity rules"""
        candidate = Candidate(
            title=event_data.title,
            day=event_data.day,
            time_slot=event_data.time_slot,
            week_number=event_data.week_number,
        )
        rejection = validate_event(self._week_events(group_id, event_data.week_number), candidate)
        if rejection:
            self._raise_rejection(rejection)

        start, end = split_time_slot(event_data.time_slot)
        event = ScheduleEvent(
            group_id=group_id,
            title=event_data.title.strip(),
            day=event_data.day,
            time_slot=event_data.time_slot,
            time_start=event_data.time_start or start,
            time_end=event_data.time_end or end,
            location=event_data.location,
            teacher=event_data.teacher,
            type=event_data.type,
            week_number=event_data.week_number,
        )
        try:
            self.db.add(event)
            self.db.flush()
            self._recheck_caps(group_id, event.week_number, event.day)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict(
                f"Time slot {event_data.time_slot} on {event_data.day} is already taken in week {event_data.week_number}"
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error adding schedule event for group {group_id}: {e}")
            raise InfraError()
        logger.info(f"Added event {event.id} '{event.title}' to group {group_id} week {event.week_number}")
        return ScheduleEventResponse.model_validate(event)

    def update_event(self, group_id: int, event_id: int, event_data: ScheduleEventUpdate) -> ScheduleEventResponse:
        """Edit an event; it is validated against its (possibly new) week without itself"""
        event = self._get_event(group_id, event_id)
        changes = event_data.model_dump(exclude_unset=True)
        candidate = Candidate(
            title=changes.get("title", event.title),
            day=changes.get("day") or event.day,
            time_slot=changes.get("time_slot") or event.time_slot,
            week_number=changes.get("week_number") or event.week_number,
        )
        rejection = validate_event(
            self._week_events(group_id, candidate.week_number, exclude_id=event.id), candidate
        )
        if rejection:
            self._raise_rejection(rejection)

        try:
            event.title = candidate.title.strip()
            event.day = candidate.day
            if candidate.time_slot != event.time_slot:
                event.time_slot = candidate.time_slot
                event.time_start, event.time_end = split_time_slot(candidate.time_slot)
            event.week_number = candidate.week_number
            for field in ("location", "teacher", "type"):
                if field in changes and changes[field] is not None:
                    setattr(event, field, changes[field])
            self.db.flush()
            self._recheck_caps(group_id, event.week_number, event.day)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict(f"Time slot {candidate.time_slot} on {candidate.day} is already taken")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating schedule event {event_id}: {e}")
            raise InfraError()
        return ScheduleEventResponse.model_validate(event)

    def delete_event(self, group_id: int, event_id: int) -> bool:
        """Delete one event; attached notes become unattached"""
        event = self._get_event(group_id, event_id)
        try:
            self._detach_notes([event.id])
            self.db.delete(event)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting schedule event {event_id}: {e}")
            raise InfraError()
        logger.info(f"Deleted event {event_id} from group {group_id}")
        return True

    def replace_week(self, group_id: int, week: int, week_data: WeekReplace) -> WeekScheduleResponse:
        """Make the submitted list the week's contents, atomically"""
        current = {e.id: e for e in self._week_events(group_id, week)}

        accepted: List[Candidate] = []
        for position, item in enumerate(week_data.events, start=1):
            if item.id is not None and item.id not in current:
                raise NotFound(f"Schedule event {item.id} not found in week {week}")
            candidate = Candidate(title=item.title, day=item.day, time_slot=item.time_slot, week_number=week)
            rejection = validate_event(accepted, candidate)
            if rejection:
                self._raise_rejection(rejection, prefix=f"Event #{position}: ")
            accepted.append(candidate)

        kept_ids = {item.id for item in week_data.events if item.id is not None}
        removed_ids = [event_id for event_id in current if event_id not in kept_ids]
        try:
            self._detach_notes(removed_ids)
            for event_id in removed_ids:
                self.db.delete(current[event_id])
            self.db.flush()

            # Park moved events on a placeholder slot so swaps don't trip the unique constraint
            moved = [
                item for item in week_data.events
                if item.id is not None
                and (current[item.id].day, current[item.id].time_slot) != (item.day, item.time_slot)
            ]
            for item in moved:
                current[item.id].time_slot = f"~{item.id}"
            self.db.flush()

            for item in week_data.events:
                start, end = split_time_slot(item.time_slot)
                event = current[item.id] if item.id is not None else ScheduleEvent(group_id=group_id)
                event.title = item.title.strip()
                event.day = item.day
                event.time_slot = item.time_slot
                event.time_start = item.time_start or start
                event.time_end = item.time_end or end
                event.location = item.location
                event.teacher = item.teacher
                event.type = item.type
                event.week_number = week
                if item.id is None:
                    self.db.add(event)
            self.db.flush()

            if self._week_count(group_id, week) != len(week_data.events):
                self.db.rollback()
                raise Conflict("The schedule changed while saving; reload and try again")
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("Two events share the same day and time slot")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error replacing week {week} for group {group_id}: {e}")
            raise InfraError()
        logger.info(
            f"Replaced week {week} of group {group_id}: {len(week_data.events)} events, {len(removed_ids)} removed"
        )
        return self.list_week(group_id, week)

    def meta(self) -> ScheduleMeta:
        return ScheduleMeta(
            days=list(DAYS),
            time_slots=settings.get_time_slots_list(),
            event_types=list(EVENT_TYPES),
            max_per_day=settings.max_events_per_day,
            max_per_week=settings.max_events_per_week,
            max_notes_per_event=settings.max_notes_per_event,
        )
