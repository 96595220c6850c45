from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import require_group_admin, require_group_member
from app.database.sqlite_client import get_db
from app.modules.auth.schemas import SessionContext
from app.modules.schedule.schemas import (
    AllEventsResponse, ScheduleEventCreate, ScheduleEventResponse, ScheduleEventUpdate,
    ScheduleMeta, WeekReplace, WeekScheduleResponse
)
from app.modules.schedule.service import ScheduleService

router = APIRouter(prefix="/schedule", tags=["schedule"])


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(db)


@router.get("", response_model=WeekScheduleResponse)
async def get_week(
    week: int = Query(1, ge=1, le=2),
    context: SessionContext = Depends(require_group_member),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Events of one week for the caller's group"""
    return service.list_week(context.group_id, week)


@router.put("", response_model=WeekScheduleResponse)
async def replace_week(
    week_data: WeekReplace,
    week: int = Query(1, ge=1, le=2),
    context: SessionContext = Depends(require_group_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Replace the whole week (group admin only)"""
    return service.replace_week(context.group_id, week, week_data)


@router.get("/all", response_model=AllEventsResponse)
async def get_all(
    context: SessionContext = Depends(require_group_member),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Events of both weeks"""
    return service.list_all(context.group_id)


@router.get("/meta", response_model=ScheduleMeta)
async def get_meta(service: ScheduleService = Depends(get_schedule_service)):
    """Days, standard time slots, event types and caps"""
    return service.meta()


@router.post("/events", response_model=ScheduleEventResponse, status_code=201)
async def add_event(
    event_data: ScheduleEventCreate,
    context: SessionContext = Depends(require_group_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Add a class to the schedule (group admin only)"""
    return service.add_event(context.group_id, event_data)


@router.put("/events/{event_id}", response_model=ScheduleEventResponse)
async def update_event(
    event_id: int,
    event_data: ScheduleEventUpdate,
    context: SessionContext = Depends(require_group_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Edit a class (group admin only)"""
    return service.update_event(context.group_id, event_id, event_data)


@router.delete("/events/{event_id}", status_code=204)
async def delete_event(
    event_id: int,
    context: SessionContext = Depends(require_group_admin),
    service: ScheduleService = Depends(get_schedule_service)
):
    """Delete a class (group admin only); attached notes are kept and detached"""
    service.delete_event(context.group_id, event_id)
    return None
