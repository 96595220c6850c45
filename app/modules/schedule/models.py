from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from app.database.sqlite_client import Base

DAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
EVENT_TYPES = ("lecture", "practice", "lab", "exam")


class ScheduleEvent(Base):
    __tablename__ = "schedule_events"
    __table_args__ = (
        UniqueConstraint("group_id", "day", "time_slot", "week_number", name="uq_schedule_events_slot"),
        Index("ix_schedule_events_group_week", "group_id", "week_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False)
    title = Column(String, nullable=False)
    day = Column(String, nullable=False)
    time_slot = Column(String, nullable=False)
    time_start = Column(String, nullable=True)
    time_end = Column(String, nullable=True)
    location = Column(String, nullable=True)
    teacher = Column(String, nullable=True)
    type = Column(String, nullable=False, default="lecture")
    week_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
