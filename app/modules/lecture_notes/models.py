from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from app.database.sqlite_client import Base


class LectureNote(Base):
    """
    A lecture note. group_id is null for personal notes; schedule_event_id is null
    when the note is not attached to a class. Both are cleared, never cascaded,
    when the referenced group or event goes away.
    """

    __tablename__ = "lecture_notes"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="SET NULL"), nullable=True, index=True)
    schedule_event_id = Column(
        Integer, ForeignKey("schedule_events.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    audio_transcript = Column(Text, nullable=True)
    slides_text = Column(Text, nullable=True)
    file_name = Column(String, nullable=True)
    audio_url = Column(String, nullable=True)
    image_urls = Column(Text, nullable=True)  # JSON array
    image_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String, ForeignKey("users.phone"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
