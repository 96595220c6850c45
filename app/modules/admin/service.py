import logging
import os
from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InfraError
from app.database.sqlite_client import DatabaseClient
from app.modules.admin.schemas import DatabaseStatus
from app.modules.groups.models import Group, GroupMember
from app.modules.lecture_notes.models import LectureNote
from app.modules.schedule.models import ScheduleEvent
from app.modules.users.models import User

logger = logging.getLogger(__name__)

TABLES = (
    ("users", User),
    ("groups", Group),
    ("group_members", GroupMember),
    ("schedule_events", ScheduleEvent),
    ("lecture_notes", LectureNote),
)


class AdminService:
    def __init__(self, db: Session):
        self.db = db

    def table_counts(self) -> Dict[str, int]:
        try:
            return {name: self.db.query(func.count(model.id)).scalar() for name, model in TABLES}
        except SQLAlchemyError as e:
            logger.error(f"Error counting records: {e}")
            raise InfraError()

    def db_status(self) -> DatabaseStatus:
        """Row counts per table plus the size of the database file"""
        counts = self.table_counts()
        path = DatabaseClient.database_path()
        size_mb = 0.0
        if path and os.path.exists(path):
            size_mb = round(os.path.getsize(path) / (1024 * 1024), 3)
        return DatabaseStatus(
            tables=counts,
            total_records=sum(counts.values()),
            database_path=path,
            size_mb=size_mb,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
