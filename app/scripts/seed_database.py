"""
Seed Demo Data Script
Creates a few users, one group and a two-week schedule for local development.
Safe to run repeatedly: existing rows are left as they are.

    python -m app.scripts.seed_database
"""

import logging
import sys

from sqlalchemy.orm import Session

from app.database.sqlite_client import DatabaseClient, init_db
from app.modules.groups.models import Group, GroupMember
from app.modules.groups.service import build_invite_link
from app.modules.schedule.models import ScheduleEvent
from app.modules.schedule.validation import split_time_slot
from app.modules.users.models import User

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_USERS = [
    {"phone": "+79990000001", "name": "Анна"},
    {"phone": "+79990000002", "name": "Борис"},
    {"phone": "+79990000003", "name": "Вера"},
]

DEMO_GROUP = {"name": "ПИ-21-1", "university": "Demo University"}

DEMO_EVENTS = [
    {"title": "Математический анализ", "day": "monday", "time_slot": "8:30-10:00",
     "type": "lecture", "location": "101", "teacher": "Иванов И.И.", "week_number": 1},
    {"title": "Программирование", "day": "monday", "time_slot": "10:10-11:40",
     "type": "lab", "location": "305", "teacher": "Петрова А.С.", "week_number": 1},
    {"title": "История", "day": "wednesday", "time_slot": "11:50-13:20",
     "type": "practice", "location": "210", "teacher": "Сидоров П.П.", "week_number": 1},
    {"title": "Математический анализ", "day": "tuesday", "time_slot": "8:30-10:00",
     "type": "practice", "location": "101", "teacher": "Иванов И.И.", "week_number": 2},
    {"title": "Базы данных", "day": "thursday", "time_slot": "13:40-15:10",
     "type": "lecture", "location": "402", "teacher": "Кузнецова Е.В.", "week_number": 2},
]


def seed_users(db: Session) -> int:
    """Seed demo users"""
    logger.info("Seeding users...")
    created_count = 0
    for user_data in DEMO_USERS:
        if db.query(User).filter(User.phone == user_data["phone"]).first():
            logger.debug(f"User exists: {user_data['phone']}")
            continue
        db.add(User(**user_data))
        created_count += 1
    db.commit()
    logger.info(f"Users seeded: {created_count} created")
    return created_count


def seed_group(db: Session) -> Group:
    """Seed the demo group with every demo user as a member"""
    logger.info("Seeding group...")
    admin_phone = DEMO_USERS[0]["phone"]
    # The admin always belongs to their own group, so an existing membership is reused
    admin_membership = db.query(GroupMember).filter(GroupMember.user_phone == admin_phone).first()
    if admin_membership is not None:
        group = db.get(Group, admin_membership.group_id)
        if group.admin_phone != admin_phone:
            logger.warning(f"{admin_phone} already belongs to group {group.id}, seeding into it")
    else:
        group = Group(admin_phone=admin_phone, **DEMO_GROUP)
        db.add(group)
        db.flush()
        group.invite_link = build_invite_link(group.id)
        logger.info(f"Created group {group.name} ({group.id})")

    for user_data in DEMO_USERS:
        membership = db.query(GroupMember).filter(GroupMember.user_phone == user_data["phone"]).first()
        if membership is None:
            db.add(GroupMember(group_id=group.id, user_phone=user_data["phone"]))
        elif membership.group_id != group.id:
            logger.warning(f"{user_data['phone']} already belongs to group {membership.group_id}, skipping")
    db.commit()
    return group


def seed_schedule(db: Session, group: Group) -> int:
    """Seed demo events into free slots"""
    logger.info("Seeding schedule...")
    created_count = 0
    for event_data in DEMO_EVENTS:
        taken = db.query(ScheduleEvent).filter(
            ScheduleEvent.group_id == group.id,
            ScheduleEvent.day == event_data["day"],
            ScheduleEvent.time_slot == event_data["time_slot"],
            ScheduleEvent.week_number == event_data["week_number"],
        ).first()
        if taken:
            continue
        start, end = split_time_slot(event_data["time_slot"])
        db.add(ScheduleEvent(group_id=group.id, time_start=start, time_end=end, **event_data))
        created_count += 1
    db.commit()
    logger.info(f"Events seeded: {created_count} created")
    return created_count


def main():
    """Main function to seed demo data"""
    try:
        init_db()
        db = DatabaseClient.get_session_factory()()
        try:
            logger.info("Starting demo data seeding...")
            user_count = seed_users(db)
            group = seed_group(db)
            event_count = seed_schedule(db, group)
        finally:
            db.close()

        logger.info("Seeding completed successfully!")
        logger.info(f"Total: {user_count} users, group {group.id}, {event_count} events created")

    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
