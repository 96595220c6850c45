import logging
from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.exceptions import Conflict, InfraError, NotAuthorized, NotFound, ValidationError
from app.modules.groups.models import Group, GroupMember
from app.modules.groups.schemas import GroupCreate, GroupResponse, InvitePreview
from app.modules.lecture_notes.models import LectureNote
from app.modules.schedule.models import ScheduleEvent

logger = logging.getLogger(__name__)


def build_invite_link(group_id: int) -> str:
    return f"{settings.public_base_url.rstrip('/')}/join?group={group_id}"


def parse_invite_token(token: str) -> Optional[int]:
    """Accept a bare id ("12") or an invite link ("https://.../join?group=12")."""
    token = (token or "").strip()
    if not token:
        return None
    if "group=" in token:
        values = parse_qs(urlparse(token).query).get("group")
        token = values[0] if values else ""
    try:
        return int(token)
    except ValueError:
        return None


class GroupService:
    def __init__(self, db: Session):
        self.db = db

    def _member_phones(self, group_id: int) -> List[str]:
        rows = self.db.query(GroupMember.user_phone)\
            .filter(GroupMember.group_id == group_id)\
            .order_by(GroupMember.joined_at, GroupMember.id)\
            .all()
        return [r.user_phone for r in rows]

    def _member_count(self, group_id: int) -> int:
        return self.db.query(func.count(GroupMember.id))\
            .filter(GroupMember.group_id == group_id)\
            .scalar()

    def _get_group(self, group_id: int) -> Group:
        group = self.db.get(Group, group_id)
        if group is None:
            raise NotFound("Group not found")
        return group

    def _membership(self, phone: str) -> Optional[GroupMember]:
        return self.db.query(GroupMember).filter(GroupMember.user_phone == phone).first()

    def _to_response(self, group: Group, phone: str) -> GroupResponse:
        members = self._member_phones(group.id)
        return GroupResponse(
            id=group.id,
            name=group.name,
            university=group.university,
            admin=group.admin_phone,
            member_count=len(members),
            max_members=group.max_members,
            is_admin=group.admin_phone == phone,
            invite_link=group.invite_link,
            members=members,
        )

    def create_group(self, group_data: GroupCreate, phone: str) -> GroupResponse:
        """Create a group with the caller as admin and sole member"""
        name = group_data.name.strip()
        if not name:
            raise ValidationError("Group name cannot be empty")
        if self._membership(phone) is not None:
            raise Conflict("You are already a member of a group")
        try:
            group = Group(
                name=name,
                university=(group_data.university or "").strip() or None,
                admin_phone=phone,
                max_members=settings.default_max_members,
            )
            self.db.add(group)
            self.db.flush()
            group.invite_link = build_invite_link(group.id)
            self.db.add(GroupMember(group_id=group.id, user_phone=phone))
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("You are already a member of a group")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating group for {phone}: {e}")
            raise InfraError()
        logger.info(f"Group {group.id} '{group.name}' created by {phone}")
        return self._to_response(group, phone)

    def get_group(self, group_id: int, phone: str) -> GroupResponse:
        """Group record, visible to its members only"""
        group = self._get_group(group_id)
        membership = self._membership(phone)
        if membership is None or membership.group_id != group.id:
            raise NotAuthorized("You must be a member of this group")
        return self._to_response(group, phone)

    def get_my_group(self, phone: str) -> GroupResponse:
        membership = self._membership(phone)
        if membership is None:
            raise NotFound("You are not a member of any group")
        return self._to_response(self._get_group(membership.group_id), phone)

    def resolve_invite(self, token: str) -> InvitePreview:
        """Group summary shown before joining"""
        group_id = parse_invite_token(token)
        group = self.db.get(Group, group_id) if group_id is not None else None
        if group is None:
            raise NotFound("Group not found")
        return InvitePreview(
            id=group.id,
            name=group.name,
            university=group.university,
            member_count=self._member_count(group.id),
            max_members=group.max_members,
            admin_phone=group.admin_phone,
        )

    def join_group(self, token: str, phone: str) -> GroupResponse:
        """Join by invite token or id"""
        group_id = parse_invite_token(token)
        group = self.db.get(Group, group_id) if group_id is not None else None
        if group is None:
            raise NotFound("Group not found")
        if self._member_count(group.id) >= group.max_members:
            raise Conflict("Group is full")
        if self._membership(phone) is not None:
            raise Conflict("You are already a member of a group")
        try:
            self.db.add(GroupMember(group_id=group.id, user_phone=phone))
            self.db.flush()
            # Re-check under the write lock
            if self._member_count(group.id) > group.max_members:
                self.db.rollback()
                raise Conflict("Group is full")
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("You are already a member of a group")
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error joining group {group.id} for {phone}: {e}")
            raise InfraError()
        logger.info(f"{phone} joined group {group.id}")
        return self._to_response(group, phone)

    def leave_group(self, group_id: int, phone: str) -> bool:
        """Leave a group; the admin must transfer or delete instead"""
        group = self._get_group(group_id)
        if group.admin_phone == phone:
            raise NotAuthorized("The group admin cannot leave; transfer admin rights or delete the group")
        membership = self._membership(phone)
        if membership is None or membership.group_id != group.id:
            raise NotFound("You are not a member of this group")
        try:
            # Notes outside the group library stop counting against the group's classes
            event_ids = select(ScheduleEvent.id).where(ScheduleEvent.group_id == group.id)
            self.db.query(LectureNote)\
                .filter(
                    LectureNote.created_by == phone,
                    LectureNote.schedule_event_id.in_(event_ids),
                    or_(LectureNote.group_id.is_(None), LectureNote.group_id != group.id),
                )\
                .update({LectureNote.schedule_event_id: None}, synchronize_session=False)
            self.db.delete(membership)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error leaving group {group_id} for {phone}: {e}")
            raise InfraError()
        logger.info(f"{phone} left group {group_id}")
        return True

    def transfer_admin(self, group_id: int, phone: str, new_admin_phone: str) -> GroupResponse:
        """Hand admin rights to another member"""
        group = self._get_group(group_id)
        if group.admin_phone != phone:
            raise NotAuthorized("Only the group admin can transfer admin rights")
        if new_admin_phone == phone:
            raise ValidationError("You are already the group admin")
        target = self.db.query(GroupMember)\
            .filter(GroupMember.group_id == group.id, GroupMember.user_phone == new_admin_phone)\
            .first()
        if target is None:
            raise NotFound("The new admin must be a member of the group")
        try:
            updated = self.db.query(Group)\
                .filter(Group.id == group.id, Group.admin_phone == phone)\
                .update({Group.admin_phone: new_admin_phone}, synchronize_session=False)
            if updated != 1:
                self.db.rollback()
                raise Conflict("Admin rights changed concurrently; reload and try again")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error transferring admin of group {group_id}: {e}")
            raise InfraError()
        self.db.refresh(group)
        logger.info(f"Group {group_id} admin transferred from {phone} to {new_admin_phone}")
        return self._to_response(group, phone)

    def delete_group(self, group_id: int, phone: str) -> bool:
        """Delete a group with its memberships and events; its notes survive detached"""
        group = self._get_group(group_id)
        if group.admin_phone != phone:
            raise NotAuthorized("Only the group admin can delete the group")
        try:
            event_ids = select(ScheduleEvent.id).where(ScheduleEvent.group_id == group.id)
            self.db.query(LectureNote)\
                .filter(LectureNote.schedule_event_id.in_(event_ids))\
                .update({LectureNote.schedule_event_id: None}, synchronize_session=False)
            self.db.query(LectureNote)\
                .filter(LectureNote.group_id == group.id)\
                .update({LectureNote.group_id: None}, synchronize_session=False)
            self.db.query(ScheduleEvent)\
                .filter(ScheduleEvent.group_id == group.id)\
                .delete(synchronize_session=False)
            self.db.query(GroupMember)\
                .filter(GroupMember.group_id == group.id)\
                .delete(synchronize_session=False)
            self.db.delete(group)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting group {group_id}: {e}")
            raise InfraError()
        logger.info(f"Group {group_id} deleted by {phone}")
        return True
