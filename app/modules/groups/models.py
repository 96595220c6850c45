from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from app.database.sqlite_client import Base


class Group(Base):
    __tablename__ = "groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    university = Column(String, nullable=True)
    admin_phone = Column(String, ForeignKey("users.phone"), nullable=False)
    max_members = Column(Integer, nullable=False, default=25)
    invite_link = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class GroupMember(Base):
    # user_phone is unique: a user belongs to at most one group
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_phone = Column(String, ForeignKey("users.phone"), nullable=False, unique=True)
    joined_at = Column(DateTime, server_default=func.now(), nullable=False)
