from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.database.sqlite_client import Base


class User(Base):
    """A person identified by phone number. Created on first verified login, never deleted."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
