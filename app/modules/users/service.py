import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InfraError, NotFound, ValidationError
from app.modules.users.models import User
from app.modules.users.schemas import UserResponse, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_phone(self, phone: str) -> Optional[User]:
        return self.db.query(User).filter(User.phone == phone).first()

    def get_or_create(self, phone: str, name: Optional[str] = None) -> User:
        """Return the user for phone, creating it on first login"""
        user = self.get_by_phone(phone)
        if user is not None:
            return user
        user = User(phone=phone, name=(name or "").strip() or f"User_{phone}")
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            # Created concurrently by another request
            self.db.rollback()
            return self.get_by_phone(phone)
        self.db.refresh(user)
        logger.info(f"Created user {phone}")
        return user

    def get_user(self, phone: str) -> UserResponse:
        user = self.get_by_phone(phone)
        if user is None:
            raise NotFound("User not found")
        return UserResponse.model_validate(user)

    def update_user(self, phone: str, user_data: UserUpdate) -> UserResponse:
        """Update the display name"""
        name = (user_data.name or "").strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        user = self.get_by_phone(phone)
        if user is None:
            raise NotFound("User not found")
        try:
            user.name = name
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating user {phone}: {e}")
            raise InfraError()
        self.db.refresh(user)
        return UserResponse.model_validate(user)
