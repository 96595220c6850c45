import logging
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import InfraError, NotAuthenticated
from app.modules.auth.codes import VerificationCodeStore
from app.modules.auth.schemas import CodeRequestResponse, SessionContext, TokenResponse, VerifyRequest
from app.modules.auth.sms import ConsoleSmsSender
from app.modules.auth.tokens import create_access_token
from app.modules.groups.models import Group, GroupMember
from app.modules.users.models import User
from app.modules.users.service import UserService

logger = logging.getLogger(__name__)


def load_session_context(db: Session, phone: str) -> SessionContext:
    """Re-derive the session's group facts from the store. Never cached."""
    user = db.query(User).filter(User.phone == phone).first()
    if user is None:
        raise NotAuthenticated("Unknown user")
    membership = db.query(GroupMember).filter(GroupMember.user_phone == phone).first()
    if membership is None:
        return SessionContext(phone=phone, name=user.name)
    group = db.get(Group, membership.group_id)
    member_count = db.query(func.count(GroupMember.id))\
        .filter(GroupMember.group_id == group.id)\
        .scalar()
    return SessionContext(
        phone=phone,
        name=user.name,
        group_id=group.id,
        group_name=group.name,
        university=group.university,
        is_group_admin=group.admin_phone == phone,
        member_count=member_count,
    )


class AuthService:
    def __init__(self, db: Session, codes: VerificationCodeStore, sms: Optional[ConsoleSmsSender] = None):
        self.db = db
        self.codes = codes
        self.sms = sms

    def request_code(self, phone: str) -> CodeRequestResponse:
        """Issue a one-time code and hand it to the SMS sender"""
        code = self.codes.issue(phone)
        self.sms.send_code(phone, code)
        logger.info(f"Verification code requested for {phone}")
        return CodeRequestResponse(
            message="Verification code sent",
            phone=phone,
            expires_in=int(self.codes.ttl_seconds),
        )

    def verify(self, verify_data: VerifyRequest) -> TokenResponse:
        """Consume the code, create the user on first login and issue a session token"""
        if not self.codes.verify(verify_data.phone, verify_data.code.strip()):
            logger.warning(f"Rejected verification code for {verify_data.phone}")
            raise NotAuthenticated("Invalid or expired verification code")
        try:
            UserService(self.db).get_or_create(verify_data.phone, verify_data.name)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating user {verify_data.phone}: {e}")
            raise InfraError()
        return self.issue_token(verify_data.phone)

    def issue_token(self, phone: str) -> TokenResponse:
        """Token carrying a point-in-time snapshot of the session; the server never trusts the snapshot."""
        context = load_session_context(self.db, phone)
        snapshot = context.model_dump(by_alias=True, exclude={"phone"})
        return TokenResponse(
            access_token=create_access_token(phone, {"session": snapshot}),
            token_type="bearer",
            session=context,
        )
