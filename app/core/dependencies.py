"""
Core dependencies for route protection and session derivation
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.config import settings
from app.core.exceptions import NotAuthenticated, NotAuthorized, NotFound
from app.database.sqlite_client import get_db
from app.modules.auth.schemas import SessionContext
from app.modules.auth.service import load_session_context
from app.modules.auth.tokens import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_phone(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
) -> str:
    """Extract the phone number from the bearer token"""
    if credentials is None or not credentials.credentials:
        raise NotAuthenticated()
    return decode_access_token(credentials.credentials)


def get_session_context(
    phone: str = Depends(get_current_phone),
    db: Session = Depends(get_db),
) -> SessionContext:
    """Live session: group facts are re-read from the store on every request."""
    return load_session_context(db, phone)


def require_group_member(
    context: SessionContext = Depends(get_session_context),
) -> SessionContext:
    """Caller must belong to a group"""
    if context.group_id is None:
        raise NotFound("You are not a member of any group")
    return context


def require_group_admin(
    context: SessionContext = Depends(require_group_member),
) -> SessionContext:
    """Caller must be the admin of their group"""
    if not context.is_group_admin:
        raise NotAuthorized("Only the group admin can perform this action")
    return context


def require_ops_admin(
    phone: str = Depends(get_current_phone),
) -> str:
    """Caller must be listed in ADMIN_PHONES"""
    if phone not in settings.get_admin_phones_list():
        logger.warning(f"Denied admin endpoint access for {phone}")
        raise NotAuthorized("Administrator access required")
    return phone
