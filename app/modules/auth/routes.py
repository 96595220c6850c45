from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.config import settings
from app.core.dependencies import get_current_phone, get_session_context
from app.core.rate_limit import limiter
from app.database.sqlite_client import get_db
from app.modules.auth.codes import VerificationCodeStore, get_code_store
from app.modules.auth.schemas import (
    CodeRequest, CodeRequestResponse, SessionContext, TokenResponse, VerifyRequest
)
from app.modules.auth.service import AuthService
from app.modules.auth.sms import ConsoleSmsSender, get_sms_sender

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    db: Session = Depends(get_db),
    codes: VerificationCodeStore = Depends(get_code_store),
    sms: ConsoleSmsSender = Depends(get_sms_sender),
) -> AuthService:
    return AuthService(db, codes, sms)


@router.post("/request-code", response_model=CodeRequestResponse)
@limiter.limit(settings.code_request_rate_limit)
async def request_code(
    request: Request,
    code_request: CodeRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Send a one-time verification code to the phone"""
    return service.request_code(code_request.phone)


@router.post("/verify", response_model=TokenResponse)
@limiter.limit(settings.code_verify_rate_limit)
async def verify(
    request: Request,
    verify_data: VerifyRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Exchange phone + code for a session token"""
    return service.verify(verify_data)


@router.get("/session", response_model=SessionContext)
async def get_session(context: SessionContext = Depends(get_session_context)):
    """Current session with group facts read from the store"""
    return context


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    phone: str = Depends(get_current_phone),
    service: AuthService = Depends(get_auth_service)
):
    """Issue a new token carrying the current group snapshot"""
    return service.issue_token(phone)


@router.post("/logout", status_code=200)
async def logout(phone: str = Depends(get_current_phone)):
    """Tokens are stateless; the client discards its copy"""
    return {"message": "Logged out successfully"}
