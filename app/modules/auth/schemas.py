from pydantic import BaseModel, Field, field_validator
from typing import Optional

from app.core.schemas import CamelModel, normalize_phone


class CodeRequest(BaseModel):
    phone: str

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)


class CodeRequestResponse(CamelModel):
    message: str
    phone: str
    expires_in: int


class VerifyRequest(BaseModel):
    phone: str
    code: str = Field(..., min_length=4, max_length=8)
    name: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)


class SessionContext(CamelModel):
    """Group facts derived from the store for the authenticated phone."""
    phone: str
    name: Optional[str] = None
    group_id: Optional[int] = None
    group_name: Optional[str] = None
    university: Optional[str] = None
    is_group_admin: bool = False
    member_count: int = 0


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    session: SessionContext
