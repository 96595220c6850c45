from pydantic import BaseModel, field_validator
from typing import Optional, List, Union

from app.core.schemas import CamelModel, normalize_phone


class GroupCreate(BaseModel):
    name: str
    university: Optional[str] = None


class GroupResponse(CamelModel):
    id: int
    name: str
    university: Optional[str] = None
    admin: str
    member_count: int
    max_members: int
    is_admin: bool
    invite_link: Optional[str] = None
    members: List[str]


class InvitePreview(CamelModel):
    id: int
    name: str
    university: Optional[str] = None
    member_count: int
    max_members: int
    admin_phone: str


class GroupJoin(CamelModel):
    # Either the invite link/token or the bare group id
    invite: Optional[str] = None
    group_id: Optional[Union[int, str]] = None

    def token(self) -> str:
        if self.invite:
            return self.invite
        return "" if self.group_id is None else str(self.group_id)


class TransferAdmin(CamelModel):
    new_admin_phone: str

    @field_validator("new_admin_phone")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)
