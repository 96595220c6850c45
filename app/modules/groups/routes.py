from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_phone
from app.database.sqlite_client import get_db
from app.modules.groups.schemas import (
    GroupCreate, GroupJoin, GroupResponse, InvitePreview, TransferAdmin
)
from app.modules.groups.service import GroupService

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(db: Session = Depends(get_db)) -> GroupService:
    return GroupService(db)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its admin"""
    return service.create_group(group_data, phone)


@router.get("/me", response_model=GroupResponse)
async def get_my_group(
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Group the caller belongs to"""
    return service.get_my_group(phone)


@router.get("/join/{token}", response_model=InvitePreview)
async def preview_invite(
    token: str,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Resolve an invite token or id to a group summary"""
    return service.resolve_invite(token)


@router.post("/join", response_model=GroupResponse)
async def join_group(
    join_data: GroupJoin,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Join a group by invite token or id"""
    return service.join_group(join_data.token(), phone)


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Get group by ID (only if user is a member)"""
    return service.get_group(group_id, phone)


@router.delete("/{group_id}", status_code=204)
async def delete_group(
    group_id: int,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Delete group (group admin only)"""
    service.delete_group(group_id, phone)
    return None


@router.post("/{group_id}/leave", status_code=200)
async def leave_group(
    group_id: int,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Leave the group (not allowed for the admin)"""
    service.leave_group(group_id, phone)
    return {"message": "You have left the group"}


@router.post("/{group_id}/transfer-admin", response_model=GroupResponse)
async def transfer_admin(
    group_id: int,
    transfer: TransferAdmin,
    phone: str = Depends(get_current_phone),
    service: GroupService = Depends(get_group_service)
):
    """Transfer admin rights to another member (group admin only)"""
    return service.transfer_admin(group_id, phone, transfer.new_admin_phone)
