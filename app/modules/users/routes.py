from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_phone
from app.database.sqlite_client import get_db
from app.modules.users.schemas import UserResponse, UserUpdate
from app.modules.users.service import UserService

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get("/me", response_model=UserResponse)
async def get_me(
    phone: str = Depends(get_current_phone),
    service: UserService = Depends(get_user_service)
):
    """Profile of the authenticated user"""
    return service.get_user(phone)


@router.put("/me", response_model=UserResponse)
async def update_me(
    user_data: UserUpdate,
    phone: str = Depends(get_current_phone),
    service: UserService = Depends(get_user_service)
):
    """Change the display name"""
    return service.update_user(phone, user_data)
