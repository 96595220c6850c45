from typing import Optional
from datetime import datetime

from pydantic import BaseModel

from app.core.schemas import CamelModel


class UserUpdate(BaseModel):
    name: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    phone: str
    name: Optional[str] = None
    created_at: datetime
