from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import require_ops_admin
from app.database.sqlite_client import get_db
from app.modules.admin.schemas import DatabaseStatus
from app.modules.admin.service import AdminService

router = APIRouter(prefix="/admin", tags=["admin"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.get("/db-status", response_model=DatabaseStatus)
async def db_status(
    phone: str = Depends(require_ops_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Record counts and database file size (operators only)"""
    return service.db_status()
