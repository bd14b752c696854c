"""
概览统计路由
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.models.entities import Staff
from frontdesk.models.schemas import DashboardStats
from frontdesk.services.dashboard_service import DashboardService
from frontdesk.security.auth import get_current_user

router = APIRouter(prefix="/dashboard", tags=["概览"])


@router.get("/stats", response_model=DashboardStats)
def get_stats(
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """首页统计：客人数、房间数、空闲房间数、生效预订数"""
    return DashboardService(db).get_stats()
