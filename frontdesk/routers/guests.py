"""
客人管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.models.entities import Staff
from frontdesk.models.schemas import GuestCreate, GuestUpdate, GuestResponse
from frontdesk.services.guest_service import GuestService
from frontdesk.security.auth import get_current_user

router = APIRouter(prefix="/guests", tags=["客人管理"])


@router.get("", response_model=List[GuestResponse])
def list_guests(
    search: Optional[str] = None,
    mine: bool = False,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取客人列表"""
    return GuestService(db).get_guests(
        search=search, created_by=current_user.id if mine else None
    )


@router.get("/{guest_id}", response_model=GuestResponse)
def get_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取客人详情"""
    guest = GuestService(db).get_guest(guest_id)
    if not guest:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="客人不存在")
    return guest


@router.post("", response_model=GuestResponse, status_code=status.HTTP_201_CREATED)
def create_guest(
    data: GuestCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """创建客人"""
    return GuestService(db).create_guest(current_user, data)


@router.put("/{guest_id}", response_model=GuestResponse)
def update_guest(
    guest_id: int,
    data: GuestUpdate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """更新客人资料（仅创建人）"""
    return GuestService(db).update_guest(current_user, guest_id, data)


@router.delete("/{guest_id}")
def delete_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """删除客人（仅创建人，级联删除其预订）"""
    GuestService(db).delete_guest(current_user, guest_id)
    return {"message": "客人已删除", "guest_id": guest_id}
