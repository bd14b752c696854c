"""
房间管理路由
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.models.entities import Staff, RoomStatus
from frontdesk.models.schemas import RoomCreate, RoomUpdate, RoomResponse, RoomStatusUpdate
from frontdesk.services.room_service import RoomService
from frontdesk.security.auth import get_current_user

router = APIRouter(prefix="/rooms", tags=["房间管理"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status: Optional[RoomStatus] = None,
    floor: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取房间列表"""
    return RoomService(db).get_rooms(status=status, floor=floor)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取房间详情"""
    room = RoomService(db).get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="房间不存在")
    return room


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """创建房间（仅管理员）"""
    return RoomService(db).create_room(current_user, data)


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(
    room_id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """更新房间资料（仅管理员）"""
    return RoomService(db).update_room(current_user, room_id, data)


@router.put("/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """人工修改房态（仅管理员，占用状态由预订维护）"""
    return RoomService(db).update_room_status(current_user, room_id, data.status, reason="manual")


@router.delete("/{room_id}")
def delete_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """删除房间（仅管理员）"""
    RoomService(db).delete_room(current_user, room_id)
    return {"message": "房间已删除", "room_id": room_id}
