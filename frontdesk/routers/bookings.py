"""
预订管理路由
业务异常由 main 中注册的异常处理器统一转换为 HTTP 响应
"""
from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from frontdesk.database import get_db
from frontdesk.models.entities import Staff, BookingStatus
from frontdesk.models.schemas import (
    BookingCreate, BookingCancel, BookingResponse,
    BookingQuoteRequest, BookingQuoteResponse, RoomResponse
)
from frontdesk.services.availability_service import AvailabilityService
from frontdesk.services.booking_service import BookingService
from frontdesk.services.price_service import PriceService
from frontdesk.security.auth import get_current_user

router = APIRouter(prefix="/bookings", tags=["预订管理"])


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    room_id: Optional[int] = None,
    guest_id: Optional[int] = None,
    mine: bool = False,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取预订列表"""
    service = BookingService(db)
    bookings = service.list_bookings(
        status=status, room_id=room_id, guest_id=guest_id,
        created_by=current_user.id if mine else None
    )
    return [BookingResponse(**service.get_booking_detail(b.id)) for b in bookings]


@router.get("/availability", response_model=List[RoomResponse])
def get_available_rooms(
    check_in_date: datetime = Query(...),
    check_out_date: datetime = Query(...),
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取指定时段可预订的房间"""
    return AvailabilityService(db).get_available_rooms(check_in_date, check_out_date)


@router.post("/quote", response_model=BookingQuoteResponse)
def quote_booking(
    data: BookingQuoteRequest,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """报价预览（房间不存在或日期不完整时总价为 0）"""
    return PriceService(db).quote(data.room_id, data.check_in_date, data.check_out_date)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """获取预订详情"""
    detail = BookingService(db).get_booking_detail(booking_id)
    if not detail:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="预订不存在")
    return BookingResponse(**detail)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """创建预订"""
    service = BookingService(db)
    booking = service.create_booking(
        current_user, data.guest_id, data.room_id,
        data.check_in_date, data.check_out_date, data.notes
    )
    return BookingResponse(**service.get_booking_detail(booking.id))


@router.post("/{booking_id}/checkout", response_model=BookingResponse)
def check_out(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """退房"""
    service = BookingService(db)
    booking = service.check_out(current_user, booking_id)
    return BookingResponse(**service.get_booking_detail(booking.id))


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    data: Optional[BookingCancel] = None,
    db: Session = Depends(get_db),
    current_user: Staff = Depends(get_current_user)
):
    """取消预订"""
    service = BookingService(db)
    booking = service.cancel_booking(current_user, booking_id, data.reason if data else None)
    return BookingResponse(**service.get_booking_detail(booking.id))
