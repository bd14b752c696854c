"""
Pydantic 模式定义
用于 API 请求/响应验证
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict

from frontdesk.models.entities import RoomStatus, BookingStatus


def _parse_date_only(v: Any) -> Any:
    """纯日期（YYYY-MM-DD）按当天 00:00 处理"""
    if isinstance(v, str) and len(v.strip()) == 10:
        return datetime.combine(date.fromisoformat(v.strip()), datetime.min.time())
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime.combine(v, datetime.min.time())
    return v


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


# ============== 房间 Schemas ==============

class RoomBase(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=10)
    room_type: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    capacity: int = Field(default=2, ge=1)
    price_per_night: Decimal = Field(..., ge=0)
    floor: Optional[int] = None
    amenities: Optional[List[str]] = None


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    """房间资料更新（不含状态，状态通过专门接口变更）"""
    room_number: Optional[str] = Field(None, min_length=1, max_length=10)
    room_type: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    price_per_night: Optional[Decimal] = Field(None, ge=0)
    floor: Optional[int] = None
    amenities: Optional[List[str]] = None


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(RoomBase):
    id: int
    status: RoomStatus
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 客人 Schemas ==============

class GuestBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    document_number: str = Field(..., min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('email', 'phone', 'address', 'notes', mode='before')
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class GuestCreate(GuestBase):
    pass


class GuestUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    document_number: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('email', 'phone', 'address', 'notes', mode='before')
    @classmethod
    def empty_as_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class GuestResponse(GuestBase):
    id: int
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== 预订 Schemas ==============

class BookingCreate(BaseModel):
    """创建预订（总价由服务端计算，不接受客户端提交）"""
    guest_id: int
    room_id: int
    check_in_date: datetime
    check_out_date: datetime
    notes: Optional[str] = None

    @field_validator('check_in_date', 'check_out_date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_date_only(v)


class BookingQuoteRequest(BaseModel):
    room_id: int
    check_in_date: Optional[datetime] = None
    check_out_date: Optional[datetime] = None

    @field_validator('check_in_date', 'check_out_date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> Any:
        return _parse_date_only(v)


class BookingQuoteResponse(BaseModel):
    room_id: int
    nights: int
    price_per_night: Decimal
    total_price: Decimal


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    guest_id: int
    guest_name: Optional[str] = None
    guest_document_number: Optional[str] = None
    room_id: int
    room_number: Optional[str] = None
    room_type: Optional[str] = None
    check_in_date: datetime
    check_out_date: datetime
    actual_check_out: Optional[datetime] = None
    total_price: Decimal
    status: BookingStatus
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime


# ============== 认证 Schemas ==============

class LoginRequest(BaseModel):
    username: str
    password: str


class StaffResponse(BaseModel):
    id: int
    username: str
    full_name: str
    is_active: bool
    roles: List[str] = []


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    staff: StaffResponse


# ============== 统计 Schemas ==============

class DashboardStats(BaseModel):
    total_guests: int
    total_rooms: int
    available_rooms: int
    active_bookings: int
    room_status: dict
