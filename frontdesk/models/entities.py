"""
实体对象定义
客人、房间、预订三类核心实体，以及操作人（员工）、角色分配和审计日志
"""
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, ForeignKey, Text, Enum as SQLEnum, Boolean, Numeric,
    JSON, CheckConstraint, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship

from frontdesk.database import Base
from frontdesk.models.types import UTCDateTime, utcnow


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    AVAILABLE = "available"        # 空闲
    OCCUPIED = "occupied"          # 已占用
    MAINTENANCE = "maintenance"    # 维修中
    CLEANING = "cleaning"          # 待清洁


class BookingStatus(str, Enum):
    """预订状态枚举"""
    ACTIVE = "active"              # 生效中
    CHECKED_OUT = "checked_out"    # 已退房
    CANCELLED = "cancelled"        # 已取消


class StaffRole(str, Enum):
    """员工角色"""
    ADMIN = "admin"                # 管理员
    RECEPTIONIST = "receptionist"  # 前台


# ============== 实体定义 ==============

class Staff(Base):
    """
    员工对象 - 所有写操作的操作人
    """
    __tablename__ = "staff"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)   # 登录账号
    password_hash = Column(String(255), nullable=False)          # 密码哈希
    full_name = Column(String(100), nullable=False)              # 姓名
    is_active = Column(Boolean, default=True)                    # 是否启用
    created_at = Column(UTCDateTime, default=utcnow)

    # 链接
    roles = relationship("UserRole", back_populates="staff", cascade="all, delete-orphan")

    @property
    def role_codes(self):
        return sorted(r.role.value for r in self.roles)


class UserRole(Base):
    """
    角色分配 - 一个员工可拥有多个角色
    """
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("staff_id", "role", name="uq_user_roles_staff_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("staff.id", ondelete="CASCADE"), nullable=False)
    role = Column(SQLEnum(StaffRole, name="app_role", values_callable=_enum_values), nullable=False)
    created_at = Column(UTCDateTime, default=utcnow)

    staff = relationship("Staff", back_populates="roles")


class Guest(Base):
    """
    客人对象
    证件号全局唯一
    """
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)                      # 姓名
    document_number = Column(String(50), unique=True, nullable=False)    # 证件号码
    email = Column(String(100))                                          # 邮箱
    phone = Column(String(20))                                           # 手机号
    address = Column(Text)                                               # 地址
    notes = Column(Text)                                                 # 备注
    created_by = Column(Integer, ForeignKey("staff.id"))                 # 创建人
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # 链接：删除客人时级联删除其预订
    bookings = relationship(
        "Booking", back_populates="guest",
        cascade="all, delete-orphan", passive_deletes=True
    )
    creator = relationship("Staff", foreign_keys=[created_by])


class Room(Base):
    """
    房间对象
    status 由预订生命周期维护，人工只能在非占用状态之间切换
    """
    __tablename__ = "rooms"
    __table_args__ = (
        CheckConstraint("capacity >= 1", name="ck_rooms_capacity"),
        CheckConstraint("price_per_night >= 0", name="ck_rooms_price"),
    )

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), unique=True, nullable=False)    # 房间号
    room_type = Column(String(50), nullable=False)                   # 房型（自由文本）
    description = Column(Text)                                       # 描述
    capacity = Column(Integer, nullable=False, default=2)            # 可住人数
    price_per_night = Column(Numeric(10, 2), nullable=False)         # 每晚价格
    status = Column(
        SQLEnum(RoomStatus, name="room_status", values_callable=_enum_values),
        nullable=False, default=RoomStatus.AVAILABLE
    )
    floor = Column(Integer)                                          # 楼层
    amenities = Column(JSON)                                         # 设施标签列表
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # 链接：删除房间时级联删除其预订
    bookings = relationship(
        "Booking", back_populates="room",
        cascade="all, delete-orphan", passive_deletes=True
    )


class Booking(Base):
    """
    预订对象 - 预订生命周期的聚合根
    同一房间的生效预订区间互不重叠
    """
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="valid_dates"),
        CheckConstraint("total_price >= 0", name="ck_bookings_total_price"),
        Index("ix_bookings_room_status", "room_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id", ondelete="CASCADE"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False)
    check_in_date = Column(UTCDateTime, nullable=False)        # 计划入住时间
    check_out_date = Column(UTCDateTime, nullable=False)       # 计划退房时间
    actual_check_out = Column(UTCDateTime)                     # 实际退房时间
    total_price = Column(Numeric(10, 2), nullable=False)       # 总价（服务端计算）
    status = Column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=_enum_values),
        nullable=False, default=BookingStatus.ACTIVE
    )
    notes = Column(Text)                                       # 备注
    created_by = Column(Integer, ForeignKey("staff.id"))       # 创建人
    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    # 链接
    guest = relationship("Guest", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")
    creator = relationship("Staff", foreign_keys=[created_by])

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE


class SystemLog(Base):
    """
    系统日志对象
    记录关键操作用于审计
    """
    __tablename__ = "system_logs"

    id = Column(Integer, primary_key=True, index=True)
    operator_id = Column(Integer, ForeignKey("staff.id"))
    action = Column(String(100), nullable=False)         # 操作类型
    entity_type = Column(String(50))                     # 实体类型
    entity_id = Column(Integer)                          # 实体ID
    old_value = Column(Text)                             # 旧值(JSON)
    new_value = Column(Text)                             # 新值(JSON)
    created_at = Column(UTCDateTime, default=utcnow)

    # 链接
    operator = relationship("Staff")
