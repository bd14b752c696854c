"""
预订服务 - 预订生命周期
管理 Booking 对象（聚合根）以及随之联动的房态

状态机：active -> checked_out（终态），active -> cancelled（终态）

业务联动规则：
1. 创建预订：授权 -> 校验 -> 锁定房间并检查重叠 -> 计价 -> 写入预订、房间置为占用
2. 退房：授权 -> 校验状态 -> 预订置为已退房、记录实际退房时间、房间置为待清洁
3. 取消：授权 -> 校验状态 -> 预订置为已取消，房间无其他生效预订时恢复空闲

每个操作只提交一次事务，预订与房态要么同时生效要么都不生效；
事件在提交成功后发布。
"""
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Union
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.exceptions import (
    ConflictError, FrontDeskError, InvalidStateError, NotFoundError,
    StorageError, ValidationError
)
from frontdesk.models.entities import Booking, BookingStatus, Guest, Room, Staff
from frontdesk.models.events import (
    EventType, BookingCreatedData, BookingClosedData, RoomStatusChangedData
)
from frontdesk.models.types import to_utc, utcnow
from frontdesk.security import permissions
from frontdesk.security.policy import Authorizer, PolicyAuthorizer, authorize
from frontdesk.services.audit_service import AuditService
from frontdesk.services.availability_service import AvailabilityService, OverlapPolicy
from frontdesk.services.event_bus import event_bus, Event
from frontdesk.services.price_service import PriceService
from frontdesk.services.room_state import RoomTrigger, next_room_status

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date]


class BookingService:
    """预订服务"""

    def __init__(self, db: Session,
                 authorizer: Optional[Authorizer] = None,
                 event_publisher: Callable[[Event], None] = None,
                 policy: Optional[OverlapPolicy] = None,
                 clock: Callable[[], datetime] = None):
        self.db = db
        self.authorizer = authorizer or PolicyAuthorizer(db)
        # 支持依赖注入事件发布器和时钟，便于测试
        self._publish_event = event_publisher or event_bus.publish
        self._now = clock or utcnow
        self.availability = AvailabilityService(db, policy)
        self.audit = AuditService(db)

    # ============== 查询 ==============

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """获取单个预订"""
        try:
            return self.db.query(Booking).filter(Booking.id == booking_id).first()
        except SQLAlchemyError as e:
            raise StorageError("预订查询失败，请稍后重试") from e

    def list_bookings(self, status: Optional[BookingStatus] = None,
                      room_id: Optional[int] = None,
                      guest_id: Optional[int] = None,
                      created_by: Optional[int] = None) -> List[Booking]:
        """获取预订列表（最新创建的在前）"""
        query = self.db.query(Booking)

        if status:
            query = query.filter(Booking.status == status)
        if room_id is not None:
            query = query.filter(Booking.room_id == room_id)
        if guest_id is not None:
            query = query.filter(Booking.guest_id == guest_id)
        if created_by is not None:
            query = query.filter(Booking.created_by == created_by)

        try:
            return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
        except SQLAlchemyError as e:
            raise StorageError("预订查询失败，请稍后重试") from e

    def get_booking_detail(self, booking_id: int) -> Optional[Dict]:
        """获取预订详情（包含客人与房间信息）"""
        booking = self.get_booking(booking_id)
        if not booking:
            return None

        return {
            'id': booking.id,
            'guest_id': booking.guest_id,
            'guest_name': booking.guest.full_name,
            'guest_document_number': booking.guest.document_number,
            'room_id': booking.room_id,
            'room_number': booking.room.room_number,
            'room_type': booking.room.room_type,
            'check_in_date': booking.check_in_date,
            'check_out_date': booking.check_out_date,
            'actual_check_out': booking.actual_check_out,
            'total_price': booking.total_price,
            'status': booking.status,
            'notes': booking.notes,
            'created_by': booking.created_by,
            'created_at': booking.created_at,
            'updated_at': booking.updated_at,
        }

    # ============== 生命周期 ==============

    def _validate_dates(self, check_in: Optional[DateLike],
                        check_out: Optional[DateLike]):
        if check_in is None or check_out is None:
            raise ValidationError("入住和退房时间不能为空")

        check_in, check_out = to_utc(check_in), to_utc(check_out)
        if check_out <= check_in:
            raise ValidationError("退房时间必须晚于入住时间")

        today = to_utc(self._now()).date()
        if check_in.date() < today:
            raise ValidationError("入住日期不能早于今天")

        return check_in, check_out

    def _lock_room(self, room_id: int) -> Optional[Room]:
        """锁定房间行，串行化同一房间上的并发预订（SQLite 下由数据库级写锁保证）"""
        return self.db.query(Room).filter(Room.id == room_id).with_for_update().first()

    def _lock_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    def _has_other_active(self, room_id: int, booking_id: int) -> bool:
        return self.db.query(Booking.id).filter(
            Booking.room_id == room_id,
            Booking.status == BookingStatus.ACTIVE,
            Booking.id != booking_id
        ).first() is not None

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} commit failed: {e}", exc_info=True)
            raise StorageError("保存失败，请稍后重试") from e

    def create_booking(self, actor: Staff, guest_id: int, room_id: int,
                       check_in: Optional[DateLike], check_out: Optional[DateLike],
                       notes: Optional[str] = None) -> Booking:
        """
        创建预订

        Raises:
            AuthorizationError: 操作人无权创建
            ValidationError: 日期缺失、区间非法或入住日期早于今天
            NotFoundError: 客人或房间不存在
            ConflictError: 房间在该区间已有生效预订
            StorageError: 存储层故障
        """
        authorize(self.authorizer, actor, permissions.BOOKING_CREATE)
        check_in, check_out = self._validate_dates(check_in, check_out)

        try:
            guest = self.db.query(Guest).filter(Guest.id == guest_id).first()
            if not guest:
                raise NotFoundError("客人不存在", {"guest_id": guest_id})

            room = self._lock_room(room_id)
            if not room:
                raise NotFoundError("房间不存在", {"room_id": room_id})

            conflicts = self.availability.find_conflicts(room.id, check_in, check_out)
            if conflicts:
                logger.warning(
                    f"Booking rejected: room {room.room_number} unavailable "
                    f"{check_in.isoformat()} - {check_out.isoformat()}"
                )
                raise ConflictError(
                    f"房间 {room.room_number} 在所选时段已被预订",
                    {"room_id": room.id, "conflicting_booking_ids": [b.id for b in conflicts]}
                )

            total_price = PriceService.price_for(room, check_in, check_out)

            booking = Booking(
                guest_id=guest.id,
                room_id=room.id,
                check_in_date=check_in,
                check_out_date=check_out,
                actual_check_out=None,
                total_price=total_price,
                status=BookingStatus.ACTIVE,
                notes=notes,
                created_by=actor.id,
            )
            self.db.add(booking)

            old_room_status = room.status
            room.status = next_room_status(old_room_status, RoomTrigger.BOOKING_CREATED)

            self.db.flush()
            self.audit.record(
                actor.id, "booking.create", "booking", booking.id,
                new_value={
                    "guest_id": guest.id,
                    "room_id": room.id,
                    "check_in_date": check_in,
                    "check_out_date": check_out,
                    "total_price": total_price,
                    "room_status": room.status,
                }
            )
        except FrontDeskError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Create booking failed: {e}", exc_info=True)
            raise StorageError("创建预订失败，请稍后重试") from e

        self._commit("Create booking")
        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: room {room.room_number}, "
            f"total {booking.total_price}, by staff {actor.id}"
        )

        self._publish_event(Event(
            event_type=EventType.BOOKING_CREATED,
            timestamp=self._now(),
            data=BookingCreatedData(
                booking_id=booking.id,
                guest_id=booking.guest_id,
                room_id=room.id,
                room_number=room.room_number,
                check_in_date=booking.check_in_date,
                check_out_date=booking.check_out_date,
                total_price=booking.total_price,
                operator_id=actor.id
            ).to_dict(),
            source="booking_service"
        ))
        self._publish_room_change(room, old_room_status, actor.id, "booking_created")

        return booking

    def check_out(self, actor: Staff, booking_id: int) -> Booking:
        """
        退房

        Raises:
            NotFoundError: 预订不存在
            AuthorizationError: 操作人不是预订创建人
            InvalidStateError: 预订已退房或已取消
            StorageError: 存储层故障
        """
        return self._close_booking(actor, booking_id, BookingStatus.CHECKED_OUT)

    def cancel_booking(self, actor: Staff, booking_id: int,
                       reason: Optional[str] = None) -> Booking:
        """
        取消预订

        退款等规则尚未定义，这里只完成状态流转和房态恢复。
        """
        return self._close_booking(actor, booking_id, BookingStatus.CANCELLED, reason)

    def _close_booking(self, actor: Staff, booking_id: int, target: BookingStatus,
                       reason: Optional[str] = None) -> Booking:
        if target == BookingStatus.CHECKED_OUT:
            action, trigger, verb = permissions.BOOKING_CHECKOUT, RoomTrigger.BOOKING_CHECKED_OUT, "退房"
        else:
            action, trigger, verb = permissions.BOOKING_CANCEL, RoomTrigger.BOOKING_CANCELLED, "取消"

        try:
            booking = self._lock_booking(booking_id)
            if not booking:
                raise NotFoundError("预订不存在", {"booking_id": booking_id})

            authorize(self.authorizer, actor, action, booking)

            if booking.status != BookingStatus.ACTIVE:
                raise InvalidStateError(
                    f"状态为 {booking.status.value} 的预订不能{verb}",
                    {"booking_id": booking.id, "status": booking.status.value}
                )

            old_booking_status = booking.status
            booking.status = target
            if target == BookingStatus.CHECKED_OUT:
                booking.actual_check_out = self._now()

            room = booking.room
            old_room_status = room.status
            room.status = next_room_status(
                old_room_status, trigger,
                has_other_active=self._has_other_active(room.id, booking.id)
            )

            self.audit.record(
                actor.id, f"booking.{target.value}", "booking", booking.id,
                old_value={"status": old_booking_status, "room_status": old_room_status},
                new_value={
                    "status": booking.status,
                    "room_status": room.status,
                    "actual_check_out": booking.actual_check_out,
                    "reason": reason,
                }
            )
        except FrontDeskError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{verb} failed for booking {booking_id}: {e}", exc_info=True)
            raise StorageError(f"{verb}失败，请稍后重试") from e

        self._commit(f"Close booking {booking_id}")
        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} {target.value}: room {room.room_number} -> {room.status.value}")

        event_type = (EventType.BOOKING_CHECKED_OUT if target == BookingStatus.CHECKED_OUT
                      else EventType.BOOKING_CANCELLED)
        self._publish_event(Event(
            event_type=event_type,
            timestamp=self._now(),
            data=BookingClosedData(
                booking_id=booking.id,
                guest_id=booking.guest_id,
                room_id=room.id,
                room_number=room.room_number,
                status=booking.status.value,
                actual_check_out=booking.actual_check_out,
                reason=reason or "",
                operator_id=actor.id
            ).to_dict(),
            source="booking_service"
        ))
        self._publish_room_change(room, old_room_status, actor.id, trigger.value)

        return booking

    def _publish_room_change(self, room: Room, old_status, changed_by: int, reason: str) -> None:
        if old_status == room.status:
            return
        self._publish_event(Event(
            event_type=EventType.ROOM_STATUS_CHANGED,
            timestamp=self._now(),
            data=RoomStatusChangedData(
                room_id=room.id,
                room_number=room.room_number,
                old_status=old_status.value,
                new_status=room.status.value,
                changed_by=changed_by,
                reason=reason
            ).to_dict(),
            source="booking_service"
        ))
