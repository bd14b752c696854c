"""
客人服务
管理 Guest 对象；证件号全局唯一，修改和删除仅限创建人
删除客人会级联删除其预订，被释放的房间写审计日志并发布房态变更事件
"""
from typing import Callable, List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.exceptions import ConflictError, FrontDeskError, NotFoundError, StorageError
from frontdesk.models.entities import Booking, BookingStatus, Guest, Staff
from frontdesk.models.events import EventType, RoomStatusChangedData
from frontdesk.models.schemas import GuestCreate, GuestUpdate
from frontdesk.models.types import utcnow
from frontdesk.security import permissions
from frontdesk.security.policy import Authorizer, PolicyAuthorizer, authorize
from frontdesk.services.audit_service import AuditService
from frontdesk.services.event_bus import event_bus, Event
from frontdesk.services.room_state import RoomTrigger, next_room_status

logger = logging.getLogger(__name__)


class GuestService:
    """客人服务"""

    def __init__(self, db: Session, authorizer: Optional[Authorizer] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.authorizer = authorizer or PolicyAuthorizer(db)
        self._publish_event = event_publisher or event_bus.publish
        self.audit = AuditService(db)

    def _save(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("证件号已被其他客人使用") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} failed: {e}", exc_info=True)
            raise StorageError("保存失败，请稍后重试") from e

    # ============== 查询 ==============

    def get_guests(self, search: Optional[str] = None,
                   created_by: Optional[int] = None) -> List[Guest]:
        """获取客人列表（按姓名或证件号搜索）"""
        try:
            query = self.db.query(Guest)

            if search:
                query = query.filter(or_(
                    Guest.full_name.contains(search),
                    Guest.document_number.contains(search)
                ))
            if created_by is not None:
                query = query.filter(Guest.created_by == created_by)

            return query.order_by(Guest.created_at.desc(), Guest.id.desc()).all()
        except SQLAlchemyError as e:
            logger.error(f"Guest list query failed: {e}", exc_info=True)
            raise StorageError("客人查询失败，请稍后重试") from e

    def get_guest(self, guest_id: int) -> Optional[Guest]:
        """获取单个客人"""
        try:
            return self.db.query(Guest).filter(Guest.id == guest_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Guest query failed for guest {guest_id}: {e}", exc_info=True)
            raise StorageError("客人查询失败，请稍后重试") from e

    def get_guest_by_document(self, document_number: str) -> Optional[Guest]:
        """根据证件号获取客人"""
        try:
            return self.db.query(Guest).filter(Guest.document_number == document_number).first()
        except SQLAlchemyError as e:
            logger.error(f"Guest query failed for document {document_number}: {e}", exc_info=True)
            raise StorageError("客人查询失败，请稍后重试") from e

    # ============== 写操作 ==============

    def create_guest(self, actor: Staff, data: GuestCreate) -> Guest:
        """创建客人"""
        authorize(self.authorizer, actor, permissions.GUEST_CREATE)

        if self.get_guest_by_document(data.document_number):
            raise ConflictError(f"证件号 '{data.document_number}' 已存在")

        guest = Guest(**data.model_dump(), created_by=actor.id)
        self.db.add(guest)
        self._save("Create guest")
        self.db.refresh(guest)
        return guest

    def update_guest(self, actor: Staff, guest_id: int, data: GuestUpdate) -> Guest:
        """更新客人资料"""
        guest = self.get_guest(guest_id)
        if not guest:
            raise NotFoundError("客人不存在", {"guest_id": guest_id})

        authorize(self.authorizer, actor, permissions.GUEST_UPDATE, guest)

        update_data = data.model_dump(exclude_unset=True)
        if 'document_number' in update_data:
            existing = self.get_guest_by_document(update_data['document_number'])
            if existing and existing.id != guest_id:
                raise ConflictError(f"证件号 '{update_data['document_number']}' 已存在")

        for key, value in update_data.items():
            setattr(guest, key, value)

        self._save("Update guest")
        self.db.refresh(guest)
        return guest

    def delete_guest(self, actor: Staff, guest_id: int) -> bool:
        """
        删除客人（级联删除其预订）

        生效预订按取消处理：房间经 next_room_status 释放，
        每个变更的房间写一条 room.status 审计日志，提交后发布房态变更事件。
        """
        guest = self.get_guest(guest_id)
        if not guest:
            raise NotFoundError("客人不存在", {"guest_id": guest_id})

        authorize(self.authorizer, actor, permissions.GUEST_DELETE, guest)

        room_changes = []  # (room_id, room_number, old_status, new_status)
        try:
            cancelled_ids = []
            for booking in guest.bookings:
                if booking.status != BookingStatus.ACTIVE:
                    continue
                cancelled_ids.append(booking.id)
                room = booking.room
                has_other_active = self.db.query(Booking.id).filter(
                    Booking.room_id == room.id,
                    Booking.status == BookingStatus.ACTIVE,
                    Booking.guest_id != guest.id
                ).first() is not None

                old_status = room.status
                room.status = next_room_status(
                    old_status, RoomTrigger.BOOKING_CANCELLED, has_other_active=has_other_active
                )
                if old_status != room.status:
                    room_changes.append((room.id, room.room_number, old_status, room.status))
                    self.audit.record(
                        actor.id, "room.status", "room", room.id,
                        old_value={"status": old_status},
                        new_value={"status": room.status, "reason": RoomTrigger.BOOKING_CANCELLED.value}
                    )

            self.audit.record(
                actor.id, "guest.delete", "guest", guest.id,
                old_value={
                    "full_name": guest.full_name,
                    "document_number": guest.document_number,
                    "active_bookings": cancelled_ids,
                }
            )
            self.db.delete(guest)
        except FrontDeskError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Delete guest {guest_id} failed: {e}", exc_info=True)
            raise StorageError("删除失败，请稍后重试") from e

        self._save("Delete guest")
        logger.info(f"Guest {guest_id} deleted by staff {actor.id}, rooms released: {len(room_changes)}")

        for room_id, room_number, old_status, new_status in room_changes:
            self._publish_event(Event(
                event_type=EventType.ROOM_STATUS_CHANGED,
                timestamp=utcnow(),
                data=RoomStatusChangedData(
                    room_id=room_id,
                    room_number=room_number,
                    old_status=old_status.value,
                    new_status=new_status.value,
                    changed_by=actor.id,
                    reason=RoomTrigger.BOOKING_CANCELLED.value
                ).to_dict(),
                source="guest_service"
            ))

        return True
