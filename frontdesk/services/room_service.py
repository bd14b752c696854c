"""
房间服务
管理 Room 对象；房间的增删改和房态修改仅限管理员
支持事件发布：人工修改房态时发布事件
"""
from typing import Callable, Dict, List, Optional
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from frontdesk.exceptions import ConflictError, FrontDeskError, NotFoundError, StorageError
from frontdesk.models.entities import Booking, BookingStatus, Room, RoomStatus, Staff
from frontdesk.models.events import EventType, RoomStatusChangedData
from frontdesk.models.schemas import RoomCreate, RoomUpdate
from frontdesk.models.types import utcnow
from frontdesk.security import permissions
from frontdesk.security.policy import Authorizer, PolicyAuthorizer, authorize
from frontdesk.services.audit_service import AuditService
from frontdesk.services.event_bus import event_bus, Event
from frontdesk.services.room_state import RoomTrigger, next_room_status

logger = logging.getLogger(__name__)


class RoomService:
    """房间服务"""

    def __init__(self, db: Session, authorizer: Optional[Authorizer] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.authorizer = authorizer or PolicyAuthorizer(db)
        # 支持依赖注入事件发布器，便于测试
        self._publish_event = event_publisher or event_bus.publish
        self.audit = AuditService(db)

    def _save(self, action: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} failed: {e}", exc_info=True)
            raise StorageError("保存失败，请稍后重试") from e

    # ============== 查询 ==============

    def get_rooms(self, status: Optional[RoomStatus] = None,
                  floor: Optional[int] = None) -> List[Room]:
        """获取房间列表"""
        try:
            query = self.db.query(Room)

            if status is not None:
                query = query.filter(Room.status == status)
            if floor is not None:
                query = query.filter(Room.floor == floor)

            return query.order_by(Room.floor, Room.room_number).all()
        except SQLAlchemyError as e:
            logger.error(f"Room list query failed: {e}", exc_info=True)
            raise StorageError("房间查询失败，请稍后重试") from e

    def get_room(self, room_id: int) -> Optional[Room]:
        """获取单个房间"""
        try:
            return self.db.query(Room).filter(Room.id == room_id).first()
        except SQLAlchemyError as e:
            logger.error(f"Room query failed for room {room_id}: {e}", exc_info=True)
            raise StorageError("房间查询失败，请稍后重试") from e

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        """根据房间号获取房间"""
        try:
            return self.db.query(Room).filter(Room.room_number == room_number).first()
        except SQLAlchemyError as e:
            logger.error(f"Room query failed for number {room_number}: {e}", exc_info=True)
            raise StorageError("房间查询失败，请稍后重试") from e

    def has_active_booking(self, room_id: int) -> bool:
        """房间是否存在生效中的预订（占用标记由此派生）"""
        try:
            return self.db.query(Booking.id).filter(
                Booking.room_id == room_id,
                Booking.status == BookingStatus.ACTIVE
            ).first() is not None
        except SQLAlchemyError as e:
            logger.error(f"Active booking check failed for room {room_id}: {e}", exc_info=True)
            raise StorageError("房间查询失败，请稍后重试") from e

    def is_occupied(self, room: Room) -> bool:
        return self.has_active_booking(room.id)

    # ============== 写操作 ==============

    def create_room(self, actor: Staff, data: RoomCreate) -> Room:
        """创建房间"""
        authorize(self.authorizer, actor, permissions.ROOM_CREATE)

        if self.get_room_by_number(data.room_number):
            raise ConflictError(f"房间号 '{data.room_number}' 已存在")

        room = Room(**data.model_dump(), status=RoomStatus.AVAILABLE)
        self.db.add(room)
        self._save("Create room")
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created by staff {actor.id}")
        return room

    def update_room(self, actor: Staff, room_id: int, data: RoomUpdate) -> Room:
        """更新房间资料（房态不在此修改）"""
        authorize(self.authorizer, actor, permissions.ROOM_UPDATE)

        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在", {"room_id": room_id})

        update_data = data.model_dump(exclude_unset=True)
        if 'room_number' in update_data:
            existing = self.get_room_by_number(update_data['room_number'])
            if existing and existing.id != room_id:
                raise ConflictError(f"房间号 '{update_data['room_number']}' 已存在")

        for key, value in update_data.items():
            setattr(room, key, value)

        self._save("Update room")
        self.db.refresh(room)
        return room

    def update_room_status(self, actor: Staff, room_id: int, status: RoomStatus,
                           reason: str = "") -> Room:
        """
        人工修改房态

        只能在空闲/维修/待清洁之间切换；入住中的房间不能人工修改。
        """
        authorize(self.authorizer, actor, permissions.ROOM_STATUS)

        try:
            room = self.db.query(Room).filter(Room.id == room_id).with_for_update().first()
            if not room:
                raise NotFoundError("房间不存在", {"room_id": room_id})

            old_status = room.status
            room.status = next_room_status(
                old_status, RoomTrigger.MANUAL,
                has_other_active=self.has_active_booking(room.id),
                target=status
            )
            if old_status != room.status:
                self.audit.record(
                    actor.id, "room.status", "room", room.id,
                    old_value={"status": old_status},
                    new_value={"status": room.status, "reason": reason}
                )
        except FrontDeskError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Room status update failed: {e}", exc_info=True)
            raise StorageError("房态修改失败，请稍后重试") from e

        self._save("Update room status")
        self.db.refresh(room)

        if old_status != room.status:
            self._publish_event(Event(
                event_type=EventType.ROOM_STATUS_CHANGED,
                timestamp=utcnow(),
                data=RoomStatusChangedData(
                    room_id=room.id,
                    room_number=room.room_number,
                    old_status=old_status.value,
                    new_status=room.status.value,
                    changed_by=actor.id,
                    reason=reason
                ).to_dict(),
                source="room_service"
            ))

        return room

    def delete_room(self, actor: Staff, room_id: int) -> bool:
        """删除房间（级联删除其预订）"""
        authorize(self.authorizer, actor, permissions.ROOM_DELETE)

        room = self.get_room(room_id)
        if not room:
            raise NotFoundError("房间不存在", {"room_id": room_id})

        self.db.delete(room)
        self._save("Delete room")
        logger.info(f"Room {room_id} deleted by staff {actor.id}")
        return True

    def get_room_status_summary(self) -> Dict[str, int]:
        """获取房态统计"""
        summary = {'total': 0}
        for status in RoomStatus:
            summary[status.value] = 0

        for room in self.get_rooms():
            summary['total'] += 1
            summary[room.status.value] += 1

        return summary
