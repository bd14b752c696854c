"""
客人服务测试
"""
import json

import pytest
from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from frontdesk.exceptions import AuthorizationError, ConflictError, NotFoundError, StorageError
from frontdesk.models.entities import Booking, Guest, RoomStatus, SystemLog
from frontdesk.models.events import EventType
from frontdesk.models.schemas import GuestCreate, GuestUpdate
from frontdesk.services.booking_service import BookingService
from frontdesk.services.guest_service import GuestService


@pytest.fixture
def service(db_session, published_events):
    return GuestService(db_session, event_publisher=published_events.append)


class TestGuestService:

    def test_create_stamps_creator(self, service, receptionist):
        guest = service.create_guest(receptionist, GuestCreate(
            full_name="王五", document_number="E12345678", email="", phone="13900000000"
        ))

        assert guest.id is not None
        assert guest.created_by == receptionist.id
        assert guest.email is None

    def test_duplicate_document(self, service, receptionist, sample_guest):
        with pytest.raises(ConflictError):
            service.create_guest(receptionist, GuestCreate(
                full_name="冒名", document_number=sample_guest.document_number
            ))

    def test_inactive_staff_cannot_create(self, service, inactive_staff):
        with pytest.raises(AuthorizationError):
            service.create_guest(inactive_staff, GuestCreate(
                full_name="王五", document_number="E12345678"
            ))

    def test_search(self, service, sample_guest, sample_guest_2):
        assert [g.full_name for g in service.get_guests(search="张")] == ["张三"]
        assert [g.full_name for g in service.get_guests(search="19920202")] == ["李四"]
        assert len(service.get_guests()) == 2

    def test_owner_updates(self, service, receptionist, sample_guest):
        guest = service.update_guest(receptionist, sample_guest.id, GuestUpdate(phone="13700000000"))
        assert guest.phone == "13700000000"
        assert guest.full_name == "张三"

    def test_non_owner_cannot_update(self, service, other_receptionist, sample_guest):
        with pytest.raises(AuthorizationError):
            service.update_guest(other_receptionist, sample_guest.id, GuestUpdate(phone="1"))

    def test_admin_is_not_owner(self, service, admin, sample_guest):
        with pytest.raises(AuthorizationError):
            service.delete_guest(admin, sample_guest.id)

    def test_update_to_taken_document(self, service, receptionist, sample_guest, sample_guest_2):
        with pytest.raises(ConflictError):
            service.update_guest(receptionist, sample_guest.id, GuestUpdate(
                document_number=sample_guest_2.document_number
            ))

    def test_missing_guest(self, service, receptionist):
        with pytest.raises(NotFoundError):
            service.update_guest(receptionist, 9999, GuestUpdate(phone="1"))
        with pytest.raises(NotFoundError):
            service.delete_guest(receptionist, 9999)

    def test_delete_releases_room_of_active_booking(self, service, db_session, receptionist,
                                                    sample_guest, sample_room, fixed_clock):
        BookingService(db_session, event_publisher=lambda e: None, clock=fixed_clock).create_booking(
            receptionist, sample_guest.id, sample_room.id,
            datetime(2024, 6, 1), datetime(2024, 6, 3)
        )

        assert service.delete_guest(receptionist, sample_guest.id) is True

        assert db_session.query(Guest).count() == 0
        assert db_session.query(Booking).count() == 0
        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.AVAILABLE

    def test_delete_audits_and_publishes_room_release(self, service, db_session, receptionist,
                                                      sample_guest, sample_room, fixed_clock,
                                                      published_events):
        booking_id = BookingService(db_session, event_publisher=lambda e: None, clock=fixed_clock).create_booking(
            receptionist, sample_guest.id, sample_room.id,
            datetime(2024, 6, 1), datetime(2024, 6, 3)
        ).id

        guest_id = sample_guest.id
        service.delete_guest(receptionist, guest_id)

        assert len(published_events) == 1
        event = published_events[0]
        assert event.event_type == EventType.ROOM_STATUS_CHANGED
        assert event.source == "guest_service"
        assert event.data["room_number"] == "101"
        assert event.data["old_status"] == "occupied"
        assert event.data["new_status"] == "available"
        assert event.data["changed_by"] == receptionist.id
        assert event.data["reason"] == "booking_cancelled"

        room_log = db_session.query(SystemLog).filter(
            SystemLog.action == "room.status", SystemLog.entity_id == sample_room.id
        ).one()
        assert room_log.operator_id == receptionist.id
        guest_log = db_session.query(SystemLog).filter(SystemLog.action == "guest.delete").one()
        assert guest_log.entity_id == guest_id
        assert json.loads(guest_log.old_value)["active_bookings"] == [booking_id]

    def test_delete_keeps_room_held_by_other_guest(self, service, db_session, receptionist,
                                                   sample_guest, sample_guest_2, sample_room,
                                                   fixed_clock, published_events):
        bookings = BookingService(db_session, event_publisher=lambda e: None, clock=fixed_clock)
        bookings.create_booking(receptionist, sample_guest.id, sample_room.id,
                                datetime(2024, 6, 1), datetime(2024, 6, 3))
        bookings.create_booking(receptionist, sample_guest_2.id, sample_room.id,
                                datetime(2024, 7, 1), datetime(2024, 7, 3))

        service.delete_guest(receptionist, sample_guest.id)

        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.OCCUPIED
        assert published_events == []
        assert db_session.query(SystemLog).filter(SystemLog.action == "room.status").count() == 0
        assert db_session.query(SystemLog).filter(SystemLog.action == "guest.delete").count() == 1

    def test_delete_without_bookings_publishes_nothing(self, service, receptionist, sample_guest,
                                                       published_events):
        assert service.delete_guest(receptionist, sample_guest.id) is True
        assert published_events == []

    @pytest.mark.parametrize("call", [
        lambda s: s.get_guests(),
        lambda s: s.get_guest(1),
        lambda s: s.get_guest_by_document("G12345678"),
    ])
    def test_read_failure_raises_storage_error(self, service, db_session, call):
        error = OperationalError("SELECT", {}, Exception("database is locked"))

        with patch.object(db_session, "query", side_effect=error):
            with pytest.raises(StorageError):
                call(service)
