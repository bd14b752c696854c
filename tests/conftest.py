"""
Pytest 配置和共享 fixtures
"""
import os

# 应用模块在导入时按配置创建引擎，测试期间不落盘
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from frontdesk.database import Base, get_db
from frontdesk.models.entities import (
    Staff, UserRole, StaffRole, Room, RoomStatus, Guest
)
from frontdesk.security.auth import get_password_hash, create_access_token
from frontdesk.services.availability_service import OverlapPolicy
from frontdesk.main import app

FIXED_NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 员工相关 Fixtures ==============

def create_staff(db_session, username, full_name, roles=(), is_active=True):
    staff = Staff(
        username=username,
        password_hash=get_password_hash("123456"),
        full_name=full_name,
        is_active=is_active
    )
    for role in roles:
        staff.roles.append(UserRole(role=role))
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def admin(db_session):
    """管理员"""
    return create_staff(db_session, "admin", "管理员", [StaffRole.ADMIN])


@pytest.fixture
def receptionist(db_session):
    """前台"""
    return create_staff(db_session, "front1", "前台小王", [StaffRole.RECEPTIONIST])


@pytest.fixture
def other_receptionist(db_session):
    """另一名前台"""
    return create_staff(db_session, "front2", "前台小李", [StaffRole.RECEPTIONIST])


@pytest.fixture
def inactive_staff(db_session):
    """已停用员工"""
    return create_staff(db_session, "former", "离职员工", [StaffRole.RECEPTIONIST], is_active=False)


@pytest.fixture
def admin_token(admin):
    return create_access_token(admin.id)


@pytest.fixture
def receptionist_token(receptionist):
    return create_access_token(receptionist.id)


@pytest.fixture
def admin_headers(admin_token):
    """返回管理员认证的请求头"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def receptionist_headers(receptionist_token):
    """返回前台认证的请求头"""
    return {"Authorization": f"Bearer {receptionist_token}"}


@pytest.fixture
def other_headers(other_receptionist):
    """返回另一名前台认证的请求头"""
    return {"Authorization": f"Bearer {create_access_token(other_receptionist.id)}"}


# ============== 实体相关 Fixtures ==============

@pytest.fixture
def sample_room(db_session):
    """创建测试房间：101，每晚 200.00"""
    room = Room(
        room_number="101",
        room_type="标准间",
        capacity=2,
        price_per_night=Decimal("200.00"),
        floor=1,
        status=RoomStatus.AVAILABLE,
        amenities=["wifi", "tv"]
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_room_102(db_session):
    """创建102房间"""
    room = Room(
        room_number="102",
        room_type="大床房",
        capacity=2,
        price_per_night=Decimal("288.00"),
        floor=1,
        status=RoomStatus.AVAILABLE
    )
    db_session.add(room)
    db_session.commit()
    db_session.refresh(room)
    return room


@pytest.fixture
def sample_guest(db_session, receptionist):
    """创建测试客人（由前台登记）"""
    guest = Guest(
        full_name="张三",
        document_number="110101199001011234",
        phone="13800138000",
        created_by=receptionist.id
    )
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


@pytest.fixture
def sample_guest_2(db_session, receptionist):
    """创建第二位客人"""
    guest = Guest(
        full_name="李四",
        document_number="110101199202022345",
        created_by=receptionist.id
    )
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


# ============== 服务依赖 Fixtures ==============

@pytest.fixture
def fixed_now():
    """固定的当前时间：2024-05-01 09:00 UTC"""
    return FIXED_NOW


@pytest.fixture
def fixed_clock(fixed_now):
    """固定时钟"""
    return lambda: fixed_now


@pytest.fixture
def published_events():
    """收集发布的事件，替代全局事件总线"""
    return []


@pytest.fixture
def strict_policy():
    """默认闭区间策略"""
    return OverlapPolicy(inclusive=True)


@pytest.fixture
def future_dates():
    """API 测试使用的未来日期（入住、退房）"""
    start = datetime.now(timezone.utc).date() + timedelta(days=30)
    return start, start + timedelta(days=2)
