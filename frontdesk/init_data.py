"""
初始化数据脚本
创建：员工及角色、示例房间

默认账号（密码均为 123456）：
  admin      管理员   admin
  front1     王前台   receptionist
  front2     李前台   receptionist

用法：python -m frontdesk.init_data
"""
from decimal import Decimal

from frontdesk.database import SessionLocal, init_db
from frontdesk.models.entities import Room, RoomStatus, Staff, StaffRole, UserRole
from frontdesk.security.auth import get_password_hash


def init_staff(db):
    """初始化员工和角色分配"""
    staff_list = [
        {'username': 'admin', 'full_name': '管理员', 'roles': [StaffRole.ADMIN]},
        {'username': 'front1', 'full_name': '王前台', 'roles': [StaffRole.RECEPTIONIST]},
        {'username': 'front2', 'full_name': '李前台', 'roles': [StaffRole.RECEPTIONIST]},
    ]

    created = []
    for data in staff_list:
        if db.query(Staff).filter(Staff.username == data['username']).first():
            continue
        staff = Staff(
            username=data['username'],
            password_hash=get_password_hash('123456'),
            full_name=data['full_name'],
            is_active=True,
        )
        staff.roles = [UserRole(role=role) for role in data['roles']]
        db.add(staff)
        created.append(data['username'])

    db.commit()
    print(f"员工初始化完成: {created if created else '已存在'}")
    return created


def init_rooms(db):
    """初始化示例房间：1-3 层，每层 4 间"""
    room_types = {
        1: ('标准间', Decimal('200.00'), 2, ['wifi', 'tv']),
        2: ('大床房', Decimal('288.00'), 2, ['wifi', 'tv', 'minibar']),
        3: ('套房', Decimal('588.00'), 4, ['wifi', 'tv', 'minibar', 'bathtub']),
    }

    created = 0
    for floor, (room_type, price, capacity, amenities) in room_types.items():
        for i in range(1, 5):
            number = f"{floor}{i:02d}"
            if db.query(Room).filter(Room.room_number == number).first():
                continue
            db.add(Room(
                room_number=number,
                room_type=room_type,
                capacity=capacity,
                price_per_night=price,
                floor=floor,
                amenities=amenities,
                status=RoomStatus.AVAILABLE,
            ))
            created += 1

    db.commit()
    total = db.query(Room).count()
    print(f"房间初始化完成: 新增 {created} 间，共 {total} 间")
    return created


def main():
    print("=" * 50)
    print("FrontDesk 初始化数据")
    print("=" * 50)

    init_db()
    print("数据库表创建完成")

    db = SessionLocal()
    try:
        init_staff(db)
        init_rooms(db)
    finally:
        db.close()

    print("=" * 50)
    print("初始化完成！默认账号 admin / front1 / front2，密码均为 123456")
    print("=" * 50)


if __name__ == '__main__':
    main()
