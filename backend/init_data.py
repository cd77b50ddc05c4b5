"""
初始化数据脚本
创建：房间、员工账号与档案、部门角色

默认账号（密码均为 123456）：
  manager@vph.test     经理
  front@vph.test       前台
  bar@vph.test         酒吧
  accounts@vph.test    财务
"""
import logging
import sys
sys.path.insert(0, '.')

from datetime import date
from decimal import Decimal
from app.database import SessionLocal, init_db
from app.logging_config import configure_logging
from app.models.ontology import (
    Room, RoomType, RoomStatus, User, StaffProfile, UserRole, DepartmentRole
)
from app.security.auth import get_password_hash

logger = logging.getLogger(__name__)

ROOMS = [
    # (房间号, 楼层, 房型, 房价, 设施)
    ("101", 1, RoomType.STANDARD, Decimal("80000"), ["wifi", "tv"]),
    ("102", 1, RoomType.STANDARD, Decimal("80000"), ["wifi", "tv"]),
    ("103", 1, RoomType.STANDARD, Decimal("80000"), ["wifi"]),
    ("104", 1, RoomType.DELUXE, Decimal("100000"), ["wifi", "tv", "minibar"]),
    ("105", 1, RoomType.DELUXE, Decimal("100000"), ["wifi", "tv", "minibar"]),
    ("201", 2, RoomType.SUITE, Decimal("180000"), ["wifi", "tv", "minibar", "bathtub"]),
    ("202", 2, RoomType.SUITE, Decimal("180000"), ["wifi", "tv", "minibar", "bathtub"]),
    ("301", 3, RoomType.EXECUTIVE, Decimal("250000"), ["wifi", "tv", "minibar", "lounge"]),
]

STAFF = [
    # (邮箱, 姓名, 角色)
    ("manager@vph.test", "Grace Manager", [DepartmentRole.MANAGER]),
    ("front@vph.test", "Ade Reception", [DepartmentRole.RECEPTION]),
    ("bar@vph.test", "Tolu Bar", [DepartmentRole.BAR, DepartmentRole.RESTAURANT]),
    ("accounts@vph.test", "Kemi Accounts", [DepartmentRole.ACCOUNTS]),
]


def init_rooms(db):
    """初始化房间"""
    for number, floor, room_type, rate, amenities in ROOMS:
        if db.query(Room).filter(Room.room_number == number).first():
            continue
        db.add(Room(
            room_number=number, floor=floor, room_type=room_type,
            base_rate=rate, amenities=amenities, status=RoomStatus.AVAILABLE
        ))
    db.flush()


def init_staff(db):
    """初始化员工账号、档案与角色"""
    for email, name, roles in STAFF:
        if db.query(User).filter(User.email == email).first():
            continue
        user = User(email=email, password_hash=get_password_hash("123456"), is_active=True)
        db.add(user)
        db.flush()
        db.add(StaffProfile(user_id=user.id, full_name=name, hire_date=date.today(), is_active=True))
        for role in roles:
            db.add(UserRole(user_id=user.id, role=role))
    db.flush()


def main():
    configure_logging()
    init_db()
    db = SessionLocal()
    try:
        init_rooms(db)
        init_staff(db)
        db.commit()
        logger.info(f"Seeded {len(ROOMS)} rooms and {len(STAFF)} staff accounts")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
