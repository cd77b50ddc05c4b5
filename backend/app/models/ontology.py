"""
业务对象定义
房间、客人、预订，以及员工账号、员工档案和部门角色
"""
from datetime import datetime, UTC
from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text, JSON,
    Enum as SQLEnum, Boolean, Numeric, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


# ============== 枚举定义 ==============

class RoomStatus(str, Enum):
    """房间状态枚举"""
    AVAILABLE = "available"        # 空闲可售
    OCCUPIED = "occupied"          # 入住中
    RESERVED = "reserved"          # 已预留
    MAINTENANCE = "maintenance"    # 维修中
    CLEANING = "cleaning"          # 清洁中


class RoomType(str, Enum):
    """房型"""
    STANDARD = "standard"
    DELUXE = "deluxe"
    SUITE = "suite"
    EXECUTIVE = "executive"


class BookingStatus(str, Enum):
    """预订状态枚举"""
    PENDING = "pending"            # 待确认
    CONFIRMED = "confirmed"        # 已确认
    CHECKED_IN = "checked_in"      # 已入住
    CHECKED_OUT = "checked_out"    # 已退房
    CANCELLED = "cancelled"        # 已取消


class GuestType(str, Enum):
    """客人类别"""
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"
    VIP = "vip"
    GROUP = "group"


class IdType(str, Enum):
    """证件类型"""
    PASSPORT = "passport"
    DRIVERS_LICENSE = "drivers_license"
    NATIONAL_ID = "national_id"


class DepartmentRole(str, Enum):
    """部门角色 - manager 可访问所有部门"""
    MANAGER = "manager"
    RECEPTION = "reception"
    RESTAURANT = "restaurant"
    BAR = "bar"
    INVENTORY = "inventory"
    ACCOUNTS = "accounts"


# ============== 业务对象 ==============

class Room(Base):
    """
    房间对象
    status 只通过预订操作或维修/清洁操作改变
    """
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), unique=True, nullable=False)  # 房间号
    room_type = Column(SQLEnum(RoomType), nullable=False, default=RoomType.STANDARD)
    floor = Column(Integer, nullable=False)                        # 楼层
    base_rate = Column(Numeric(10, 2), nullable=False)             # 基础房价（每晚）
    status = Column(SQLEnum(RoomStatus), nullable=False, default=RoomStatus.AVAILABLE)
    amenities = Column(JSON, default=list)                         # 设施列表
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # 链接
    bookings = relationship("Booking", back_populates="room")


class Guest(Base):
    """
    客人对象
    关联已结清的预订后，只允许修改联系方式
    """
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)      # 姓名
    email = Column(String(255))
    phone = Column(String(20))
    id_type = Column(SQLEnum(IdType))                    # 证件类型
    id_number = Column(String(50))                       # 证件号码
    guest_type = Column(SQLEnum(GuestType), nullable=False, default=GuestType.INDIVIDUAL)
    address = Column(Text)
    notes = Column(Text)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # 链接
    bookings = relationship("Booking", back_populates="guest")


class Booking(Base):
    """
    预订对象 - 预订与入住的聚合根
    total_amount 由 nights × 房价 计算，收款只改变 amount_paid
    只会被终结（checked_out / cancelled），不会被删除
    """
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("adults >= 1", name="ck_bookings_adults"),
        CheckConstraint("amount_paid <= total_amount", name="ck_bookings_paid"),
    )

    id = Column(Integer, primary_key=True, index=True)
    booking_ref = Column(String(20), unique=True, nullable=False, index=True)  # VPH-YYMMDD-NNNN
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False)
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    total_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    amount_paid = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    adults = Column(Integer, nullable=False, default=1)
    children = Column(Integer, nullable=False, default=0)
    special_requests = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # 链接
    room = relationship("Room", back_populates="bookings")
    guest = relationship("Guest", back_populates="bookings")

    @property
    def nights(self) -> int:
        return max(1, (self.check_out_date - self.check_in_date).days)

    @property
    def balance(self) -> Decimal:
        return Decimal(self.total_amount or 0) - Decimal(self.amount_paid or 0)

    @property
    def is_settled(self) -> bool:
        """已退房且已付清"""
        return self.status == BookingStatus.CHECKED_OUT and self.balance <= 0


# ============== 员工与角色 ==============

class User(Base):
    """登录账号"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=_utcnow)

    # 链接
    profile = relationship("StaffProfile", back_populates="user", uselist=False)
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_names(self) -> list:
        return sorted(r.role.value for r in self.roles)


class StaffProfile(Base):
    """员工档案"""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    full_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    hire_date = Column(Date)
    is_active = Column(Boolean, default=True)
    avatar_url = Column(String(500))
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # 链接
    user = relationship("User", back_populates="profile")


class UserRole(Base):
    """用户-部门角色关联"""
    __tablename__ = "user_roles"
    __table_args__ = (
        UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(SQLEnum(DepartmentRole), nullable=False)
    created_at = Column(DateTime, default=_utcnow)

    # 链接
    user = relationship("User", back_populates="roles")
