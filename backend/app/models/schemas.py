"""
Pydantic 模式定义
用于 API 请求/响应验证；客人与预订输入在这里完成校验，校验失败不会产生任何写操作
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List, Any
from pydantic import BaseModel, Field, EmailStr, field_validator, ConfigDict, ValidationInfo
from app.models.ontology import (
    RoomStatus, RoomType, BookingStatus, GuestType, IdType, DepartmentRole
)

# 人数上限，防止异常输入
MAX_OCCUPANTS = 10

PHONE_PATTERN = r"^[0-9+()\-\s]{3,20}$"


# ============== 客人 Schemas ==============

class GuestInput(BaseModel):
    full_name: str = Field(..., max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    id_type: Optional[IdType] = None
    id_number: Optional[str] = Field(None, max_length=50)
    guest_type: GuestType = GuestType.INDIVIDUAL
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('email', 'phone', 'id_number', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """表单中的空字符串视为未填写"""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator('full_name')
    @classmethod
    def check_full_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class GuestUpdate(BaseModel):
    full_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    id_type: Optional[IdType] = None
    id_number: Optional[str] = Field(None, max_length=50)
    guest_type: Optional[GuestType] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('email', 'phone', mode='before')
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('full_name')
    @classmethod
    def check_full_name(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v.strip() if v is not None else v


class GuestResponse(BaseModel):
    id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    id_type: Optional[IdType] = None
    id_number: Optional[str] = None
    guest_type: GuestType
    address: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ============== 预订 Schemas ==============

class StayRequestBase(BaseModel):
    room_id: int
    guest: GuestInput
    adults: int = Field(default=1, ge=1, le=MAX_OCCUPANTS)
    children: int = Field(default=0, ge=0, le=MAX_OCCUPANTS)
    special_requests: Optional[str] = Field(None, max_length=500)


class ReservationCreate(StayRequestBase):
    check_in_date: date
    check_out_date: date

    @field_validator('check_in_date')
    @classmethod
    def check_in_not_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Check-in date cannot be in the past")
        return v

    @field_validator('check_out_date')
    @classmethod
    def check_out_after_check_in(cls, v: date, info: ValidationInfo) -> date:
        check_in = info.data.get('check_in_date')
        if check_in is not None and v <= check_in:
            raise ValueError("Check-out must be after check-in")
        return v


class WalkInCheckIn(StayRequestBase):
    """无预订直接入住：入住日期为当天"""
    check_out_date: date

    @field_validator('check_out_date')
    @classmethod
    def check_out_not_past(cls, v: date) -> date:
        if v < date.today():
            raise ValueError("Check-out date cannot be in the past")
        return v


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class BookingResponse(BaseModel):
    id: int
    booking_ref: str
    room_id: int
    room_number: str
    guest_id: int
    guest_name: str
    check_in_date: date
    check_out_date: date
    nights: int
    status: BookingStatus
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    adults: int
    children: int
    special_requests: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime


# ============== 房间 Schemas ==============

def _clean_amenities(items: List[str]) -> List[str]:
    """去空白、去重，保持原顺序"""
    seen = []
    for item in (a.strip() for a in items):
        if item and item not in seen:
            seen.append(item)
    return seen


class RoomBase(BaseModel):
    room_number: str = Field(..., min_length=1, max_length=10)
    room_type: RoomType = RoomType.STANDARD
    floor: int = Field(..., ge=0)
    base_rate: Decimal = Field(..., ge=0)
    amenities: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    @field_validator('amenities')
    @classmethod
    def dedupe_amenities(cls, v: List[str]) -> List[str]:
        return _clean_amenities(v)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    room_type: Optional[RoomType] = None
    floor: Optional[int] = Field(None, ge=0)
    base_rate: Optional[Decimal] = Field(None, ge=0)
    amenities: Optional[List[str]] = None
    notes: Optional[str] = None

    @field_validator('amenities')
    @classmethod
    def dedupe_amenities(cls, v: Optional[List[str]]) -> List[str]:
        # null 表示清空设施列表
        return _clean_amenities(v or [])


class RoomStatusUpdate(BaseModel):
    status: RoomStatus


class RoomResponse(BaseModel):
    id: int
    room_number: str
    room_type: RoomType
    floor: int
    base_rate: Decimal
    status: RoomStatus
    amenities: List[str] = Field(default_factory=list)
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator('amenities', mode='before')
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        return v or []


class RoomClickResponse(BaseModel):
    room_id: int
    status: RoomStatus
    action: Optional[str] = None


# ============== 员工与角色 Schemas ==============

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class StaffProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=100)
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    hire_date: Optional[date] = None
    is_active: Optional[bool] = None


class StaffResponse(BaseModel):
    id: int
    user_id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    hire_date: Optional[date] = None
    is_active: bool
    avatar_url: Optional[str] = None
    roles: List[DepartmentRole] = Field(default_factory=list)


class RoleReplace(BaseModel):
    roles: List[DepartmentRole] = Field(default_factory=list)

    @field_validator('roles')
    @classmethod
    def dedupe_roles(cls, v: List[DepartmentRole]) -> List[DepartmentRole]:
        return list(dict.fromkeys(v))


class AccessCheckResponse(BaseModel):
    path: str
    decision: str
    allowed: bool
    redirect: Optional[str] = None


# ============== 报表 Schemas ==============

class DashboardSummary(BaseModel):
    total_rooms: int
    room_status: dict
    occupancy_rate: float
    arrivals_today: int
    departures_today: int
    in_house: int
    outstanding_balance: Decimal
