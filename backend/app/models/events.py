"""
领域事件定义 (Domain Events)
每次成功写入后由服务层发布，用于刷新缓存的列表视图
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Optional, Dict, Any, List


class EventType(str, Enum):
    """事件类型枚举"""
    # 房间相关
    ROOM_CREATED = "room.created"
    ROOM_UPDATED = "room.updated"
    ROOM_STATUS_CHANGED = "room.status_changed"

    # 预订相关
    RESERVATION_CREATED = "reservation.created"
    RESERVATION_CONFIRMED = "reservation.confirmed"
    RESERVATION_CANCELLED = "reservation.cancelled"
    PAYMENT_RECEIVED = "payment.received"

    # 入住/退房
    GUEST_CHECKED_IN = "guest.checked_in"
    GUEST_CHECKED_OUT = "guest.checked_out"
    GUEST_UPDATED = "guest.updated"

    # 员工相关
    STAFF_UPDATED = "staff.updated"
    STAFF_ROLES_CHANGED = "staff.roles_changed"

    # 多步操作中途失败（部分步骤已提交）
    OPERATION_PARTIAL = "operation.partial"


@dataclass
class BaseEventData:
    """事件数据基类"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
        return result


@dataclass
class RoomStatusChangedData(BaseEventData):
    """房间状态变更事件数据"""
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    trigger: str = ""
    changed_by: Optional[int] = None


@dataclass
class BookingEventData(BaseEventData):
    """预订生命周期事件数据"""
    booking_id: int = 0
    booking_ref: str = ""
    room_id: int = 0
    guest_id: int = 0
    status: str = ""
    operator_id: Optional[int] = None


@dataclass
class StaffRolesChangedData(BaseEventData):
    """员工角色变更事件数据"""
    user_id: int = 0
    roles: List[str] = field(default_factory=list)
    changed_by: Optional[int] = None
