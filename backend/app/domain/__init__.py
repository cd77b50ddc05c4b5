"""
app/domain/__init__.py

酒店领域层 - 房间/预订生命周期与预订计算规则
"""
from app.domain.lifecycle import (
    RoomTrigger,
    BookingTrigger,
    SERVICING_TRIGGERS,
    ROOM_LIFECYCLE,
    BOOKING_LIFECYCLE,
    room_sources,
    next_room_status,
    next_booking_status,
    servicing_trigger,
)
from app.domain.booking_rules import (
    RESERVABLE_ROOM_STATUSES,
    WALK_IN_ROOM_STATUSES,
    count_nights,
    compute_total,
    generate_booking_ref,
    action_for_room_click,
)

__all__ = [
    "RoomTrigger",
    "BookingTrigger",
    "SERVICING_TRIGGERS",
    "ROOM_LIFECYCLE",
    "BOOKING_LIFECYCLE",
    "room_sources",
    "next_room_status",
    "next_booking_status",
    "servicing_trigger",
    "RESERVABLE_ROOM_STATUSES",
    "WALK_IN_ROOM_STATUSES",
    "count_nights",
    "compute_total",
    "generate_booking_ref",
    "action_for_room_click",
]
