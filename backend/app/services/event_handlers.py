"""
事件处理器
订阅领域事件，使受影响的缓存视图失效
"""
import logging
from typing import Dict, Tuple

from app.models.events import EventType
from app.services.event_bus import event_bus, Event
from app.services import view_cache as views

logger = logging.getLogger(__name__)

# 事件 -> 需要失效的视图
INVALIDATIONS: Dict[EventType, Tuple[str, ...]] = {
    EventType.ROOM_CREATED: (views.ROOMS, views.REPORTS),
    EventType.ROOM_UPDATED: (views.ROOMS,),
    EventType.ROOM_STATUS_CHANGED: (views.ROOMS, views.REPORTS),
    EventType.RESERVATION_CREATED: (views.ROOMS, views.BOOKINGS, views.GUESTS, views.REPORTS),
    EventType.RESERVATION_CONFIRMED: (views.BOOKINGS, views.REPORTS),
    EventType.RESERVATION_CANCELLED: (views.ROOMS, views.BOOKINGS, views.REPORTS),
    EventType.PAYMENT_RECEIVED: (views.BOOKINGS, views.REPORTS),
    EventType.GUEST_CHECKED_IN: (views.ROOMS, views.BOOKINGS, views.GUESTS, views.REPORTS),
    EventType.GUEST_CHECKED_OUT: (views.ROOMS, views.BOOKINGS, views.REPORTS),
    EventType.GUEST_UPDATED: (views.GUESTS, views.BOOKINGS),
    EventType.STAFF_UPDATED: (views.STAFF,),
    EventType.STAFF_ROLES_CHANGED: (views.STAFF,),
    EventType.OPERATION_PARTIAL: views.ALL_VIEWS,
}


def invalidate_views(event: Event) -> None:
    """按事件类型失效缓存视图"""
    affected = INVALIDATIONS.get(EventType(event.event_type), ())
    views.view_cache.invalidate(*affected)


def register_event_handlers() -> None:
    """注册所有事件处理器（应用启动时调用）"""
    for event_type in INVALIDATIONS:
        event_bus.subscribe(event_type.value, invalidate_views)
    logger.info(f"Registered cache invalidation for {len(INVALIDATIONS)} event types")
