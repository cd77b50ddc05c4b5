"""
事件总线 - 内存级发布/订阅模式
服务层写入成功后发布事件，订阅者负责刷新缓存等后续处理
"""
from typing import Callable, Dict, List, Any, Optional
from dataclasses import dataclass, field
from datetime import datetime
from collections import deque
import logging
import threading

logger = logging.getLogger(__name__)


@dataclass
class Event:
    """事件基类"""
    event_type: str
    timestamp: datetime
    data: Dict[str, Any]
    source: str  # 触发来源（服务名）
    event_id: str = field(default_factory=lambda: datetime.now().strftime("%Y%m%d%H%M%S%f"))


class EventBus:
    """
    内存级事件总线（线程安全单例）

    使用方式：
    1. 订阅事件：event_bus.subscribe("room.status_changed", handler_func)
    2. 发布事件：event_bus.publish(Event(...))
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._subscribers: Dict[str, List[Callable]] = {}
        self._event_history: deque = deque(maxlen=100)
        self._subscriber_lock = threading.Lock()
        self._initialized = True

    def subscribe(self, event_type: str, handler: Callable[[Event], None]) -> None:
        """订阅事件（同一处理器只登记一次）"""
        event_type = str(getattr(event_type, "value", event_type))
        with self._subscriber_lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if handler not in handlers:
                handlers.append(handler)
                logger.debug(f"Handler {handler.__name__} subscribed to {event_type}")

    def unsubscribe(self, event_type: str, handler: Callable[[Event], None]) -> None:
        """取消订阅"""
        event_type = str(getattr(event_type, "value", event_type))
        with self._subscriber_lock:
            if handler in self._subscribers.get(event_type, []):
                self._subscribers[event_type].remove(handler)

    def publish(self, event: Event) -> None:
        """
        发布事件（同步执行所有处理器）

        写入已经提交，处理器异常只记录日志，不影响其他处理器和调用方
        """
        self._event_history.append(event)

        with self._subscriber_lock:
            handlers = list(self._subscribers.get(event.event_type, []))

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(
                    f"Event handler {handler.__name__} error for {event.event_type}: {e}",
                    exc_info=True
                )

    def get_history(self, event_type: Optional[str] = None, limit: int = 50) -> List[Event]:
        """获取事件历史（最新的在前）"""
        history = list(self._event_history)
        if event_type:
            history = [e for e in history if e.event_type == event_type]
        return list(reversed(history))[:limit]

    def get_subscribers(self) -> Dict[str, List[str]]:
        """事件类型到处理器名称列表的映射"""
        with self._subscriber_lock:
            return {
                et: [h.__name__ for h in handlers]
                for et, handlers in self._subscribers.items()
            }

    def clear_subscribers(self) -> None:
        """清空所有订阅（用于测试）"""
        with self._subscriber_lock:
            self._subscribers.clear()

    def clear_history(self) -> None:
        """清空事件历史"""
        self._event_history.clear()


def make_event(event_type, data: Dict[str, Any], source: str) -> Event:
    return Event(
        event_type=str(getattr(event_type, "value", event_type)),
        timestamp=datetime.now(),
        data=data,
        source=source,
    )


# 全局事件总线实例
event_bus = EventBus()
