"""
列表视图缓存
房间、预订、客人、员工列表与看板统计按 (视图, 参数) 缓存，
写入成功后由事件处理器整组失效，下一次读取重新查询
"""
from typing import Any, Callable, Dict, Hashable
import logging
import threading

from app.config import settings

logger = logging.getLogger(__name__)

ROOMS = "rooms"
BOOKINGS = "bookings"
GUESTS = "guests"
STAFF = "staff"
REPORTS = "reports"

ALL_VIEWS = (ROOMS, BOOKINGS, GUESTS, STAFF, REPORTS)


class ViewCache:
    """线程安全的两级字典缓存：view -> variant -> value"""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._views: Dict[str, Dict[Hashable, Any]] = {}
        # 每次失效递增；加载期间代数变化则结果已过期，不写入
        self._generations: Dict[str, int] = {}
        self._epoch = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_load(self, view: str, variant: Hashable, loader: Callable[[], Any]) -> Any:
        if not self.enabled:
            return loader()

        with self._lock:
            entries = self._views.get(view)
            if entries is not None and variant in entries:
                self.hits += 1
                return entries[variant]
            generation = (self._epoch, self._generations.get(view, 0))

        value = loader()
        with self._lock:
            self.misses += 1
            if (self._epoch, self._generations.get(view, 0)) == generation:
                self._views.setdefault(view, {})[variant] = value
            else:
                logger.debug(f"View cache load for {view} overlapped an invalidation, not stored")
        return value

    def invalidate(self, *views: str) -> None:
        with self._lock:
            for view in views:
                self._generations[view] = self._generations.get(view, 0) + 1
                if self._views.pop(view, None) is not None:
                    logger.debug(f"View cache invalidated: {view}")

    def is_cached(self, view: str, variant: Hashable = None) -> bool:
        with self._lock:
            entries = self._views.get(view)
            if entries is None:
                return False
            return bool(entries) if variant is None else variant in entries

    def clear(self) -> None:
        with self._lock:
            self._views.clear()
            self._epoch += 1
            self.hits = 0
            self.misses = 0


view_cache = ViewCache(enabled=settings.VIEW_CACHE_ENABLED)
