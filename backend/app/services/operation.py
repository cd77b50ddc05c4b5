"""
有序多步写操作

一次用户操作（入住、退房、预订、保存角色）由若干有序步骤组成：
- atomic=True  所有步骤共享一个事务，结束时提交，任一步失败整体回滚
- atomic=False 每一步单独提交；后面的步骤失败时前面的写入已生效，
               抛出 PartialOperationError 供人工对账，不做补偿；
               同时发布 operation.partial 事件，使缓存视图反映已提交的部分
"""
from typing import Any, Callable, List, Optional, Tuple
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.errors import AppError, PartialOperationError, PersistenceError
from app.models.events import EventType
from app.services.event_bus import Event, event_bus, make_event

logger = logging.getLogger(__name__)


class Operation:
    """
    Example:
        >>> op = Operation(db, "check_out")
        >>> op.step("update_booking", lambda: ...)
        >>> op.step("update_room", lambda: ...)
        >>> op.run()
    """

    def __init__(self, db: Session, name: str, atomic: Optional[bool] = None,
                 event_publisher: Callable[[Event], None] = None):
        self.db = db
        self.name = name
        self.atomic = settings.ATOMIC_OPERATIONS if atomic is None else atomic
        self._publish_event = event_publisher or event_bus.publish
        self._steps: List[Tuple[str, Callable[[], Any]]] = []
        self.completed: List[str] = []

    def step(self, name: str, fn: Callable[[], Any]) -> "Operation":
        self._steps.append((name, fn))
        return self

    def run(self) -> List[Any]:
        """
        按顺序执行所有步骤

        Returns:
            各步骤的返回值

        Raises:
            AppError: 步骤中的业务错误（在任何写入生效之前）
            PersistenceError: 存储写入失败
            PartialOperationError: 非原子模式下，部分步骤已提交后失败
        """
        results = []
        for step_name, fn in self._steps:
            try:
                results.append(fn())
                if self.atomic:
                    self.db.flush()
                else:
                    self.db.commit()
            except Exception as exc:
                self.db.rollback()
                error = self._failure(step_name, exc)
                if error is exc:
                    raise
                raise error from exc
            self.completed.append(step_name)
            logger.debug(f"{self.name}: step {step_name} done")

        if self.atomic:
            try:
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.error(f"{self.name}: commit failed: {exc}")
                raise PersistenceError(f"{self.name} could not be saved", {"operation": self.name}) from exc

        logger.info(f"{self.name} completed ({', '.join(self.completed) or 'no steps'})")
        return results

    def _failure(self, step_name: str, exc: Exception) -> Exception:
        if not self.atomic and self.completed:
            logger.error(
                f"{self.name}: step {step_name} failed after {self.completed} were committed: {exc}"
            )
            error = PartialOperationError(self.name, self.completed, step_name, exc)
            self._publish_event(make_event(EventType.OPERATION_PARTIAL, error.details, "operation"))
            return error

        logger.warning(f"{self.name}: step {step_name} failed, nothing saved: {exc}")
        if isinstance(exc, AppError):
            return exc
        if isinstance(exc, IntegrityError):
            return PersistenceError(
                f"{self.name} conflicts with existing data",
                {"operation": self.name, "step": step_name},
            )
        if isinstance(exc, SQLAlchemyError):
            return PersistenceError(
                f"{self.name} could not be saved",
                {"operation": self.name, "step": step_name},
            )
        return exc
