"""
业务错误类型
服务层抛出，由 app.exception_handlers 统一转换为 JSON 错误响应
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """业务错误基类"""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return error_response(self.code, self.message, self.details)


class ValidationError(AppError):
    """输入校验失败：不会发出任何写操作"""

    status_code = 422
    code = "validation_error"

    def __init__(self, message: str = "Invalid input", fields: Optional[Dict[str, str]] = None):
        self.fields = fields or {}
        super().__init__(message, {"fields": self.fields})

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, {field: message})


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found", {"entity": entity, "id": entity_id})


class TransitionError(AppError):
    """非法状态转换或前置条件不满足"""

    status_code = 409
    code = "invalid_transition"

    def __init__(self, entity: str, current: str, trigger: str, message: Optional[str] = None):
        super().__init__(
            message or f"Cannot {trigger} {entity} in status '{current}'",
            {"entity": entity, "status": current, "trigger": trigger},
        )


class PersistenceError(AppError):
    """写入存储失败，不会自动重试"""

    status_code = 503
    code = "persistence_error"


class RoomConflictError(PersistenceError):
    """房间状态已被其他操作修改（条件更新未命中）"""

    status_code = 409
    code = "room_conflict"


class PartialOperationError(AppError):
    """
    多步操作中途失败：前面的步骤已提交，未做补偿

    details 中列出已完成与失败的步骤，供人工对账
    """

    status_code = 500
    code = "partial_operation"

    def __init__(self, operation: str, completed_steps: List[str], failed_step: str,
                 cause: Optional[BaseException] = None):
        self.operation = operation
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.cause = cause
        super().__init__(
            f"{operation} stopped at step '{failed_step}' after "
            f"{', '.join(self.completed_steps)} had been saved; manual reconciliation required",
            {
                "operation": operation,
                "completed_steps": self.completed_steps,
                "failed_step": failed_step,
                "cause": str(cause) if cause is not None else None,
            },
        )


def error_response(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }
