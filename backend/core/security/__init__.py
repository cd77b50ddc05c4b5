"""
core/security - 安全模块

- context: 认证会话上下文（加载 / 已认证 / 未认证）
- access: 受保护区域的访问判定

使用方式:
    >>> from core.security import AuthSession, AccessDecision, evaluate_access
    >>> session = AuthSession()
    >>> session.load(loader)
    >>> evaluate_access(session, {"reception"}, "/reception").allowed
"""
from core.security.context import AuthSession, SessionState, Identity
from core.security.access import (
    AccessDecision,
    AccessOutcome,
    MANAGER_ROLE,
    PROTECTED_AREAS,
    allowed_roles_for,
    evaluate_access,
    evaluate_path,
)

__all__ = [
    "AuthSession",
    "SessionState",
    "Identity",
    "AccessDecision",
    "AccessOutcome",
    "MANAGER_ROLE",
    "PROTECTED_AREAS",
    "allowed_roles_for",
    "evaluate_access",
    "evaluate_path",
]
