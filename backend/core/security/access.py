"""
core/security/access.py

访问控制判定 - 根据会话的角色集合决定能否进入受保护区域

判定顺序：
    1. 会话仍在加载          -> PENDING（显示加载状态，不提前放行或拒绝）
    2. 未认证                -> LOGIN（保留原始请求路径）
    3. 持有 manager 角色     -> ALLOW
    4. 区域没有角色限制      -> ALLOW
    5. 角色集合与区域有交集  -> ALLOW
    6. 其余                  -> UNAUTHORIZED
"""
from typing import Dict, FrozenSet, Iterable, Optional
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote

from core.security.context import AuthSession, MANAGER_ROLE, role_names

LOGIN_PATH = "/login"
UNAUTHORIZED_PATH = "/unauthorized"

# 不需要登录即可访问的页面
PUBLIC_PATHS: FrozenSet[str] = frozenset({LOGIN_PATH, UNAUTHORIZED_PATH})

# 受保护区域 -> 允许的角色（空集合表示任何已登录用户）
PROTECTED_AREAS: Dict[str, FrozenSet[str]] = {
    "/": frozenset(),
    "/reports": frozenset(),
    "/staff": frozenset({"manager"}),
    "/reception": frozenset({"reception"}),
    "/restaurant": frozenset({"restaurant"}),
    "/bar": frozenset({"bar"}),
    "/inventory": frozenset({"inventory"}),
    "/corporate": frozenset({"accounts"}),
    "/accounts": frozenset({"accounts"}),
}


class AccessOutcome(str, Enum):
    ALLOW = "allow"
    PENDING = "pending"
    LOGIN = "login"
    UNAUTHORIZED = "unauthorized"


@dataclass(frozen=True)
class AccessDecision:
    """访问判定结果；redirect 为需要跳转的位置"""

    outcome: AccessOutcome
    redirect: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == AccessOutcome.ALLOW


def _normalize(path: str) -> str:
    path = "/" + (path or "").split("?", 1)[0].strip("/")
    return path


def login_redirect(path: str) -> str:
    """登录页地址，附带登录后要返回的位置"""
    return f"{LOGIN_PATH}?next={quote(path or '/', safe='/')}"


def allowed_roles_for(path: str) -> FrozenSet[str]:
    """按最长前缀匹配受保护区域；未登记的路径不限制角色"""
    path = _normalize(path)
    best = None
    for area in PROTECTED_AREAS:
        if area == "/" or path == area or path.startswith(area + "/"):
            if best is None or len(area) > len(best):
                best = area
    return PROTECTED_AREAS.get(best, frozenset())


def evaluate_access(session: AuthSession, allowed_roles: Iterable[str] = (),
                    path: str = "/") -> AccessDecision:
    """
    判定会话能否访问声明了 allowed_roles 的区域

    Args:
        session: 认证会话
        allowed_roles: 区域允许的角色，空表示无角色限制
        path: 请求的位置，用于登录后跳回

    Returns:
        AccessDecision
    """
    if session.is_loading:
        return AccessDecision(AccessOutcome.PENDING)

    if not session.is_authenticated:
        return AccessDecision(AccessOutcome.LOGIN, login_redirect(path))

    if MANAGER_ROLE in session.roles:
        return AccessDecision(AccessOutcome.ALLOW)

    required = role_names(allowed_roles)
    if not required:
        return AccessDecision(AccessOutcome.ALLOW)

    if session.roles & required:
        return AccessDecision(AccessOutcome.ALLOW)

    return AccessDecision(AccessOutcome.UNAUTHORIZED, UNAUTHORIZED_PATH)


def evaluate_path(session: AuthSession, path: str) -> AccessDecision:
    """按路径判定（公开页面总是放行）"""
    if _normalize(path) in PUBLIC_PATHS:
        return AccessDecision(AccessOutcome.ALLOW)
    return evaluate_access(session, allowed_roles_for(path), path)
