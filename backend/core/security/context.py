"""
core/security/context.py

认证会话上下文 - 显式传递的身份对象，替代全局可变状态

生命周期：
    LOADING --load()--> AUTHENTICATED | ANONYMOUS --sign_out()--> ANONYMOUS

加载身份或角色失败时视为未认证（默认拒绝）。
"""
from typing import Any, Callable, Dict, FrozenSet, Iterable, Optional
from dataclasses import dataclass, field
from enum import Enum
import logging

logger = logging.getLogger(__name__)

MANAGER_ROLE = "manager"


def role_names(roles: Iterable[Any]) -> FrozenSet[str]:
    """角色集合统一为字符串值（接受枚举或字符串）"""
    return frozenset(str(getattr(r, "value", r)) for r in roles)


class SessionState(str, Enum):
    """会话状态"""
    LOADING = "loading"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Identity:
    """
    已认证的身份

    Attributes:
        user_id: 用户ID
        email: 登录邮箱
        roles: 部门角色集合
        full_name: 员工姓名
    """

    user_id: int
    email: str
    roles: FrozenSet[str] = field(default_factory=frozenset)
    full_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "roles", role_names(self.roles))


class AuthSession:
    """
    认证会话

    Example:
        >>> session = AuthSession()
        >>> session.is_loading
        True
        >>> session.load(lambda: Identity(1, "a@vph.test", frozenset({"bar"})))
        >>> session.has_any_role({"bar"})
        True
    """

    def __init__(self):
        self._state = SessionState.LOADING
        self._identity: Optional[Identity] = None

    @classmethod
    def anonymous(cls) -> "AuthSession":
        session = cls()
        session._state = SessionState.ANONYMOUS
        return session

    @classmethod
    def for_identity(cls, identity: Identity) -> "AuthSession":
        session = cls()
        session._state = SessionState.AUTHENTICATED
        session._identity = identity
        return session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def is_loading(self) -> bool:
        return self._state == SessionState.LOADING

    @property
    def is_authenticated(self) -> bool:
        return self._state == SessionState.AUTHENTICATED and self._identity is not None

    @property
    def roles(self) -> FrozenSet[str]:
        if not self.is_authenticated:
            return frozenset()
        return self._identity.roles

    @property
    def is_manager(self) -> bool:
        return MANAGER_ROLE in self.roles

    def has_any_role(self, roles: Iterable[str]) -> bool:
        """检查是否拥有任一角色"""
        return bool(self.roles & role_names(roles))

    def load(self, loader: Callable[[], Optional[Identity]]) -> "AuthSession":
        """
        加载身份（应用启动或请求开始时调用）

        Args:
            loader: 返回 Identity，未登录时返回 None
        """
        self._state = SessionState.LOADING
        try:
            identity = loader()
        except Exception as e:
            logger.warning(f"Failed to load identity, treating session as signed out: {e}")
            identity = None

        self._identity = identity
        self._state = SessionState.AUTHENTICATED if identity is not None else SessionState.ANONYMOUS
        return self

    def sign_out(self) -> None:
        """登出：清除身份与角色"""
        if self._identity is not None:
            logger.info(f"User {self._identity.user_id} signed out")
        self._identity = None
        self._state = SessionState.ANONYMOUS

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "state": self._state.value,
            "user_id": self._identity.user_id if self._identity else None,
            "email": self._identity.email if self._identity else None,
            "full_name": self._identity.full_name if self._identity else None,
            "roles": sorted(self.roles),
        }
