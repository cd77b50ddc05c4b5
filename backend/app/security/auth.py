"""
认证与授权模块
JWT Bearer 认证；每个请求从数据库加载身份与部门角色，构造 AuthSession，
再交给 core.security.access 判定能否访问受保护区域
"""
import bcrypt
import logging
from datetime import datetime, timedelta, UTC
from typing import Iterable, List, Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt
from sqlalchemy.orm import Session
from app.config import settings
from app.database import get_db
from core.security.access import AccessDecision, AccessOutcome, evaluate_access, evaluate_path
from core.security.context import AuthSession, Identity

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    """密码哈希"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_access_token(user_id: int, roles: Optional[List[str]] = None,
                        expires_minutes: Optional[int] = None) -> str:
    """创建 JWT token（roles 仅供前端展示，鉴权时以数据库中的角色为准）"""
    expire = datetime.now(UTC) + timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    to_encode = {
        "sub": str(user_id),
        "roles": list(roles or []),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _identity_loader(token: Optional[str], db: Session):
    def load() -> Optional[Identity]:
        if not token:
            return None
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        from app.services.staff_service import StaffService
        return StaffService(db).load_identity(int(payload["sub"]))
    return load


async def get_auth_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> AuthSession:
    """当前请求的认证会话；token 无效、账号停用、加载角色失败都视为未登录"""
    token = credentials.credentials if credentials else None
    return AuthSession().load(_identity_loader(token, db))


def raise_for_decision(decision: AccessDecision) -> None:
    """把拒绝结果转换为 401（去登录）或 403（无权限）"""
    if decision.allowed:
        return
    if decision.outcome == AccessOutcome.UNAUTHORIZED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "code": "unauthorized",
                "message": "You do not have access to this area",
                "redirect": decision.redirect,
            },
        )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "code": "not_authenticated",
            "message": "Authentication required",
            "redirect": decision.redirect,
        },
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_area(area: str):
    """按前端区域（如 /reception、/staff）的角色要求进行校验"""
    async def area_checker(session: AuthSession = Depends(get_auth_session)) -> AuthSession:
        raise_for_decision(evaluate_path(session, area))
        return session
    return area_checker


def require_roles(*roles: str):
    """要求拥有任一角色（manager 总是通过；不传角色表示只要求登录）"""
    allowed: Iterable[str] = tuple(getattr(r, "value", r) for r in roles)

    async def role_checker(request: Request, session: AuthSession = Depends(get_auth_session)) -> AuthSession:
        raise_for_decision(evaluate_access(session, allowed, request.url.path))
        return session
    return role_checker


# 便捷的角色检查器
require_login = require_roles()
require_manager = require_area("/staff")
require_reception = require_area("/reception")
require_accounts = require_area("/accounts")


def current_user_id(session: AuthSession) -> Optional[int]:
    return session.identity.user_id if session.identity else None
