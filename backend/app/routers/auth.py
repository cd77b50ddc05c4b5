"""
认证路由
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.schemas import LoginRequest, Token, AccessCheckResponse
from app.services.staff_service import StaffService
from app.security.auth import create_access_token, get_auth_session, require_login
from core.security.access import evaluate_path
from core.security.context import AuthSession

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/login", response_model=Token)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """用户登录"""
    service = StaffService(db)
    user = service.authenticate(data.email, data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    identity = service.load_identity(user.id)
    session = AuthSession.for_identity(identity)
    return Token(
        access_token=create_access_token(user.id, sorted(identity.roles)),
        user=session.to_dict(),
    )


@router.get("/me")
def get_current_user_info(session: AuthSession = Depends(require_login)):
    """获取当前用户信息与角色"""
    return session.to_dict()


@router.post("/logout")
def logout(session: AuthSession = Depends(get_auth_session)):
    """登出（token 由前端丢弃）"""
    session.sign_out()
    return {"message": "Signed out", "session": session.to_dict()}


@router.get("/access", response_model=AccessCheckResponse)
def check_access(
    path: str = Query(..., min_length=1),
    session: AuthSession = Depends(get_auth_session)
):
    """前端路由守卫：判定当前会话能否进入 path"""
    decision = evaluate_path(session, path)
    return AccessCheckResponse(
        path=path,
        decision=decision.outcome.value,
        allowed=decision.allowed,
        redirect=decision.redirect,
    )
