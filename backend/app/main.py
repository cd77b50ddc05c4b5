"""
VPH 酒店运营后台主应用入口
房间/预订生命周期 + 部门角色访问控制
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import init_db
from app.exception_handlers import register_exception_handlers
from app.logging_config import configure_logging
from app.routers import auth, rooms, guests, bookings, staff, reports

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    configure_logging()

    # 初始化数据库
    init_db()

    # 注册事件处理器（写入后刷新缓存视图）
    from app.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} started")
    yield
    logger.info(f"{settings.APP_NAME} stopped")


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="Room/booking lifecycle and role-gated access for the VPH hotel dashboard",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 注册路由
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(guests.router)
app.include_router(bookings.router)
app.include_router(staff.router)
app.include_router(reports.router)


@app.get("/")
def root():
    return {"name": settings.APP_NAME, "version": "1.0.0"}


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
