"""
应用配置
从环境变量 / .env 读取配置
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "VPH Hotel Operations"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./vph.db"

    # JWT 配置
    SECRET_KEY: str = "vph-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # 多步操作：True 时所有步骤共享一个事务，False 时每步独立提交
    ATOMIC_OPERATIONS: bool = True

    # 预订号冲突时的最大重试次数
    BOOKING_REF_MAX_ATTEMPTS: int = 5

    # 列表视图缓存
    VIEW_CACHE_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
