"""
应用配置
从环境变量读取配置，支持 .env 文件
"""
from datetime import timedelta
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "FrontDesk"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./frontdesk.db"

    # JWT 配置
    SECRET_KEY: str = "frontdesk-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # 房态重叠策略
    # OVERLAP_INCLUSIVE=True 时首尾相接的预订视为冲突（同日退房/入住不可衔接）
    OVERLAP_INCLUSIVE: bool = True
    # 清洁缓冲时长（小时），在请求区间两侧同时扩展
    TURNOVER_BUFFER_HOURS: float = 0

    model_config = ConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def turnover_buffer(self) -> timedelta:
        return timedelta(hours=self.TURNOVER_BUFFER_HOURS)


# 全局设置实例
settings = Settings()
