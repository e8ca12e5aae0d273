"""
应用配置
从环境变量（及 .env 文件）读取配置
"""
from typing import List, Literal

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Motel Ops"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./motel.db"

    # 事件总线
    EVENT_BUS_MAX_WORKERS: int = 4
    EVENT_BUS_SYNC: bool = False  # true 时处理器在发布线程内执行（测试/脚本）
    EVENT_HISTORY_SIZE: int = 100

    # 通知队列
    NOTIFICATION_QUEUE_BACKEND: Literal["sql", "memory"] = "sql"
    NOTIFICATION_ATTEMPTS: int = 3
    NOTIFICATION_BACKOFF_DELAY: float = 1.0  # 秒，指数退避初始值
    NOTIFICATION_WORKERS: int = 2
    QUEUE_POLL_INTERVAL: float = 1.0
    JOB_TIMEOUT_SECONDS: float = 30.0
    JOB_LEASE_SECONDS: float = 60.0

    # 定时清理
    CLEANUP_CRON: str = "0 3 * * *"
    CLEANUP_DAYS_OLD: int = 30
    SCHEDULER_ENABLED: bool = True

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
