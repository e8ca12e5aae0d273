"""
日志配置
"""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """配置根日志（重复调用只调整级别）"""
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    # APScheduler 每次执行都会打 INFO
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
