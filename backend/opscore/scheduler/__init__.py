"""
调度器接口：域无关的定时任务抽象
"""
from opscore.scheduler.base import ISchedulerBackend

__all__ = ["ISchedulerBackend"]
