"""
调度器后端接口：域无关的定时任务抽象

app 层通过实现 ISchedulerBackend 来对接具体调度框架（APScheduler 等），
用于周期性入队（如每日清理作业）。
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence


class ISchedulerBackend(ABC):
    """调度后端接口"""

    @abstractmethod
    def start(self) -> None:
        """启动调度器"""

    @abstractmethod
    def shutdown(self) -> None:
        """关闭调度器"""

    @abstractmethod
    def add_cron_job(
        self,
        job_id: str,
        func: Callable,
        cron_expression: str,
        args: Optional[Sequence[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        """添加 cron 任务（同 ID 已存在时替换）

        Args:
            job_id: 任务唯一标识
            func: 要执行的函数
            cron_expression: 五段式 crontab 表达式，如 "0 3 * * *"
            args: 位置参数
            kwargs: 关键字参数
        """

    @abstractmethod
    def remove_job(self, job_id: str) -> None:
        """移除任务"""

    @abstractmethod
    def pause_job(self, job_id: str) -> None:
        """暂停任务"""

    @abstractmethod
    def resume_job(self, job_id: str) -> None:
        """恢复任务"""

    @abstractmethod
    def get_jobs(self) -> List[Dict]:
        """获取所有任务

        Returns:
            任务列表，每项至少包含 id, name, trigger, next_run_time, status
        """

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Dict]:
        """获取单个任务信息"""

    @abstractmethod
    def trigger_job(self, job_id: str) -> None:
        """立即触发一次任务执行"""
