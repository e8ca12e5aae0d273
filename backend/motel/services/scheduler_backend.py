"""
APScheduler 调度后端：实现 opscore 层 ISchedulerBackend 接口
"""
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from opscore.scheduler import ISchedulerBackend

logger = logging.getLogger(__name__)


class APSchedulerBackend(ISchedulerBackend):
    """基于 APScheduler 的调度后端"""

    def __init__(self, scheduler: Optional[BackgroundScheduler] = None):
        self._scheduler = scheduler or BackgroundScheduler()

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        """启动调度器"""
        if not self._scheduler.running:
            self._scheduler.start()
            logger.info("APScheduler started")

    def shutdown(self) -> None:
        """关闭调度器"""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("APScheduler shut down")

    def add_cron_job(
        self,
        job_id: str,
        func: Callable,
        cron_expression: str,
        args: Optional[Sequence[Any]] = None,
        kwargs: Optional[Dict[str, Any]] = None,
    ) -> None:
        """添加 cron 任务"""
        self._scheduler.add_job(
            func,
            trigger=CronTrigger.from_crontab(cron_expression),
            id=job_id,
            name=job_id,
            args=list(args or []),
            kwargs=dict(kwargs or {}),
            replace_existing=True,
        )
        logger.info(f"Job added: {job_id} ({cron_expression})")

    def remove_job(self, job_id: str) -> None:
        """移除任务"""
        try:
            self._scheduler.remove_job(job_id)
            logger.info(f"Job removed: {job_id}")
        except JobLookupError:
            logger.warning(f"Job not found for removal: {job_id}")

    def pause_job(self, job_id: str) -> None:
        """暂停任务"""
        self._scheduler.pause_job(job_id)
        logger.info(f"Job paused: {job_id}")

    def resume_job(self, job_id: str) -> None:
        """恢复任务"""
        self._scheduler.resume_job(job_id)
        logger.info(f"Job resumed: {job_id}")

    def get_jobs(self) -> List[Dict]:
        """获取所有任务"""
        return [self._job_to_dict(j) for j in self._scheduler.get_jobs()]

    def get_job(self, job_id: str) -> Optional[Dict]:
        """获取单个任务"""
        job = self._scheduler.get_job(job_id)
        if job is None:
            return None
        return self._job_to_dict(job)

    def trigger_job(self, job_id: str) -> None:
        """立即触发一次任务"""
        job = self._scheduler.get_job(job_id)
        if job is None:
            raise ValueError(f"Job not found: {job_id}")
        job.func(*job.args, **job.kwargs)

    @staticmethod
    def _job_to_dict(job) -> Dict:
        # 调度器启动前添加的任务还没有 next_run_time
        if not hasattr(job, "next_run_time"):
            next_run, status = None, "pending"
        elif job.next_run_time is None:
            next_run, status = None, "paused"
        else:
            next_run, status = job.next_run_time.isoformat(), "active"
        return {
            "id": job.id,
            "name": job.name or job.id,
            "trigger": str(job.trigger),
            "next_run_time": next_run,
            "status": status,
        }
