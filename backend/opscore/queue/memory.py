"""
内存作业队列：IJobQueue 的线程安全实现

用于测试和单进程部署；进程重启后作业丢失。
"""
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

from opscore.queue.base import (
    DEFAULT_JOB_OPTIONS,
    IJobQueue,
    Job,
    JobOptions,
    JobStatus,
    QueueStats,
)

logger = logging.getLogger(__name__)


class InMemoryJobQueue(IJobQueue):
    """内存作业队列

    Args:
        name: 队列名
        clock: 可注入的时间函数（测试用）
    """

    def __init__(self, name: str = "default", clock: Optional[Callable[[], datetime]] = None):
        self._name = name
        self._clock = clock or datetime.utcnow
        self._jobs: Dict[str, Job] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    def enqueue(self, name: str, data: Dict[str, Any], options: Optional[JobOptions] = None) -> Job:
        opts = options or DEFAULT_JOB_OPTIONS
        now = self._clock()
        job = Job(
            name=name,
            data=dict(data),
            status=JobStatus.DELAYED if opts.delay > 0 else JobStatus.WAITING,
            max_attempts=opts.attempts,
            backoff=opts.backoff,
            remove_on_complete=opts.remove_on_complete,
            remove_on_fail=opts.remove_on_fail,
            run_at=now + timedelta(seconds=opts.delay),
            created_at=now,
        )
        with self._lock:
            self._jobs[job.id] = job
        logger.debug(f"Job {job.id} ({name}) enqueued on {self._name}")
        return job

    def _is_ready(self, job: Job, now: datetime) -> bool:
        if job.status in (JobStatus.WAITING, JobStatus.DELAYED):
            return job.run_at <= now
        if job.status == JobStatus.ACTIVE:
            # 租约过期：worker 可能已崩溃，重新投递
            return job.lease_expires_at is not None and job.lease_expires_at <= now
        return False

    def _fail_exhausted_leases(self, now: datetime) -> None:
        """租约过期且次数已用尽的作业直接判定为 FAILED（调用方持锁）"""
        for job in list(self._jobs.values()):
            if job.status != JobStatus.ACTIVE or job.attempts_made < job.max_attempts:
                continue
            if job.lease_expires_at is None or job.lease_expires_at > now:
                continue
            logger.error(f"Job {job.id} ({job.name}) lease expired after {job.attempts_made} attempts")
            job.status = JobStatus.FAILED
            job.last_error = f"Lease expired after {job.attempts_made} attempts"
            job.finished_at = now
            job.lease_expires_at = None
            if job.remove_on_fail:
                del self._jobs[job.id]

    def reserve(self, lease_seconds: float) -> Optional[Job]:
        now = self._clock()
        with self._lock:
            self._fail_exhausted_leases(now)
            ready = [j for j in self._jobs.values() if self._is_ready(j, now)]
            if not ready:
                return None
            job = min(ready, key=lambda j: (j.run_at, j.created_at))
            if job.status == JobStatus.ACTIVE:
                logger.warning(f"Job {job.id} lease expired, redelivering")
            job.status = JobStatus.ACTIVE
            job.attempts_made += 1
            job.lease_expires_at = now + timedelta(seconds=lease_seconds)
            return job

    def complete(self, job: Job, result: Any = None) -> None:
        now = self._clock()
        with self._lock:
            stored = self._jobs.get(job.id)
            if stored is None:
                return
            stored.status = JobStatus.COMPLETED
            stored.result = result
            stored.finished_at = now
            stored.lease_expires_at = None
            if stored.remove_on_complete:
                del self._jobs[job.id]

    def fail(self, job: Job, error: str) -> Job:
        now = self._clock()
        with self._lock:
            stored = self._jobs.get(job.id, job)
            stored.last_error = error
            stored.lease_expires_at = None
            if stored.attempts_made < stored.max_attempts:
                stored.status = JobStatus.DELAYED
                stored.run_at = stored.next_run_after_failure(now)
            else:
                stored.status = JobStatus.FAILED
                stored.finished_at = now
                if stored.remove_on_fail:
                    self._jobs.pop(stored.id, None)
            return stored

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._jobs.get(job_id)

    def list_jobs(self, status: Optional[JobStatus] = None) -> List[Job]:
        with self._lock:
            jobs = list(self._jobs.values())
        if status is not None:
            jobs = [j for j in jobs if j.status == status]
        return jobs

    def get_stats(self) -> QueueStats:
        with self._lock:
            stats = QueueStats()
            for job in self._jobs.values():
                if job.status == JobStatus.WAITING:
                    stats.waiting += 1
                elif job.status == JobStatus.DELAYED:
                    stats.delayed += 1
                elif job.status == JobStatus.ACTIVE:
                    stats.active += 1
                elif job.status == JobStatus.COMPLETED:
                    stats.completed += 1
                elif job.status == JobStatus.FAILED:
                    stats.failed += 1
            return stats

    def retry_failed(self, job_id: str) -> bool:
        now = self._clock()
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None or job.status != JobStatus.FAILED:
                return False
            job.status = JobStatus.WAITING
            job.attempts_made = 0
            job.run_at = now
            job.finished_at = None
            return True

    def clear(self) -> None:
        """清空队列（用于测试）"""
        with self._lock:
            self._jobs.clear()


__all__ = ["InMemoryJobQueue"]
