"""
作业 worker：从 IJobQueue 拉取作业并交给处理器执行

- 每次尝试都有超时上限（job_timeout）
- 处理器抛出的异常交给队列按退避策略重试；重试耗尽后作业保留为 FAILED
- 未注册的作业名直接判定为永久失败
"""
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Any, Callable, Dict, List, Optional
import logging
import threading

from opscore.queue.base import IJobQueue, Job, JobStatus

logger = logging.getLogger(__name__)

JobProcessor = Callable[[Job], Any]


class JobWorker:
    """
    单个作业 worker

    Args:
        queue: 作业队列
        processors: 作业名 -> 处理函数
        job_timeout: 单次尝试超时（秒）
        lease_seconds: 领取租约时长（秒），应大于 job_timeout
        poll_interval: 队列为空时的轮询间隔（秒）
        name: worker 名称（日志用）
    """

    def __init__(
        self,
        queue: IJobQueue,
        processors: Dict[str, JobProcessor],
        job_timeout: float = 30.0,
        lease_seconds: float = 60.0,
        poll_interval: float = 1.0,
        name: str = "worker",
    ):
        self.queue = queue
        self.processors = dict(processors)
        self.job_timeout = job_timeout
        self.lease_seconds = max(lease_seconds, job_timeout)
        self.poll_interval = poll_interval
        self.name = name
        self._stop = threading.Event()
        self._executor = self._new_executor()

    def _new_executor(self) -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{self.name}-job")

    def process(self, job: Job) -> Job:
        """执行一次尝试并向队列回报结果"""
        processor = self.processors.get(job.name)
        if processor is None:
            logger.error(f"[{self.name}] Unknown job name: {job.name} (job {job.id})")
            # 不可重试：直接耗尽剩余次数
            job.attempts_made = job.max_attempts
            return self.queue.fail(job, f"Unknown job name: {job.name}")

        future = self._executor.submit(processor, job)
        try:
            result = future.result(timeout=self.job_timeout)
        except FutureTimeoutError:
            logger.warning(
                f"[{self.name}] Job {job.id} ({job.name}) timed out after {self.job_timeout}s "
                f"(attempt {job.attempts_made}/{job.max_attempts})"
            )
            # 超时的尝试仍在执行线程中，换一个执行器避免阻塞后续作业
            self._executor.shutdown(wait=False)
            self._executor = self._new_executor()
            return self.queue.fail(job, f"Timed out after {self.job_timeout}s")
        except Exception as e:
            failed = self.queue.fail(job, str(e))
            if failed.status == JobStatus.FAILED:
                logger.error(
                    f"[{self.name}] Job {job.id} ({job.name}) failed permanently "
                    f"after {job.attempts_made} attempts: {e}",
                    exc_info=True,
                )
            else:
                logger.warning(
                    f"[{self.name}] Job {job.id} ({job.name}) failed "
                    f"(attempt {job.attempts_made}/{job.max_attempts}), retrying: {e}"
                )
            return failed

        self.queue.complete(job, result)
        job.status = JobStatus.COMPLETED
        job.result = result
        logger.debug(f"[{self.name}] Job {job.id} ({job.name}) completed")
        return job

    def run_once(self) -> Optional[Job]:
        """领取并执行一个作业；无作业时返回 None"""
        job = self.queue.reserve(self.lease_seconds)
        if job is None:
            return None
        return self.process(job)

    def run_until_empty(self, max_jobs: int = 1000) -> int:
        """循环执行到当前没有可执行作业（测试与脚本用），返回处理数量"""
        count = 0
        while count < max_jobs and self.run_once() is not None:
            count += 1
        return count

    def run_forever(self) -> None:
        logger.info(f"[{self.name}] started on queue {self.queue.name}")
        while not self._stop.is_set():
            try:
                job = self.run_once()
            except Exception as e:
                logger.error(f"[{self.name}] Queue error: {e}", exc_info=True)
                job = None
            if job is None:
                self._stop.wait(self.poll_interval)
        self._executor.shutdown(wait=False)
        logger.info(f"[{self.name}] stopped")

    def stop(self) -> None:
        self._stop.set()

    def reset(self) -> None:
        """清除停止标记并换用新的执行器，使 stop 之后可以再次 run_forever"""
        self._stop.clear()
        self._executor.shutdown(wait=False)
        self._executor = self._new_executor()


class WorkerPool:
    """N 个后台线程 worker 共享同一队列"""

    def __init__(
        self,
        queue: IJobQueue,
        processors: Dict[str, JobProcessor],
        concurrency: int = 2,
        job_timeout: float = 30.0,
        lease_seconds: float = 60.0,
        poll_interval: float = 1.0,
    ):
        self.workers: List[JobWorker] = [
            JobWorker(
                queue,
                processors,
                job_timeout=job_timeout,
                lease_seconds=lease_seconds,
                poll_interval=poll_interval,
                name=f"{queue.name}-worker-{i + 1}",
            )
            for i in range(concurrency)
        ]
        self._threads: List[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self.running:
            return
        for w in self.workers:
            w.reset()
        self._threads = [
            threading.Thread(target=w.run_forever, name=w.name, daemon=True)
            for w in self.workers
        ]
        for t in self._threads:
            t.start()
        logger.info(f"WorkerPool started with {len(self.workers)} workers")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        for w in self.workers:
            w.stop()
        for t in self._threads:
            t.join(timeout)
        self._threads = []
        logger.info("WorkerPool stopped")


__all__ = ["JobProcessor", "JobWorker", "WorkerPool"]
