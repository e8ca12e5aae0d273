"""
作业队列模块

导出：
- IJobQueue: 队列接口
- InMemoryJobQueue: 内存实现
- JobWorker / WorkerPool: 消费者
"""
from opscore.queue.base import (
    DEFAULT_JOB_OPTIONS,
    BackoffOptions,
    BackoffType,
    IJobQueue,
    Job,
    JobOptions,
    JobStatus,
    QueueStats,
)
from opscore.queue.memory import InMemoryJobQueue
from opscore.queue.worker import JobProcessor, JobWorker, WorkerPool

__all__ = [
    "DEFAULT_JOB_OPTIONS",
    "BackoffOptions",
    "BackoffType",
    "IJobQueue",
    "Job",
    "JobOptions",
    "JobStatus",
    "QueueStats",
    "InMemoryJobQueue",
    "JobProcessor",
    "JobWorker",
    "WorkerPool",
]
