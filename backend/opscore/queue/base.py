"""
作业队列接口：域无关的持久化工作队列抽象

能力：入队（带重试次数与退避策略）、消费（租约 + 确认）、失败重试、统计。
app 层通过实现 IJobQueue 对接具体存储（数据库表轮询、消息中间件等）。
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional
import uuid


class JobStatus(str, Enum):
    """作业状态"""
    WAITING = "waiting"      # 等待消费
    DELAYED = "delayed"      # 退避等待重试
    ACTIVE = "active"        # 已被 worker 领取
    COMPLETED = "completed"  # 已完成
    FAILED = "failed"        # 重试耗尽，保留供人工排查


class BackoffType(str, Enum):
    """退避策略"""
    FIXED = "fixed"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class BackoffOptions:
    """退避配置

    Attributes:
        type: 退避类型
        delay: 初始延迟（秒）
    """
    type: BackoffType = BackoffType.EXPONENTIAL
    delay: float = 1.0

    def delay_for(self, attempts_made: int) -> float:
        """第 attempts_made 次失败后的等待秒数（attempts_made 从 1 开始）"""
        if attempts_made < 1:
            return 0.0
        if self.type == BackoffType.FIXED:
            return self.delay
        return self.delay * (2 ** (attempts_made - 1))


@dataclass(frozen=True)
class JobOptions:
    """入队选项

    Attributes:
        attempts: 最大尝试次数
        backoff: 退避配置
        remove_on_complete: 完成后是否删除
        remove_on_fail: 重试耗尽后是否删除（默认保留）
        delay: 首次执行前的延迟（秒）
    """
    attempts: int = 3
    backoff: BackoffOptions = field(default_factory=BackoffOptions)
    remove_on_complete: bool = True
    remove_on_fail: bool = False
    delay: float = 0.0


DEFAULT_JOB_OPTIONS = JobOptions()


def _generate_job_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Job:
    """
    队列作业

    Attributes:
        name: 作业类型（如 "send"）
        data: 作业数据（可 JSON 序列化的字典）
        id: 作业ID
        status: 当前状态
        attempts_made: 已尝试次数
        max_attempts: 最大尝试次数
        backoff: 退避配置
        run_at: 最早可执行时间
        lease_expires_at: 租约到期时间（worker 崩溃后重新投递）
        last_error: 最近一次错误
        result: 处理结果
    """
    name: str
    data: Dict[str, Any]
    id: str = field(default_factory=_generate_job_id)
    status: JobStatus = JobStatus.WAITING
    attempts_made: int = 0
    max_attempts: int = 3
    backoff: BackoffOptions = field(default_factory=BackoffOptions)
    remove_on_complete: bool = True
    remove_on_fail: bool = False
    run_at: datetime = field(default_factory=datetime.utcnow)
    lease_expires_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    finished_at: Optional[datetime] = None
    last_error: Optional[str] = None
    result: Any = None

    @property
    def attempts_left(self) -> int:
        return max(self.max_attempts - self.attempts_made, 0)

    def next_run_after_failure(self, now: datetime) -> datetime:
        """失败后下一次执行时间"""
        return now + timedelta(seconds=self.backoff.delay_for(self.attempts_made))


@dataclass
class QueueStats:
    """队列统计"""
    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "waiting": self.waiting,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
            "delayed": self.delayed,
        }


class IJobQueue(ABC):
    """作业队列接口

    语义：至少一次投递。worker 领取作业时获得租约，租约到期未确认的
    作业会被重新投递，因此处理器必须在消费时重新校验前置条件。
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """队列名"""

    @abstractmethod
    def enqueue(self, name: str, data: Dict[str, Any], options: Optional[JobOptions] = None) -> Job:
        """入队作业，返回作业句柄"""

    @abstractmethod
    def reserve(self, lease_seconds: float) -> Optional[Job]:
        """领取一个可执行作业（原子操作），无作业时返回 None

        领取时 attempts_made 加一、状态置为 ACTIVE。
        """

    @abstractmethod
    def complete(self, job: Job, result: Any = None) -> None:
        """确认作业完成"""

    @abstractmethod
    def fail(self, job: Job, error: str) -> Job:
        """记录一次失败：仍有剩余次数则按退避延迟重试，否则置为 FAILED"""

    @abstractmethod
    def get_job(self, job_id: str) -> Optional[Job]:
        """获取作业"""

    @abstractmethod
    def get_stats(self) -> QueueStats:
        """获取各状态作业数量"""

    def retry_failed(self, job_id: str) -> bool:
        """人工重试一个 FAILED 作业（默认不支持）"""
        return False


__all__ = [
    "JobStatus",
    "BackoffType",
    "BackoffOptions",
    "JobOptions",
    "DEFAULT_JOB_OPTIONS",
    "Job",
    "QueueStats",
    "IJobQueue",
]
