"""
SQL 作业队列：基于 queue_jobs 表轮询的 IJobQueue 实现

多个 worker（线程或进程）共享同一张表：
- 领取：先查候选行，再以 (id, status, attempts_made) 为条件 UPDATE，
  受影响行数为 1 才算抢到，不依赖行锁
- 租约：ACTIVE 行的 lease_expires_at 过期后视为 worker 崩溃，可被重新领取；
  次数已用尽的则标记为 FAILED
"""
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Iterator, Optional
import logging

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

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
from motel.models.ontology import QueueJob

logger = logging.getLogger(__name__)

# 并发抢占失败时的重试次数
_CLAIM_ATTEMPTS = 5


def _to_job(row: QueueJob) -> Job:
    return Job(
        id=row.id,
        name=row.name,
        data=dict(row.data or {}),
        status=JobStatus(row.status),
        attempts_made=row.attempts_made,
        max_attempts=row.max_attempts,
        backoff=BackoffOptions(type=BackoffType(row.backoff_type), delay=row.backoff_delay),
        remove_on_complete=bool(row.remove_on_complete),
        remove_on_fail=bool(row.remove_on_fail),
        run_at=row.run_at,
        lease_expires_at=row.lease_expires_at,
        created_at=row.created_at,
        finished_at=row.finished_at,
        last_error=row.last_error,
        result=row.result,
    )


class SqlJobQueue(IJobQueue):
    """SQL 表作业队列

    Args:
        session_factory: 会话工厂
        name: 队列名（同一张表可承载多个队列）
        clock: 可注入的时间函数（测试用）
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        name: str = "notifications",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._session_factory = session_factory
        self._name = name
        self._clock = clock or datetime.utcnow

    @property
    def name(self) -> str:
        return self._name

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

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
        with self._session() as db:
            db.add(QueueJob(
                id=job.id,
                queue=self._name,
                name=job.name,
                data=job.data,
                status=job.status.value,
                attempts_made=0,
                max_attempts=job.max_attempts,
                backoff_type=job.backoff.type.value,
                backoff_delay=job.backoff.delay,
                remove_on_complete=job.remove_on_complete,
                remove_on_fail=job.remove_on_fail,
                run_at=job.run_at,
                created_at=job.created_at,
            ))
        logger.debug(f"Job {job.id} ({name}) enqueued on {self._name}")
        return job

    def _ready_filter(self, now: datetime):
        return and_(
            QueueJob.queue == self._name,
            or_(
                and_(
                    QueueJob.status.in_([JobStatus.WAITING.value, JobStatus.DELAYED.value]),
                    QueueJob.run_at <= now,
                ),
                and_(
                    QueueJob.status == JobStatus.ACTIVE.value,
                    QueueJob.lease_expires_at <= now,
                    QueueJob.attempts_made < QueueJob.max_attempts,
                ),
            ),
        )

    def _fail_exhausted_leases(self, db: Session, now: datetime) -> None:
        """租约过期且次数已用尽的 ACTIVE 行以条件 UPDATE 标记为 FAILED"""
        expired = (
            db.query(QueueJob)
            .filter(
                QueueJob.queue == self._name,
                QueueJob.status == JobStatus.ACTIVE.value,
                QueueJob.lease_expires_at <= now,
                QueueJob.attempts_made >= QueueJob.max_attempts,
            )
            .all()
        )
        for row in expired:
            updated = (
                db.query(QueueJob)
                .filter(
                    QueueJob.id == row.id,
                    QueueJob.status == JobStatus.ACTIVE.value,
                    QueueJob.attempts_made == row.attempts_made,
                )
                .update(
                    {
                        QueueJob.status: JobStatus.FAILED.value,
                        QueueJob.last_error: f"Lease expired after {row.attempts_made} attempts",
                        QueueJob.finished_at: now,
                        QueueJob.lease_expires_at: None,
                    },
                    synchronize_session=False,
                )
            )
            if not updated:
                continue
            logger.error(f"Job {row.id} ({row.name}) lease expired after {row.attempts_made} attempts")
            if row.remove_on_fail:
                db.query(QueueJob).filter(QueueJob.id == row.id).delete(synchronize_session=False)

    def reserve(self, lease_seconds: float) -> Optional[Job]:
        with self._session() as db:
            self._fail_exhausted_leases(db, self._clock())
        for _ in range(_CLAIM_ATTEMPTS):
            now = self._clock()
            with self._session() as db:
                candidate = (
                    db.query(QueueJob)
                    .filter(self._ready_filter(now))
                    .order_by(QueueJob.run_at, QueueJob.created_at)
                    .first()
                )
                if candidate is None:
                    return None
                if candidate.status == JobStatus.ACTIVE.value:
                    logger.warning(f"Job {candidate.id} lease expired, redelivering")

                claimed = (
                    db.query(QueueJob)
                    .filter(
                        QueueJob.id == candidate.id,
                        QueueJob.status == candidate.status,
                        QueueJob.attempts_made == candidate.attempts_made,
                    )
                    .update(
                        {
                            QueueJob.status: JobStatus.ACTIVE.value,
                            QueueJob.attempts_made: QueueJob.attempts_made + 1,
                            QueueJob.lease_expires_at: now + timedelta(seconds=lease_seconds),
                        },
                        synchronize_session=False,
                    )
                )
                if claimed:
                    db.flush()
                    db.expire(candidate)
                    return _to_job(db.get(QueueJob, candidate.id))
            # 被其他 worker 抢先，重新查找
        return None

    def complete(self, job: Job, result: Any = None) -> None:
        now = self._clock()
        with self._session() as db:
            row = db.get(QueueJob, job.id)
            if row is None:
                return
            if row.remove_on_complete:
                db.delete(row)
                return
            row.status = JobStatus.COMPLETED.value
            row.result = result
            row.finished_at = now
            row.lease_expires_at = None

    def fail(self, job: Job, error: str) -> Job:
        now = self._clock()
        with self._session() as db:
            row = db.get(QueueJob, job.id)
            if row is None:
                return job
            # worker 可能把剩余次数清零（不可重试的错误）
            row.attempts_made = max(row.attempts_made, job.attempts_made)
            row.last_error = error
            row.lease_expires_at = None
            if row.attempts_made < row.max_attempts:
                delay = BackoffOptions(
                    type=BackoffType(row.backoff_type), delay=row.backoff_delay
                ).delay_for(row.attempts_made)
                row.status = JobStatus.DELAYED.value
                row.run_at = now + timedelta(seconds=delay)
            else:
                row.status = JobStatus.FAILED.value
                row.finished_at = now
            db.flush()
            failed = _to_job(row)
            if row.status == JobStatus.FAILED.value and row.remove_on_fail:
                db.delete(row)
            return failed

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._session() as db:
            row = db.get(QueueJob, job_id)
            return _to_job(row) if row else None

    def get_stats(self) -> QueueStats:
        with self._session() as db:
            rows = (
                db.query(QueueJob.status, func.count(QueueJob.id))
                .filter(QueueJob.queue == self._name)
                .group_by(QueueJob.status)
                .all()
            )
        counts = {status: n for status, n in rows}
        return QueueStats(
            waiting=counts.get(JobStatus.WAITING.value, 0),
            active=counts.get(JobStatus.ACTIVE.value, 0),
            completed=counts.get(JobStatus.COMPLETED.value, 0),
            failed=counts.get(JobStatus.FAILED.value, 0),
            delayed=counts.get(JobStatus.DELAYED.value, 0),
        )

    def retry_failed(self, job_id: str) -> bool:
        with self._session() as db:
            updated = (
                db.query(QueueJob)
                .filter(QueueJob.id == job_id, QueueJob.status == JobStatus.FAILED.value)
                .update(
                    {
                        QueueJob.status: JobStatus.WAITING.value,
                        QueueJob.attempts_made: 0,
                        QueueJob.run_at: self._clock(),
                        QueueJob.finished_at: None,
                    },
                    synchronize_session=False,
                )
            )
            return bool(updated)
