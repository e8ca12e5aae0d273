"""
内存作业队列测试
"""
from datetime import timedelta

import pytest

from opscore.queue import (
    DEFAULT_JOB_OPTIONS,
    BackoffOptions,
    BackoffType,
    InMemoryJobQueue,
    JobOptions,
    JobStatus,
)


class TestBackoff:

    def test_exponential_delays(self):
        backoff = BackoffOptions(BackoffType.EXPONENTIAL, delay=1.0)
        assert [backoff.delay_for(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]

    def test_fixed_delay(self):
        backoff = BackoffOptions(BackoffType.FIXED, delay=5.0)
        assert backoff.delay_for(1) == backoff.delay_for(3) == 5.0

    def test_no_delay_before_first_attempt(self):
        assert BackoffOptions().delay_for(0) == 0.0

    def test_default_job_options(self):
        assert DEFAULT_JOB_OPTIONS.attempts == 3
        assert DEFAULT_JOB_OPTIONS.backoff == BackoffOptions(BackoffType.EXPONENTIAL, 1.0)
        assert DEFAULT_JOB_OPTIONS.remove_on_complete is True
        assert DEFAULT_JOB_OPTIONS.remove_on_fail is False


class TestInMemoryJobQueue:

    def test_enqueue_and_reserve(self, queue, clock):
        job = queue.enqueue("send", {"recipient_id": 1})
        assert job.status == JobStatus.WAITING
        assert queue.get_stats().waiting == 1

        reserved = queue.reserve(lease_seconds=30)
        assert reserved.id == job.id
        assert reserved.status == JobStatus.ACTIVE
        assert reserved.attempts_made == 1
        assert reserved.lease_expires_at == clock.now + timedelta(seconds=30)
        assert queue.reserve(30) is None

    def test_reserve_is_fifo(self, queue, clock):
        first = queue.enqueue("send", {"n": 1})
        clock.advance(1)
        second = queue.enqueue("send", {"n": 2})

        assert queue.reserve(30).id == first.id
        assert queue.reserve(30).id == second.id

    def test_enqueue_copies_data(self, queue):
        data = {"recipient_id": 1}
        job = queue.enqueue("send", data)
        data["recipient_id"] = 2
        assert queue.get_job(job.id).data == {"recipient_id": 1}

    def test_delayed_job_not_ready_until_due(self, queue, clock):
        job = queue.enqueue("send", {}, JobOptions(delay=10))
        assert job.status == JobStatus.DELAYED
        assert queue.reserve(30) is None

        clock.advance(10)
        assert queue.reserve(30).id == job.id

    def test_complete_removes_by_default(self, queue):
        job = queue.enqueue("send", {})
        queue.complete(queue.reserve(30), {"success": True})

        assert queue.get_job(job.id) is None
        assert queue.get_stats().completed == 0

    def test_complete_keeps_job_when_configured(self, queue):
        job = queue.enqueue("send", {}, JobOptions(remove_on_complete=False))
        queue.complete(queue.reserve(30), {"success": True})

        kept = queue.get_job(job.id)
        assert kept.status == JobStatus.COMPLETED
        assert kept.result == {"success": True}
        assert queue.get_stats().completed == 1

    def test_retry_schedule_follows_exponential_backoff(self, queue, clock):
        """第一次失败后等 1 秒，第二次失败后等 2 秒，第三次失败后保留为 FAILED"""
        job = queue.enqueue("send", {})

        failed = queue.fail(queue.reserve(30), "db down")
        assert failed.status == JobStatus.DELAYED
        assert failed.run_at == clock.now + timedelta(seconds=1)
        assert queue.reserve(30) is None

        clock.advance(1)
        failed = queue.fail(queue.reserve(30), "db down")
        assert failed.attempts_made == 2
        assert failed.run_at == clock.now + timedelta(seconds=2)

        clock.advance(1)
        assert queue.reserve(30) is None
        clock.advance(1)
        failed = queue.fail(queue.reserve(30), "db down")

        assert failed.status == JobStatus.FAILED
        assert failed.attempts_made == 3
        assert failed.last_error == "db down"
        assert queue.get_job(job.id).status == JobStatus.FAILED
        assert queue.get_stats().failed == 1

        clock.advance(3600)
        assert queue.reserve(30) is None

    def test_remove_on_fail(self, queue):
        job = queue.enqueue("send", {}, JobOptions(attempts=1, remove_on_fail=True))
        failed = queue.fail(queue.reserve(30), "boom")

        assert failed.status == JobStatus.FAILED
        assert queue.get_job(job.id) is None

    def test_expired_lease_is_redelivered(self, queue, clock):
        job = queue.enqueue("send", {})
        queue.reserve(lease_seconds=30)

        clock.advance(29)
        assert queue.reserve(30) is None

        clock.advance(1)
        redelivered = queue.reserve(30)
        assert redelivered.id == job.id
        assert redelivered.attempts_made == 2

    def test_expired_leases_stop_after_max_attempts(self, queue, clock):
        """worker 每次都在确认前崩溃：投递次数受 attempts 限制，之后保留为 FAILED"""
        job = queue.enqueue("send", {}, JobOptions(attempts=3))
        deliveries = 0
        for _ in range(10):
            if queue.reserve(60) is not None:
                deliveries += 1
            clock.advance(61)

        assert deliveries == 3
        stored = queue.get_job(job.id)
        assert stored.status == JobStatus.FAILED
        assert stored.attempts_made == 3
        assert stored.last_error == "Lease expired after 3 attempts"
        assert stored.finished_at is not None
        assert queue.get_stats().failed == 1
        assert queue.retry_failed(job.id) is True

    def test_expired_lease_honours_remove_on_fail(self, queue, clock):
        job = queue.enqueue("send", {}, JobOptions(attempts=1, remove_on_fail=True))
        queue.reserve(30)
        clock.advance(31)

        assert queue.reserve(30) is None
        assert queue.get_job(job.id) is None

    def test_retry_failed(self, queue):
        job = queue.enqueue("send", {}, JobOptions(attempts=1))
        queue.fail(queue.reserve(30), "boom")

        assert queue.retry_failed(job.id) is True
        assert queue.get_job(job.id).status == JobStatus.WAITING
        assert queue.reserve(30).attempts_made == 1

    def test_retry_failed_ignores_other_statuses(self, queue):
        job = queue.enqueue("send", {})
        assert queue.retry_failed(job.id) is False
        assert queue.retry_failed("missing") is False

    def test_stats_and_list(self, queue):
        queue.enqueue("send", {})
        queue.enqueue("send", {}, JobOptions(delay=5))
        queue.enqueue("send", {})
        queue.reserve(30)

        assert queue.get_stats().to_dict() == {
            "waiting": 1, "active": 1, "completed": 0, "failed": 0, "delayed": 1,
        }
        assert len(queue.list_jobs(JobStatus.ACTIVE)) == 1
        assert len(queue.list_jobs()) == 3

        queue.clear()
        assert queue.list_jobs() == []

    def test_named_queue(self):
        assert InMemoryJobQueue("reports").name == "reports"

    @pytest.mark.parametrize("attempts", [1, 2, 5])
    def test_attempts_bound_total_executions(self, queue, clock, attempts):
        queue.enqueue("send", {}, JobOptions(attempts=attempts, backoff=BackoffOptions(BackoffType.FIXED, 1)))
        executions = 0
        while True:
            job = queue.reserve(30)
            if job is None:
                clock.advance(1)
                job = queue.reserve(30)
                if job is None:
                    break
            executions += 1
            queue.fail(job, "boom")
        assert executions == attempts
