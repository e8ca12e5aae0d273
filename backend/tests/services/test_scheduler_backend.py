"""
APScheduler 调度后端测试
"""
from unittest.mock import MagicMock

import pytest

from motel.services.scheduler_backend import APSchedulerBackend


@pytest.fixture
def backend():
    scheduler_backend = APSchedulerBackend()
    yield scheduler_backend
    scheduler_backend.shutdown()


def test_add_cron_job_before_start_is_pending(backend):
    backend.add_cron_job("cleanup", MagicMock(), "0 3 * * *", kwargs={"days_old": 30})

    job = backend.get_job("cleanup")
    assert job["id"] == "cleanup"
    assert job["status"] == "pending"
    assert job["next_run_time"] is None


def test_started_job_is_active(backend):
    backend.add_cron_job("cleanup", MagicMock(), "*/5 * * * *")
    backend.start()

    assert backend.running
    job = backend.get_job("cleanup")
    assert job["status"] == "active"
    assert job["next_run_time"] is not None


def test_pause_and_resume(backend):
    backend.add_cron_job("cleanup", MagicMock(), "0 3 * * *")
    backend.start()

    backend.pause_job("cleanup")
    assert backend.get_job("cleanup")["status"] == "paused"

    backend.resume_job("cleanup")
    assert backend.get_job("cleanup")["status"] == "active"


def test_add_replaces_existing(backend):
    backend.start()
    backend.add_cron_job("cleanup", MagicMock(), "0 3 * * *")
    backend.add_cron_job("cleanup", MagicMock(), "0 4 * * *")
    assert len(backend.get_jobs()) == 1


def test_trigger_job_calls_function_with_arguments(backend):
    func = MagicMock()
    backend.add_cron_job("cleanup", func, "0 3 * * *", args=[1], kwargs={"days_old": 7})

    backend.trigger_job("cleanup")

    func.assert_called_once_with(1, days_old=7)


def test_trigger_unknown_job(backend):
    with pytest.raises(ValueError, match="Job not found: nope"):
        backend.trigger_job("nope")


def test_remove_job(backend):
    backend.add_cron_job("cleanup", MagicMock(), "0 3 * * *")
    backend.remove_job("cleanup")
    assert backend.get_job("cleanup") is None
    # 再次移除只记录警告
    backend.remove_job("cleanup")


def test_invalid_cron_expression(backend):
    with pytest.raises(ValueError):
        backend.add_cron_job("bad", MagicMock(), "not a cron")


def test_shutdown_is_idempotent(backend):
    backend.start()
    backend.shutdown()
    backend.shutdown()
    assert not backend.running
