"""
运营接口：状态规则查询与校验、通知队列与活动日志

只暴露引擎能力，不包含客房/任务的增删改查。
"""
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from opscore.engine.state_machine import TransitionEngine
from motel.bootstrap import Runtime
from motel.domain import suite_status_engine, task_status_engine
from motel.models.enums import SuiteStatus, TaskStatus
from motel.security import permissions as perms
from motel.security.rbac import require_permissions

router = APIRouter(prefix="/ops", tags=["运营"])


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


class SuiteTransitionRequest(BaseModel):
    from_status: SuiteStatus
    to_status: SuiteStatus
    facts: Dict[str, Any] = Field(default_factory=dict)


class TaskTransitionRequest(BaseModel):
    from_status: TaskStatus
    to_status: TaskStatus
    facts: Dict[str, Any] = Field(default_factory=dict)


class TransitionTargets(BaseModel):
    status: str
    valid_transitions: List[str]


def _transition_response(engine: TransitionEngine, from_status, to_status, facts) -> Dict[str, Any]:
    engine.assert_valid(from_status, to_status, facts)
    return {"valid": True, "from_status": from_status.value, "to_status": to_status.value}


@router.get("/transitions/suites/{status}")
def suite_transitions(
    status: SuiteStatus,
    actor=Depends(require_permissions(perms.VIEW_ALL_SUITES)),
) -> TransitionTargets:
    """客房当前状态可转换到的状态"""
    targets = suite_status_engine.valid_transitions(status)
    return TransitionTargets(status=status.value, valid_transitions=sorted(s.value for s in targets))


@router.post("/transitions/suites/validate")
def validate_suite_transition(
    body: SuiteTransitionRequest,
    actor=Depends(require_permissions(perms.UPDATE_SUITE_STATUS)),
):
    return _transition_response(suite_status_engine, body.from_status, body.to_status, body.facts)


@router.get("/transitions/tasks/{status}")
def task_transitions(
    status: TaskStatus,
    actor=Depends(require_permissions(perms.VIEW_ASSIGNED_TASKS, perms.VIEW_ALL_TASKS)),
) -> TransitionTargets:
    targets = task_status_engine.valid_transitions(status)
    return TransitionTargets(status=status.value, valid_transitions=sorted(s.value for s in targets))


@router.post("/transitions/tasks/validate")
def validate_task_transition(
    body: TaskTransitionRequest,
    actor=Depends(require_permissions(perms.UPDATE_TASK_STATUS)),
):
    return _transition_response(task_status_engine, body.from_status, body.to_status, body.facts)


@router.get("/queue/stats")
def queue_stats(
    runtime: Runtime = Depends(get_runtime),
    actor=Depends(require_permissions(perms.VIEW_REPORTS)),
) -> Dict[str, int]:
    return runtime.notifications.get_queue_stats()


@router.post("/queue/jobs/{job_id}/retry")
def retry_job(
    job_id: str,
    runtime: Runtime = Depends(get_runtime),
    actor=Depends(require_permissions(perms.MANAGE_SETTINGS)),
):
    """人工重试一个 FAILED 作业"""
    if not runtime.queue.retry_failed(job_id):
        raise HTTPException(status_code=404, detail="Failed job not found")
    return {"success": True, "job_id": job_id}


@router.get("/activity")
def recent_activity(
    event_type: Optional[str] = None,
    limit: int = 50,
    runtime: Runtime = Depends(get_runtime),
    actor=Depends(require_permissions(perms.VIEW_REPORTS)),
):
    return runtime.activity.recent(event_type=event_type, limit=limit)
