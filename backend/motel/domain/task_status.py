"""
任务状态转换规则
"""
from datetime import datetime
from typing import Optional

from opscore.engine.state_machine import TransitionEngine, TransitionRule
from motel.models.enums import TaskPriority, TaskStatus

_T = TaskStatus

TASK_TRANSITION_RULES = (
    # 分配
    TransitionRule(
        frozenset({_T.PENDING}), _T.ASSIGNED,
        required_facts=("assigned_to",),
        description="Task assigned to employee",
    ),
    # 开始 / 恢复
    TransitionRule(
        frozenset({_T.ASSIGNED}), _T.IN_PROGRESS,
        required_facts=("actual_start",),
        description="Work started on task",
    ),
    TransitionRule(
        frozenset({_T.PAUSED}), _T.IN_PROGRESS,
        description="Work resumed on task",
    ),
    TransitionRule(
        frozenset({_T.IN_PROGRESS}), _T.PAUSED,
        description="Work paused on task",
    ),
    # 完成 / 验收
    TransitionRule(
        frozenset({_T.IN_PROGRESS}), _T.COMPLETED,
        required_facts=("actual_end",),
        description="Task completed",
    ),
    TransitionRule(
        frozenset({_T.COMPLETED}), _T.VERIFIED,
        required_facts=("verified_by",),
        description="Task verified by supervisor",
    ),
    # 取消 / 重开
    TransitionRule(
        frozenset({_T.PENDING, _T.ASSIGNED, _T.PAUSED}), _T.CANCELLED,
        description="Task cancelled",
    ),
    TransitionRule(
        frozenset({_T.CANCELLED}), _T.PENDING,
        description="Cancelled task re-opened",
    ),
    TransitionRule(
        frozenset({_T.COMPLETED}), _T.IN_PROGRESS,
        description="Completed task re-opened for rework",
    ),
)

PRIORITY_WEIGHTS = {
    TaskPriority.LOW: 1,
    TaskPriority.NORMAL: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.URGENT: 4,
    TaskPriority.EMERGENCY: 5,
}

# 自动建任务时视为"未结束"的状态
OPEN_STATUSES = frozenset({_T.PENDING, _T.ASSIGNED, _T.IN_PROGRESS})


class TaskTransitionEngine(TransitionEngine[TaskStatus]):
    """任务状态机，附带状态查询"""

    def __init__(self):
        super().__init__("Task", TASK_TRANSITION_RULES)

    def is_active(self, status: TaskStatus) -> bool:
        return status in (_T.IN_PROGRESS, _T.PAUSED)

    def is_completed(self, status: TaskStatus) -> bool:
        return status in (_T.COMPLETED, _T.VERIFIED)

    def is_actionable(self, status: TaskStatus) -> bool:
        return status in (_T.PENDING, _T.ASSIGNED, _T.IN_PROGRESS, _T.PAUSED)

    def needs_assignment(self, status: TaskStatus) -> bool:
        return status == _T.PENDING

    def priority_weight(self, priority: TaskPriority) -> int:
        """排序权重，越大越紧急"""
        return PRIORITY_WEIGHTS[priority]

    def is_overdue(
        self,
        scheduled_end: Optional[datetime],
        status: TaskStatus,
        now: Optional[datetime] = None,
    ) -> bool:
        if scheduled_end is None or self.is_completed(status):
            return False
        return (now or datetime.utcnow()) > scheduled_end


task_status_engine = TaskTransitionEngine()
