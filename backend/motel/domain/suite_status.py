"""
客房状态转换规则

- VACANT_DIRTY -> VACANT_CLEAN / OCCUPIED_DIRTY -> OCCUPIED_CLEAN: 需已完成清洁任务
- 任意可用状态 -> OUT_OF_ORDER: 需已创建维修任务
- OUT_OF_ORDER -> VACANT_DIRTY: 需已完成维修任务
"""
from typing import Optional

from opscore.engine.state_machine import TransitionEngine, TransitionRule
from motel.models.enums import SuiteStatus, TaskType

# 上下文事实名
HAS_COMPLETED_CLEANING_TASK = "has_completed_cleaning_task"
HAS_COMPLETED_MAINTENANCE_TASK = "has_completed_maintenance_task"
HAS_CREATED_MAINTENANCE_TASK = "has_created_maintenance_task"

CLEANING_REQUIRED = "Cleaning task must be completed before this transition"
MAINTENANCE_CREATION_REQUIRED = "Maintenance task must be created for this transition"
MAINTENANCE_COMPLETION_REQUIRED = "Maintenance task must be completed before this transition"

_S = SuiteStatus

SUITE_TRANSITION_RULES = (
    # 清洁
    TransitionRule(
        frozenset({_S.VACANT_DIRTY}), _S.VACANT_CLEAN,
        required_facts=(HAS_COMPLETED_CLEANING_TASK,),
        description="Suite cleaned after checkout",
        failure_reason=CLEANING_REQUIRED,
    ),
    TransitionRule(
        frozenset({_S.OCCUPIED_DIRTY}), _S.OCCUPIED_CLEAN,
        required_facts=(HAS_COMPLETED_CLEANING_TASK,),
        description="Daily cleaning completed",
        failure_reason=CLEANING_REQUIRED,
    ),
    # 入住 / 退房
    TransitionRule(
        frozenset({_S.VACANT_CLEAN}), _S.OCCUPIED_CLEAN,
        description="Guest checked in",
    ),
    TransitionRule(
        frozenset({_S.OCCUPIED_CLEAN, _S.OCCUPIED_DIRTY}), _S.VACANT_DIRTY,
        description="Guest checked out",
    ),
    # 日常状态
    TransitionRule(
        frozenset({_S.OCCUPIED_CLEAN}), _S.OCCUPIED_DIRTY,
        description="Suite needs daily cleaning",
    ),
    TransitionRule(
        frozenset({_S.VACANT_CLEAN}), _S.VACANT_DIRTY,
        description="Suite needs re-cleaning",
    ),
    # 维修
    TransitionRule(
        frozenset({_S.VACANT_CLEAN, _S.VACANT_DIRTY, _S.OCCUPIED_CLEAN, _S.OCCUPIED_DIRTY, _S.BLOCKED}),
        _S.OUT_OF_ORDER,
        required_facts=(HAS_CREATED_MAINTENANCE_TASK,),
        description="Suite requires maintenance",
        failure_reason=MAINTENANCE_CREATION_REQUIRED,
    ),
    TransitionRule(
        frozenset({_S.OUT_OF_ORDER}), _S.VACANT_DIRTY,
        required_facts=(HAS_COMPLETED_MAINTENANCE_TASK,),
        description="Maintenance completed",
        failure_reason=MAINTENANCE_COMPLETION_REQUIRED,
    ),
    # 锁房
    TransitionRule(
        frozenset({_S.VACANT_CLEAN, _S.VACANT_DIRTY}), _S.BLOCKED,
        description="Suite blocked/reserved",
    ),
    TransitionRule(
        frozenset({_S.BLOCKED}), _S.VACANT_CLEAN,
        description="Suite unblocked (clean)",
    ),
    TransitionRule(
        frozenset({_S.BLOCKED}), _S.VACANT_DIRTY,
        description="Suite unblocked (needs cleaning)",
    ),
)

_DIRTY_STATES = frozenset({_S.VACANT_DIRTY, _S.OCCUPIED_DIRTY})
_ATTENTION_STATES = _DIRTY_STATES | {_S.OUT_OF_ORDER}
_OCCUPIED_STATES = frozenset({_S.OCCUPIED_CLEAN, _S.OCCUPIED_DIRTY})


class SuiteTransitionEngine(TransitionEngine[SuiteStatus]):
    """客房状态机，附带状态查询"""

    def __init__(self):
        super().__init__("Suite", SUITE_TRANSITION_RULES)

    def is_available_for_check_in(self, status: SuiteStatus) -> bool:
        return status == _S.VACANT_CLEAN

    def needs_attention(self, status: SuiteStatus) -> bool:
        """需要清洁或维修"""
        return status in _ATTENTION_STATES

    def is_dirty(self, status: SuiteStatus) -> bool:
        return status in _DIRTY_STATES

    def is_occupied(self, status: SuiteStatus) -> bool:
        return status in _OCCUPIED_STATES

    def status_after_task_completion(
        self, current: SuiteStatus, task_type: TaskType
    ) -> Optional[SuiteStatus]:
        """
        完成某类任务后客房应处于的状态

        Returns:
            新状态；任务类型与当前状态无关时返回 None
        """
        if task_type == TaskType.CLEANING:
            if current == _S.VACANT_DIRTY:
                return _S.VACANT_CLEAN
            if current == _S.OCCUPIED_DIRTY:
                return _S.OCCUPIED_CLEAN
        elif task_type == TaskType.MAINTENANCE:
            if current == _S.OUT_OF_ORDER:
                return _S.VACANT_DIRTY
        return None


suite_status_engine = SuiteTransitionEngine()
