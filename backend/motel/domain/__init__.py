"""
motel/domain - 客房与任务状态规则
"""
from motel.domain.suite_status import (
    SUITE_TRANSITION_RULES,
    SuiteTransitionEngine,
    suite_status_engine,
)
from motel.domain.task_status import (
    TASK_TRANSITION_RULES,
    TaskTransitionEngine,
    task_status_engine,
)

__all__ = [
    "SUITE_TRANSITION_RULES",
    "SuiteTransitionEngine",
    "suite_status_engine",
    "TASK_TRANSITION_RULES",
    "TaskTransitionEngine",
    "task_status_engine",
]
