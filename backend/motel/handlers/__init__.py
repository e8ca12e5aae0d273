"""
motel/handlers - 领域事件处理器
"""
from motel.handlers.activity_handlers import ActivityLogHandlers
from motel.handlers.employee_handlers import EmployeeEventHandlers
from motel.handlers.note_handlers import NoteEventHandlers
from motel.handlers.registry import (
    build_handler_table,
    register_event_handlers,
    unregister_event_handlers,
)
from motel.handlers.suite_handlers import SuiteEventHandlers
from motel.handlers.task_handlers import TaskEventHandlers

__all__ = [
    "ActivityLogHandlers",
    "EmployeeEventHandlers",
    "NoteEventHandlers",
    "SuiteEventHandlers",
    "TaskEventHandlers",
    "build_handler_table",
    "register_event_handlers",
    "unregister_event_handlers",
]
