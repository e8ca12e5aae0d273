"""
motel/repositories - 仓储接口与实现
"""
from motel.repositories.interfaces import (
    EmployeeRepository,
    NotificationRepository,
    SuiteRepository,
    TaskRepository,
)
from motel.repositories.records import (
    EmployeeRecord,
    NotificationRecord,
    SuiteRecord,
    TaskRecord,
)

__all__ = [
    "EmployeeRepository",
    "NotificationRepository",
    "SuiteRepository",
    "TaskRepository",
    "EmployeeRecord",
    "NotificationRecord",
    "SuiteRecord",
    "TaskRecord",
]
