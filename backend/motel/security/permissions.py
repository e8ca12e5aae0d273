"""
集中定义所有权限码常量与角色默认权限
"""
from typing import Dict, FrozenSet, Union

from opscore.security.permission import WILDCARD
from motel.models.enums import EmployeeRole

# 任务
VIEW_ASSIGNED_TASKS = "view_assigned_tasks"
VIEW_ALL_TASKS = "view_all_tasks"
UPDATE_TASK_STATUS = "update_task_status"
ADD_TASKS = "add_tasks"
ASSIGN_TASKS = "assign_tasks"
DELETE_TASKS = "delete_tasks"

# 客房
VIEW_ALL_SUITES = "view_all_suites"
UPDATE_SUITE_STATUS = "update_suite_status"
CREATE_SUITES = "create_suites"
DELETE_SUITES = "delete_suites"

# 员工
VIEW_EMPLOYEES = "view_employees"
MANAGE_EMPLOYEES = "manage_employees"

# 备注
ADD_NOTES = "add_notes"
ADD_MAINTENANCE_NOTES = "add_maintenance_notes"
VIEW_ALL_NOTES = "view_all_notes"
DELETE_NOTES = "delete_notes"

# 管理
MANAGE_SETTINGS = "manage_settings"
VIEW_REPORTS = "view_reports"

ALL_PERMISSIONS: FrozenSet[str] = frozenset({
    VIEW_ASSIGNED_TASKS, VIEW_ALL_TASKS, UPDATE_TASK_STATUS, ADD_TASKS, ASSIGN_TASKS, DELETE_TASKS,
    VIEW_ALL_SUITES, UPDATE_SUITE_STATUS, CREATE_SUITES, DELETE_SUITES,
    VIEW_EMPLOYEES, MANAGE_EMPLOYEES,
    ADD_NOTES, ADD_MAINTENANCE_NOTES, VIEW_ALL_NOTES, DELETE_NOTES,
    MANAGE_SETTINGS, VIEW_REPORTS,
})

ROLE_PERMISSIONS: Dict[EmployeeRole, FrozenSet[str]] = {
    EmployeeRole.HOUSEKEEPER: frozenset({
        VIEW_ASSIGNED_TASKS, UPDATE_TASK_STATUS, ADD_NOTES,
    }),
    EmployeeRole.MAINTENANCE: frozenset({
        VIEW_ASSIGNED_TASKS, UPDATE_TASK_STATUS, ADD_MAINTENANCE_NOTES, UPDATE_SUITE_STATUS,
    }),
    EmployeeRole.FRONT_DESK: frozenset({
        VIEW_ALL_SUITES, UPDATE_SUITE_STATUS, VIEW_ALL_TASKS, ADD_NOTES,
    }),
    EmployeeRole.SUPERVISOR: frozenset({
        VIEW_ALL_TASKS, ASSIGN_TASKS, ADD_TASKS, VIEW_ALL_SUITES,
        UPDATE_SUITE_STATUS, VIEW_EMPLOYEES, ADD_NOTES, VIEW_ALL_NOTES,
    }),
    EmployeeRole.MANAGER: frozenset({WILDCARD}),
    EmployeeRole.ADMIN: frozenset({WILDCARD}),
}


def get_default_permissions(role: Union[EmployeeRole, str]) -> FrozenSet[str]:
    """角色的默认权限（未知角色返回空集）"""
    try:
        return ROLE_PERMISSIONS[EmployeeRole(role)]
    except ValueError:
        return frozenset()
