"""
opscore/security - 安全模块

- permission: 权限评估器（any / all 模式，通配符）

使用方式:
    >>> from opscore.security import has_any_permission, WILDCARD
    >>> has_any_permission([WILDCARD], ["delete_suites"])
    True
"""
from opscore.security.permission import (
    WILDCARD,
    PermissionsMode,
    has_permission,
    has_any_permission,
    has_all_permissions,
    evaluate,
)

__all__ = [
    "WILDCARD",
    "PermissionsMode",
    "has_permission",
    "has_any_permission",
    "has_all_permissions",
    "evaluate",
]
