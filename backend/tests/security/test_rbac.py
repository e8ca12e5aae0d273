"""
授权检查测试
"""
from types import SimpleNamespace

import pytest

from opscore.errors import ForbiddenError, UnauthorizedError
from motel.models.enums import EmployeeRole
from motel.security import permissions as perms
from motel.security.rbac import (
    Actor,
    authorize,
    authorize_roles,
    require_permissions,
    require_roles,
)


def fake_request(actor=None):
    state = SimpleNamespace()
    if actor is not None:
        state.actor = actor
    return SimpleNamespace(state=state)


def test_actor_for_role_uses_default_permissions():
    actor = Actor.for_role(1, EmployeeRole.HOUSEKEEPER)
    assert perms.UPDATE_TASK_STATUS in actor.permissions


def test_empty_requirement_always_passes():
    authorize(None, [])


def test_missing_actor_is_unauthorized():
    with pytest.raises(UnauthorizedError) as exc_info:
        authorize(None, [perms.VIEW_REPORTS])
    assert str(exc_info.value) == "User not authenticated"


def test_insufficient_permissions_lists_required():
    actor = Actor.for_role(2, EmployeeRole.HOUSEKEEPER)
    with pytest.raises(ForbiddenError) as exc_info:
        authorize(actor, [perms.VIEW_REPORTS, perms.MANAGE_SETTINGS])
    assert str(exc_info.value) == "Insufficient permissions. Required: view_reports, manage_settings"
    assert exc_info.value.required == [perms.VIEW_REPORTS, perms.MANAGE_SETTINGS]


def test_any_mode_passes_with_one_permission():
    actor = Actor.for_role(3, EmployeeRole.SUPERVISOR)
    authorize(actor, [perms.MANAGE_SETTINGS, perms.ASSIGN_TASKS])


def test_all_mode_requires_every_permission():
    actor = Actor.for_role(3, EmployeeRole.SUPERVISOR)
    with pytest.raises(ForbiddenError):
        authorize(actor, [perms.MANAGE_SETTINGS, perms.ASSIGN_TASKS], mode="all")


def test_wildcard_actor_passes_all_mode():
    actor = Actor.for_role(4, EmployeeRole.MANAGER)
    authorize(actor, [perms.MANAGE_SETTINGS, perms.DELETE_SUITES], mode="all")


def test_authorize_roles():
    actor = Actor.for_role(5, EmployeeRole.FRONT_DESK)
    authorize_roles(actor, [EmployeeRole.FRONT_DESK])
    with pytest.raises(ForbiddenError) as exc_info:
        authorize_roles(actor, [EmployeeRole.MANAGER, EmployeeRole.ADMIN])
    assert str(exc_info.value) == "Insufficient role. Required: MANAGER or ADMIN"


def test_authorize_roles_without_actor():
    with pytest.raises(UnauthorizedError):
        authorize_roles(None, [EmployeeRole.MANAGER])


def test_require_permissions_dependency_returns_actor():
    actor = Actor.for_role(6, EmployeeRole.SUPERVISOR)
    checker = require_permissions(perms.VIEW_ALL_TASKS)
    assert checker(fake_request(actor)) is actor


def test_require_permissions_dependency_without_actor():
    checker = require_permissions(perms.VIEW_ALL_TASKS)
    with pytest.raises(UnauthorizedError):
        checker(fake_request())


def test_require_roles_dependency():
    checker = require_roles(EmployeeRole.ADMIN)
    admin = Actor.for_role(7, EmployeeRole.ADMIN)
    assert checker(fake_request(admin)) is admin
    with pytest.raises(ForbiddenError):
        checker(fake_request(Actor.for_role(8, EmployeeRole.MANAGER)))
