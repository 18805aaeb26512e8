"""Role-based authorization policy.

Every permission decision in taskhub goes through :func:`is_allowed`, which
reads one table mapping ``(action, role)`` to a rule.  A rule is either a
constant or a predicate over the :class:`ResourceContext` of the record
being touched.

Example:
    ```python
    authorize(actor.role, Action.VIEW_TASK, ResourceContext.for_task(task, actor.id))
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from taskhub.core.exceptions import ForbiddenError
from taskhub.core.types import Role

if TYPE_CHECKING:
    from taskhub.core.types import Task

logger = logging.getLogger(__name__)


class Action(StrEnum):
    CREATE_TASK = "create_task"
    UPDATE_TASK = "update_task"
    UPDATE_TASK_STATUS = "update_task_status"
    DELETE_TASK = "delete_task"
    VIEW_TASK = "view_task"
    LIST_TASKS = "list_tasks"
    ANNOTATE_TASK = "annotate_task"
    VIEW_ORGANIZATION = "view_organization"
    UPDATE_SETTINGS = "update_settings"
    INVITE_MEMBER = "invite_member"
    CHANGE_ROLE = "change_role"
    REMOVE_MEMBER = "remove_member"


@dataclass(frozen=True, slots=True)
class ResourceContext:
    """The caller's relationship to the record an action targets."""

    is_assignee: bool = False
    is_creator: bool = False

    @classmethod
    def for_task(cls, task: Task, user_id: str) -> ResourceContext:
        return cls(is_assignee=task.is_assignee(user_id), is_creator=task.is_creator(user_id))


Rule = Callable[[ResourceContext], bool]


def _always(ctx: ResourceContext) -> bool:
    return True


def _never(ctx: ResourceContext) -> bool:
    return False


def _assignee(ctx: ResourceContext) -> bool:
    return ctx.is_assignee


def _assignee_or_creator(ctx: ResourceContext) -> bool:
    return ctx.is_assignee or ctx.is_creator


_ANY = {Role.ADMIN: _always, Role.MANAGER: _always, Role.MEMBER: _always}
_STAFF = {Role.ADMIN: _always, Role.MANAGER: _always, Role.MEMBER: _never}
_ADMIN_ONLY = {Role.ADMIN: _always, Role.MANAGER: _never, Role.MEMBER: _never}

POLICY: dict[Action, dict[Role, Rule]] = {
    Action.CREATE_TASK: _STAFF,
    Action.UPDATE_TASK: _STAFF,
    Action.UPDATE_TASK_STATUS: {**_STAFF, Role.MEMBER: _assignee},
    Action.DELETE_TASK: _STAFF,
    Action.VIEW_TASK: {**_STAFF, Role.MEMBER: _assignee_or_creator},
    # Members may list; their scope is narrowed by the task manager.
    Action.LIST_TASKS: _ANY,
    Action.ANNOTATE_TASK: {**_STAFF, Role.MEMBER: _assignee_or_creator},
    Action.VIEW_ORGANIZATION: _ANY,
    Action.UPDATE_SETTINGS: _ADMIN_ONLY,
    Action.INVITE_MEMBER: _STAFF,
    Action.CHANGE_ROLE: _ADMIN_ONLY,
    Action.REMOVE_MEMBER: _ADMIN_ONLY,
}

_NO_CONTEXT = ResourceContext()


def is_allowed(role: Role, action: Action, context: ResourceContext | None = None) -> bool:
    """Return True if *role* may perform *action* given *context*."""
    rule = POLICY.get(action, {}).get(role, _never)
    return rule(context or _NO_CONTEXT)


def authorize(role: Role, action: Action, context: ResourceContext | None = None) -> None:
    """Raise :class:`ForbiddenError` unless :func:`is_allowed`."""
    if not is_allowed(role, action, context):
        logger.info("Denied %s for role %s", action.value, role.value)
        raise ForbiddenError("Access denied", action=action.value)


def update_action(fields: Iterable[str]) -> Action:
    """Pick the action an update touching *fields* is checked against.

    A status-only update is the narrower action; any other field makes the
    whole update a full task update.
    """
    return Action.UPDATE_TASK_STATUS if set(fields) <= {"status"} else Action.UPDATE_TASK


__all__ = [
    "POLICY",
    "Action",
    "ResourceContext",
    "authorize",
    "is_allowed",
    "update_action",
]
