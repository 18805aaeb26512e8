"""In-memory data store for testing and development.

WARNING: data lives in process memory only and is lost on restart.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from taskhub.core.exceptions import ConflictError, DuplicateEmailError, NotFoundError
from taskhub.core.types import TERMINAL_STATUSES, TaskStats, TaskStatus, as_utc
from taskhub.storage.base import DataStore

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from taskhub.core.types import Organization, Task, TaskQuery, User

logger = logging.getLogger(__name__)


def _newest_first(records: Iterable[Any]) -> list[Any]:
    # Ties on created_at fall back to reverse insertion order.
    return sorted(reversed(list(records)), key=lambda r: r.created_at, reverse=True)


class InMemoryDataStore(DataStore):
    """Dictionary-backed :class:`DataStore`.

    Example:
        ```python
        store = InMemoryDataStore()
        await store.create_user(user)
        store.clear()
        ```

    Attributes:
        _organizations: organization id -> Organization
        _users: user id -> User
        _tasks: task id -> Task
        _email_index: lowercased email -> user id
        _slug_index: slug -> organization id
    """

    def __init__(self) -> None:
        self._organizations: dict[str, Organization] = {}
        self._users: dict[str, User] = {}
        self._tasks: dict[str, Task] = {}
        self._email_index: dict[str, str] = {}
        self._slug_index: dict[str, str] = {}
        logger.info("Initialized in-memory data store")

    #################
    # Organizations #
    #################

    async def create_organization(self, organization: Organization) -> Organization:
        if organization.slug in self._slug_index:
            raise ConflictError("slug", organization.slug)
        self._organizations[organization.id] = organization
        self._slug_index[organization.slug] = organization.id
        logger.info("Created organization: %s (%s)", organization.id, organization.slug)
        return organization

    async def get_organization(self, organization_id: str) -> Organization:
        if organization_id not in self._organizations:
            raise NotFoundError("Organization", organization_id)
        return self._organizations[organization_id]

    async def update_organization(self, organization: Organization) -> Organization:
        old = await self.get_organization(organization.id)
        if old.slug != organization.slug:
            owner = self._slug_index.get(organization.slug)
            if owner is not None and owner != organization.id:
                raise ConflictError("slug", organization.slug)
            del self._slug_index[old.slug]
            self._slug_index[organization.slug] = organization.id
        self._organizations[organization.id] = organization
        logger.info("Updated organization: %s", organization.id)
        return organization

    async def delete_organization(self, organization_id: str) -> None:
        organization = self._organizations.pop(organization_id, None)
        if organization is not None:
            self._slug_index.pop(organization.slug, None)
            logger.info("Deleted organization: %s", organization_id)

    async def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        owner = self._slug_index.get(slug)
        return owner is not None and owner != exclude_id

    #########
    # Users #
    #########

    async def create_user(self, user: User) -> User:
        if user.email in self._email_index:
            raise DuplicateEmailError(user.email)
        self._users[user.id] = user
        self._email_index[user.email] = user.id
        logger.info("Created user: %s", user.id)
        return user

    async def get_user(self, user_id: str) -> User:
        if user_id not in self._users:
            raise NotFoundError("User", user_id)
        return self._users[user_id]

    async def find_user_by_email(self, email: str) -> User | None:
        user_id = self._email_index.get(email)
        return self._users.get(user_id) if user_id is not None else None

    async def find_user_by_invite_token(self, token: str) -> User | None:
        for user in self._users.values():
            if user.invite_token is not None and user.invite_token == token:
                return user
        return None

    async def update_user(self, user: User) -> User:
        old = await self.get_user(user.id)
        if old.email != user.email:
            owner = self._email_index.get(user.email)
            if owner is not None and owner != user.id:
                raise DuplicateEmailError(user.email)
            del self._email_index[old.email]
            self._email_index[user.email] = user.id
        self._users[user.id] = user
        logger.debug("Updated user: %s", user.id)
        return user

    async def delete_user(self, user_id: str) -> None:
        user = self._users.pop(user_id, None)
        if user is not None:
            self._email_index.pop(user.email, None)
            logger.info("Deleted user: %s", user_id)

    async def list_users(
        self,
        organization_id: str,
        *,
        active: bool | None = True,
    ) -> list[User]:
        users = [
            u
            for u in self._users.values()
            if u.organization_id == organization_id
            and (active is None or u.is_active == active)
        ]
        return _newest_first(users)

    async def get_users(self, user_ids: Iterable[str]) -> list[User]:
        return [self._users[uid] for uid in dict.fromkeys(user_ids) if uid in self._users]

    #########
    # Tasks #
    #########

    async def create_task(self, task: Task) -> Task:
        self._tasks[task.id] = task
        logger.info("Created task: %s (org=%s)", task.id, task.organization_id)
        return task

    async def get_task(self, task_id: str, organization_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None or task.organization_id != organization_id:
            raise NotFoundError("Task", task_id)
        return task

    async def update_task(self, task: Task) -> Task:
        if task.id not in self._tasks:
            raise NotFoundError("Task", task.id)
        self._tasks[task.id] = task
        logger.debug("Updated task: %s", task.id)
        return task

    async def delete_task(self, task_id: str, organization_id: str) -> bool:
        task = self._tasks.get(task_id)
        if task is None or task.organization_id != organization_id:
            return False
        del self._tasks[task_id]
        logger.info("Deleted task: %s", task_id)
        return True

    async def list_tasks(
        self,
        query: TaskQuery,
        *,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Task]:
        matches = _newest_first(t for t in self._tasks.values() if query.matches(t))
        result = matches[skip : skip + limit]
        logger.debug(
            "Listed %d tasks (skip=%d limit=%d total=%d)", len(result), skip, limit, len(matches)
        )
        return result

    async def count_tasks(self, query: TaskQuery) -> int:
        return sum(1 for t in self._tasks.values() if query.matches(t))

    async def task_stats(self, query: TaskQuery, now: datetime) -> TaskStats:
        counts = dict.fromkeys(TaskStatus, 0)
        total = overdue = 0
        for task in self._tasks.values():
            if not query.matches(task):
                continue
            total += 1
            counts[task.status] += 1
            if task.is_overdue(now):
                overdue += 1
        return TaskStats(
            total=total,
            todo=counts[TaskStatus.TODO],
            in_progress=counts[TaskStatus.IN_PROGRESS],
            completed=counts[TaskStatus.COMPLETED],
            expired=counts[TaskStatus.EXPIRED],
            overdue=overdue,
        )

    async def expire_overdue_tasks(self, now: datetime) -> int:
        modified = 0
        for task_id, task in list(self._tasks.items()):
            if task.status in TERMINAL_STATUSES or task.due_date is None:
                continue
            if as_utc(task.due_date) < now:  # type: ignore[operator]
                self._tasks[task_id] = task.model_copy(
                    update={"status": TaskStatus.EXPIRED, "updated_at": now}
                )
                modified += 1
        if modified:
            logger.info("Expired %d overdue tasks", modified)
        return modified

    ###########
    # Testing #
    ###########

    def clear(self) -> None:
        """Remove every record.  Use only in tests."""
        self._organizations.clear()
        self._users.clear()
        self._tasks.clear()
        self._email_index.clear()
        self._slug_index.clear()
        logger.info("Cleared in-memory data store")

    def get_statistics(self) -> dict[str, Any]:
        """Record counts, for debugging."""
        return {
            "organizations": len(self._organizations),
            "users": len(self._users),
            "tasks": len(self._tasks),
        }


__all__ = ["InMemoryDataStore"]
