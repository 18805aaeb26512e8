"""Abstract data store interface.

Every manager receives a :class:`DataStore` explicitly.  Implementations:

- :class:`~taskhub.storage.memory.InMemoryDataStore`: tests and development
- :class:`~taskhub.storage.sqlalchemy.SQLAlchemyDataStore`: PostgreSQL / SQLite

Stores persist exactly what they are given.  Timestamps, slugs, password
hashes and ``completed_at`` are computed by the callers before the write.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from taskhub.core.types import (
        Organization,
        Task,
        TaskQuery,
        TaskStats,
        User,
    )


class DataStore(ABC):
    """Repository interface for organizations, users and tasks.

    Uniqueness rules enforced by every implementation:

    - user email (case-insensitive, callers pass it lowercased): violation
      raises :class:`~taskhub.core.exceptions.DuplicateEmailError`
    - organization slug: violation raises
      :class:`~taskhub.core.exceptions.ConflictError` with ``field="slug"``

    Lookups by id raise :class:`~taskhub.core.exceptions.NotFoundError`;
    ``find_*`` lookups return ``None`` instead.

    Example:
        ```python
        store = InMemoryDataStore()
        await store.initialize()

        user = await store.create_user(user)
        org = await store.create_organization(org)
        tasks = await store.list_tasks(TaskQuery(organization_id=org.id))

        await store.close()
        ```
    """

    async def initialize(self) -> None:
        """Prepare the backend (create tables, open pools)."""

    async def close(self) -> None:
        """Release backend resources."""

    async def ping(self) -> bool:
        """Return True if the backend answers."""
        return True

    #################
    # Organizations #
    #################

    @abstractmethod
    async def create_organization(self, organization: Organization) -> Organization:
        """Insert a new organization.

        Raises:
            ConflictError: If the slug is already taken
        """

    @abstractmethod
    async def get_organization(self, organization_id: str) -> Organization:
        """Return the organization with *organization_id*.

        Raises:
            NotFoundError: If it does not exist
        """

    @abstractmethod
    async def update_organization(self, organization: Organization) -> Organization:
        """Replace a stored organization.

        Raises:
            NotFoundError: If it does not exist
            ConflictError: If the new slug is already taken
        """

    @abstractmethod
    async def delete_organization(self, organization_id: str) -> None:
        """Remove an organization.  Missing ids are ignored."""

    @abstractmethod
    async def slug_exists(self, slug: str, exclude_id: str | None = None) -> bool:
        """Return True if another organization already uses *slug*."""

    #########
    # Users #
    #########

    @abstractmethod
    async def create_user(self, user: User) -> User:
        """Insert a new user.

        Raises:
            DuplicateEmailError: If the email is already registered
        """

    @abstractmethod
    async def get_user(self, user_id: str) -> User:
        """Return the user with *user_id*.

        Raises:
            NotFoundError: If it does not exist
        """

    @abstractmethod
    async def find_user_by_email(self, email: str) -> User | None:
        """Return the user registered with *email*, active or not."""

    @abstractmethod
    async def find_user_by_invite_token(self, token: str) -> User | None:
        """Return the user holding invite *token*, regardless of expiry."""

    @abstractmethod
    async def update_user(self, user: User) -> User:
        """Replace a stored user.

        Raises:
            NotFoundError: If it does not exist
            DuplicateEmailError: If the new email belongs to another user
        """

    @abstractmethod
    async def delete_user(self, user_id: str) -> None:
        """Remove a user.  Missing ids are ignored."""

    @abstractmethod
    async def list_users(
        self,
        organization_id: str,
        *,
        active: bool | None = True,
    ) -> list[User]:
        """Users of an organization, newest first.

        ``active=None`` returns active and inactive users alike.
        """

    @abstractmethod
    async def get_users(self, user_ids: Iterable[str]) -> list[User]:
        """Fetch several users at once.  Unknown ids are skipped."""

    #########
    # Tasks #
    #########

    @abstractmethod
    async def create_task(self, task: Task) -> Task:
        """Insert a new task."""

    @abstractmethod
    async def get_task(self, task_id: str, organization_id: str) -> Task:
        """Return a task *within* an organization.

        A task that exists in another organization is reported as missing.

        Raises:
            NotFoundError: If no such task exists in the organization
        """

    @abstractmethod
    async def update_task(self, task: Task) -> Task:
        """Replace a stored task.

        Raises:
            NotFoundError: If it does not exist
        """

    @abstractmethod
    async def delete_task(self, task_id: str, organization_id: str) -> bool:
        """Delete a task within an organization; return False if it was absent."""

    @abstractmethod
    async def list_tasks(
        self,
        query: TaskQuery,
        *,
        skip: int = 0,
        limit: int = 10,
    ) -> list[Task]:
        """Tasks matching *query*, newest first."""

    @abstractmethod
    async def count_tasks(self, query: TaskQuery) -> int:
        """Number of tasks matching *query*."""

    @abstractmethod
    async def task_stats(self, query: TaskQuery, now: datetime) -> TaskStats:
        """Status counts and the overdue count for tasks matching *query*."""

    @abstractmethod
    async def expire_overdue_tasks(self, now: datetime) -> int:
        """Mark every open task due before *now* as Expired.

        Open means status is neither Completed nor Expired.  ``completed_at``
        is left untouched.  Returns the number of tasks modified.
        """


__all__ = ["DataStore"]
