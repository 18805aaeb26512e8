"""Core types and domain models for taskhub.

Domain records are frozen pydantic models.  Use ``model_copy(update={...})``
to produce a modified version and hand it back to the store.
"""
from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskhub.utils.validation import validate_slug


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Role(StrEnum):
    """Membership role inside an organization."""
    ADMIN = "Admin"
    MANAGER = "Manager"
    MEMBER = "Member"


class TaskStatus(StrEnum):
    """Task lifecycle status."""
    TODO = "Todo"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    EXPIRED = "Expired"


class TaskPriority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TaskCategory(StrEnum):
    BUG = "Bug"
    FEATURE = "Feature"
    IMPROVEMENT = "Improvement"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


# Statuses the sweeper and the overdue counter never touch.
TERMINAL_STATUSES: frozenset[TaskStatus] = frozenset(
    {TaskStatus.COMPLETED, TaskStatus.EXPIRED}
)


class OrganizationSettings(BaseModel):
    """Per-organization preferences."""

    model_config = ConfigDict(frozen=True)

    theme: Theme = Field(default=Theme.LIGHT)
    allow_public_signup: bool = Field(default=False)
    default_role: Role = Field(default=Role.MEMBER)

    @field_validator("default_role")
    @classmethod
    def validate_default_role(cls, v: Role) -> Role:
        if v == Role.ADMIN:
            raise ValueError("default_role must be Manager or Member")
        return v


class Organization(BaseModel):
    """A tenant.  All task and member data is partitioned by organization."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1)
    description: str | None = Field(default=None, max_length=500)
    settings: OrganizationSettings = Field(default_factory=OrganizationSettings)
    is_active: bool = Field(default=True)
    created_by: str = Field(..., description="User id of the founding admin")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("slug")
    @classmethod
    def check_slug(cls, v: str) -> str:
        if not validate_slug(v):
            raise ValueError("slug must be lowercase alphanumeric words joined by hyphens")
        return v

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Organization):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class UserSummary(BaseModel):
    """Public identity of a user, embedded in task and organization views."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str


class User(BaseModel):
    """An account.  ``password_hash`` and ``invite_token`` never leave the service layer."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, description="Lowercased, globally unique")
    password_hash: str = Field(..., repr=False)
    organization_id: str | None = Field(default=None)
    role: Role = Field(default=Role.MEMBER)
    is_active: bool = Field(default=True)
    last_login: datetime | None = Field(default=None)
    invite_token: str | None = Field(default=None, repr=False)
    invite_expires: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id, name=self.name, email=self.email)

    def has_pending_invite(self, now: datetime) -> bool:
        """True for an inactive placeholder whose invite has not expired."""
        if self.is_active or not self.invite_token or self.invite_expires is None:
            return False
        return as_utc(self.invite_expires) > now  # type: ignore[operator]


class Comment(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    text: str = Field(..., min_length=1, max_length=1000)
    created_at: datetime = Field(default_factory=utcnow)


class Attachment(BaseModel):
    """Attachment metadata.  File contents are stored elsewhere."""

    model_config = ConfigDict(frozen=True)

    id: str
    filename: str = Field(..., min_length=1, max_length=255)
    original_name: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=utcnow)


class Task(BaseModel):
    """A unit of work owned by exactly one organization."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=2000)
    status: TaskStatus = Field(default=TaskStatus.TODO)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    category: TaskCategory
    due_date: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)
    assigned_to: str | None = Field(default=None)
    created_by: str
    organization_id: str
    comments: tuple[Comment, ...] = Field(default=())
    attachments: tuple[Attachment, ...] = Field(default=())
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def is_assignee(self, user_id: str) -> bool:
        return self.assigned_to is not None and self.assigned_to == user_id

    def is_creator(self, user_id: str) -> bool:
        return self.created_by == user_id

    def is_overdue(self, now: datetime) -> bool:
        if self.status in TERMINAL_STATUSES or self.due_date is None:
            return False
        return as_utc(self.due_date) < now  # type: ignore[operator]


class TaskQuery(BaseModel):
    """Store-level task filter.  ``organization_id`` is always required.

    ``visible_to`` narrows the result to tasks assigned to or created by that
    user (the Member scope).
    """

    model_config = ConfigDict(frozen=True)

    organization_id: str
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    assigned_to: str | None = None
    visible_to: str | None = None

    def matches(self, task: Task) -> bool:
        if task.organization_id != self.organization_id:
            return False
        if self.status is not None and task.status != self.status:
            return False
        if self.priority is not None and task.priority != self.priority:
            return False
        if self.category is not None and task.category != self.category:
            return False
        if self.assigned_to is not None and task.assigned_to != self.assigned_to:
            return False
        if self.visible_to is not None:
            return task.is_assignee(self.visible_to) or task.is_creator(self.visible_to)
        return True


class TaskStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = Field(default=0, ge=0)
    todo: int = Field(default=0, ge=0)
    in_progress: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    expired: int = Field(default=0, ge=0)
    overdue: int = Field(default=0, ge=0)


class TaskPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    tasks: list[Task]
    page: int
    limit: int
    total: int
    pages: int


class Identity(BaseModel):
    """Result of authenticating a session token."""

    model_config = ConfigDict(frozen=True)

    user: User
    organization: Organization | None = None


class Actor(BaseModel):
    """An authenticated user bound to exactly one organization scope."""

    model_config = ConfigDict(frozen=True)

    user: User
    organization: Organization

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def role(self) -> Role:
        return self.user.role

    @property
    def organization_id(self) -> str:
        return self.organization.id


class AuthResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: User
    organization: Organization


class Invitation(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    role: Role
    token: str
    invite_url: str
    expires_at: datetime


class OrganizationDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    organization: Organization
    created_by: UserSummary | None = None


def dump_records(records: tuple[BaseModel, ...] | list[BaseModel]) -> list[dict[str, Any]]:
    """Serialise nested records (comments, attachments) to JSON-safe dicts."""
    return [r.model_dump(mode="json") for r in records]


__all__ = [
    "TERMINAL_STATUSES",
    "Actor",
    "Attachment",
    "AuthResult",
    "Comment",
    "Identity",
    "Invitation",
    "Organization",
    "OrganizationDetails",
    "OrganizationSettings",
    "Role",
    "Task",
    "TaskCategory",
    "TaskPage",
    "TaskPriority",
    "TaskQuery",
    "TaskStats",
    "TaskStatus",
    "Theme",
    "User",
    "UserSummary",
    "as_utc",
    "dump_records",
    "utcnow",
]
