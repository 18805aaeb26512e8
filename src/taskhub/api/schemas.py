"""Response views.  JSON keys are camelCase; credentials never appear."""
from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskhub.core.types import (
    AuthResult,
    Invitation,
    Organization,
    OrganizationDetails,
    OrganizationSettings,
    Role,
    Task,
    TaskCategory,
    TaskPage,
    TaskPriority,
    TaskStats,
    TaskStatus,
    Theme,
    User,
    UserSummary,
)


class View(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRef(View):
    id: str
    name: str
    email: str


class OrganizationRef(View):
    id: str
    name: str
    slug: str


class UserView(View):
    id: str
    name: str
    email: str
    role: Role
    organization: OrganizationRef


class AuthResponse(View):
    token: str
    user: UserView


class MeResponse(View):
    user: UserView


class CommentView(View):
    id: str
    user: UserRef | None
    text: str
    created_at: datetime


class AttachmentView(View):
    id: str
    filename: str
    original_name: str
    size: int
    uploaded_by: UserRef | None
    uploaded_at: datetime


class TaskView(View):
    id: str
    title: str
    description: str | None
    status: TaskStatus
    priority: TaskPriority
    category: TaskCategory
    due_date: datetime | None
    completed_at: datetime | None
    assigned_to: UserRef | None
    created_by: UserRef | None
    organization: str
    comments: list[CommentView]
    attachments: list[AttachmentView]
    created_at: datetime
    updated_at: datetime


class PaginationView(View):
    page: int
    limit: int
    total: int
    pages: int


class TaskListResponse(View):
    tasks: list[TaskView]
    pagination: PaginationView


class StatsView(View):
    total: int
    todo: int
    in_progress: int
    completed: int
    expired: int
    overdue: int


class SettingsView(View):
    theme: Theme
    allow_public_signup: bool
    default_role: Role


class OrganizationView(View):
    id: str
    name: str
    slug: str
    description: str | None
    settings: SettingsView
    is_active: bool
    created_by: UserRef | str | None
    created_at: datetime
    updated_at: datetime


class MemberView(View):
    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    last_login: datetime | None
    created_at: datetime


class InviteResponse(View):
    message: str
    invite_token: str
    invite_url: str
    expires_at: datetime


class RoleChangeResponse(View):
    message: str
    user: MemberView


class MessageResponse(View):
    message: str


def _ref(summary: UserSummary | None) -> UserRef | None:
    if summary is None:
        return None
    return UserRef(id=summary.id, name=summary.name, email=summary.email)


def user_view(user: User, organization: Organization) -> UserView:
    return UserView(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        organization=OrganizationRef(
            id=organization.id, name=organization.name, slug=organization.slug
        ),
    )


def auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(token=result.token, user=user_view(result.user, result.organization))


def task_view(task: Task, users: Mapping[str, UserSummary]) -> TaskView:
    """Render *task*, embedding the public identity of every referenced user."""
    return TaskView(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        category=task.category,
        due_date=task.due_date,
        completed_at=task.completed_at,
        assigned_to=_ref(users.get(task.assigned_to)) if task.assigned_to else None,
        created_by=_ref(users.get(task.created_by)),
        organization=task.organization_id,
        comments=[
            CommentView(id=c.id, user=_ref(users.get(c.user_id)), text=c.text, created_at=c.created_at)
            for c in task.comments
        ],
        attachments=[
            AttachmentView(
                id=a.id,
                filename=a.filename,
                original_name=a.original_name,
                size=a.size,
                uploaded_by=_ref(users.get(a.uploaded_by)),
                uploaded_at=a.uploaded_at,
            )
            for a in task.attachments
        ],
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def task_list_response(page: TaskPage, users: Mapping[str, UserSummary]) -> TaskListResponse:
    return TaskListResponse(
        tasks=[task_view(t, users) for t in page.tasks],
        pagination=PaginationView(
            page=page.page, limit=page.limit, total=page.total, pages=page.pages
        ),
    )


def stats_view(stats: TaskStats) -> StatsView:
    return StatsView(**stats.model_dump())


def _settings_view(settings: OrganizationSettings) -> SettingsView:
    return SettingsView(**settings.model_dump())


def organization_view(
    organization: Organization,
    created_by: UserSummary | None = None,
) -> OrganizationView:
    return OrganizationView(
        id=organization.id,
        name=organization.name,
        slug=organization.slug,
        description=organization.description,
        settings=_settings_view(organization.settings),
        is_active=organization.is_active,
        created_by=_ref(created_by) if created_by else organization.created_by,
        created_at=organization.created_at,
        updated_at=organization.updated_at,
    )


def organization_details_view(details: OrganizationDetails) -> OrganizationView:
    return organization_view(details.organization, details.created_by)


def member_view(user: User) -> MemberView:
    return MemberView(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        last_login=user.last_login,
        created_at=user.created_at,
    )


def invite_response(invitation: Invitation) -> InviteResponse:
    return InviteResponse(
        message="Invite created successfully",
        invite_token=invitation.token,
        invite_url=invitation.invite_url,
        expires_at=invitation.expires_at,
    )


__all__ = [
    "AuthResponse",
    "InviteResponse",
    "MeResponse",
    "MemberView",
    "MessageResponse",
    "OrganizationView",
    "RoleChangeResponse",
    "StatsView",
    "TaskListResponse",
    "TaskView",
    "UserView",
    "auth_response",
    "invite_response",
    "member_view",
    "organization_details_view",
    "organization_view",
    "stats_view",
    "task_list_response",
    "task_view",
    "user_view",
]
