"""Input models shared by the service layer and the HTTP API.

Every model accepts both camelCase keys (the JSON wire format) and
snake_case field names, so services can be called directly from Python
with the same validation the API applies to request bodies.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Annotated, Any, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from taskhub.core.exceptions import ValidationError
from taskhub.core.types import (
    Role,
    TaskCategory,
    TaskPriority,
    TaskStatus,
    Theme,
    as_utc,
)
from taskhub.utils.validation import normalize_email, validate_email

PersonName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
OrgName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=100)]
Password = Annotated[str, StringConstraints(min_length=6, max_length=128)]
TaskTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
TaskDescription = Annotated[str, StringConstraints(max_length=2000)]
CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]


class InputModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_email(v: str) -> str:
    email = normalize_email(v)
    if not validate_email(email):
        raise ValueError("must be a valid email address")
    return email


def _reject_expired(v: TaskStatus | None) -> TaskStatus | None:
    if v == TaskStatus.EXPIRED:
        raise ValueError("status Expired is set by the expiration sweeper only")
    return v


def _reject_admin(v: Role | None) -> Role | None:
    if v == Role.ADMIN:
        raise ValueError("role must be Manager or Member")
    return v


class RegistrationRequest(InputModel):
    name: PersonName
    email: str
    password: Password
    organization_name: OrgName

    check_email = field_validator("email")(_check_email)


class LoginRequest(InputModel):
    email: str
    password: str = Field(..., min_length=1)

    check_email = field_validator("email")(_check_email)


class JoinRequest(InputModel):
    name: PersonName
    email: str
    password: Password
    invite_token: str = Field(..., min_length=1)

    check_email = field_validator("email")(_check_email)


class TaskCreate(InputModel):
    title: TaskTitle
    description: TaskDescription | None = None
    category: TaskCategory
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.TODO
    due_date: datetime | None = None
    assigned_to: str | None = None

    check_status = field_validator("status")(_reject_expired)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)


class TaskUpdate(InputModel):
    """Partial task update.  Only keys present in the payload are applied."""

    model_config = ConfigDict(extra="forbid")

    title: TaskTitle | None = None
    description: TaskDescription | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    due_date: datetime | None = None
    assigned_to: str | None = None

    check_status = field_validator("status")(_reject_expired)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return as_utc(v)

    @model_validator(mode="after")
    def reject_null_required_fields(self) -> TaskUpdate:
        for name in ("title", "status", "priority", "category"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the fields the caller actually supplied."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskFilters(InputModel):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: TaskCategory | None = None
    assigned_to: str | None = None


class Pagination(InputModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class CommentCreate(InputModel):
    text: CommentText


class AttachmentCreate(InputModel):
    filename: str = Field(..., min_length=1, max_length=255)
    original_name: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)


class SettingsPatch(InputModel):
    theme: Theme | None = None
    allow_public_signup: bool | None = None
    default_role: Role | None = None

    check_default_role = field_validator("default_role")(_reject_admin)


class OrganizationUpdate(InputModel):
    name: OrgName | None = None
    description: str | None = Field(default=None, max_length=500)
    settings: SettingsPatch | None = None


class InviteRequest(InputModel):
    email: str
    role: Role = Role.MEMBER

    check_email = field_validator("email")(_check_email)
    check_role = field_validator("role")(_reject_admin)


class RoleChange(InputModel):
    role: Role


ModelT = TypeVar("ModelT", bound=BaseModel)


def field_errors(raw_errors: Iterable[Mapping[str, Any]]) -> list[dict[str, str]]:
    """Flatten pydantic-style errors into ``[{"field": ..., "message": ...}]``."""
    errors = []
    for err in raw_errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "body", "message": err.get("msg", "invalid")})
    return errors


def coerce(model: type[ModelT], data: ModelT | Mapping[str, Any]) -> ModelT:
    """Return *data* as an instance of *model*, raising :class:`ValidationError`."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(field_errors(exc.errors())) from exc


__all__ = [
    "AttachmentCreate",
    "CommentCreate",
    "InviteRequest",
    "JoinRequest",
    "LoginRequest",
    "OrganizationUpdate",
    "Pagination",
    "RegistrationRequest",
    "RoleChange",
    "SettingsPatch",
    "TaskCreate",
    "TaskFilters",
    "TaskUpdate",
    "coerce",
    "field_errors",
]
