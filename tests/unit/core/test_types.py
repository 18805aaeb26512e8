"""Unit tests for taskhub.core.types"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

from pydantic import ValidationError
import pytest

from taskhub.core.types import (
    Organization,
    OrganizationSettings,
    Role,
    Task,
    TaskCategory,
    TaskQuery,
    TaskStatus,
    User,
    as_utc,
    utcnow,
)


def _task(**kwargs) -> Task:
    defaults = {
        "id": "t1",
        "title": "Fix login",
        "category": TaskCategory.BUG,
        "created_by": "u1",
        "organization_id": "o1",
    }
    return Task(**{**defaults, **kwargs})


class TestAsUtc:
    def test_none(self):
        assert as_utc(None) is None

    def test_naive_assumed_utc(self):
        assert as_utc(datetime(2024, 1, 1, 12)).tzinfo is UTC

    def test_aware_converted(self):
        value = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert as_utc(value).hour == 10


class TestOrganization:
    def test_invalid_slug_rejected(self):
        with pytest.raises(ValidationError):
            Organization(id="o1", name="Acme", slug="Not A Slug", created_by="u1")

    def test_admin_default_role_rejected(self):
        with pytest.raises(ValidationError):
            OrganizationSettings(default_role=Role.ADMIN)

    def test_equality_by_id(self):
        a = Organization(id="o1", name="Acme", slug="acme", created_by="u1")
        b = Organization(id="o1", name="Renamed", slug="renamed", created_by="u1")
        assert a == b
        assert hash(a) == hash(b)


class TestUser:
    def test_secrets_hidden_from_repr(self):
        user = User(id="u1", name="Ada", email="a@b.io", password_hash="$2b$secret", invite_token="tok")
        assert "$2b$secret" not in repr(user)
        assert "tok" not in repr(user)

    def test_pending_invite(self):
        now = utcnow()
        pending = User(
            id="u1", name="Invited User", email="a@b.io", password_hash="!",
            is_active=False, invite_token="tok", invite_expires=now + timedelta(days=1),
        )
        assert pending.has_pending_invite(now)
        assert not pending.has_pending_invite(now + timedelta(days=2))
        assert not pending.model_copy(update={"is_active": True}).has_pending_invite(now)


class TestTask:
    def test_is_overdue(self):
        now = utcnow()
        assert _task(due_date=now - timedelta(hours=1)).is_overdue(now)
        assert not _task(due_date=now + timedelta(hours=1)).is_overdue(now)
        assert not _task().is_overdue(now)
        assert not _task(due_date=now - timedelta(hours=1), status=TaskStatus.COMPLETED).is_overdue(now)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            _task().title = "changed"  # type: ignore[misc]


class TestTaskQuery:
    def test_organization_always_applied(self):
        assert not TaskQuery(organization_id="o2").matches(_task())

    def test_visible_to(self):
        query = TaskQuery(organization_id="o1", visible_to="u2")
        assert not query.matches(_task())
        assert query.matches(_task(assigned_to="u2"))
        assert query.matches(_task(created_by="u2"))

    def test_filters_combine(self):
        query = TaskQuery(organization_id="o1", status=TaskStatus.TODO, category=TaskCategory.BUG)
        assert query.matches(_task())
        assert not query.matches(_task(status=TaskStatus.COMPLETED))
