"""TaskManager tests: lifecycle, member restrictions, scope, pagination, stats."""
from __future__ import annotations

from datetime import timedelta

import pytest

from taskhub.core.exceptions import (
    ForbiddenError,
    InvalidAssignmentError,
    NotFoundError,
    ValidationError,
)
from taskhub.core.types import TaskStatus, utcnow


def bug(title: str = "Fix login", **extra) -> dict:
    return {"title": title, "category": "Bug", **extra}


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_defaults(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        assert task.status == TaskStatus.TODO
        assert task.priority == "Medium"
        assert task.created_by == admin.id
        assert task.organization_id == admin.organization_id
        assert task.completed_at is None

    @pytest.mark.asyncio
    async def test_create_completed_sets_completed_at(self, tasks, manager_actor) -> None:
        task = await tasks.create(bug(status="Completed"), manager_actor)
        assert task.completed_at is not None

    @pytest.mark.asyncio
    async def test_member_cannot_create(self, tasks, member) -> None:
        with pytest.raises(ForbiddenError):
            await tasks.create(bug(), member)

    @pytest.mark.asyncio
    async def test_cannot_create_expired(self, tasks, admin) -> None:
        with pytest.raises(ValidationError) as exc_info:
            await tasks.create(bug(status="Expired"), admin)
        assert exc_info.value.errors[0]["field"] == "status"

    @pytest.mark.asyncio
    async def test_camel_case_payload(self, tasks, admin, member) -> None:
        due = (utcnow() + timedelta(days=2)).isoformat()
        task = await tasks.create(bug(assignedTo=member.id, dueDate=due), admin)
        assert task.assigned_to == member.id
        assert task.due_date is not None

    @pytest.mark.asyncio
    async def test_assignee_must_be_member_of_organization(self, tasks, admin, other_admin) -> None:
        with pytest.raises(InvalidAssignmentError):
            await tasks.create(bug(assigned_to=other_admin.id), admin)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("assignee", ["no-such-user", "not a valid id!"])
    async def test_unknown_assignee(self, tasks, admin, assignee) -> None:
        with pytest.raises(InvalidAssignmentError):
            await tasks.create(bug(assigned_to=assignee), admin)

    @pytest.mark.asyncio
    async def test_inactive_assignee(self, tasks, organizations, admin, member) -> None:
        await organizations.remove_member(admin.organization_id, member.id, admin)
        with pytest.raises(InvalidAssignmentError):
            await tasks.create(bug(assigned_to=member.id), admin)


class TestGet:

    @pytest.mark.asyncio
    async def test_other_organization_is_not_found(self, tasks, admin, other_admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(NotFoundError):
            await tasks.get(task.id, other_admin)

    @pytest.mark.asyncio
    async def test_member_sees_only_own_tasks(self, tasks, admin, member) -> None:
        mine = await tasks.create(bug(assigned_to=member.id), admin)
        theirs = await tasks.create(bug("Other"), admin)
        assert (await tasks.get(mine.id, member)).id == mine.id
        with pytest.raises(ForbiddenError):
            await tasks.get(theirs.id, member)


class TestUpdate:

    @pytest.mark.asyncio
    async def test_completed_at_follows_status(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)

        task = await tasks.update(task.id, {"status": "Completed"}, admin)
        stamped = task.completed_at
        assert stamped is not None

        task = await tasks.update(task.id, {"title": "Renamed"}, admin)
        assert task.completed_at == stamped

        task = await tasks.update(task.id, {"status": "In Progress"}, admin)
        assert task.completed_at is None

    @pytest.mark.asyncio
    async def test_member_may_change_status_of_assigned_task(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        updated = await tasks.update(task.id, {"status": "In Progress"}, member)
        assert updated.status == TaskStatus.IN_PROGRESS

    @pytest.mark.asyncio
    async def test_member_cannot_change_status_of_unassigned_task(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ForbiddenError):
            await tasks.update(task.id, {"status": "Completed"}, member)

    @pytest.mark.asyncio
    async def test_member_update_with_other_fields_rejected_whole(
        self, tasks, store, admin, member
    ) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        with pytest.raises(ForbiddenError):
            await tasks.update(task.id, {"status": "Completed", "title": "Hijacked"}, member)
        stored = await store.get_task(task.id, admin.organization_id)
        assert stored.status == TaskStatus.TODO
        assert stored.title == "Fix login"

    @pytest.mark.asyncio
    async def test_member_update_with_unknown_field_is_forbidden(
        self, tasks, store, admin, member
    ) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        with pytest.raises(ForbiddenError):
            await tasks.update(task.id, {"status": "Completed", "organization": "x"}, member)
        stored = await store.get_task(task.id, admin.organization_id)
        assert stored.status == TaskStatus.TODO

    @pytest.mark.asyncio
    async def test_cannot_set_expired(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ValidationError):
            await tasks.update(task.id, {"status": "Expired"}, admin)

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ValidationError):
            await tasks.update(task.id, {"organization": "elsewhere"}, admin)

    @pytest.mark.asyncio
    async def test_null_title_rejected(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ValidationError):
            await tasks.update(task.id, {"title": None}, admin)

    @pytest.mark.asyncio
    async def test_unassign(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        updated = await tasks.update(task.id, {"assignedTo": None}, admin)
        assert updated.assigned_to is None

    @pytest.mark.asyncio
    async def test_update_bumps_updated_at(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        updated = await tasks.update(task.id, {"priority": "High"}, admin)
        assert updated.updated_at >= task.updated_at
        assert updated.created_at == task.created_at


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        await tasks.delete(task.id, admin)
        with pytest.raises(NotFoundError):
            await tasks.get(task.id, admin)

    @pytest.mark.asyncio
    async def test_delete_missing(self, tasks, admin) -> None:
        with pytest.raises(NotFoundError):
            await tasks.delete("missing", admin)

    @pytest.mark.asyncio
    async def test_delete_other_organization(self, tasks, admin, other_admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(NotFoundError):
            await tasks.delete(task.id, other_admin)

    @pytest.mark.asyncio
    async def test_member_cannot_delete(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        with pytest.raises(ForbiddenError):
            await tasks.delete(task.id, member)


class TestList:

    @pytest.mark.asyncio
    async def test_pagination(self, tasks, admin) -> None:
        await tasks.create(bug("First"), admin)
        second = await tasks.create(bug("Second"), admin)

        page = await tasks.list({}, {"page": 1, "limit": 1}, admin)
        assert page.total == 2
        assert page.pages == 2
        assert [t.id for t in page.tasks] == [second.id]

        page = await tasks.list({}, {"page": 3, "limit": 1}, admin)
        assert page.tasks == []

    @pytest.mark.asyncio
    async def test_empty_organization(self, tasks, admin) -> None:
        page = await tasks.list(None, None, admin)
        assert page.total == 0
        assert page.pages == 0

    @pytest.mark.asyncio
    async def test_member_scope(self, tasks, admin, member) -> None:
        assigned = await tasks.create(bug("Assigned", assigned_to=member.id), admin)
        await tasks.create(bug("Unrelated"), admin)

        page = await tasks.list({}, {}, member)
        assert [t.id for t in page.tasks] == [assigned.id]
        assert page.total == 1

    @pytest.mark.asyncio
    async def test_manager_sees_everything(self, tasks, admin, manager_actor, member) -> None:
        await tasks.create(bug("A", assigned_to=member.id), admin)
        await tasks.create(bug("B"), admin)
        assert (await tasks.list({}, {}, manager_actor)).total == 2

    @pytest.mark.asyncio
    async def test_organizations_are_isolated(self, tasks, admin, other_admin) -> None:
        await tasks.create(bug(), admin)
        assert (await tasks.list({}, {}, other_admin)).total == 0

    @pytest.mark.asyncio
    async def test_filters(self, tasks, admin, member) -> None:
        await tasks.create(bug("A", priority="High", assigned_to=member.id), admin)
        await tasks.create(bug("B", priority="Low"), admin)
        await tasks.create({"title": "C", "category": "Feature", "status": "Completed"}, admin)

        assert (await tasks.list({"priority": "High"}, {}, admin)).total == 1
        assert (await tasks.list({"category": "Feature"}, {}, admin)).total == 1
        assert (await tasks.list({"status": "Completed"}, {}, admin)).total == 1
        assert (await tasks.list({"assignedTo": member.id}, {}, admin)).total == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("filters", "pagination"),
        [
            ({"status": "Done"}, {}),
            ({}, {"limit": 101}),
            ({}, {"page": 0}),
        ],
    )
    async def test_invalid_query(self, tasks, admin, filters, pagination) -> None:
        with pytest.raises(ValidationError):
            await tasks.list(filters, pagination, admin)


class TestStats:

    @pytest.mark.asyncio
    async def test_counts_by_status(self, tasks, store, admin) -> None:
        for status in ("Todo", "Todo", "In Progress", "Completed"):
            await tasks.create(bug(status=status), admin)
        expired = await tasks.create(bug("Late"), admin)
        await store.update_task(expired.model_copy(update={"status": TaskStatus.EXPIRED}))

        stats = await tasks.stats(admin)
        assert stats.total == 5
        assert stats.todo == 2
        assert stats.in_progress == 1
        assert stats.completed == 1
        assert stats.expired == 1
        assert stats.overdue == 0

    @pytest.mark.asyncio
    async def test_overdue_excludes_terminal_statuses(self, tasks, admin) -> None:
        past = (utcnow() - timedelta(days=1)).isoformat()
        await tasks.create(bug("Open", due_date=past), admin)
        await tasks.create(bug("Done", due_date=past, status="Completed"), admin)
        stats = await tasks.stats(admin)
        assert stats.overdue == 1

    @pytest.mark.asyncio
    async def test_member_stats_use_member_scope(self, tasks, admin, member) -> None:
        await tasks.create(bug("Mine", assigned_to=member.id), admin)
        await tasks.create(bug("Theirs"), admin)
        assert (await tasks.stats(member)).total == 1


class TestAnnotations:

    @pytest.mark.asyncio
    async def test_assignee_can_comment(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        task = await tasks.add_comment(task.id, "  On it  ", member)
        assert len(task.comments) == 1
        assert task.comments[0].text == "On it"
        assert task.comments[0].user_id == member.id

    @pytest.mark.asyncio
    async def test_unrelated_member_cannot_comment(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ForbiddenError):
            await tasks.add_comment(task.id, "Hello", member)

    @pytest.mark.asyncio
    async def test_empty_comment_rejected(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        with pytest.raises(ValidationError):
            await tasks.add_comment(task.id, "   ", admin)

    @pytest.mark.asyncio
    async def test_attachment_metadata(self, tasks, admin) -> None:
        task = await tasks.create(bug(), admin)
        task = await tasks.add_attachment(
            task.id, {"filename": "a1.png", "originalName": "screen.png", "size": 2048}, admin
        )
        attachment = task.attachments[0]
        assert attachment.original_name == "screen.png"
        assert attachment.uploaded_by == admin.id

    @pytest.mark.asyncio
    async def test_related_users(self, tasks, admin, member) -> None:
        task = await tasks.create(bug(assigned_to=member.id), admin)
        task = await tasks.add_comment(task.id, "Noted", member)
        users = await tasks.related_users([task])
        assert set(users) == {admin.id, member.id}
        assert users[member.id].email == "max@acme.test"
