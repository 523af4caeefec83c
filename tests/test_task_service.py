from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from taskdesk.errors import NotFoundError, ValidationError
from taskdesk.models import TaskPriority, TaskStatus, User
from taskdesk.services import TaskService, TaskStatistics

pytestmark = pytest.mark.asyncio


class _StorageTrap:
    """Session stand-in that fails on any use."""

    def __getattr__(self, name: str) -> None:
        raise AssertionError(f"storage was touched via {name!r}")


@pytest.fixture()
def service(session: AsyncSession) -> TaskService:
    return TaskService(session)


async def test_create_task_defaults_to_todo(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()

    task = await service.create_task(
        owner.id,
        title="Write docs",
        description="Public API guide",
        priority=TaskPriority.HIGH,
        due_date=datetime(2030, 1, 1, 12, 0),
    )

    assert task.id is not None
    assert task.status is TaskStatus.TODO
    assert task.priority is TaskPriority.HIGH
    assert task.user_id == owner.id
    assert task.due_date == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert task.created_at.tzinfo is not None


async def test_due_date_offsets_are_normalised_to_utc(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    due = datetime(2030, 1, 1, 17, 0, tzinfo=timezone(timedelta(hours=5)))

    task = await service.create_task(
        owner.id, title="Call the Lahore office", priority=TaskPriority.LOW, due_date=due
    )
    stored = await service.get_task(task.id, owner.id)

    assert stored is not None
    assert stored.due_date == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert stored.due_date.utcoffset() == timedelta(0)
    assert stored.created_at.utcoffset() == timedelta(0)


async def test_create_task_for_unknown_owner_is_rejected(service: TaskService) -> None:
    with pytest.raises(ValidationError) as exc_info:
        await service.create_task(9999, title="Orphan", priority=TaskPriority.LOW)
    assert exc_info.value.message == "Invalid reference to related resource"


async def test_list_filters_by_status_newest_first(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    created = [
        await service.create_task(owner.id, title=f"Task {index}", priority=TaskPriority.MEDIUM)
        for index in range(3)
    ]
    await service.update_task(created[0].id, owner.id, {"status": TaskStatus.DONE})
    await service.update_task(created[2].id, owner.id, {"status": "done"})

    done = await service.list_tasks(owner.id, status=TaskStatus.DONE)

    assert [task.id for task in done] == [created[2].id, created[0].id]
    assert all(task.status is TaskStatus.DONE for task in done)


async def test_list_combines_filters_and_paginates(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    low = await service.create_task(owner.id, title="Low", priority=TaskPriority.LOW)
    urgent_one = await service.create_task(owner.id, title="Urgent 1", priority=TaskPriority.URGENT)
    urgent_two = await service.create_task(owner.id, title="Urgent 2", priority=TaskPriority.URGENT)

    urgent = await service.list_tasks(owner.id, priority=TaskPriority.URGENT)
    first_page = await service.list_tasks(owner.id, limit=2)
    second_page = await service.list_tasks(owner.id, limit=2, offset=2)
    none_match = await service.list_tasks(
        owner.id,
        status=TaskStatus.CANCELLED,
        priority=TaskPriority.URGENT,
    )

    assert [task.id for task in urgent] == [urgent_two.id, urgent_one.id]
    assert [task.id for task in first_page] == [urgent_two.id, urgent_one.id]
    assert [task.id for task in second_page] == [low.id]
    assert none_match == []


async def test_search_is_case_insensitive_and_literal(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    other = await make_user()
    percent = await service.create_task(owner.id, title="Reach 100% coverage", priority=TaskPriority.HIGH)
    described = await service.create_task(
        owner.id,
        title="Refactor",
        description="Split the WRITE path",
        priority=TaskPriority.LOW,
    )
    await service.create_task(owner.id, title="Plain_task", priority=TaskPriority.LOW)
    await service.create_task(other.id, title="Write for someone else", priority=TaskPriority.LOW)

    assert [task.id for task in await service.search_tasks(owner.id, "write")] == [described.id]
    assert [task.id for task in await service.search_tasks(owner.id, "%")] == [percent.id]
    assert [task.title for task in await service.search_tasks(owner.id, "n_t")] == ["Plain_task"]
    assert await service.search_tasks(owner.id, "e_c") == []
    assert len(await service.search_tasks(owner.id, "")) == 3


async def test_tasks_of_other_owners_are_invisible(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    intruder = await make_user()
    task = await service.create_task(owner.id, title="Private", priority=TaskPriority.LOW)

    assert await service.get_task(task.id, intruder.id) is None
    with pytest.raises(NotFoundError) as exc_info:
        await service.update_task(task.id, intruder.id, {"title": "Hijacked"})
    assert exc_info.value.message == "Task not found or access denied"
    with pytest.raises(NotFoundError):
        await service.delete_task(task.id, intruder.id)

    unchanged = await service.get_task(task.id, owner.id)
    assert unchanged is not None
    assert unchanged.title == "Private"


async def test_empty_update_fails_before_touching_storage() -> None:
    service = TaskService(_StorageTrap())  # type: ignore[arg-type]

    with pytest.raises(ValidationError) as exc_info:
        await service.update_task(1, 1, {})
    assert exc_info.value.message == "No fields to update"


async def test_update_rejects_unknown_fields(service: TaskService) -> None:
    with pytest.raises(ValidationError):
        await service.update_task(1, 1, {"user_id": 2})


async def test_update_applies_only_supplied_fields(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    task = await service.create_task(
        owner.id,
        title="Ship release",
        description="Tag and publish",
        priority=TaskPriority.MEDIUM,
        due_date=datetime(2030, 6, 1),
    )
    created_at = task.created_at
    previous_update = task.updated_at

    updated = await service.update_task(
        task.id,
        owner.id,
        {"status": TaskStatus.IN_PROGRESS, "due_date": None},
    )

    assert updated.status is TaskStatus.IN_PROGRESS
    assert updated.due_date is None
    assert updated.title == "Ship release"
    assert updated.description == "Tag and publish"
    assert updated.priority is TaskPriority.MEDIUM
    assert updated.created_at == created_at
    assert updated.updated_at >= previous_update


async def test_delete_removes_task(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    task = await service.create_task(owner.id, title="Temporary", priority=TaskPriority.LOW)

    await service.delete_task(task.id, owner.id)

    assert await service.get_task(task.id, owner.id) is None
    with pytest.raises(NotFoundError):
        await service.delete_task(task.id, owner.id)


async def test_statistics_report_zero_counts(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    tasks = [
        await service.create_task(owner.id, title=f"Task {index}", priority=TaskPriority.LOW)
        for index in range(4)
    ]
    await service.update_task(tasks[0].id, owner.id, {"status": TaskStatus.DONE})

    stats = await service.get_statistics(owner.id)

    assert stats == TaskStatistics(total=4, todo=3, in_progress=0, done=1, cancelled=0)


async def test_statistics_for_user_without_tasks(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()

    assert await service.get_statistics(owner.id) == TaskStatistics(0, 0, 0, 0, 0)


async def test_status_transitions_are_free_by_default(
    service: TaskService,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    owner = await make_user()
    task = await service.create_task(owner.id, title="Flip", priority=TaskPriority.LOW)

    await service.update_task(task.id, owner.id, {"status": TaskStatus.DONE})
    reopened = await service.update_task(task.id, owner.id, {"status": TaskStatus.CANCELLED})

    assert reopened.status is TaskStatus.CANCELLED


async def test_status_transitions_can_be_enforced(
    session: AsyncSession,
    make_user: Callable[..., Awaitable[User]],
) -> None:
    service = TaskService(session, enforce_status_transitions=True)
    owner = await make_user()
    task = await service.create_task(owner.id, title="Guarded", priority=TaskPriority.LOW)

    started = await service.update_task(task.id, owner.id, {"status": TaskStatus.IN_PROGRESS})
    assert started.status is TaskStatus.IN_PROGRESS
    finished = await service.update_task(task.id, owner.id, {"status": TaskStatus.DONE})
    assert finished.status is TaskStatus.DONE

    with pytest.raises(ValidationError) as exc_info:
        await service.update_task(task.id, owner.id, {"status": TaskStatus.CANCELLED})
    assert "done" in exc_info.value.message

    current = await service.get_task(task.id, owner.id)
    assert current is not None
    assert current.status is TaskStatus.DONE
