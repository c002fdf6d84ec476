import pytest
from unittest.mock import AsyncMock

from fabtrack.api_client import TasksAPI
from fabtrack.errors import NetworkError, ServerError
from fabtrack.models import Category, Task, TaskCreate, TaskPriority, TaskStatus
from fabtrack.task_board import BoardLabels, TaskBoard


def make_task(task_id, project_no="17408", priority="medium", status="pending", title="Task"):
    return Task(id=task_id, title=title, project_no=project_no, priority=priority, status=status)


@pytest.fixture
def api():
    mock = AsyncMock(spec=TasksAPI)
    mock.get_all.return_value = [
        make_task("1", "17408", "high", "pending"),
        make_task("2", "4715", "low", "completed"),
        make_task("3", "17408", "medium", "in-progress"),
    ]
    return mock


@pytest.fixture
def board(api):
    return TaskBoard(api, BoardLabels.for_category(Category.DOOR))


def test_labels_follow_category():
    labels = BoardLabels.for_category(Category.STRIP_CURTAIN)
    assert labels.title == "Strip Curtain Management"
    assert labels.icon == "🎪"
    assert labels.task_noun == "strip curtain task"


@pytest.mark.asyncio
async def test_load_and_filter(board):
    assert await board.load() is True
    assert [t.id for t in board.filtered(priority="high")] == ["1"]
    assert [t.id for t in board.filtered(status="completed")] == ["2"]
    assert [t.id for t in board.filtered(project_no="17408")] == ["1", "3"]
    assert [t.id for t in board.filtered()] == ["1", "2", "3"]
    assert board.project_numbers() == ["17408", "4715"]
    assert board.counts() == {"pending": 1, "in-progress": 1, "completed": 1}


@pytest.mark.asyncio
async def test_load_failure_sets_message(board, api):
    api.get_all.side_effect = NetworkError("Cannot reach backend")
    assert await board.load() is False
    assert board.error == "Failed to load tasks. Please ensure the backend is running."
    assert board.is_loading is False


@pytest.mark.asyncio
async def test_create_validates_required_fields(board, api):
    assert await board.create({"title": "  ", "project_no": "17408"}) is None
    assert board.error == "Task title is required"
    assert await board.create({"title": "Fit seals", "project_no": ""}) is None
    assert board.error == "Project No is required"
    api.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_prepends_new_task(board, api):
    await board.load()
    api.create.return_value = make_task("9", title="Fit seals")
    task = await board.create({"title": "Fit seals", "project_no": "17408", "priority": "high"})

    assert task.id == "9"
    assert board.tasks[0].id == "9"
    payload = api.create.call_args[0][0]
    assert isinstance(payload, TaskCreate)
    assert payload.priority == TaskPriority.HIGH.value


@pytest.mark.asyncio
async def test_set_status_replaces_task(board, api):
    await board.load()
    api.update.return_value = make_task("1", status="completed", priority="high")
    await board.set_status("1", TaskStatus.COMPLETED)

    api.update.assert_awaited_once_with("1", {"status": "completed"})
    assert board.tasks[0].status == TaskStatus.COMPLETED


@pytest.mark.asyncio
async def test_set_status_failure(board, api):
    await board.load()
    api.update.side_effect = ServerError("API Request Failed (500): x", status_code=500)
    assert await board.set_status("1", TaskStatus.COMPLETED) is None
    assert board.error == "Failed to update task status."
    assert board.tasks[0].status == TaskStatus.PENDING


@pytest.mark.asyncio
async def test_delete_requires_confirmation(board, api):
    await board.load()
    assert await board.delete("2") is False
    api.delete.assert_not_awaited()

    assert await board.delete("2", confirmed=True) is True
    api.delete.assert_awaited_once_with("2")
    assert [t.id for t in board.tasks] == ["1", "3"]


@pytest.mark.asyncio
async def test_update_validates_then_patches_full_task(board, api):
    await board.load()
    assert await board.update("3", {"title": "", "project_no": "17408"}) is None
    assert board.error == "Task title is required"
    api.update.assert_not_awaited()

    api.update.return_value = make_task("3", priority="high", status="in-progress", title="Hang door")
    updated = await board.update("3", {
        "title": "  Hang door ", "description": "Left leaf first", "priority": "high",
        "status": "in-progress", "project_no": "17408", "due_date": "2024-06-01",
    })

    assert updated.title == "Hang door"
    assert board.error is None
    api.update.assert_awaited_once_with("3", {
        "title": "Hang door", "description": "Left leaf first", "priority": "high",
        "status": "in-progress", "project_no": "17408", "due_date": "2024-06-01",
    })
    assert [t.title for t in board.tasks] == ["Task", "Task", "Hang door"]


@pytest.mark.asyncio
async def test_update_failure_keeps_task(board, api):
    await board.load()
    api.update.side_effect = NetworkError("Cannot reach backend")
    assert await board.update("1", {"title": "Renamed", "project_no": "17408"}) is None
    assert board.error == "Failed to save changes to the task."
    assert board.tasks[0].title == "Task"
