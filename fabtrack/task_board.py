# fabtrack/task_board.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from fabtrack.config import logger as core_logger
from fabtrack.errors import ApiError
from fabtrack.models import Category, CATEGORY_INFO, Task, TaskCreate, TaskStatus

logger = core_logger.getChild("TaskBoard")

ALL = "all"


class BoardLabels(BaseModel):
    """Per-category wording for a task board."""
    title: str
    icon: str
    task_noun: str

    @classmethod
    def for_category(cls, category: Category) -> "BoardLabels":
        info = CATEGORY_INFO[Category(category)]
        return cls(title=f"{info.label} Management", icon=info.icon, task_noun=f"{info.label.lower()} task")


class TaskBoard:
    """One board for any category; the category only changes the API client and labels."""

    def __init__(self, api, labels: BoardLabels):
        self.api = api
        self.labels = labels
        self.tasks: List[Task] = []
        self.is_loading = False
        self.error: Optional[str] = None

    async def load(self) -> bool:
        self.is_loading = True
        self.error = None
        try:
            self.tasks = await self.api.get_all()
            return True
        except ApiError as e:
            logger.error(f"Failed to fetch {self.labels.task_noun}s: {e}")
            self.error = "Failed to load tasks. Please ensure the backend is running."
            return False
        finally:
            self.is_loading = False

    def _validate(self, fields: Dict[str, Any]) -> Optional[TaskCreate]:
        if not str(fields.get("title") or "").strip():
            self.error = "Task title is required"
            return None
        if not str(fields.get("project_no") or "").strip():
            self.error = "Project No is required"
            return None
        try:
            return TaskCreate.model_validate(fields)
        except ValidationError as e:
            logger.warning(f"Rejected task form: {e}")
            self.error = "Invalid task details."
            return None

    async def create(self, fields: Dict[str, Any]) -> Optional[Task]:
        self.error = None
        payload = self._validate(fields)
        if payload is None:
            return None
        try:
            task = await self.api.create(payload)
        except ApiError as e:
            logger.error(f"Failed to create {self.labels.task_noun}: {e}")
            self.error = "Failed to create task."
            return None
        self.tasks = [task] + self.tasks
        return task

    async def update(self, task_id: str, fields: Dict[str, Any]) -> Optional[Task]:
        """Full edit from the edit form; same validation as create."""
        self.error = None
        payload = self._validate(fields)
        if payload is None:
            return None
        return await self._patch(task_id, payload.model_dump(), "Failed to save changes to the task.")

    async def set_status(self, task_id: str, status: TaskStatus) -> Optional[Task]:
        self.error = None
        return await self._patch(task_id, {"status": TaskStatus(status).value}, "Failed to update task status.")

    async def _patch(self, task_id: str, fields: Dict[str, Any], failure: str) -> Optional[Task]:
        try:
            updated = await self.api.update(task_id, fields)
        except ApiError as e:
            logger.error(f"Failed to update {self.labels.task_noun} {task_id}: {e}")
            self.error = failure
            return None
        self.tasks = [updated if t.id == task_id else t for t in self.tasks]
        return updated

    async def delete(self, task_id: str, confirmed: bool = False) -> bool:
        if not confirmed:
            return False
        self.error = None
        try:
            await self.api.delete(task_id)
        except ApiError as e:
            logger.error(f"Failed to delete {self.labels.task_noun} {task_id}: {e}")
            self.error = "Failed to delete task."
            return False
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return True

    def filtered(self, priority: str = ALL, status: str = ALL, project_no: str = ALL) -> List[Task]:
        result = []
        for task in self.tasks:
            if priority != ALL and task.priority.value != priority:
                continue
            if status != ALL and task.status.value != status:
                continue
            if project_no != ALL and task.project_no != project_no:
                continue
            result.append(task)
        return result

    def project_numbers(self) -> List[str]:
        return sorted({t.project_no for t in self.tasks if t.project_no})

    def counts(self, tasks: Optional[List[Task]] = None) -> Dict[str, int]:
        tasks = self.tasks if tasks is None else tasks
        return {s.value: sum(1 for t in tasks if t.status == s) for s in TaskStatus}
