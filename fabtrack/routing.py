# fabtrack/routing.py
"""Maps app paths such as `/files/17408` or `#/doors` to typed routes."""
import re
from typing import Dict, Literal, Union
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict

from fabtrack.models import Category


class JobListRoute(BaseModel):
    kind: Literal["job_list"] = "job_list"
    model_config = ConfigDict(frozen=True)


class FileViewRoute(BaseModel):
    kind: Literal["file_view"] = "file_view"
    project_no: str
    model_config = ConfigDict(frozen=True)


class TaskBoardRoute(BaseModel):
    kind: Literal["task_board"] = "task_board"
    category: Category
    model_config = ConfigDict(frozen=True)


class AdminRoute(BaseModel):
    kind: Literal["admin"] = "admin"
    model_config = ConfigDict(frozen=True)


Route = Union[JobListRoute, FileViewRoute, TaskBoardRoute, AdminRoute]

BOARD_PATHS: Dict[str, Category] = {
    "/panels": Category.PANEL,
    "/cutting": Category.CUTTING,
    "/doors": Category.DOOR,
    "/strip-curtains": Category.STRIP_CURTAIN,
    "/accessories": Category.ACCESSORIES,
    "/system": Category.SYSTEM,
}
_BOARD_SLUGS = {category: path for path, category in BOARD_PATHS.items()}
_FILES_PATTERN = re.compile(r"^/files/(.+)$")


def match_route(path: str) -> Route:
    """Unknown or empty paths fall back to the job list."""
    path = (path or "").strip()
    if path.startswith("#"):
        path = path[1:]
    if not path.startswith("/"):
        path = "/" + path
    if len(path) > 1:
        path = path.rstrip("/") or "/"

    match = _FILES_PATTERN.match(path)
    if match:
        return FileViewRoute(project_no=unquote(match.group(1)))
    if path in BOARD_PATHS:
        return TaskBoardRoute(category=BOARD_PATHS[path])
    if path == "/admin":
        return AdminRoute()
    return JobListRoute()


def route_path(route: Route) -> str:
    if isinstance(route, FileViewRoute):
        return f"/files/{route.project_no}"
    if isinstance(route, TaskBoardRoute):
        return _BOARD_SLUGS[route.category]
    if isinstance(route, AdminRoute):
        return "/admin"
    return "/"
