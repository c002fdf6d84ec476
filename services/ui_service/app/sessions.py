# services/ui_service/app/sessions.py
import logging
import os
import shutil
import tempfile
from typing import Dict, Optional, Tuple

from fabtrack.api_client import ProjectsAPI, TasksAPI
from fabtrack.file_view import FileViewController
from fabtrack.models import Category
from fabtrack.storage import ObjectUrlRegistry
from fabtrack.task_board import BoardLabels, TaskBoard

logger = logging.getLogger("FabTrack_Core").getChild("UIService").getChild("Sessions")


class SessionStore:
    """Per-browser-session view state. Nothing is shared between sessions."""

    def __init__(self, projects_api: ProjectsAPI, registry: ObjectUrlRegistry):
        self.projects_api = projects_api
        self.registry = registry
        self._file_views: Dict[str, FileViewController] = {}
        self._boards: Dict[Tuple[str, Category], TaskBoard] = {}
        self._download_dirs: Dict[str, str] = {}

    def file_view(self, session_id: str, project_no: str) -> FileViewController:
        """Returns the session's view for `project_no`, closing any view for a different project."""
        current = self._file_views.get(session_id)
        if current is not None and current.project_no == project_no and not current.closed:
            return current
        if current is not None:
            current.close()
        view = FileViewController(project_no, self.projects_api, self.registry)
        self._file_views[session_id] = view
        logger.info(f"Session {session_id[:8]}: opened file view for project {project_no}")
        return view

    def current_file_view(self, session_id: str) -> Optional[FileViewController]:
        return self._file_views.get(session_id)

    def task_board(self, session_id: str, category: Category) -> TaskBoard:
        category = Category(category)
        key = (session_id, category)
        if key not in self._boards:
            api = TasksAPI(self.projects_api.client, category)
            self._boards[key] = TaskBoard(api, BoardLabels.for_category(category))
        return self._boards[key]

    def write_download(self, session_id: str, file_name: str, content: bytes) -> str:
        """Writes downloaded bytes into the session's temp directory so Gradio can serve them."""
        directory = self._download_dirs.get(session_id)
        if directory is None:
            directory = tempfile.mkdtemp(prefix="fabtrack-")
            self._download_dirs[session_id] = directory
        path = os.path.join(directory, os.path.basename(file_name) or "download")
        with open(path, "wb") as f:
            f.write(content)
        return path

    def close(self, session_id: str) -> None:
        view = self._file_views.pop(session_id, None)
        if view is not None:
            view.close()
        for key in [k for k in self._boards if k[0] == session_id]:
            del self._boards[key]
        download_dir = self._download_dirs.pop(session_id, None)
        if download_dir is not None:
            shutil.rmtree(download_dir, ignore_errors=True)
        logger.debug(f"Session {session_id[:8]}: closed")

    def close_all(self) -> None:
        for session_id in set(self._file_views) | set(self._download_dirs):
            self.close(session_id)
        self._boards.clear()
