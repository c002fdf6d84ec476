# fabtrack/file_view.py
"""
Client-side state for the per-project file view.

One `FileViewController` is the component instance for an open project. It owns
the category file list, the preview selector (and through it the single live
object URL), the upload staging buffer and the upload orchestrator. Every
network call is an await point; results that arrive after the user moved on,
or after `close()`, are discarded instead of being applied.
"""
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from fabtrack.config import logger as core_logger
from fabtrack.errors import ApiError
from fabtrack.models import Blob, Category, CATEGORY_INFO, ProjectFile, StagedFile
from fabtrack.staging import StagingBuffer
from fabtrack.storage import ObjectUrlHandle, ObjectUrlRegistry, object_urls
from fabtrack.utils import is_previewable

logger = core_logger.getChild("FileView")


class PreviewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


class CategoryFileList:
    """Holds the metadata of files stored for one project+category pair."""

    def __init__(self, api):
        self.api = api
        self.files: List[ProjectFile] = []
        self.project_no: Optional[str] = None
        self.category: Optional[Category] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.closed = False
        self._generation = 0

    async def fetch(self, project_no: str, category: Category) -> bool:
        """Replaces the held list on success; keeps the previous list on failure."""
        if self.closed:
            return False
        category = Category(category)
        self._generation += 1
        generation = self._generation
        self.project_no, self.category = project_no, category
        self.is_loading = True
        self.error = None
        job_prefix = f"[{project_no}/{category.value}]"
        try:
            files = await self.api.get_files_by_category(project_no, category)
        except ApiError as e:
            if self._is_current(generation):
                logger.error(f"{job_prefix} Failed to fetch files: {e}")
                self.error = f"Failed to load {category.value} files for project {project_no}."
                self.is_loading = False
            return False
        except Exception as e:
            if self._is_current(generation):
                logger.error(f"{job_prefix} Unexpected error fetching files: {e}", exc_info=True)
                self.error = f"Failed to load {category.value} files for project {project_no}."
                self.is_loading = False
            return False

        if not self._is_current(generation):
            logger.debug(f"{job_prefix} Discarding stale file list response.")
            return False
        self.files = list(files)
        self.is_loading = False
        logger.info(f"{job_prefix} Loaded {len(self.files)} file(s).")
        return True

    @property
    def showing(self) -> Tuple[Optional[str], Optional[Category]]:
        """The project+category pair the list currently belongs to."""
        return self.project_no, self.category

    def remove(self, file_id: str) -> None:
        self.files = [f for f in self.files if f.id != file_id]

    def reset(self) -> None:
        self._generation += 1
        self.files = []
        self.project_no = self.category = None
        self.is_loading = False
        self.error = None

    def close(self) -> None:
        self.reset()
        self.closed = True

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation


class PreviewSelector:
    """Decides previewability and keeps at most one live object URL for the selected file."""

    def __init__(self, api, registry: ObjectUrlRegistry):
        self.api = api
        self._url = ObjectUrlHandle(registry)
        self.selected_file: Optional[ProjectFile] = None
        self.status = PreviewStatus.IDLE
        self.is_fetching_blob = False
        self.error: Optional[str] = None
        self.closed = False
        self._generation = 0

    @property
    def object_url(self) -> str:
        return self._url.url

    async def select(self, file: ProjectFile) -> None:
        if self.closed:
            return
        # Re-clicking the file already on screen
        if self.selected_file is not None and self.selected_file.id == file.id and self._url.is_live:
            return

        self._url.release()
        self._generation += 1
        generation = self._generation
        self.selected_file = file
        self.error = None
        self.is_fetching_blob = False

        if not is_previewable(file.mime_type):
            self.status = PreviewStatus.UNAVAILABLE
            return

        self.status = PreviewStatus.LOADING
        self.is_fetching_blob = True
        try:
            blob = await self.api.download_file_blob(file.id)
        except Exception as e:
            if not self._is_current(generation):
                logger.debug(f"Discarding failed blob fetch for stale selection {file.id}.")
                return
            if isinstance(e, ApiError):
                logger.error(f"Failed to fetch blob for '{file.file_name}' ({file.id}): {e}")
            else:
                logger.error(f"Unexpected error fetching blob for '{file.file_name}' ({file.id}): {e}", exc_info=True)
            self.is_fetching_blob = False
            self.selected_file = None
            self.error = f"Failed to open {file.file_name}: {e}"
            self.status = PreviewStatus.FAILED
            return

        if not self._is_current(generation):
            logger.debug(f"Discarding blob for stale selection {file.id}.")
            return
        self._url.acquire(blob)
        self.is_fetching_blob = False
        self.status = PreviewStatus.READY

    def clear(self) -> None:
        """Drops the selection and releases the live URL, if any."""
        self._generation += 1
        self._url.release()
        self.selected_file = None
        self.status = PreviewStatus.IDLE
        self.is_fetching_blob = False
        self.error = None

    def close(self) -> None:
        self.clear()
        self.closed = True

    def _is_current(self, generation: int) -> bool:
        return not self.closed and generation == self._generation


class UploadOrchestrator:
    """Sends the staging buffer as one multipart request and refreshes the list on success."""

    def __init__(self, api, file_list: CategoryFileList):
        self.api = api
        self.file_list = file_list
        self.is_uploading = False
        self.error: Optional[str] = None

    async def upload(self, project_no: str, category: Category, staging: StagingBuffer,
                     on_success: Optional[Callable[[], None]] = None) -> bool:
        if self.is_uploading:
            logger.warning(f"Upload already in progress for {project_no}; ignoring duplicate submit.")
            return False
        if not staging:
            return False

        category = Category(category)
        self.is_uploading = True
        self.error = None
        opened_on = self.file_list.showing
        try:
            await self.api.upload_files(project_no, category, staging.files)
        except Exception as e:
            if isinstance(e, ApiError):
                logger.error(f"Upload to {project_no}/{category.value} failed: {e}")
            else:
                logger.error(f"Unexpected error uploading to {project_no}/{category.value}: {e}", exc_info=True)
            self.error = f"File upload failed: {str(e) or 'Server error'}"
            self.is_uploading = False
            return False

        logger.info(f"Uploaded {len(staging)} file(s) to {project_no}/{category.value}.")
        staging.clear()
        if on_success:
            on_success()
        # The list only follows the upload if nobody navigated away meanwhile
        if self.file_list.showing != opened_on:
            logger.info(f"File list moved off {project_no}/{category.value} during upload; skipping refresh.")
            self.is_uploading = False
            return True
        try:
            await self.file_list.fetch(project_no, category)
        finally:
            self.is_uploading = False
        return True


class FileViewController:
    """The file view for one project: category cards, file list, preview, upload modal."""

    def __init__(self, project_no: str, api, registry: Optional[ObjectUrlRegistry] = None):
        self.project_no = project_no
        self.api = api
        self.view = "categories"
        self.category: Optional[Category] = None
        self.file_list = CategoryFileList(api)
        self.preview = PreviewSelector(api, registry or object_urls)
        self.staging = StagingBuffer()
        self.uploader = UploadOrchestrator(api, self.file_list)
        self.is_modal_open = False
        self.is_drag_active = False
        self.error: Optional[str] = None
        self.closed = False

    # --- Read-only views ---

    @property
    def files(self) -> List[ProjectFile]:
        return self.file_list.files

    @property
    def category_label(self) -> str:
        return CATEGORY_INFO[self.category].label if self.category else ""

    @property
    def is_empty(self) -> bool:
        """True when the files view has loaded and there is nothing to preview."""
        return self.view == "files" and not self.file_list.is_loading and not self.file_list.files

    def find_file(self, file_id: str) -> Optional[ProjectFile]:
        return next((f for f in self.file_list.files if f.id == file_id), None)

    # --- Navigation ---

    async def select_category(self, category: Category) -> bool:
        if self.closed:
            return False
        category = Category(category)
        logger.info(f"[{self.project_no}] Opening category '{category.value}'.")
        self.preview.clear()
        self.category = category
        self.view = "files"
        return await self.refresh()

    def back_to_categories(self) -> None:
        self.view = "categories"
        self.category = None
        self.file_list.reset()
        self.preview.clear()
        self.error = None

    async def refresh(self) -> bool:
        if self.closed or self.category is None:
            return False
        ok = await self.file_list.fetch(self.project_no, self.category)
        self.error = self.file_list.error
        return ok

    # --- Preview / download / delete ---

    async def select_file(self, file: ProjectFile) -> None:
        await self.preview.select(file)
        if not self.closed:
            self.error = self.preview.error

    async def download(self, file: ProjectFile) -> Optional[Blob]:
        try:
            return await self.api.download_file_blob(file.id)
        except ApiError as e:
            logger.error(f"[{self.project_no}] Download of '{file.file_name}' failed: {e}")
            if not self.closed:
                self.error = f"Failed to download {file.file_name}: {e}"
            return None

    async def delete_file(self, file: ProjectFile, confirmed: bool = False) -> bool:
        """Deletes a stored file. Nothing is sent unless the user confirmed."""
        if not confirmed:
            logger.info(f"[{self.project_no}] Delete of '{file.file_name}' not confirmed; skipping.")
            return False
        try:
            await self.api.delete_file(file.id)
        except ApiError as e:
            logger.error(f"[{self.project_no}] Failed to delete '{file.file_name}': {e}")
            if not self.closed:
                self.error = f"Failed to delete {file.file_name}."
            return False
        if self.closed:
            return True
        self.file_list.remove(file.id)
        if self.preview.selected_file is not None and self.preview.selected_file.id == file.id:
            self.preview.clear()
        await self.refresh()
        return True

    # --- Upload modal ---

    def open_upload_modal(self) -> None:
        self.is_modal_open = True
        self.staging.clear()

    def close_upload_modal(self) -> None:
        self.is_modal_open = False
        self.is_drag_active = False
        self.staging.clear()

    def add_files(self, files: Iterable[StagedFile]) -> List[StagedFile]:
        """File picker selection."""
        return self.staging.add(files)

    def set_drag_active(self, active: bool) -> None:
        self.is_drag_active = active

    def drop_files(self, files: Iterable[StagedFile]) -> List[StagedFile]:
        """Drag-and-drop; same de-duplication as the picker."""
        self.is_drag_active = False
        return self.staging.add(files)

    def remove_staged(self, index: int) -> None:
        self.staging.remove_at(index)

    async def upload(self) -> bool:
        if self.closed or self.category is None:
            return False
        ok = await self.uploader.upload(self.project_no, self.category, self.staging, on_success=self._on_upload_success)
        if not self.closed:
            self.error = self.uploader.error if not ok else self.file_list.error
        return ok

    def _on_upload_success(self) -> None:
        self.is_modal_open = False
        self.is_drag_active = False

    # --- Teardown ---

    def close(self) -> None:
        """Unmount: releases the preview URL and drops all in-flight results."""
        if self.closed:
            return
        self.closed = True
        self.preview.close()
        self.file_list.close()
        self.staging.clear()
        logger.debug(f"[{self.project_no}] File view closed.")
