# fabtrack/api_client.py
import httpx
from urllib.parse import quote
from typing import Optional, List, Dict, Any, Iterable, Union
from pydantic import ValidationError

from fabtrack.config import settings, logger as core_logger
from fabtrack.errors import ApiError, NetworkError, ServerError, ParseError, UploadError, BlobFetchError
from fabtrack.models import (
    Blob, Category, Project, ProjectCreate, ProjectFile, StagedFile, Task, TaskCreate, DEFAULT_MIME_TYPE
)

logger = core_logger.getChild("APIClient")

# Backend route slug for each category's task board
TASK_PATHS: Dict[Category, str] = {
    Category.PANEL: "/panel-tasks",
    Category.CUTTING: "/cutting-tasks",
    Category.DOOR: "/door-tasks",
    Category.STRIP_CURTAIN: "/strip-curtain-tasks",
    Category.ACCESSORIES: "/accessories-tasks",
    Category.SYSTEM: "/system-tasks",
}


def _segment(value: Any) -> str:
    """Quotes a single path segment (project numbers may contain '/')."""
    return quote(str(value), safe="")


def _error_message(response: httpx.Response) -> str:
    """Extracts the backend's `error` string, falling back to the reason phrase."""
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
    except ValueError:
        pass
    return response.reason_phrase or f"HTTP {response.status_code}"


class ApiClient:
    """Thin async wrapper around httpx for the FabTrack REST backend."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    async def send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """Sends a request, mapping transport failures to NetworkError."""
        try:
            return await self._client.request(method, endpoint, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error calling {method} {endpoint}: {e}")
            raise NetworkError(f"Cannot reach backend at {self.base_url}: {e}") from e

    def handle_response(self, response: httpx.Response) -> Any:
        """Raises ServerError for non-2xx, returns None for empty bodies, parsed JSON otherwise."""
        if not response.is_success:
            message = _error_message(response)
            logger.error(f"Backend returned {response.status_code} for {response.request.method} {response.request.url.path}: {message}")
            raise ServerError(f"API Request Failed ({response.status_code}): {message}", status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Malformed JSON from {response.request.url.path}: {e}")
            raise ParseError(f"Invalid JSON response from backend: {e}", status_code=response.status_code) from e

    async def request_json(self, method: str, endpoint: str, **kwargs) -> Any:
        response = await self.send(method, endpoint, **kwargs)
        return self.handle_response(response)


def _parse_list(model, data: Any, endpoint: str) -> list:
    if data is None:
        return []
    if not isinstance(data, list):
        raise ParseError(f"Expected a list from {endpoint}, got {type(data).__name__}")
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        logger.error(f"Invalid {model.__name__} payload from {endpoint}: {e}")
        raise ParseError(f"Invalid {model.__name__} data from backend") from e


def _parse_one(model, data: Any, endpoint: str):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid {model.__name__} payload from {endpoint}: {e}")
        raise ParseError(f"Invalid {model.__name__} data from backend") from e


class ProjectsAPI:
    """Projects CRUD plus the project file endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    # --- CRUD ---

    async def get_all(self) -> List[Project]:
        data = await self.client.request_json("GET", "/projects")
        return _parse_list(Project, data, "/projects")

    async def create(self, project: Union[ProjectCreate, Dict[str, Any]]) -> Project:
        if not isinstance(project, ProjectCreate):
            project = ProjectCreate.model_validate(project)
        payload = project.model_dump(by_alias=True, exclude_none=True)
        logger.info(f"Creating project {project.project_no} for '{project.customer}'")
        data = await self.client.request_json("POST", "/projects", json=payload)
        return _parse_one(Project, data, "/projects")

    async def update(self, project_id: str, fields: Dict[str, Any]) -> Project:
        endpoint = f"/projects/{_segment(project_id)}"
        data = await self.client.request_json("PUT", endpoint, json=fields)
        return _parse_one(Project, data, endpoint)

    async def delete(self, project_id: str) -> None:
        logger.info(f"Deleting project {project_id}")
        await self.client.request_json("DELETE", f"/projects/{_segment(project_id)}")

    # --- Files ---

    async def get_files(self, project_no: str) -> List[ProjectFile]:
        """Legacy whole-project listing."""
        endpoint = f"/projects/files/{_segment(project_no)}"
        data = await self.client.request_json("GET", endpoint)
        return _parse_list(ProjectFile, data, endpoint)

    async def get_files_by_category(self, project_no: str, category: Category) -> List[ProjectFile]:
        endpoint = f"/projects/files/{_segment(project_no)}"
        data = await self.client.request_json("GET", endpoint, params={"category": Category(category).value})
        return _parse_list(ProjectFile, data, endpoint)

    async def upload_files(self, project_no: str, category: Category, files: Iterable[StagedFile]) -> Any:
        """Submits every file in one multipart request under the shared `files` field."""
        form = {"projectNo": project_no, "category": Category(category).value}
        parts = [("files", (f.name, f.content, f.mime_type)) for f in files]
        logger.info(f"Uploading {len(parts)} file(s) to project {project_no} / {form['category']}")
        try:
            response = await self.client.send("POST", "/projects/upload", data=form, files=parts, timeout=settings.UPLOAD_TIMEOUT)
            return self.client.handle_response(response)
        except ApiError as e:
            raise UploadError(f"Upload failed: {e.message}", status_code=e.status_code) from e

    async def download_file_blob(self, file_id: str) -> Blob:
        endpoint = f"/projects/file/blob/{_segment(file_id)}"
        try:
            response = await self.client.send("GET", endpoint)
        except NetworkError as e:
            raise BlobFetchError(e.message) from e
        if not response.is_success:
            message = _error_message(response) if response.content else f"HTTP error! status: {response.status_code}"
            logger.error(f"Blob fetch for file {file_id} failed ({response.status_code}): {message}")
            raise BlobFetchError(message, status_code=response.status_code)
        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";")[0].strip() or DEFAULT_MIME_TYPE
        logger.debug(f"Fetched blob for file {file_id}: {len(response.content)} bytes ({mime_type})")
        return Blob(content=response.content, mime_type=mime_type)

    async def delete_file(self, file_id: str) -> None:
        logger.info(f"Deleting file {file_id}")
        await self.client.request_json("DELETE", f"/projects/file/{_segment(file_id)}")

    def file_blob_url(self, file_id: str) -> str:
        """Absolute backend URL for a direct download link."""
        return self.client.url_for(f"/projects/file/blob/{_segment(file_id)}")


class TasksAPI:
    """CRUD for one category's task board."""

    def __init__(self, client: ApiClient, category: Category):
        self.client = client
        self.category = Category(category)
        self.path = TASK_PATHS[self.category]

    async def get_all(self) -> List[Task]:
        data = await self.client.request_json("GET", self.path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ParseError(f"Expected a list from {self.path}, got {type(data).__name__}")
        try:
            return [Task.from_api(item) for item in data]
        except ValidationError as e:
            raise ParseError("Invalid Task data from backend") from e

    async def create(self, task: Union[TaskCreate, Dict[str, Any]]) -> Task:
        if not isinstance(task, TaskCreate):
            task = TaskCreate.model_validate(task)
        data = await self.client.request_json("POST", self.path, json=task.model_dump())
        try:
            return Task.from_api(data)
        except (ValidationError, TypeError) as e:
            raise ParseError("Invalid Task data from backend") from e

    async def update(self, task_id: str, fields: Dict[str, Any]) -> Task:
        data = await self.client.request_json("PATCH", f"{self.path}/{_segment(task_id)}", json=fields)
        try:
            return Task.from_api(data)
        except (ValidationError, TypeError) as e:
            raise ParseError("Invalid Task data from backend") from e

    async def delete(self, task_id: str) -> None:
        await self.client.request_json("DELETE", f"{self.path}/{_segment(task_id)}")


class AdminProjectsAPI:
    """Admin table rows are free-form column dicts keyed by job number."""

    path = "/admin/projects"

    def __init__(self, client: ApiClient):
        self.client = client

    async def get_all(self) -> List[Dict[str, Any]]:
        return await self.client.request_json("GET", self.path) or []

    async def create(self, row: Dict[str, Any]) -> Dict[str, Any]:
        return await self.client.request_json("POST", self.path, json=row)

    async def update(self, job_no: str, row: Dict[str, Any]) -> Dict[str, Any]:
        return await self.client.request_json("PUT", f"{self.path}/{_segment(job_no)}", json=row)

    async def delete(self, job_no: str) -> None:
        await self.client.request_json("DELETE", f"{self.path}/{_segment(job_no)}")
