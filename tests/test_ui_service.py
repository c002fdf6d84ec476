import os
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock

from fabtrack.api_client import ApiClient, ProjectsAPI
from fabtrack.file_view import FileViewController
from fabtrack.models import Blob, Category, ProjectFile, StagedFile
from fabtrack.storage import ObjectUrlHandle, ObjectUrlRegistry
from services.ui_service.app import views
from services.ui_service.app.objects import router as objects_router
from services.ui_service.app.sessions import SessionStore


@pytest.fixture
def registry():
    return ObjectUrlRegistry(prefix="/objects")


@pytest.fixture
def client(registry):
    app = FastAPI()
    app.state.object_urls = registry
    app.include_router(objects_router, prefix="/objects")
    with TestClient(app) as c:
        yield c


@pytest.fixture
def api():
    mock = AsyncMock(spec=ProjectsAPI)
    mock.client = AsyncMock(spec=ApiClient)
    mock.get_files_by_category.return_value = []
    mock.download_file_blob.return_value = Blob(content=b"\x89PNG", mime_type="image/png")
    return mock


# --- Object URL route ---
def test_live_object_url_is_served(client: TestClient, registry):
    url = registry.create(Blob(content=b"%PDF-1.7", mime_type="application/pdf"))
    response = client.get(url)
    assert response.status_code == 200
    assert response.content == b"%PDF-1.7"
    assert response.headers["content-type"].startswith("application/pdf")
    assert response.headers["cache-control"] == "no-store"


def test_released_object_url_is_gone(client: TestClient, registry):
    url = registry.create(Blob(content=b"x", mime_type="image/png"))
    registry.release(url)
    registry.release(url) # second release is harmless
    registry.release("")
    response = client.get(url)
    assert response.status_code == 404
    assert registry.live_count == 0


def test_handle_holds_one_url_and_releases_on_exit(registry):
    with ObjectUrlHandle(registry) as handle:
        first = handle.acquire(Blob(content=b"1"))
        second = handle.acquire(Blob(content=b"2"))
        assert registry.resolve(first) is None
        assert registry.resolve(second).content == b"2"
        assert registry.live_count == 1
    assert registry.live_count == 0
    assert handle.url == ""


# --- Rendering ---
@pytest.mark.asyncio
async def test_empty_category_renders_upload_affordance(api, registry):
    view = FileViewController("17408", api, registry)
    assert "Files for Job: **17408**" in views.render_file_list_header(view)

    await view.select_category(Category.DOOR)
    header = views.render_file_list_header(view)
    assert "Door Files" in header
    assert "Available Files (0)" in header
    assert "No files uploaded for Door" in header
    assert views.render_preview(view) == views.render_preview_placeholder()


@pytest.mark.asyncio
async def test_render_preview_states(api, registry):
    view = FileViewController("17408", api, registry)
    image = ProjectFile(id="1", file_name="panel <1>.png", mime_type="image/png", file_size=4)
    doc = ProjectFile(id="2", file_name="spec.docx", mime_type="application/vnd.openxmlformats-officedocument.wordprocessingml.document")
    pdf = ProjectFile(id="3", file_name="po.pdf", mime_type="application/pdf")

    await view.select_file(image)
    html = views.render_preview(view)
    assert html.startswith("<img")
    assert view.preview.object_url in html
    assert "panel &lt;1&gt;.png" in html

    await view.select_file(doc)
    assert "Cannot Display Preview" in views.render_preview(view)

    api.download_file_blob.return_value = Blob(content=b"%PDF", mime_type="application/pdf")
    await view.select_file(pdf)
    assert views.render_preview(view).startswith("<iframe")
    view.close()
    assert registry.live_count == 0


def test_staging_and_button_labels():
    view_staging = FileViewController("1", AsyncMock(spec=ProjectsAPI), ObjectUrlRegistry()).staging
    assert "Max file size: 50MB" in views.render_staging(view_staging)
    view_staging.add([StagedFile.from_bytes("a.pdf", b"x" * 2048)])
    assert "a.pdf (2.0 KB)" in views.render_staging(view_staging)
    assert views.upload_button_label(1, "Door", False) == "Upload 1 File to Door"
    assert views.upload_button_label(2, "Door", False) == "Upload 2 Files to Door"
    assert views.upload_button_label(2, "Door", True) == "Uploading... 📤"


def test_category_choices_cover_all_categories():
    values = [value for _, value in views.category_choices()]
    assert values == [c.value for c in Category]


# --- Sessions ---
@pytest.mark.asyncio
async def test_session_store_reuses_and_replaces_views(api, registry):
    store = SessionStore(api, registry)
    view = store.file_view("session-1", "17408")
    assert store.file_view("session-1", "17408") is view

    await view.select_file(ProjectFile(id="1", file_name="a.png", mime_type="image/png"))
    assert registry.live_count == 1

    other = store.file_view("session-1", "4715")
    assert other is not view
    assert view.closed is True
    assert registry.live_count == 0
    assert store.file_view("session-2", "4715") is not other


@pytest.mark.asyncio
async def test_session_close_tears_down_views_and_boards(api, registry):
    store = SessionStore(api, registry)
    view = store.file_view("s", "17408")
    board = store.task_board("s", Category.DOOR)
    assert store.task_board("s", "door") is board
    assert board.labels.title == "Door Management"

    store.close("s")
    assert view.closed is True
    assert store.current_file_view("s") is None
    assert store.task_board("s", Category.DOOR) is not board


def test_session_downloads_share_one_directory_removed_on_close(api, registry):
    store = SessionStore(api, registry)
    first = store.write_download("s", "po.pdf", b"%PDF")
    second = store.write_download("s", "../door.png", b"\x89PNG")
    other = store.write_download("t", "po.pdf", b"other")

    assert os.path.dirname(first) == os.path.dirname(second)
    assert os.path.basename(second) == "door.png"
    assert os.path.dirname(other) != os.path.dirname(first)
    with open(first, "rb") as f:
        assert f.read() == b"%PDF"

    store.close("s")
    assert not os.path.exists(os.path.dirname(first))
    assert os.path.exists(other)

    store.close_all()
    assert not os.path.exists(os.path.dirname(other))
