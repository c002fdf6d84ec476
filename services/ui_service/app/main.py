# services/ui_service/app/main.py

import gradio as gr
import fastapi
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional, List

from fabtrack.config import settings
from fabtrack.api_client import ApiClient, ProjectsAPI
from fabtrack.errors import ApiError
from fabtrack.file_view import FileViewController
from fabtrack.models import Category, StagedFile, TaskPriority, TaskStatus
from fabtrack.routing import match_route, FileViewRoute, TaskBoardRoute, JobListRoute
from fabtrack.storage import object_urls
from fabtrack.task_board import ALL
from . import objects, views
from .sessions import SessionStore

# Setup logger
logger = logging.getLogger("FabTrack_Core").getChild("UIService")

# Global client for calling the backend; views are per session
api_client = ApiClient()
projects_api = ProjectsAPI(api_client)
sessions = SessionStore(projects_api, object_urls)


def _session_id(request: Optional[gr.Request]) -> str:
    return getattr(request, "session_hash", None) or "default"


# --- File View Rendering ---

def render_file_view(view: Optional[FileViewController]):
    """Updates for FILE_OUTPUTS, in order."""
    if view is None:
        return (
            "Enter a job number to browse its files.",
            gr.update(choices=[], value=None, interactive=False),
            views.render_preview_placeholder(),
            "",
            gr.update(visible=False),
            "",
            gr.update(choices=[], value=None),
            gr.update(value="Upload", interactive=False),
            gr.update(visible=False),
        )
    in_files = view.view == "files"
    selected = view.preview.selected_file
    staged = view.staging
    return (
        views.render_file_list_header(view),
        gr.update(choices=views.file_choices(view.files), value=selected.id if selected else None, interactive=in_files),
        views.render_preview(view),
        views.render_error(view.error),
        gr.update(visible=in_files and (view.is_modal_open or view.is_empty)),
        views.render_staging(staged),
        gr.update(choices=[(f"{i}. {name}", i) for i, name in enumerate(staged.names)], value=None),
        gr.update(value=views.upload_button_label(len(staged), view.category_label, view.uploader.is_uploading),
                  interactive=bool(staged) and not view.uploader.is_uploading),
        gr.update(visible=in_files, value="+ Upload First File" if view.is_empty else "+ Add Files"),
    )


# --- Gradio Interface Functions: Jobs ---

async def refresh_jobs():
    try:
        projects = await projects_api.get_all()
    except ApiError as e:
        logger.error(f"Failed to load projects: {e}")
        return gr.update(), f"**Error Connecting to API:** {e}"
    except Exception as e:
        logger.error(f"Unexpected error loading projects: {e}", exc_info=True)
        return gr.update(), f"An unexpected error occurred: {e}"
    logger.info(f"Loaded {len(projects)} project(s) for the job list.")
    return gr.update(value=views.project_rows(projects)), f"{len(projects)} job(s) loaded."


# --- Gradio Interface Functions: Files ---

async def open_project(project_no: str, request: gr.Request):
    project_no = (project_no or "").strip()
    if not project_no:
        return render_file_view(None) + (gr.update(value=None),)
    view = sessions.file_view(_session_id(request), project_no)
    return render_file_view(view) + (gr.update(value=view.category.value if view.category else None),)


async def choose_category(project_no: str, category: Optional[str], request: gr.Request):
    project_no = (project_no or "").strip()
    if not project_no or not category:
        return render_file_view(sessions.current_file_view(_session_id(request)))
    view = sessions.file_view(_session_id(request), project_no)
    await view.select_category(Category(category))
    return render_file_view(view)


async def back_to_categories(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None:
        view.back_to_categories()
    return render_file_view(view) + (gr.update(value=None),)


async def reload_files(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None:
        await view.refresh()
    return render_file_view(view)


async def choose_file(file_id: Optional[str], request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is None or not file_id:
        return render_file_view(view)
    file = view.find_file(file_id)
    if file is not None:
        await view.select_file(file)
    return render_file_view(view)


async def download_selected(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is None or view.preview.selected_file is None:
        return None, "Select a file first."
    file = view.preview.selected_file
    blob = await view.download(file)
    if blob is None:
        return None, views.render_error(view.error)
    link = projects_api.file_blob_url(file.id)
    path = sessions.write_download(_session_id(request), file.file_name, blob.content)
    return path, f"Downloaded **{file.file_name}**. [Open from server]({link})"


async def delete_selected(confirmed: bool, request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is None or view.preview.selected_file is None:
        return render_file_view(view) + (gr.update(value=False),)
    file = view.preview.selected_file
    if not confirmed:
        view.error = f"Tick the confirmation box to permanently delete: {file.file_name}"
        return render_file_view(view) + (gr.update(),)
    await view.delete_file(file, confirmed=True)
    return render_file_view(view) + (gr.update(value=False),)


async def open_upload_panel(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None:
        view.open_upload_modal()
    return render_file_view(view)


async def cancel_upload(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None:
        view.close_upload_modal()
    return render_file_view(view)


async def stage_files(paths: Optional[List[str]], request: gr.Request):
    """Picker and drag-and-drop both land here through the same file input."""
    view = sessions.current_file_view(_session_id(request))
    if view is not None and paths:
        staged = []
        for path in paths:
            try:
                staged.append(StagedFile.from_path(path))
            except OSError as e:
                logger.error(f"Could not read staged file {path}: {e}")
                view.error = f"Could not read {os.path.basename(path)}."
        added = view.add_files(staged)
        logger.info(f"Staged {len(added)} new file(s); {len(view.staging)} total.")
    return render_file_view(view) + (gr.update(value=None),)


async def unstage_file(index: Optional[int], request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None and index is not None:
        view.remove_staged(int(index))
    return render_file_view(view)


def lock_upload_button():
    return gr.update(value="Uploading... 📤", interactive=False)


async def upload_staged(request: gr.Request):
    view = sessions.current_file_view(_session_id(request))
    if view is not None:
        await view.upload()
    return render_file_view(view)


# --- Gradio Interface Functions: Tasks ---

async def load_board(category: str, priority: str, status: str, project_no: str, request: gr.Request):
    board = sessions.task_board(_session_id(request), Category(category))
    await board.load()
    return render_board(board, priority, status, project_no)


def render_board(board, priority: str, status: str, project_no: str):
    tasks = board.filtered(priority or ALL, status or ALL, project_no or ALL)
    return (
        f"### {board.labels.icon} {board.labels.title}",
        gr.update(value=views.task_rows(tasks)),
        views.render_task_counts(board.counts(tasks)),
        gr.update(choices=[ALL] + board.project_numbers()),
        gr.update(choices=[(f"{t.id}: {t.title}", t.id) for t in board.tasks], value=None),
        views.render_error(board.error),
    )


async def filter_board(category: str, priority: str, status: str, project_no: str, request: gr.Request):
    board = sessions.task_board(_session_id(request), Category(category))
    return render_board(board, priority, status, project_no)


async def create_task(category, title, description, task_priority, task_status, task_project_no, due_date,
                      priority, status, project_no, request: gr.Request):
    board = sessions.task_board(_session_id(request), Category(category))
    await board.create({
        "title": title, "description": description, "priority": task_priority, "status": task_status,
        "project_no": task_project_no, "due_date": due_date,
    })
    return render_board(board, priority, status, project_no)


async def change_task_status(category, task_id, new_status, priority, status, project_no, request: gr.Request):
    board = sessions.task_board(_session_id(request), Category(category))
    if task_id and new_status:
        await board.set_status(task_id, TaskStatus(new_status))
    return render_board(board, priority, status, project_no)


async def delete_task(category, task_id, confirmed, priority, status, project_no, request: gr.Request):
    board = sessions.task_board(_session_id(request), Category(category))
    if task_id:
        if confirmed:
            await board.delete(task_id, confirmed=True)
        else:
            board.error = "Tick the confirmation box to delete this task."
    return render_board(board, priority, status, project_no)


# --- Session Lifecycle ---

async def on_page_load(request: gr.Request):
    """Honours `?route=/files/<jobNo>` style deep links."""
    route = match_route(request.query_params.get("route", "") if request else "")
    if isinstance(route, FileViewRoute):
        return gr.Tabs(selected="files"), route.project_no, gr.update()
    if isinstance(route, TaskBoardRoute):
        return gr.Tabs(selected="tasks"), gr.update(), route.category.value
    if not isinstance(route, JobListRoute):
        logger.info(f"Route {route.kind} has no page in this interface; showing job list.")
    return gr.Tabs(selected="jobs"), gr.update(), gr.update()


def on_session_end(request: gr.Request):
    sessions.close(_session_id(request))


# --- Build Gradio Interface ---
with gr.Blocks(theme=gr.themes.Soft(), title="FabTrack") as demo:
    gr.Markdown("# FabTrack Job Tracker")
    with gr.Tabs() as tabs:
        with gr.TabItem("Jobs", id="jobs"):
            jobs_refresh = gr.Button("🔄 Reload Jobs")
            jobs_status = gr.Markdown()
            jobs_table = gr.Dataframe(headers=views.PROJECT_COLUMNS, interactive=False, wrap=True)
        with gr.TabItem("Files", id="files"):
            with gr.Row():
                project_input = gr.Textbox(label="Job No.", placeholder="e.g. 17408", scale=3)
                open_button = gr.Button("📂 Open Job", variant="primary", scale=1)
            category_radio = gr.Radio(label="Category", choices=views.category_choices(), value=None)
            with gr.Row():
                back_button = gr.Button("← Back to Categories", variant="secondary")
                reload_button = gr.Button("🔄 Reload Files", variant="secondary")
                add_files_button = gr.Button("+ Add Files", variant="primary", visible=False)
            files_header = gr.Markdown("Enter a job number to browse its files.")
            file_error = gr.Markdown()
            with gr.Row():
                with gr.Column(scale=3):
                    preview_html = gr.HTML(views.render_preview_placeholder())
                    with gr.Row():
                        download_button = gr.Button("⬇️ Download")
                        delete_confirm = gr.Checkbox(label="Yes, permanently delete the selected file", value=False)
                        delete_button = gr.Button("🗑️ Delete", variant="stop")
                    download_file = gr.File(label="Download", interactive=False)
                    download_status = gr.Markdown()
                with gr.Column(scale=2):
                    file_picker = gr.Dropdown(label="Available Files", choices=[], interactive=False)
            with gr.Group(visible=False) as upload_panel:
                gr.Markdown("### 📁 Upload Files")
                staging_input = gr.File(label="Click to Select or Drag & Drop Multiple Files", file_count="multiple")
                staging_md = gr.Markdown()
                with gr.Row():
                    staged_remove = gr.Dropdown(label="Remove from staging", choices=[], value=None)
                    remove_button = gr.Button("× Remove")
                with gr.Row():
                    upload_button = gr.Button("Upload", variant="primary", interactive=False)
                    cancel_button = gr.Button("Cancel", variant="secondary")
        with gr.TabItem("Tasks", id="tasks"):
            board_category = gr.Radio(label="Board", choices=views.category_choices(), value=Category.PANEL.value)
            board_title = gr.Markdown()
            with gr.Row():
                filter_priority = gr.Dropdown(label="Priority", choices=[ALL] + [p.value for p in TaskPriority], value=ALL)
                filter_status = gr.Dropdown(label="Status", choices=[ALL] + [s.value for s in TaskStatus], value=ALL)
                filter_project = gr.Dropdown(label="Project No", choices=[ALL], value=ALL)
                board_reload = gr.Button("🔄 Reload Tasks")
            board_counts = gr.Markdown()
            board_error = gr.Markdown()
            tasks_table = gr.Dataframe(headers=views.TASK_COLUMNS, interactive=False, wrap=True)
            with gr.Accordion("➕ New Task", open=False):
                with gr.Row():
                    new_title = gr.Textbox(label="Task Title *")
                    new_project_no = gr.Textbox(label="Project No *")
                    new_due = gr.Textbox(label="Due Date", placeholder="YYYY-MM-DD")
                new_description = gr.Textbox(label="Description", lines=2)
                with gr.Row():
                    new_priority = gr.Dropdown(label="Priority", choices=[p.value for p in TaskPriority], value=TaskPriority.MEDIUM.value)
                    new_status = gr.Dropdown(label="Status", choices=[s.value for s in TaskStatus], value=TaskStatus.PENDING.value)
                create_button = gr.Button("Create Task", variant="primary")
            with gr.Row():
                task_select = gr.Dropdown(label="Task", choices=[], value=None)
                task_new_status = gr.Dropdown(label="Set Status", choices=[s.value for s in TaskStatus], value=None)
                status_button = gr.Button("Update Status")
                task_delete_confirm = gr.Checkbox(label="Confirm delete", value=False)
                task_delete_button = gr.Button("Delete Task", variant="stop")

    FILE_OUTPUTS = [files_header, file_picker, preview_html, file_error, upload_panel,
                    staging_md, staged_remove, upload_button, add_files_button]
    BOARD_OUTPUTS = [board_title, tasks_table, board_counts, filter_project, task_select, board_error]
    BOARD_FILTERS = [filter_priority, filter_status, filter_project]

    # --- Connect UI elements to functions ---
    jobs_refresh.click(refresh_jobs, outputs=[jobs_table, jobs_status])
    open_button.click(open_project, inputs=[project_input], outputs=FILE_OUTPUTS + [category_radio])
    project_input.submit(open_project, inputs=[project_input], outputs=FILE_OUTPUTS + [category_radio])
    category_radio.input(choose_category, inputs=[project_input, category_radio], outputs=FILE_OUTPUTS)
    back_button.click(back_to_categories, outputs=FILE_OUTPUTS + [category_radio])
    reload_button.click(reload_files, outputs=FILE_OUTPUTS)
    file_picker.input(choose_file, inputs=[file_picker], outputs=FILE_OUTPUTS)
    download_button.click(download_selected, outputs=[download_file, download_status])
    delete_button.click(delete_selected, inputs=[delete_confirm], outputs=FILE_OUTPUTS + [delete_confirm])
    add_files_button.click(open_upload_panel, outputs=FILE_OUTPUTS)
    cancel_button.click(cancel_upload, outputs=FILE_OUTPUTS)
    staging_input.upload(stage_files, inputs=[staging_input], outputs=FILE_OUTPUTS + [staging_input])
    remove_button.click(unstage_file, inputs=[staged_remove], outputs=FILE_OUTPUTS)
    upload_button.click(lock_upload_button, outputs=[upload_button], queue=False).then(upload_staged, outputs=FILE_OUTPUTS)

    board_category.change(load_board, inputs=[board_category] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)
    board_reload.click(load_board, inputs=[board_category] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)
    for control in BOARD_FILTERS:
        control.input(filter_board, inputs=[board_category] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)
    create_button.click(create_task, inputs=[board_category, new_title, new_description, new_priority, new_status,
                                             new_project_no, new_due] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)
    status_button.click(change_task_status, inputs=[board_category, task_select, task_new_status] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)
    task_delete_button.click(delete_task, inputs=[board_category, task_select, task_delete_confirm] + BOARD_FILTERS, outputs=BOARD_OUTPUTS)

    demo.load(on_page_load, outputs=[tabs, project_input, board_category])
    demo.unload(on_session_end)


# --- FastAPI App ---
@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    logger.info("UI Service lifespan startup.")
    app.state.object_urls = object_urls
    yield
    logger.info("UI Service lifespan shutdown: closing sessions and HTTP client.")
    sessions.close_all()
    await api_client.aclose()


app = fastapi.FastAPI(title="FabTrack UI Service", lifespan=lifespan)


@app.get("/")
async def root():
    return {"message": f"FabTrack UI Service is running. Access the Gradio interface at {settings.UI_MOUNT_PATH}"}


@app.get("/health")
async def health():
    return {"status": "success", "live_object_urls": object_urls.live_count}


app.include_router(objects.router, prefix=settings.OBJECT_URL_PREFIX, tags=["Objects"])
app = gr.mount_gradio_app(app, demo, path=settings.UI_MOUNT_PATH)
logger.info(f"UI Service Ready. Gradio interface available at {settings.UI_MOUNT_PATH}")
