# services/ui_service/app/views.py
"""Rendering helpers for the Gradio interface. Pure functions of controller state."""
import html
from typing import List, Tuple

from fabtrack.config import settings
from fabtrack.file_view import FileViewController, PreviewStatus
from fabtrack.models import CATEGORY_INFO, Project, ProjectFile, Task
from fabtrack.staging import StagingBuffer
from fabtrack.utils import format_size_kb


def category_choices() -> List[Tuple[str, str]]:
    return [(f"{info.icon} {info.label}", key.value) for key, info in CATEGORY_INFO.items()]


def render_category_cards(project_no: str) -> str:
    lines = [f"## Files for Job: **{project_no}**", "Select a category to view files", ""]
    for info in CATEGORY_INFO.values():
        lines.append(f"- {info.icon} **{info.label}**: {info.description}")
    return "\n".join(lines)


def file_choices(files: List[ProjectFile]) -> List[Tuple[str, str]]:
    return [(f"{f.file_name} ({format_size_kb(f.file_size)})", f.id) for f in files]


def render_file_list_header(view: FileViewController) -> str:
    if view.view != "files":
        return render_category_cards(view.project_no)
    if view.file_list.is_loading:
        return f"## Loading {view.category_label} Files... 🔄"
    header = f"## {view.category_label} Files\n\nAvailable Files ({len(view.files)})"
    if view.is_empty:
        header += f"\n\nNo files uploaded for {view.category_label}. Use **+ Upload First File** below to add one."
    return header


def render_preview_placeholder() -> str:
    return "<p>Select a file from the list to preview its content.</p>"


def render_preview(view: FileViewController) -> str:
    preview = view.preview
    file = preview.selected_file
    if file is None:
        return render_preview_placeholder()
    name = html.escape(file.file_name)
    if preview.status == PreviewStatus.LOADING:
        return f"<p>Loading <b>{name}</b> content... 🔄</p>"
    if preview.status != PreviewStatus.READY or not preview.object_url:
        return (
            '<div class="preview-placeholder">'
            '<h4 class="no-preview-title">Cannot Display Preview</h4>'
            f'<p class="no-preview-message">The file <b>{name}</b> is of type <b>{html.escape(file.mime_type)}</b>.'
            '<br/>Use the download button to view it locally.</p></div>'
        )
    src = html.escape(preview.object_url, quote=True)
    if file.mime_type.startswith("image/"):
        return f'<img src="{src}" alt="Preview of {name}" style="max-width:100%;max-height:640px;"/>'
    return f'<iframe src="{src}" title="Preview of {name}" style="width:100%;height:640px;border:0;"></iframe>'


def render_error(message) -> str:
    return f"⚠️ {message}" if message else ""


def render_staging(staging: StagingBuffer) -> str:
    if not staging:
        return f"Click to Select or Drag & Drop Multiple Files\n\n_Max file size: {settings.UPLOAD_SIZE_HINT_MB}MB_"
    lines = [f"#### Files to Upload ({len(staging)})"]
    for index, f in enumerate(staging):
        lines.append(f"{index}. {f.name} ({format_size_kb(f.size)})")
    return "\n".join(lines)


def upload_button_label(count: int, category_label: str, is_uploading: bool) -> str:
    if is_uploading:
        return "Uploading... 📤"
    return f"Upload {count} File{'s' if count != 1 else ''} to {category_label}"


PROJECT_COLUMNS = ["Job No", "Customer", "Drawing Date", "PO/Payment", "Requested Delivery",
                   "Panel/Slab", "Cutting", "Door", "Strip Curtain", "Accessories", "System", "Remarks"]


def project_rows(projects: List[Project]) -> List[List[str]]:
    return [
        [p.project_no, p.customer, p.drawing_date or "", p.po_payment or "Pending", p.requested_delivery or "",
         p.panel_slab, p.cutting, p.door, p.strip_curtain, p.accessories, p.system, p.remarks or ""]
        for p in projects
    ]


TASK_COLUMNS = ["ID", "Title", "Project No", "Priority", "Status", "Due", "Description"]


def task_rows(tasks: List[Task]) -> List[List[str]]:
    return [
        [t.id, t.title, t.project_no or "", t.priority.value, t.status.value, (t.due_date or "")[:10], t.description or ""]
        for t in tasks
    ]


def render_task_counts(counts: dict) -> str:
    return (f"Pending: {counts.get('pending', 0)} | In Progress: {counts.get('in-progress', 0)}"
            f" | Completed: {counts.get('completed', 0)}")
