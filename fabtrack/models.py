# fabtrack/models.py
from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import Optional, Dict, Any
from enum import Enum
import mimetypes
import os

DEFAULT_MIME_TYPE = "application/octet-stream"

# --- Enums ---

class Category(str, Enum):
    """The six fabrication stages used to partition files and tasks."""
    PANEL = "panel"
    CUTTING = "cutting"
    DOOR = "door"
    STRIP_CURTAIN = "strip_curtain"
    ACCESSORIES = "accessories"
    SYSTEM = "system"


class CategoryInfo(BaseModel):
    """Presentation metadata for a category card."""
    key: Category
    label: str
    icon: str
    description: str

    model_config = ConfigDict(frozen=True)


CATEGORY_INFO: Dict[Category, CategoryInfo] = {
    Category.PANEL: CategoryInfo(key=Category.PANEL, label="Panel / Slab", icon="🖼️", description="Panel and slab related files"),
    Category.CUTTING: CategoryInfo(key=Category.CUTTING, label="Cutting", icon="✂️", description="Cutting plans and documents"),
    Category.DOOR: CategoryInfo(key=Category.DOOR, label="Door", icon="🚪", description="Door specifications and drawings"),
    Category.STRIP_CURTAIN: CategoryInfo(key=Category.STRIP_CURTAIN, label="Strip Curtain", icon="🎪", description="Strip curtain documentation"),
    Category.ACCESSORIES: CategoryInfo(key=Category.ACCESSORIES, label="Accessories", icon="🔧", description="Accessories and fittings"),
    Category.SYSTEM: CategoryInfo(key=Category.SYSTEM, label="System", icon="⚙️", description="System integration files"),
}


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# --- File Models ---

class ProjectFile(BaseModel):
    """Metadata of a file stored server-side for a project. Immutable on the client."""
    id: str = Field(..., description="Opaque server-assigned identifier")
    file_name: str
    mime_type: str = DEFAULT_MIME_TYPE
    file_size: int = Field(default=0, ge=0, description="Size in bytes")
    category: Optional[Category] = Field(None, description="Missing on the legacy whole-project listing")
    project_no: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("id", "project_no", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        # Backend uses integer primary keys for some rows
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("mime_type", mode="before")
    @classmethod
    def default_mime_type(cls, value):
        return value or DEFAULT_MIME_TYPE


class StagedFile(BaseModel):
    """A user-selected local file waiting to be uploaded. Lives only in client memory."""
    name: str
    size: int = Field(..., ge=0)
    content: bytes = Field(repr=False)
    mime_type: str = DEFAULT_MIME_TYPE

    @classmethod
    def from_bytes(cls, name: str, content: bytes, mime_type: Optional[str] = None) -> "StagedFile":
        if not mime_type:
            mime_type = mimetypes.guess_type(name)[0] or DEFAULT_MIME_TYPE
        return cls(name=name, size=len(content), content=content, mime_type=mime_type)

    @classmethod
    def from_path(cls, path: str, name: Optional[str] = None) -> "StagedFile":
        """Reads a local file (e.g. a UI temp upload) into memory."""
        with open(path, "rb") as f:
            content = f.read()
        return cls.from_bytes(name or os.path.basename(path), content)


class Blob(BaseModel):
    """Raw file bytes returned by the blob endpoint."""
    content: bytes = Field(repr=False)
    mime_type: str = DEFAULT_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


# --- Project Models ---

class Project(BaseModel):
    """A fabrication job as returned by GET /projects."""
    id: Optional[str] = None
    drawing_date: Optional[str] = Field(None, alias="drawingDate")
    project_no: str = Field(..., alias="projectNo")
    customer: str = ""
    po_payment: Optional[str] = Field(None, alias="poPayment")
    requested_delivery: Optional[str] = Field(None, alias="requestedDelivery")
    remarks: Optional[str] = None
    # Stage status grid
    panel_slab: str = Field("", alias="panelSlab")
    cutting: str = ""
    door: str = ""
    strip_curtain: str = Field("", alias="stripCurtain")
    accessories: str = ""
    system: str = ""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("id", "project_no", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @field_validator("panel_slab", "cutting", "door", "strip_curtain", "accessories", "system", mode="before")
    @classmethod
    def none_as_blank(cls, value):
        return value or ""

    @property
    def po_ok(self) -> bool:
        return bool(self.po_payment) and self.po_payment.upper() == "OK"


class ProjectCreate(BaseModel):
    """Payload for POST /projects. Job number and customer are required."""
    drawing_date: Optional[str] = Field(None, alias="drawingDate")
    project_no: str = Field(..., min_length=1, alias="projectNo")
    customer: str = Field(..., min_length=1)
    po_payment: Optional[str] = Field(None, alias="poPayment")
    requested_delivery: Optional[str] = Field(None, alias="requestedDelivery")
    remarks: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# --- Task Models ---

class Task(BaseModel):
    """A task on one of the per-category boards."""
    id: str
    title: str
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    project_no: Optional[str] = Field(None, alias="projectNo")
    due_date: Optional[str] = Field(None, alias="dueDate")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("id", "project_no", mode="before")
    @classmethod
    def coerce_identifier(cls, value):
        if value is None or isinstance(value, str):
            return value
        return str(value)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Task":
        # Some task endpoints echo back snake_case keys
        data = dict(data)
        if "project_no" in data and "projectNo" not in data:
            data["projectNo"] = data.pop("project_no")
        if "due_date" in data and "dueDate" not in data:
            data["dueDate"] = data.pop("due_date")
        return cls.model_validate(data)


class TaskCreate(BaseModel):
    """Payload for creating or fully editing a task. Sent with snake_case keys."""
    title: str = Field(..., min_length=1)
    description: Optional[str] = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    project_no: str = Field(..., min_length=1)
    due_date: Optional[str] = ""

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, validate_default=True)
