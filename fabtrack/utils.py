# fabtrack/utils.py
"""Small helpers shared by the library and the UI service."""
from typing import Optional


def is_previewable(mime_type: Optional[str]) -> bool:
    """Images and PDFs can be rendered in the preview panel; everything else is download-only."""
    return bool(mime_type) and (mime_type.startswith("image/") or mime_type.endswith("/pdf"))


def format_size_kb(size: int) -> str:
    return f"{size / 1024:.1f} KB"
