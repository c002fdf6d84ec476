# services/ui_service/app/objects.py
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response
import logging

from fabtrack.storage import ObjectUrlRegistry, object_urls

logger = logging.getLogger("FabTrack_Core").getChild("UIService").getChild("Objects")

router = APIRouter()


def get_registry(request: Request) -> ObjectUrlRegistry:
    """Registry stored on app state, defaulting to the process-wide one."""
    return getattr(request.app.state, "object_urls", None) or object_urls


@router.get("/{token}")
async def serve_object(token: str, request: Request):
    """Serves the bytes behind a live object URL. Released URLs are gone for good."""
    blob = get_registry(request).resolve(token)
    if blob is None:
        logger.debug(f"Object URL token not found or released: {token}")
        raise HTTPException(status_code=404, detail="Object URL not found or already released")
    return Response(content=blob.content, media_type=blob.mime_type, headers={"Cache-Control": "no-store"})
