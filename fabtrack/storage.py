# fabtrack/storage.py
"""
Object URL storage.

Preview content fetched from the backend is kept in memory and exposed to the
browser through short-lived local URLs (`/objects/<token>`), served by the UI
service. Every URL created here must be released exactly once, otherwise the
blob stays in memory for the life of the process.

`ObjectUrlHandle` is the owning type callers should use: it holds at most one
live URL and releases it before acquiring the next one.
"""
import threading
import uuid
from typing import Dict, Optional

from fabtrack.config import settings, logger as core_logger
from fabtrack.models import Blob

logger = core_logger.getChild("ObjectURLs")


class ObjectUrlRegistry:
    """Process-wide table of live object URLs."""

    def __init__(self, prefix: Optional[str] = None):
        self.prefix = (prefix or settings.OBJECT_URL_PREFIX).rstrip("/")
        self._blobs: Dict[str, Blob] = {}
        self._lock = threading.Lock() # Served from FastAPI worker threads too

    def create(self, blob: Blob) -> str:
        token = uuid.uuid4().hex
        with self._lock:
            self._blobs[token] = blob
        url = f"{self.prefix}/{token}"
        logger.debug(f"Created object URL {url} ({blob.size} bytes, {blob.mime_type})")
        return url

    def release(self, url: str) -> None:
        """Frees the blob behind `url`. Safe to call with "" or an already released URL."""
        if not url:
            return
        token = self._token(url)
        with self._lock:
            blob = self._blobs.pop(token, None)
        if blob is None:
            logger.debug(f"Release of unknown or already released object URL {url}")
        else:
            logger.debug(f"Released object URL {url}")

    def resolve(self, url_or_token: str) -> Optional[Blob]:
        with self._lock:
            return self._blobs.get(self._token(url_or_token))

    @property
    def live_count(self) -> int:
        with self._lock:
            return len(self._blobs)

    def _token(self, url_or_token: str) -> str:
        return url_or_token.rsplit("/", 1)[-1]


class ObjectUrlHandle:
    """Owns at most one live object URL from a registry."""

    def __init__(self, registry: ObjectUrlRegistry):
        self.registry = registry
        self.url = ""

    @property
    def is_live(self) -> bool:
        return bool(self.url)

    def acquire(self, blob: Blob) -> str:
        self.release()
        self.url = self.registry.create(blob)
        return self.url

    def release(self) -> None:
        if self.url:
            url, self.url = self.url, ""
            self.registry.release(url)

    def __enter__(self) -> "ObjectUrlHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.release()


# Shared registry for the UI service process
object_urls = ObjectUrlRegistry()
