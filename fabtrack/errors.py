# fabtrack/errors.py
"""
Error taxonomy for calls made against the FabTrack backend.

The REST client raises these; the component that issued a call catches
`ApiError`, logs it, and turns it into a component-local error string.
"""
from typing import Optional


class FabTrackError(Exception):
    """Base class for all FabTrack client errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ApiError(FabTrackError):
    """A call to the backend did not produce a usable result."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NetworkError(ApiError):
    """The request never got a response (server unreachable, timeout, ...)."""


class ServerError(ApiError):
    """The backend answered with a non-2xx status."""


class ParseError(ApiError):
    """The body of an expected-JSON response could not be decoded or validated."""


class UploadError(ApiError):
    """Any failure during a multipart upload. The underlying error is chained as __cause__."""


class BlobFetchError(ApiError):
    """Failure retrieving file bytes for preview or download."""
