"""Error taxonomy for the post pipeline and its mapping onto HTTP responses.

Every failure the pipeline can report is a :class:`BlogError`.  Each kind is
terminal for the request; nothing is retried.  :func:`status_code_for` is the
single place that decides which kinds are the client's fault and which are
the server's.
"""

import logging

from litestar import Request, Response
from litestar.enums import MediaType
from litestar.exceptions import HTTPException
from litestar.status_codes import (
    HTTP_400_BAD_REQUEST,
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from inkwell.lib import observability

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing or invalid."""


class BlogError(Exception):
    """Base class for every failure the post pipeline reports to a client."""

    label = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"


class FormDecodeError(BlogError):
    """The multipart body or one of its parts could not be read."""

    label = "Failed to parse form"


class UploadTooLargeError(BlogError):
    """A request body, image or avatar exceeded its configured size cap."""

    label = "Upload too large"


class ValidationError(BlogError):
    """A submission is missing a required field or carries unusable content."""

    label = "Validation error"


class AssetWriteError(BlogError):
    """Local storage refused a write or delete."""

    label = "File operation error"


class AvatarFetchError(BlogError):
    """The avatar could not be retrieved."""

    label = "Network error"


class AvatarNetworkError(AvatarFetchError):
    """Connection, protocol or status failure while fetching an avatar URL."""


class PersistenceError(BlogError):
    """The database rejected a read or the post insert."""

    label = "Database error"


class RenderError(BlogError):
    """The feed template could not be loaded or rendered."""

    label = "Template error"


_STATUS_BY_ERROR: dict[type[BlogError], int] = {
    FormDecodeError: HTTP_400_BAD_REQUEST,
    ValidationError: HTTP_400_BAD_REQUEST,
    UploadTooLargeError: HTTP_413_REQUEST_ENTITY_TOO_LARGE,
}


def status_code_for(exc: BlogError) -> int:
    """Map an error kind to the HTTP status it is reported with."""
    for error_type in type(exc).__mro__:
        if error_type in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[error_type]
    return HTTP_500_INTERNAL_SERVER_ERROR


def _text_response(content: str, status_code: int) -> Response:
    return Response(content=content, status_code=status_code, media_type=MediaType.TEXT)


def blog_error_handler(request: Request, exc: BlogError) -> Response:
    """Report a pipeline failure as plain text with its mapped status."""
    status_code = status_code_for(exc)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc
        )
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return _text_response(str(exc), status_code)


def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """Handle framework HTTP exceptions (404, 405, 413, ...) as plain text."""
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _text_response(detail, exc.status_code)


def internal_server_error_handler(request: Request, exc: Exception) -> Response:
    """Log unexpected exceptions and hide their details from the client."""
    logged = observability.exception(
        "Unhandled exception on {method} {path}",
        method=request.method,
        path=request.url.path,
    )
    if not logged:
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
    return _text_response("Internal Server Error", HTTP_500_INTERNAL_SERVER_ERROR)
