"""Stream a multipart request body as a sequence of named parts.

The body is pushed through :class:`multipart.PushMultipartParser` as it
arrives. Each part is handed to the caller as soon as its closing boundary
is seen, so parts are consumed in wire order and a later part is not read
from the socket until every earlier one has been handled.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from litestar import Request
from litestar.exceptions import HTTPException
from litestar.status_codes import HTTP_413_REQUEST_ENTITY_TOO_LARGE
from multipart import MultipartError, MultipartSegment, PushMultipartParser

from inkwell.lib.exceptions import FormDecodeError, UploadTooLargeError

MULTIPART_FORM_DATA = "multipart/form-data"
DEFAULT_CHARSET = "utf-8"
DEFAULT_MAX_PARTS = 1000


class FormPart(Protocol):
    """One named section of a multipart submission."""

    @property
    def name(self) -> str | None: ...

    @property
    def filename(self) -> str | None: ...

    async def read_text(self) -> str: ...

    async def read_bytes(self) -> bytes: ...


@dataclass
class MultipartPart:
    """A complete part body with the metadata from its headers."""

    name: str | None
    data: bytes
    filename: str | None = None
    content_type: str | None = None
    charset: str | None = None

    async def read_bytes(self) -> bytes:
        return self.data

    async def read_text(self) -> str:
        try:
            return self.data.decode(self.charset or DEFAULT_CHARSET)
        except (UnicodeDecodeError, LookupError) as exc:
            raise FormDecodeError(f"Failed to read {self.name}: {exc}") from exc


def _part_from(segment: MultipartSegment, body: bytearray) -> MultipartPart:
    return MultipartPart(
        name=segment.name or None,
        data=bytes(body),
        filename=segment.filename or None,
        content_type=segment.content_type,
        charset=segment.charset,
    )


async def parse_multipart(
    chunks: AsyncIterable[bytes], boundary: str
) -> AsyncIterator[MultipartPart]:
    """Yield parts from a chunked multipart body in the order they appear.

    Raises :class:`FormDecodeError` for a malformed or truncated body.
    """
    parser = PushMultipartParser(boundary)
    segment: MultipartSegment | None = None
    body = bytearray()

    async for chunk in chunks:
        if not chunk:
            continue
        try:
            events = list(parser.parse(chunk))
        except MultipartError as exc:
            raise FormDecodeError(str(exc)) from exc

        for event in events:
            if isinstance(event, MultipartSegment):
                segment, body = event, bytearray()
            elif event:
                body += event
            elif segment is not None:
                part, segment = _part_from(segment, body), None
                yield part

        if parser.closed:
            return

    # An empty chunk tells the parser the body has ended
    try:
        list(parser.parse(b""))
    except MultipartError as exc:
        raise FormDecodeError(str(exc)) from exc
    if not parser.closed:
        raise FormDecodeError("Multipart body ended before the closing boundary")


async def _request_chunks(request: Request) -> AsyncIterator[bytes]:
    try:
        async for chunk in request.stream():
            yield chunk
    except HTTPException as exc:
        if exc.status_code == HTTP_413_REQUEST_ENTITY_TOO_LARGE:
            raise UploadTooLargeError(exc.detail) from exc
        raise FormDecodeError(exc.detail) from exc


async def iter_form_parts(
    request: Request, *, max_parts: int = DEFAULT_MAX_PARTS
) -> AsyncIterator[MultipartPart]:
    """Yield the parts of a multipart request body in arrival order."""
    media_type, options = request.content_type
    if media_type != MULTIPART_FORM_DATA:
        raise FormDecodeError(f"Expected {MULTIPART_FORM_DATA}, got {media_type or 'no body'}")

    boundary = options.get("boundary")
    if not boundary:
        raise FormDecodeError("Multipart body has no boundary")

    count = 0
    async for part in parse_multipart(_request_chunks(request), boundary):
        count += 1
        if count > max_parts:
            raise UploadTooLargeError(f"More than {max_parts} form parts")
        yield part
