"""Resolve a multipart submission into a :class:`PostDraft`."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Awaitable, Callable

from inkwell.ingest.draft import PostDraft, log_orphaned_assets
from inkwell.ingest.parts import FormPart
from inkwell.lib import observability
from inkwell.lib.avatar import AvatarFetcher
from inkwell.lib.exceptions import BlogError, FormDecodeError, UploadTooLargeError, ValidationError
from inkwell.lib.imaging import is_png
from inkwell.lib.storage.base import AssetStore

logger = logging.getLogger(__name__)

USERNAME_FIELD = "username"
CONTENT_FIELD = "post_content"
AVATAR_URL_FIELD = "avatar_url"
IMAGE_FIELD = "post_image"

IMAGE_SUFFIX = ".png"
IMAGE_EXTENSION = "png"

PartHandler = Callable[[FormPart, PostDraft], Awaitable[None]]


class SubmissionDemultiplexer:
    """Consume parts in arrival order, storing assets as they are seen.

    A repeated text field overwrites the earlier value. Unknown field names
    are ignored. A part with no field name is a decode error.
    """

    def __init__(
        self,
        store: AssetStore,
        fetcher: AvatarFetcher,
        *,
        max_image_size: int,
        verify_image_content: bool = True,
    ) -> None:
        self._store = store
        self._fetcher = fetcher
        self._max_image_size = max_image_size
        self._verify_image_content = verify_image_content
        self._handlers: dict[str, PartHandler] = {
            USERNAME_FIELD: self._take_username,
            CONTENT_FIELD: self._take_content,
            AVATAR_URL_FIELD: self._take_avatar_url,
            IMAGE_FIELD: self._take_image,
        }

    async def demultiplex(self, parts: AsyncIterable[FormPart]) -> PostDraft:
        draft = PostDraft()
        try:
            async for part in parts:
                if not part.name:
                    raise FormDecodeError("Multipart part is missing a field name")

                handler = self._handlers.get(part.name)
                if handler is None:
                    logger.debug("Ignoring unknown form field %r", part.name)
                    continue
                await handler(part, draft)
        except BlogError:
            log_orphaned_assets(draft.assets, "submission was rejected")
            raise
        return draft

    async def _take_username(self, part: FormPart, draft: PostDraft) -> None:
        value = await part.read_text()
        if draft.username is not None:
            logger.debug("Field %r repeated; keeping the last value", part.name)
        draft.username = value

    async def _take_content(self, part: FormPart, draft: PostDraft) -> None:
        value = await part.read_text()
        if draft.content is not None:
            logger.debug("Field %r repeated; keeping the last value", part.name)
        draft.content = value

    async def _take_avatar_url(self, part: FormPart, draft: PostDraft) -> None:
        url = (await part.read_text()).strip()
        if not url:
            return

        with observability.span("ingest.avatar_fetch", url=url):
            asset = await self._fetcher.fetch_and_store(url)
        draft.attach("avatar_path", asset)

    async def _take_image(self, part: FormPart, draft: PostDraft) -> None:
        filename = part.filename
        if not filename or not filename.endswith(IMAGE_SUFFIX):
            logger.debug("Ignoring %s upload %r: not a %s file", part.name, filename, IMAGE_SUFFIX)
            return

        data = await part.read_bytes()
        if not data:
            return
        if len(data) > self._max_image_size:
            raise UploadTooLargeError(
                f"{filename} is {len(data)} bytes; the limit is {self._max_image_size}"
            )
        if self._verify_image_content and not is_png(data):
            raise ValidationError(f"{filename} is not a PNG image")

        with observability.span("ingest.post_image", filename=filename, size=len(data)):
            asset = await self._store.store(data, IMAGE_EXTENSION)
        draft.attach("image_path", asset)
