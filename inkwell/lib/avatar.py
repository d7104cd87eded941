"""Fetch avatar images from visitor-supplied URLs."""

from __future__ import annotations

import logging

import httpx

from inkwell.lib.exceptions import AvatarNetworkError, UploadTooLargeError, ValidationError
from inkwell.lib.imaging import sniff_extension
from inkwell.lib.storage.base import AssetStore, StoredAsset

logger = logging.getLogger(__name__)

# Extension used when content verification is disabled
DEFAULT_AVATAR_EXTENSION = "png"


class AvatarFetcher:
    """Download an avatar over HTTP and hand the bytes to an asset store.

    This is the only component that talks to third-party hosts. Any
    transport failure or non-success status is reported uniformly as
    :class:`AvatarNetworkError`; nothing is retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        store: AssetStore,
        *,
        max_size: int,
        verify_content: bool = True,
    ) -> None:
        self._client = client
        self._store = store
        self._max_size = max_size
        self._verify_content = verify_content

    async def fetch_and_store(self, url: str) -> StoredAsset:
        data = await self._download(url)
        extension = self._extension_for(url, data)
        asset = await self._store.store(data, extension)
        logger.info("Fetched avatar from %s as %s (%d bytes)", url, asset.name, asset.size)
        return asset

    async def _download(self, url: str) -> bytes:
        chunks: list[bytes] = []
        received = 0
        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()

                declared = response.headers.get("content-length", "")
                if declared.isdigit() and int(declared) > self._max_size:
                    raise UploadTooLargeError(
                        f"Avatar at {url} is {declared} bytes; the limit is {self._max_size}"
                    )

                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > self._max_size:
                        raise UploadTooLargeError(
                            f"Avatar at {url} exceeds the {self._max_size} byte limit"
                        )
                    chunks.append(chunk)
        except httpx.InvalidURL as exc:
            raise AvatarNetworkError(f"Invalid avatar URL {url!r}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise AvatarNetworkError(f"Failed to fetch avatar from {url}: {exc}") from exc

        return b"".join(chunks)

    def _extension_for(self, url: str, data: bytes) -> str:
        if not self._verify_content:
            return DEFAULT_AVATAR_EXTENSION

        extension = sniff_extension(data)
        if extension is None:
            raise ValidationError(f"Avatar URL {url} did not return a recognized image")
        return extension
