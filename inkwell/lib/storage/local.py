"""Local filesystem asset store."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from datetime import timedelta
from pathlib import Path
from uuid import uuid4

from inkwell.lib.exceptions import AssetWriteError
from inkwell.lib.storage.base import StoredAsset

logger = logging.getLogger(__name__)


class LocalAssetStore:
    """Store files flat in one directory under random UUID names.

    The directory must already exist; it is created once at application
    startup. Names are unguessable and never reused, so concurrent writers
    need no coordination and no existence check is made before writing.
    """

    def __init__(self, directory: Path, url_prefix: str = "app/uploads") -> None:
        self._directory = Path(directory)
        self._url_prefix = url_prefix.strip("/")

    @property
    def directory(self) -> Path:
        return self._directory

    async def store(self, data: bytes, extension: str) -> StoredAsset:
        name = f"{uuid4()}.{extension}"
        path = self._directory / name
        try:
            await asyncio.to_thread(self._write_file, path, data)
        except OSError as exc:
            raise AssetWriteError(f"Failed to save file: {exc}") from exc

        logger.debug("Stored %d bytes as %s", len(data), name)
        return StoredAsset(name=name, size=len(data), reference=self.reference_for(name))

    async def list_names(self, older_than: timedelta | None = None) -> list[str]:
        cutoff = None
        if older_than is not None:
            cutoff = time.time() - older_than.total_seconds()
        return await asyncio.to_thread(self._list, self._directory, cutoff)

    async def remove(self, name: str) -> None:
        path = self._name_to_path(name)
        try:
            await asyncio.to_thread(path.unlink, missing_ok=True)
        except OSError as exc:
            raise AssetWriteError(f"Failed to remove file {name}: {exc}") from exc

    def reference_for(self, name: str) -> str:
        if not self._url_prefix:
            return name
        return f"{self._url_prefix}/{name}"

    def name_for(self, reference: str) -> str | None:
        prefix = f"{self._url_prefix}/" if self._url_prefix else ""
        if not reference.startswith(prefix):
            return None
        name = reference[len(prefix):]
        if not name or "/" in name:
            return None
        return name

    # -- internal helpers --

    def _name_to_path(self, name: str) -> Path:
        if not name or "/" in name or name in (".", ".."):
            raise AssetWriteError(f"Invalid asset name: {name!r}")
        return self._directory / name

    @staticmethod
    def _write_file(path: Path, data: bytes) -> None:
        # Readers only ever see the final name once the bytes are complete
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    @staticmethod
    def _list(directory: Path, cutoff: float | None) -> list[str]:
        if not directory.is_dir():
            return []
        names = []
        for path in directory.iterdir():
            if path.name.startswith(".") or not path.is_file():
                continue
            if cutoff is not None and path.stat().st_mtime > cutoff:
                continue
            names.append(path.name)
        return sorted(names)
