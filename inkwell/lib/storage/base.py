"""Asset store protocol and common types."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class StoredAsset:
    """A file the store has durably written."""

    name: str
    size: int
    reference: str


@runtime_checkable
class AssetStore(Protocol):
    """Interface for storing post images and avatars under unique names."""

    async def store(self, data: bytes, extension: str) -> StoredAsset:
        """Write data under a freshly generated name."""
        ...

    async def list_names(self, older_than: timedelta | None = None) -> list[str]:
        """Return the names of stored files, optionally only those older than a cutoff."""
        ...

    async def remove(self, name: str) -> None:
        """Delete a stored file. Missing files are ignored."""
        ...

    def reference_for(self, name: str) -> str:
        """Return the reference persisted on a post for a stored name."""
        ...

    def name_for(self, reference: str) -> str | None:
        """Invert :meth:`reference_for`; ``None`` if the reference is not ours."""
        ...
