"""Request-scoped accumulator for a post submission."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from inkwell.lib.storage.base import StoredAsset

logger = logging.getLogger(__name__)


@dataclass
class PostDraft:
    """Fields parsed so far from one submission.

    ``None`` means the field never appeared. ``assets`` records every file
    written on behalf of this draft, including ones later superseded, so a
    failed submission can report exactly what it left behind.
    """

    username: str | None = None
    content: str | None = None
    image_path: str | None = None
    avatar_path: str | None = None
    assets: list[StoredAsset] = field(default_factory=list)

    def attach(self, field_name: str, asset: StoredAsset) -> None:
        """Point ``image_path`` or ``avatar_path`` at a freshly stored asset."""
        previous = getattr(self, field_name)
        if previous is not None:
            logger.warning(
                "Repeated %s replaced %s; the earlier file is now orphaned", field_name, previous
            )
        setattr(self, field_name, asset.reference)
        self.assets.append(asset)


def log_orphaned_assets(assets: list[StoredAsset], reason: str) -> None:
    """Record files that were written but will never be referenced by a post.

    Files are left in place; ``inkwell orphans`` sweeps them later.
    """
    for asset in assets:
        logger.warning("Orphaned asset %s (%d bytes): %s", asset.reference, asset.size, reason)
