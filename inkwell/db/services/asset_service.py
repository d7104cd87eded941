"""Reconcile stored asset files against the posts that reference them."""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.db.models.post import Post
from inkwell.lib.storage.base import AssetStore

logger = logging.getLogger(__name__)

# Files younger than this may belong to a submission that has not committed yet
DEFAULT_MIN_AGE = timedelta(hours=1)


async def referenced_names(db_session: AsyncSession, store: AssetStore) -> set[str]:
    """Return the stored names referenced by any post."""
    result = await db_session.execute(select(Post.image_path, Post.avatar_path))

    names: set[str] = set()
    for image_path, avatar_path in result.all():
        for reference in (image_path, avatar_path):
            if not reference:
                continue
            name = store.name_for(reference)
            if name:
                names.add(name)
    return names


async def find_orphans(
    db_session: AsyncSession,
    store: AssetStore,
    min_age: timedelta = DEFAULT_MIN_AGE,
) -> list[str]:
    """List stored files that no post references."""
    candidates = await store.list_names(older_than=min_age)
    if not candidates:
        return []

    referenced = await referenced_names(db_session, store)
    return [name for name in candidates if name not in referenced]


async def remove_orphans(
    db_session: AsyncSession,
    store: AssetStore,
    min_age: timedelta = DEFAULT_MIN_AGE,
) -> list[str]:
    """Delete stored files that no post references. Returns the removed names."""
    orphans = await find_orphans(db_session, store, min_age=min_age)
    for name in orphans:
        await store.remove(name)
        logger.info("Removed orphaned asset %s", name)
    return orphans
