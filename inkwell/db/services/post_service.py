"""Post service: validate and persist drafts, read the feed."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import insert, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from inkwell.db.models.post import Post
from inkwell.ingest.draft import PostDraft, log_orphaned_assets
from inkwell.lib import observability
from inkwell.lib.exceptions import BlogError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewPost:
    """A draft that passed validation and is ready to insert."""

    username: str
    content: str
    image_path: str | None = None
    avatar_path: str | None = None


@dataclass(frozen=True)
class PostView:
    """Display form of a post; absent references become empty strings."""

    id: int
    username: str
    content: str
    created_at: datetime
    image_path: str
    avatar_path: str

    @classmethod
    def from_post(cls, post: Post) -> PostView:
        return cls(
            id=post.id,
            username=post.username,
            content=post.content,
            created_at=post.created_at,
            image_path=post.image_path or "",
            avatar_path=post.avatar_path or "",
        )


def validate_draft(draft: PostDraft, *, reject_blank: bool = True) -> NewPost:
    """Check required fields.

    Both ``username`` and ``post_content`` must have been submitted. With
    ``reject_blank`` they must also contain something besides whitespace.
    """
    if draft.username is None:
        raise ValidationError("Username is required")
    if draft.content is None:
        raise ValidationError("Content is required")

    if reject_blank:
        if not draft.username.strip():
            raise ValidationError("Username must not be blank")
        if not draft.content.strip():
            raise ValidationError("Content must not be blank")

    return NewPost(
        username=draft.username,
        content=draft.content,
        image_path=draft.image_path,
        avatar_path=draft.avatar_path,
    )


async def create_post(db_session: AsyncSession, new_post: NewPost) -> None:
    """Insert a post with a single statement.

    The database assigns ``id`` and ``created_at``; the row is not read back.
    """
    statement = insert(Post).values(
        username=new_post.username,
        content=new_post.content,
        image_path=new_post.image_path,
        avatar_path=new_post.avatar_path,
    )
    try:
        await db_session.execute(statement)
        await db_session.commit()
    except SQLAlchemyError as exc:
        await db_session.rollback()
        raise PersistenceError(str(exc)) from exc


async def finalize(
    db_session: AsyncSession,
    draft: PostDraft,
    *,
    reject_blank: bool = True,
) -> NewPost:
    """Validate a fully demultiplexed draft and persist it.

    Assets referenced by the draft were written before this point. If
    validation or the insert fails they stay on disk as orphans.
    """
    try:
        new_post = validate_draft(draft, reject_blank=reject_blank)
        with observability.span("ingest.persist", username=new_post.username):
            await create_post(db_session, new_post)
    except BlogError:
        log_orphaned_assets(draft.assets, "post was not saved")
        raise

    logger.info(
        "Created post by %r (image=%s, avatar=%s)",
        new_post.username,
        new_post.image_path or "-",
        new_post.avatar_path or "-",
    )
    return new_post


async def list_all(db_session: AsyncSession) -> list[Post]:
    """Return every post, newest first."""
    try:
        result = await db_session.execute(
            select(Post).order_by(Post.created_at.desc(), Post.id.desc())
        )
    except SQLAlchemyError as exc:
        raise PersistenceError(str(exc)) from exc
    return list(result.scalars().all())


async def list_views(db_session: AsyncSession) -> list[PostView]:
    return [PostView.from_post(post) for post in await list_all(db_session)]
