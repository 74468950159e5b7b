"""Post persistence: upsert, category links, and catalogue lookups"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from blogpub.core.models import StagedPost
from blogpub.core.utils.hashing import frontmatter_hash, sha256
from blogpub.crud.models import Category, Post, PostCategory
from blogpub.crud.versioning import save_version


logger = logging.getLogger(__name__)


def get_by_path(session: Session, path: str) -> Post | None:
    """Return the Post with the given source path, or None if not found."""
    return session.exec(select(Post).where(Post.path == path)).one_or_none()


def get_by_slug(session: Session, slug: str) -> Post | None:
    """Return the Post with the given slug, or None if not found."""
    return session.exec(select(Post).where(Post.slug == slug)).one_or_none()


def get_all_posts(session: Session) -> list[Post]:
    """Return every post, newest first."""
    return list(session.exec(select(Post).order_by(Post.date.desc(), Post.slug)).all())


def get_last_committed(session: Session) -> list[Post]:
    """Return posts from the most recent commit batch (MAX committed_at)."""
    max_ts = session.exec(select(func.max(Post.committed_at))).one()
    if max_ts is None:
        return []
    return list(session.exec(
        select(Post).where(Post.committed_at == max_ts).order_by(Post.date.desc(), Post.slug)
    ).all())


def get_by_category(session: Session, category: str) -> list[Post]:
    """Return posts filed under category, newest first."""
    return list(session.exec(
        select(Post)
        .join(PostCategory, PostCategory.post_id == Post.id)
        .where(PostCategory.category_name == category)
        .order_by(Post.date.desc(), Post.slug)
    ).all())


def list_categories(session: Session) -> list[tuple[str, int]]:
    """Return (category, post_count) pairs sorted by name. Categories with no posts are omitted."""
    rows = session.exec(
        select(PostCategory.category_name, func.count(PostCategory.post_id))
        .group_by(PostCategory.category_name)
        .order_by(PostCategory.category_name)
    ).all()
    return [(name, count) for name, count in rows]


def post_categories(session: Session, post_id: UUID) -> list[str]:
    """Return a post's category names in header order."""
    return list(session.exec(
        select(PostCategory.category_name)
        .where(PostCategory.post_id == post_id)
        .order_by(PostCategory.position)
    ).all())


def _replace_categories(session: Session, post_id: UUID, names: list[str]) -> None:
    """Delete a post's category links and insert the new ordered set."""
    for link in session.exec(select(PostCategory).where(PostCategory.post_id == post_id)).all():
        session.delete(link)
    session.flush()

    for position, name in enumerate(names):
        if not session.get(Category, name):
            session.add(Category(name=name))
            session.flush()
        session.add(PostCategory(post_id=post_id, category_name=name, position=position))
    session.flush()


def _apply(post: Post, staged: StagedPost, body_hash: str) -> None:
    meta = staged.meta
    post.slug = staged.slug
    post.path = staged.path
    post.markdown = staged.markdown
    post.hash = body_hash
    post.frontmatter = staged.frontmatter or None
    post.layout = meta.layout
    post.title = meta.title
    post.description = meta.description
    post.date = meta.date


def commit_post(
    session: Session,
    staged: StagedPost,
    max_versions: int = 10,
    committed_at: datetime | None = None,
    ) -> tuple[Post, str]:
    """Upsert a staged post by source path.

    Returns (post, status) where status is 'created', 'updated', or 'unchanged'.
    A post is unchanged when both its body and its header are identical.
    Flushes but does not commit; the caller controls the transaction.
    Raises ValueError when the slug belongs to a post at another path.
    """
    body_hash = sha256(staged.markdown)
    owner = get_by_slug(session, staged.slug)
    if owner is not None and owner.path != staged.path:
        raise ValueError(f"Slug '{staged.slug}' for {staged.path} is already used by {owner.path}")

    post = get_by_path(session, staged.path)
    if post:
        if post.hash == body_hash and frontmatter_hash(post.frontmatter) == frontmatter_hash(staged.frontmatter):
            return post, 'unchanged'
        save_version(session, post, max_versions)
        _apply(post, staged, body_hash)
        post.updated_at = datetime.now()
        post.committed_at = committed_at
        session.add(post)
        session.flush()
        _replace_categories(session, post.id, staged.meta.categories)
        logger.debug("updated %s", post.slug)
        return post, 'updated'

    post = Post(
        slug=staged.slug,
        path=staged.path,
        markdown=staged.markdown,
        hash=body_hash,
        title=staged.meta.title,
        date=staged.meta.date,
        committed_at=committed_at,
    )
    _apply(post, staged, body_hash)
    session.add(post)
    session.flush()
    _replace_categories(session, post.id, staged.meta.categories)
    logger.debug("created %s", post.slug)
    return post, 'created'
