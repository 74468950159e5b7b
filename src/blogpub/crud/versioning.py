"""Post history: every commit that changes a post's body or header keeps the prior state

Versions are numbered per post from 1 and never reused, so `blogpub history`
output stays stable after old versions are pruned.
"""

import json
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from blogpub.core.utils.diff import unified_diff
from blogpub.crud.models import Post, PostVersion


def get_version(session: Session, post_id: UUID, version_num: int) -> PostVersion:
    """Look up v<version_num> of a post. Raises ValueError if it was never saved or has been pruned."""
    v = session.exec(
        select(PostVersion)
        .where(PostVersion.post_id == post_id)
        .where(PostVersion.version_num == version_num)
    ).one_or_none()
    if v is None:
        raise ValueError(f"Version {version_num} not found for post {post_id}")
    return v


def diff_versions(session: Session, post_id: UUID, from_num: int, to_num: int, context: int = 3) -> list[str]:
    """Body diff from v<from_num> to v<to_num>. Header changes are not shown."""
    v_from, v_to = get_version(session, post_id, from_num), get_version(session, post_id, to_num)
    return unified_diff(v_from.markdown, v_to.markdown, f"v{from_num}", f"v{to_num}", context)


def diff_current(session: Session, post: Post, version_num: int, context: int = 3) -> list[str]:
    """Body diff from a stored version to what the catalogue holds now."""
    v = get_version(session, post.id, version_num)
    return unified_diff(v.markdown, post.markdown, f"v{version_num}", "current", context)


def list_versions(session: Session, post_id: UUID) -> list[PostVersion]:
    """Stored versions of a post, oldest first."""
    return list(
        session.exec(
            select(PostVersion)
            .where(PostVersion.post_id == post_id)
            .order_by(PostVersion.version_num.asc())
        ).all()
    )


def prune_versions(session: Session, post_id: UUID, max_versions: int) -> int:
    """Keep only the newest max_versions of a post's history (0 keeps all). Returns how many were dropped."""
    if max_versions == 0:
        return 0

    versions = list_versions(session, post_id)
    excess = len(versions) - max_versions
    if excess <= 0:
        return 0

    for v in versions[:excess]:
        session.delete(v)
    session.flush()
    return excess


def _next_version_num(session: Session, post_id: UUID) -> int:
    latest = session.exec(
        select(func.max(PostVersion.version_num))
        .where(PostVersion.post_id == post_id)
    ).one()
    return (latest or 0) + 1


def save_version(session: Session, post: Post, max_versions: int = 10) -> PostVersion:
    """Record the post as it stands before an update: body, body hash and header JSON."""
    version = PostVersion(
        post_id=post.id,
        version_num=_next_version_num(session, post.id),
        markdown=post.markdown,
        hash=post.hash,
        frontmatter=json.dumps(post.frontmatter) if post.frontmatter is not None else None,
    )
    session.add(version)
    session.flush()

    if max_versions > 0:
        prune_versions(session, post.id, max_versions)
    return version


def revert_to_version(session: Session, post: Post, version_num: int, max_versions: int = 10) -> Post:
    """Put an older body and header back on the post.

    The state being replaced goes into history first, so a revert shows up
    as one more version and can itself be reverted. Title, date and the
    other typed columns keep their values until the source file is
    committed again. Raises ValueError for an unknown version_num.
    """
    target = get_version(session, post.id, version_num)
    markdown, hash_, frontmatter = target.markdown, target.hash, target.frontmatter
    # saving may prune the target itself
    save_version(session, post, max_versions=max_versions)

    post.markdown = markdown
    post.hash = hash_
    post.frontmatter = json.loads(frontmatter) if frontmatter else None
    post.updated_at = datetime.now()
    session.add(post)
    session.flush()
    return post
