"""Unit tests for crud/posts.py"""

from datetime import datetime

import pytest
from sqlmodel import select

from blogpub.crud.models import Category, PostCategory, PostVersion
from blogpub.crud.posts import (
    commit_post, get_all_posts, get_by_category, get_by_path, get_by_slug,
    get_last_committed, list_categories, post_categories,
)


# --- lookups ---

def test_get_by_path_and_slug(session, post):
    assert get_by_path(session, "posts/hello.md").id == post.id
    assert get_by_slug(session, "hello").id == post.id


def test_lookups_missing(session):
    """Absent paths and slugs return None."""
    assert get_by_path(session, "no/such.md") is None
    assert get_by_slug(session, "no-such-slug") is None


# --- commit_post: create ---

def test_commit_post_creates(session, make_staged):
    post, status = commit_post(session, make_staged(categories=["python", "json"]))
    assert status == "created"
    assert post.title == "Hello"
    assert post.date == datetime(2023, 1, 1)
    assert post_categories(session, post.id) == ["python", "json"]
    assert session.get(Category, "python") is not None


def test_commit_post_sets_committed_at(session, make_staged):
    ts = datetime(2024, 6, 1, 12)
    post, _ = commit_post(session, make_staged(), committed_at=ts)
    assert post.committed_at == ts


# --- commit_post: update / unchanged ---

def test_commit_post_unchanged(session, make_staged):
    """Identical body and header are skipped without a version."""
    commit_post(session, make_staged())
    post, status = commit_post(session, make_staged())
    assert status == "unchanged"
    assert session.exec(select(PostVersion)).all() == []


def test_commit_post_body_change_updates(session, make_staged):
    """A changed body updates the post and snapshots the previous state."""
    commit_post(session, make_staged(markdown="old body"))
    post, status = commit_post(session, make_staged(markdown="new body"))
    assert status == "updated"
    assert post.markdown == "new body"
    versions = session.exec(select(PostVersion)).all()
    assert [v.markdown for v in versions] == ["old body"]


def test_commit_post_header_change_updates(session, make_staged):
    """A header-only change (new title, new categories) is an update."""
    commit_post(session, make_staged(categories=["python"]))
    post, status = commit_post(session, make_staged(title="Hello again", categories=["json"]))
    assert status == "updated"
    assert post.title == "Hello again"
    assert post_categories(session, post.id) == ["json"]


def test_commit_post_slug_conflict(session, make_staged):
    """A slug already owned by another path is rejected."""
    commit_post(session, make_staged(path="a.md"))
    with pytest.raises(ValueError, match="already used"):
        commit_post(session, make_staged(path="b.md"))


# --- catalogue queries ---

@pytest.fixture(name="catalogue")
def catalogue_fixture(session, make_staged):
    commit_post(session, make_staged("old", "old.md", date="2022-01-01", categories=["python"]),
                committed_at=datetime(2024, 1, 1))
    commit_post(session, make_staged("mid", "mid.md", date="2023-01-01", categories=["python", "json"]),
                committed_at=datetime(2024, 1, 2))
    commit_post(session, make_staged("new", "new.md", date="2024-01-01", categories=["asyncio"]),
                committed_at=datetime(2024, 1, 2))


def test_get_all_posts_newest_first(session, catalogue):
    assert [p.slug for p in get_all_posts(session)] == ["new", "mid", "old"]


def test_get_last_committed(session, catalogue):
    assert [p.slug for p in get_last_committed(session)] == ["new", "mid"]


def test_get_last_committed_empty(session):
    assert get_last_committed(session) == []


def test_get_by_category(session, catalogue):
    assert [p.slug for p in get_by_category(session, "python")] == ["mid", "old"]
    assert get_by_category(session, "rust") == []


def test_list_categories(session, catalogue):
    assert list_categories(session) == [("asyncio", 1), ("json", 1), ("python", 2)]


def test_category_links_are_replaced(session, catalogue, make_staged):
    """Dropping a category from a post removes its link."""
    commit_post(session, make_staged("mid", "mid.md", date="2023-01-01", categories=["json"]))
    links = session.exec(select(PostCategory).where(PostCategory.category_name == "python")).all()
    assert len(links) == 1
