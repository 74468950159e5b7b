"""Shared fixtures for crud unit tests"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from blogpub.core.models import PostMeta, StagedPost
from blogpub.core.utils.hashing import sha256
from blogpub.crud.models import Post


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="post")
def post_fixture(session):
    """A minimal Post persisted to the session."""
    p = Post(
        slug="hello",
        path="posts/hello.md",
        markdown="# Hello\n\nWorld",
        hash=sha256("# Hello\n\nWorld"),
        title="Hello",
        date=datetime(2023, 1, 1),
    )
    session.add(p)
    session.flush()
    return p


@pytest.fixture(name="make_staged")
def make_staged_fixture():
    """Factory for StagedPost objects shaped the way extract writes them."""
    return _make_staged


def _make_staged(
    slug: str = "hello",
    path: str = "posts/hello.md",
    markdown: str = "# Hello\n\nWorld",
    title: str = "Hello",
    date: str = "2023-01-01",
    categories: list = None,
    **extra,
    ) -> StagedPost:
    frontmatter = {"title": title, "date": date, "categories": categories or [], **extra}
    return StagedPost(
        slug=slug,
        path=path,
        markdown=markdown,
        frontmatter=frontmatter,
        meta=PostMeta.model_validate(frontmatter),
    )
