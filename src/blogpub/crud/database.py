"""Engine construction and schema creation for the post catalogue"""

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

# registers the tables on SQLModel.metadata
from blogpub.crud import models  # noqa: F401


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite connections may be shared across threads."""
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, echo=False, connect_args=connect_args)


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    SQLModel.metadata.create_all(engine)


def reset_db(engine: Engine) -> None:
    """Drop and recreate all tables."""
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
