"""Database table definitions for posts, categories, and post versions"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, String, Text, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


class PostCategory(SQLModel, table=True):
    """Ordered many-to-many link between posts and categories"""
    __tablename__ = "post_categories"
    post_id: UUID = Field(foreign_key="posts.id", primary_key=True)
    category_name: str = Field(foreign_key="categories.name", primary_key=True)
    position: int = Field(default=0, nullable=False, description="Order of the category in the post header")


class Post(SQLModel, table=True):
    """A blog post as last committed from its source file"""
    __tablename__ = "posts"
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    slug: str = Field(..., index=True, unique=True, nullable=False)
    path: str = Field(..., sa_column=Column(Text, nullable=False, unique=True))
    markdown: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    frontmatter: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    layout: str = Field(default="post", nullable=False)
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    date: datetime = Field(..., sa_column=Column(DateTime(timezone=False), nullable=False, index=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    committed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=False), nullable=True))
    categories: List["Category"] = Relationship(back_populates="posts", link_model=PostCategory)


class Category(SQLModel, table=True):
    """A category label as written in post headers"""
    __tablename__ = "categories"
    name: str = Field(primary_key=True)
    posts: List[Post] = Relationship(back_populates="categories", link_model=PostCategory)


class PostVersion(SQLModel, table=True):
    """Immutable snapshot of a Post at a prior state."""
    __tablename__ = "post_versions"
    __table_args__ = (UniqueConstraint("post_id", "version_num", name="uq_postver_post_num"),)
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    post_id: UUID = Field(..., foreign_key="posts.id", index=True, nullable=False)
    version_num: int = Field(..., nullable=False, description="Monotonically increasing per-post version number")
    markdown: str = Field(..., sa_column=Column(Text, nullable=False))
    hash: str = Field(..., sa_column=Column(String(64), nullable=False))
    frontmatter: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
