"""Database table definitions for posts, tags and binary assets"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, LargeBinary, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped
from sqlmodel import Field, Relationship, SQLModel


class PostTag(SQLModel, table=True):
    """Many-to-many relationship between posts and tags"""
    __tablename__ = "post_tags"
    post_id: int = Field(foreign_key="posts.id", primary_key=True)
    tag_id: int = Field(foreign_key="tags.id", primary_key=True)


class Post(SQLModel, table=True):
    """A rendered post together with the markdown it was rendered from"""
    __tablename__ = "posts"
    __table_args__ = (UniqueConstraint("year", "slug", "lang", name="uq_post_year_slug_lang"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    year: int = Field(..., index=True, nullable=False)
    slug: str = Field(..., index=True, nullable=False)
    lang: str = Field(..., sa_column=Column(String(2), nullable=False))
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    teaser: str = Field(..., sa_column=Column(Text, nullable=False))
    content: str = Field(..., sa_column=Column(Text, nullable=False))
    description: str = Field(default="", sa_column=Column(Text, nullable=False))
    front_image: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    use_leaflet: bool = Field(default=False, nullable=False)
    orig_md: str = Field(..., sa_column=Column(Text, nullable=False))
    posted_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    tags: Mapped[List["Tag"]] = Relationship(back_populates="posts", link_model=PostTag)


class Tag(SQLModel, table=True):
    """A tag that posts can be listed under"""
    __tablename__ = "tags"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(..., index=True, nullable=False)
    slug: str = Field(..., sa_column=Column(String(64), nullable=False, unique=True))
    posts: Mapped[List[Post]] = Relationship(back_populates="tags", link_model=PostTag)


class Asset(SQLModel, table=True):
    """A binary file served as /{year}/{name}, e.g. a pdf or a video thumbnail"""
    __tablename__ = "assets"
    __table_args__ = (UniqueConstraint("year", "name", name="uq_asset_year_name"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    year: int = Field(..., nullable=False)
    name: str = Field(..., nullable=False)
    mime: str = Field(..., sa_column=Column(String(64), nullable=False))
    content: bytes = Field(..., sa_column=Column(LargeBinary, nullable=False))


class MetaPage(SQLModel, table=True):
    """A page outside the post archive (about, colophon), served as /{slug}.{lang}"""
    __tablename__ = "metapages"
    __table_args__ = (UniqueConstraint("slug", "lang", name="uq_metapage_slug_lang"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(..., index=True, nullable=False)
    lang: str = Field(..., sa_column=Column(String(2), nullable=False))
    title: str = Field(..., sa_column=Column(Text, nullable=False))
    content: str = Field(..., sa_column=Column(Text, nullable=False))
    orig_md: str = Field(..., sa_column=Column(Text, nullable=False))
