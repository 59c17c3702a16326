import uuid
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def generate_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    TEXT = "TEXT"
    IMAGES = "IMAGES"
    VIDEOS = "VIDEOS"


class Blog(SQLModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True)

    # Content
    title: str = Field(index=True)
    cover_image: Optional[str] = None  # S3 key or absolute URL

    # SEO
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None

    read_time: Optional[int] = None  # minutes
    view_count: int = Field(default=0)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    # Relationships
    contents: List["Content"] = Relationship(
        back_populates="blog",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Content.order"},
    )
    blog_tags: List["BlogTag"] = Relationship(
        back_populates="blog",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "BlogTag.tag_name"},
    )

    @property
    def tag_names(self) -> List[str]:
        return [bt.tag_name for bt in self.blog_tags]


class Content(SQLModel, table=True):
    # A position is taken at most once per blog
    __table_args__ = (UniqueConstraint("blog_id", "order"),)

    id: str = Field(default_factory=generate_id, primary_key=True)
    blog_id: str = Field(foreign_key="blog.id", ondelete="CASCADE", index=True)

    type: ContentType
    order: int = Field(default=0)  # position within the blog only
    title: Optional[str] = None
    description: Optional[str] = None

    blog: Optional[Blog] = Relationship(back_populates="contents")
    images: List["ContentImage"] = Relationship(
        back_populates="content",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ContentImage.order"},
    )
    videos: List["ContentVideo"] = Relationship(
        back_populates="content",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "ContentVideo.order"},
    )


class ContentImage(SQLModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True)
    content_id: str = Field(foreign_key="content.id", ondelete="CASCADE", index=True)

    url: str
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    order: int = Field(default=0)

    content: Optional[Content] = Relationship(back_populates="images")


class ContentVideo(SQLModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True)
    content_id: str = Field(foreign_key="content.id", ondelete="CASCADE", index=True)

    url: str
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None
    duration: Optional[int] = None  # seconds
    order: int = Field(default=0)

    content: Optional[Content] = Relationship(back_populates="videos")


class Tag(SQLModel, table=True):
    # Shared vocabulary: rows outlive the blogs that reference them
    name: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))


class BlogTag(SQLModel, table=True):
    blog_id: str = Field(foreign_key="blog.id", ondelete="CASCADE", primary_key=True)
    tag_name: str = Field(foreign_key="tag.name", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))

    blog: Optional[Blog] = Relationship(back_populates="blog_tags")
