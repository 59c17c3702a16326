from typing import Annotated, List, Literal, Optional, Union
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, RootModel, StringConstraints, model_validator
from pydantic.alias_generators import to_camel
from blogapi.models.blog import Blog, ContentType

SortField = Literal["createdAt", "updatedAt", "viewCount", "title"]
SortOrder = Literal["asc", "desc"]

TagName = Annotated[str, StringConstraints(strip_whitespace=True, to_lower=True, min_length=1, max_length=50)]


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Content media

class ContentImageCreate(CamelModel):
    url: str = Field(min_length=1)
    alt_text: Optional[str] = Field(default=None, max_length=125)
    caption: Optional[str] = Field(default=None, max_length=200)
    order: int = Field(default=0, ge=0)


class ContentVideoCreate(CamelModel):
    url: str = Field(min_length=1)
    thumbnail_url: Optional[str] = None
    title: Optional[str] = Field(default=None, max_length=200)
    duration: Optional[int] = Field(default=None, ge=1)  # seconds
    order: int = Field(default=0, ge=0)


# Content blocks, discriminated on `type`

class ContentBlockBase(CamelModel):
    model_config = ConfigDict(extra="forbid")

    order: int = Field(ge=0)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="before")
    @classmethod
    def drop_empty_media(cls, data):
        # Forms send empty media arrays for every block; only non-empty ones count
        if isinstance(data, dict):
            data = {k: v for k, v in data.items() if not (k in ("images", "videos") and not v)}
        return data


class TextContentCreate(ContentBlockBase):
    type: Literal["TEXT"]


class ImagesContentCreate(ContentBlockBase):
    type: Literal["IMAGES"]
    images: List[ContentImageCreate] = []


class VideosContentCreate(ContentBlockBase):
    type: Literal["VIDEOS"]
    videos: List[ContentVideoCreate] = []


ContentCreate = Annotated[
    Union[TextContentCreate, ImagesContentCreate, VideosContentCreate],
    Field(discriminator="type"),
]


class ContentBlock(RootModel[ContentCreate]):
    """A single content block sent as a request body."""


class ContentUpdate(CamelModel):
    """Scalar fields only; nested media are not replaced through this model."""

    type: Optional[ContentType] = None
    order: Optional[int] = Field(default=None, ge=0)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)


# Blog

class BlogCreate(CamelModel):
    # Presence is checked by the service so that a missing title fails before any write
    title: Optional[str] = Field(default=None, max_length=200)
    cover_image: Optional[str] = None
    meta_title: Optional[str] = Field(default=None, max_length=200)
    meta_description: Optional[str] = Field(default=None, max_length=250)
    read_time: Optional[int] = Field(default=None, ge=1)
    content: List[ContentCreate] = []
    tags: List[TagName] = []


class BlogUpdate(CamelModel):
    title: Optional[str] = Field(default=None, max_length=200)
    cover_image: Optional[str] = None
    meta_title: Optional[str] = Field(default=None, max_length=200)
    meta_description: Optional[str] = Field(default=None, max_length=250)
    read_time: Optional[int] = Field(default=None, ge=1)


class TagNames(CamelModel):
    tags: List[TagName] = Field(min_length=1)


class BlogFilters(CamelModel):
    tags: List[str] = []
    search: Optional[str] = None
    limit: int = Field(default=10, ge=1)
    offset: int = Field(default=0, ge=0)
    sort_by: SortField = "createdAt"
    sort_order: SortOrder = "desc"


# Read models

class ContentImageRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    alt_text: Optional[str] = None
    caption: Optional[str] = None
    order: int


class ContentVideoRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    thumbnail_url: Optional[str] = None
    title: Optional[str] = None
    duration: Optional[int] = None
    order: int


class ContentRead(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    blog_id: str
    type: ContentType
    order: int
    title: Optional[str] = None
    description: Optional[str] = None
    images: List[ContentImageRead] = []
    videos: List[ContentVideoRead] = []


class BlogRead(CamelModel):
    id: str
    title: str
    cover_image: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    read_time: Optional[int] = None
    view_count: int
    created_at: datetime
    updated_at: datetime
    content: List[ContentRead] = []
    tags: List[str] = []

    @classmethod
    def from_model(cls, blog: Blog) -> "BlogRead":
        return cls(
            id=blog.id,
            title=blog.title,
            cover_image=blog.cover_image,
            meta_title=blog.meta_title,
            meta_description=blog.meta_description,
            read_time=blog.read_time,
            view_count=blog.view_count,
            created_at=blog.created_at,
            updated_at=blog.updated_at,
            content=[ContentRead.model_validate(c) for c in blog.contents],
            tags=blog.tag_names,
        )


class BlogPage(CamelModel):
    blogs: List[BlogRead]
    total: int
    page: int
    total_pages: int


class TagRead(CamelModel):
    name: str
    blog_count: int
