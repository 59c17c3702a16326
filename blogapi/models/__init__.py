# Import all models to register them with SQLModel
from blogapi.models.blog import Blog, Content, ContentImage, ContentVideo, ContentType, Tag, BlogTag

__all__ = [
    "Blog",
    "Content",
    "ContentImage",
    "ContentVideo",
    "ContentType",
    "Tag",
    "BlogTag",
]
