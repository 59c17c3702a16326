from blogapi.schemas.blog import (
    BlogCreate,
    BlogUpdate,
    BlogFilters,
    BlogRead,
    BlogPage,
    ContentBlock,
    ContentCreate,
    ContentUpdate,
    ContentRead,
    TagNames,
    TagRead,
)
from blogapi.schemas.upload import SignedUrlRequest, SignedUrl, DeleteObjectsRequest

__all__ = [
    "BlogCreate",
    "BlogUpdate",
    "BlogFilters",
    "BlogRead",
    "BlogPage",
    "ContentBlock",
    "ContentCreate",
    "ContentUpdate",
    "ContentRead",
    "TagNames",
    "TagRead",
    "SignedUrlRequest",
    "SignedUrl",
    "DeleteObjectsRequest",
]
