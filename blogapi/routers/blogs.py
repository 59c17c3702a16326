from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from blogapi.core.config import Settings
from blogapi.core.responses import success_response
from blogapi.routers.deps import get_blog_service, get_settings
from blogapi.routers.params import parse_blog_filters
from blogapi.schemas.blog import BlogCreate, BlogUpdate, ContentBlock, TagNames
from blogapi.services.blog import BlogService

router = APIRouter()


@router.post("", status_code=201)
def create_blog(blog_in: BlogCreate, service: BlogService = Depends(get_blog_service)):
    """Create a blog together with its content blocks and tags."""
    blog = service.create_blog(blog_in)
    return success_response("Blog created successfully", blog, status_code=201)


@router.get("")
def list_blogs(
    tags: Optional[List[str]] = Query(None),
    search: Optional[str] = None,
    limit: Optional[str] = None,
    offset: Optional[str] = None,
    page: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    settings: Settings = Depends(get_settings),
    service: BlogService = Depends(get_blog_service),
):
    """
    List blogs. Query parameters are parsed leniently: malformed numbers and
    unknown sort options fall back to their defaults instead of failing.
    """
    filters = parse_blog_filters(
        tags=tags,
        search=search,
        limit=limit,
        offset=offset,
        page=page,
        sort_by=sort_by,
        sort_order=sort_order,
        default_limit=settings.DEFAULT_PAGE_SIZE,
        max_limit=settings.MAX_PAGE_SIZE,
    )
    return success_response("Blogs retrieved successfully", service.list_blogs(filters))


@router.get("/{blog_id}")
def get_blog(blog_id: str, service: BlogService = Depends(get_blog_service)):
    return success_response("Blog retrieved successfully", service.get_blog(blog_id))


@router.put("/{blog_id}")
def update_blog(blog_id: str, blog_in: BlogUpdate, service: BlogService = Depends(get_blog_service)):
    return success_response("Blog updated successfully", service.update_blog(blog_id, blog_in))


@router.delete("/{blog_id}")
def delete_blog(blog_id: str, service: BlogService = Depends(get_blog_service)):
    service.delete_blog(blog_id)
    return success_response("Blog deleted successfully")


@router.post("/{blog_id}/views")
def increment_view_count(blog_id: str, service: BlogService = Depends(get_blog_service)):
    return success_response("View count updated", service.increment_view_count(blog_id))


@router.post("/{blog_id}/tags")
def add_tags(blog_id: str, tags_in: TagNames, service: BlogService = Depends(get_blog_service)):
    tags = service.add_tags(blog_id, tags_in.tags)
    return success_response("Tags added successfully", {"tags": tags})


@router.delete("/{blog_id}/tags")
def remove_tags(blog_id: str, tags_in: TagNames, service: BlogService = Depends(get_blog_service)):
    tags = service.remove_tags(blog_id, tags_in.tags)
    return success_response("Tags removed successfully", {"tags": tags})


@router.post("/{blog_id}/content", status_code=201)
def add_content(blog_id: str, block: ContentBlock, service: BlogService = Depends(get_blog_service)):
    content = service.add_content(blog_id, block.root)
    return success_response("Content added successfully", content, status_code=201)
