from fastapi import APIRouter, Depends
from blogapi.core.responses import success_response
from blogapi.routers.deps import get_blog_service
from blogapi.schemas.blog import ContentUpdate
from blogapi.services.blog import BlogService

router = APIRouter()


@router.put("/{content_id}")
def update_content(content_id: str, content_in: ContentUpdate, service: BlogService = Depends(get_blog_service)):
    """Update a content block's scalar fields. Images and videos are not touched."""
    content = service.update_content(content_id, content_in)
    return success_response("Content updated successfully", content)


@router.delete("/{content_id}")
def delete_content(content_id: str, service: BlogService = Depends(get_blog_service)):
    service.delete_content(content_id)
    return success_response("Content deleted successfully")
