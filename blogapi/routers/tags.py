from fastapi import APIRouter, Depends
from blogapi.core.responses import success_response
from blogapi.routers.deps import get_blog_service
from blogapi.services.blog import BlogService

router = APIRouter()


@router.get("")
def list_tags(service: BlogService = Depends(get_blog_service)):
    """All known tags with the number of blogs using each."""
    return success_response("Tags retrieved successfully", service.list_tags())
