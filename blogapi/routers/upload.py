from fastapi import APIRouter, Depends, Query
from blogapi.core.errors import ValidationError
from blogapi.core.responses import success_response
from blogapi.routers.deps import get_s3_service
from blogapi.schemas.upload import DeleteObjectsRequest, SignedUrl, SignedUrlRequest
from blogapi.services.s3 import S3Service
from blogapi.utils.uploads import generate_file_name, is_uploadable

router = APIRouter()


@router.post("/get-signed-put-url")
def get_signed_put_url(request_in: SignedUrlRequest, s3_service: S3Service = Depends(get_s3_service)):
    """
    Generate a storage key for the file and a presigned URL the browser can
    upload it to directly. The bytes never pass through this API.
    """
    # Validate file type
    if not is_uploadable(request_in.content_type):
        raise ValidationError("File must be an image or a video")

    key = generate_file_name(request_in.content_type, request_in.file_name)
    url = s3_service.get_signed_upload_url(request_in.content_type, key)

    return success_response("Signed upload URL fetched successfully", SignedUrl(url=url, key=key))


@router.get("/signed-get-url")
def get_signed_get_url(key: str = Query(..., min_length=1), s3_service: S3Service = Depends(get_s3_service)):
    url = s3_service.get_signed_download_url(key)
    return success_response("Signed download URL fetched successfully", SignedUrl(url=url, key=key))


@router.delete("/objects")
def delete_objects(request_in: DeleteObjectsRequest, s3_service: S3Service = Depends(get_s3_service)):
    deleted = s3_service.delete_objects(request_in.keys)
    return success_response("Objects deleted successfully", {"deleted": deleted})
