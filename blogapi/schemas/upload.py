from typing import List
from pydantic import Field
from blogapi.schemas.blog import CamelModel


class SignedUrlRequest(CamelModel):
    content_type: str = Field(min_length=1)
    file_name: str = ""


class SignedUrl(CamelModel):
    url: str
    key: str


class DeleteObjectsRequest(CamelModel):
    keys: List[str] = Field(min_length=1)
