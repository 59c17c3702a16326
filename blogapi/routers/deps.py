from fastapi import Depends, Request
from blogapi.core.config import Settings
from blogapi.db.session import Database
from blogapi.services.blog import BlogService
from blogapi.services.s3 import S3Service


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_blog_service(db: Database = Depends(get_database)) -> BlogService:
    return BlogService(db)


def get_s3_service(request: Request) -> S3Service:
    return request.app.state.storage
