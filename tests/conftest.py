"""
Pytest fixtures shared by the service and API tests.

Every test gets its own SQLite file so that concurrent-write tests use real
connections, and an S3 client whose network calls go through a Stubber.
"""

import pytest
from botocore.stub import Stubber
from fastapi.testclient import TestClient

from blogapi.core.config import Settings
from blogapi.db.session import Database
from blogapi.main import create_app
from blogapi.services.blog import BlogService
from blogapi.services.s3 import S3Service


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.db'}",
        AWS_ACCESS_KEY_ID="testing",
        AWS_SECRET_ACCESS_KEY="testing",
        AWS_REGION="us-east-1",
        S3_BUCKET="test-bucket",
        S3_ENDPOINT_URL=None,
        S3_KEY_PREFIX="blog-images",
        SIGNED_URL_EXPIRATION=300,
    )


@pytest.fixture
def db(settings):
    database = Database(settings.DATABASE_URL)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def service(db):
    return BlogService(db)


@pytest.fixture
def storage(settings):
    return S3Service(settings)


@pytest.fixture
def s3_stub(storage):
    with Stubber(storage.s3_client) as stubber:
        yield stubber
        stubber.assert_no_pending_responses()


@pytest.fixture
def app(settings, db, storage):
    return create_app(settings=settings, database=db, storage=storage)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def blog_payload():
    """A create payload with blocks and media deliberately out of order."""
    return {
        "title": "Mountain Trails",
        "coverImage": "image-1700000000000.jpg",
        "metaTitle": "Trail guide",
        "metaDescription": "Where to hike this autumn",
        "readTime": 6,
        "content": [
            {
                "type": "VIDEOS",
                "order": 2,
                "title": "Summit footage",
                "videos": [
                    {"url": "video-2.mp4", "title": "Descent", "duration": 30, "order": 1},
                    {"url": "video-1.mp4", "title": "Ascent", "duration": 45, "order": 0},
                ],
            },
            {
                "type": "TEXT",
                "order": 0,
                "title": "Intro",
                "description": "Pack light.",
                "images": [],
            },
            {
                "type": "IMAGES",
                "order": 1,
                "title": "Gallery",
                "images": [
                    {"url": "image-b.jpg", "altText": "Ridge", "order": 1},
                    {"url": "image-a.jpg", "altText": "Lake", "caption": "Morning", "order": 0},
                ],
            },
        ],
        "tags": ["Hiking", "outdoors"],
    }
