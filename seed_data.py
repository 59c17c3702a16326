from sqlmodel import select
from blogapi.core.config import settings
from blogapi.db.session import Database
from blogapi.models import Blog
from blogapi.schemas.blog import BlogCreate
from blogapi.services.blog import BlogService

SAMPLE_BLOGS = [
    {
        "title": "Getting Started with Direct S3 Uploads",
        "metaTitle": "Direct S3 uploads",
        "metaDescription": "Upload media straight from the browser with presigned URLs.",
        "readTime": 5,
        "content": [
            {
                "type": "TEXT",
                "order": 0,
                "title": "Why presigned URLs",
                "description": "The API hands out a short-lived URL and the browser does the rest.",
            },
            {
                "type": "IMAGES",
                "order": 1,
                "title": "Upload flow",
                "images": [
                    {"url": "image-1718000000000.png", "altText": "Upload flow diagram", "order": 0},
                ],
            },
        ],
        "tags": ["aws", "s3", "uploads"],
    },
    {
        "title": "Structuring Long-Form Posts",
        "metaDescription": "Mixing text, image galleries and video in one post.",
        "readTime": 8,
        "content": [
            {"type": "TEXT", "order": 0, "description": "Posts are built from ordered content blocks."},
            {
                "type": "VIDEOS",
                "order": 1,
                "videos": [
                    {"url": "video-1718000000000.mp4", "title": "Editor walkthrough", "duration": 95, "order": 0},
                ],
            },
        ],
        "tags": ["writing"],
    },
]


def seed_blogs():
    db = Database(settings.DATABASE_URL)
    print("Creating database and tables...")
    db.create_all()

    with db.session() as session:
        # Check if blogs already exist to avoid duplicates
        existing = session.exec(select(Blog)).first()
        if existing:
            print("Database already contains blogs. Skipping seed.")
            db.dispose()
            return

    print("Seeding sample blogs...")
    service = BlogService(db)
    for data in SAMPLE_BLOGS:
        blog = service.create_blog(BlogCreate.model_validate(data))
        print(f"Created blog {blog.id}: {blog.title}")

    db.dispose()
    print(f"Successfully seeded {len(SAMPLE_BLOGS)} blogs!")


if __name__ == "__main__":
    seed_blogs()
