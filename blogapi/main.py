import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from blogapi.core.config import Settings, settings as default_settings
from blogapi.core.errors import register_exception_handlers
from blogapi.core.logging import configure_logging
from blogapi.core.responses import success_response
from blogapi.db.session import Database
from blogapi.models.blog import utcnow
from blogapi.services.s3 import S3Service

# Import models to ensure they are registered with SQLModel metadata
import blogapi.models  # noqa: F401

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    storage: Optional[S3Service] = None,
) -> FastAPI:
    """
    Build the API. The store handle and the S3 client are created here unless
    given, and live on `app.state` for the request dependencies.
    """
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    database = database or Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
    storage = storage or S3Service(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application is starting up")
        database.create_all()
        yield
        database.dispose()
        logger.info("Application is shutting down")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version="1.0.0",
        lifespan=lifespan,
        description="API for composing and publishing blog posts",
    )
    app.state.settings = settings
    app.state.database = database
    app.state.storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.get("/")
    def read_root():
        return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

    @app.get("/health")
    def health_check():
        return success_response("Server is healthy", {"timestamp": utcnow().isoformat()})

    from blogapi.routers import blogs, content, tags, upload

    app.include_router(blogs.router, prefix="/api/v1/blogs", tags=["blogs"])
    app.include_router(content.router, prefix="/api/v1/content", tags=["content"])
    app.include_router(tags.router, prefix="/api/v1/tags", tags=["tags"])
    app.include_router(upload.router, prefix="/api/v1/s3", tags=["s3"])

    return app


app = create_app()
