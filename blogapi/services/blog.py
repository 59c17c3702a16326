import logging
import math
from typing import Iterable, List
from sqlalchemy import asc, delete, desc, func, or_, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import selectinload
from sqlmodel import Session, select
from blogapi.core.errors import ConflictError, NotFoundError, ValidationError
from blogapi.db.session import Database
from blogapi.models.blog import Blog, BlogTag, Content, ContentImage, ContentType, ContentVideo, Tag, utcnow
from blogapi.schemas.blog import (
    BlogCreate,
    BlogFilters,
    BlogPage,
    BlogRead,
    BlogUpdate,
    ContentCreate,
    ContentRead,
    ContentUpdate,
    TagRead,
)

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "createdAt": Blog.created_at,
    "updatedAt": Blog.updated_at,
    "viewCount": Blog.view_count,
    "title": Blog.title,
}

# Media kinds a content type may not carry
FORBIDDEN_MEDIA = {
    ContentType.TEXT: ("images", "videos"),
    ContentType.IMAGES: ("videos",),
    ContentType.VIDEOS: ("images",),
}


def normalize_tag_names(names: Iterable[str]) -> List[str]:
    """Strip, lower-case and de-duplicate tag names, keeping first-seen order."""
    result = []
    for name in names:
        name = name.strip().lower()
        if name and name not in result:
            result.append(name)
    return result


def _aggregate_options():
    return (
        selectinload(Blog.contents).selectinload(Content.images),
        selectinload(Blog.contents).selectinload(Content.videos),
        selectinload(Blog.blog_tags),
    )


class BlogService:
    def __init__(self, db: Database):
        self.db = db

    # Blog aggregate

    def create_blog(self, data: BlogCreate) -> BlogRead:
        """
        Persist a blog with its content blocks, their media and its tags in a
        single transaction, then return the reloaded aggregate.
        """
        if not data.title or not data.title.strip():
            raise ValidationError("Title is required")

        orders = [block.order for block in data.content]
        duplicates = sorted({order for order in orders if orders.count(order) > 1})
        if duplicates:
            raise ConflictError(f"Content order {duplicates[0]} is used more than once")

        tag_names = normalize_tag_names(data.tags)

        with self.db.transaction() as session:
            blog = Blog(**data.model_dump(exclude={"content", "tags"}))
            blog.title = data.title.strip()
            session.add(blog)
            session.flush()

            for block in data.content:
                self._insert_content(session, blog.id, block)

            if tag_names:
                self._associate_tags(session, blog.id, tag_names)

            result = BlogRead.from_model(self._load_blog(session, blog.id))

        logger.info(f"Created blog {result.id} with {len(result.content)} content blocks and {len(result.tags)} tags")
        return result

    def list_blogs(self, filters: BlogFilters) -> BlogPage:
        conditions = []

        tag_names = normalize_tag_names(filters.tags)
        if tag_names:
            tagged = select(BlogTag.blog_id).where(BlogTag.tag_name.in_(tag_names))
            conditions.append(Blog.id.in_(tagged))

        if filters.search:
            # % and _ in the search text match literally
            conditions.append(
                or_(
                    Blog.title.icontains(filters.search, autoescape=True),
                    Blog.meta_title.icontains(filters.search, autoescape=True),
                    Blog.meta_description.icontains(filters.search, autoescape=True),
                )
            )

        direction = asc if filters.sort_order == "asc" else desc
        column = SORT_COLUMNS[filters.sort_by]

        with self.db.session() as session:
            total = session.exec(select(func.count()).select_from(Blog).where(*conditions)).one()
            blogs = session.exec(
                select(Blog)
                .where(*conditions)
                .options(*_aggregate_options())
                .order_by(direction(column), direction(Blog.id))
                .offset(filters.offset)
                .limit(filters.limit)
            ).all()
            items = [BlogRead.from_model(blog) for blog in blogs]

        return BlogPage(
            blogs=items,
            total=total,
            page=filters.offset // filters.limit + 1,
            total_pages=math.ceil(total / filters.limit),
        )

    def get_blog(self, blog_id: str) -> BlogRead:
        with self.db.session() as session:
            return BlogRead.from_model(self._load_blog(session, blog_id))

    def update_blog(self, blog_id: str, data: BlogUpdate) -> BlogRead:
        """Apply the supplied top-level fields; content and tags are left alone."""
        changes = data.model_dump(exclude_unset=True)
        if "title" in changes:
            if not changes["title"] or not changes["title"].strip():
                raise ValidationError("Title cannot be empty")
            changes["title"] = changes["title"].strip()

        with self.db.transaction() as session:
            blog = self._get_blog_row(session, blog_id)
            for field, value in changes.items():
                setattr(blog, field, value)
            blog.updated_at = utcnow()
            session.add(blog)
            session.flush()
            return BlogRead.from_model(self._load_blog(session, blog_id))

    def delete_blog(self, blog_id: str) -> None:
        with self.db.transaction() as session:
            blog = self._get_blog_row(session, blog_id)
            session.delete(blog)
        logger.info(f"Deleted blog {blog_id}")

    def increment_view_count(self, blog_id: str) -> BlogRead:
        with self.db.transaction() as session:
            result = session.exec(
                update(Blog).where(Blog.id == blog_id).values(view_count=Blog.view_count + 1)
            )
            if result.rowcount == 0:
                raise NotFoundError("Blog not found")
            return BlogRead.from_model(self._load_blog(session, blog_id))

    # Tags

    def add_tags(self, blog_id: str, names: Iterable[str]) -> List[str]:
        tag_names = normalize_tag_names(names)
        with self.db.transaction() as session:
            self._get_blog_row(session, blog_id)
            if tag_names:
                self._associate_tags(session, blog_id, tag_names)
            return self._tag_names(session, blog_id)

    def remove_tags(self, blog_id: str, names: Iterable[str]) -> List[str]:
        tag_names = normalize_tag_names(names)
        with self.db.transaction() as session:
            self._get_blog_row(session, blog_id)
            if tag_names:
                session.exec(
                    delete(BlogTag).where(BlogTag.blog_id == blog_id, BlogTag.tag_name.in_(tag_names))
                )
            return self._tag_names(session, blog_id)

    def list_tags(self) -> List[TagRead]:
        with self.db.session() as session:
            rows = session.exec(
                select(Tag.name, func.count(BlogTag.blog_id))
                .outerjoin(BlogTag, BlogTag.tag_name == Tag.name)
                .group_by(Tag.name)
                .order_by(Tag.name)
            ).all()
        return [TagRead(name=name, blog_count=count) for name, count in rows]

    # Content blocks

    def add_content(self, blog_id: str, block: ContentCreate) -> ContentRead:
        with self.db.transaction() as session:
            self._get_blog_row(session, blog_id)
            self._check_order_free(session, blog_id, block.order)
            content = self._insert_content(session, blog_id, block)
            return ContentRead.model_validate(self._load_content(session, content.id))

    def update_content(self, content_id: str, data: ContentUpdate) -> ContentRead:
        # type and order are not nullable; an explicit null means "leave as is"
        changes = {k: v for k, v in data.model_dump(exclude_unset=True).items()
                   if v is not None or k not in ("type", "order")}

        with self.db.transaction() as session:
            content = self._load_content(session, content_id)
            if "type" in changes:
                for media in FORBIDDEN_MEDIA[changes["type"]]:
                    if getattr(content, media):
                        raise ValidationError(f"{changes['type'].value} content cannot have {media}")
            if "order" in changes and changes["order"] != content.order:
                self._check_order_free(session, content.blog_id, changes["order"])
            for field, value in changes.items():
                setattr(content, field, value)
            session.add(content)
            session.flush()
            return ContentRead.model_validate(self._load_content(session, content_id))

    def delete_content(self, content_id: str) -> None:
        with self.db.transaction() as session:
            content = session.get(Content, content_id)
            if content is None:
                raise NotFoundError("Content not found")
            session.delete(content)

    # Helpers

    def _insert_content(self, session: Session, blog_id: str, block: ContentCreate) -> Content:
        content = Content(
            blog_id=blog_id,
            type=ContentType(block.type),
            order=block.order,
            title=block.title,
            description=block.description,
        )
        session.add(content)
        session.flush()

        images = getattr(block, "images", [])
        if images:
            session.add_all([ContentImage(content_id=content.id, **image.model_dump()) for image in images])

        videos = getattr(block, "videos", [])
        if videos:
            session.add_all([ContentVideo(content_id=content.id, **video.model_dump()) for video in videos])

        session.flush()
        return content

    def _check_order_free(self, session: Session, blog_id: str, order: int) -> None:
        taken = session.exec(
            select(Content.id).where(Content.blog_id == blog_id, Content.order == order)
        ).first()
        if taken is not None:
            raise ConflictError(f"Content order {order} is already used in this blog")

    def _upsert_tags(self, session: Session, tag_names: List[str]) -> None:
        dialect = session.get_bind().dialect.name
        if dialect in ("sqlite", "postgresql"):
            insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
            now = utcnow()
            session.exec(
                insert(Tag)
                .values([{"name": name, "created_at": now} for name in tag_names])
                .on_conflict_do_nothing(index_elements=["name"])
            )
            return

        existing = set(session.exec(select(Tag.name).where(Tag.name.in_(tag_names))).all())
        session.add_all([Tag(name=name) for name in tag_names if name not in existing])
        session.flush()

    def _associate_tags(self, session: Session, blog_id: str, tag_names: List[str]) -> None:
        # Tags must exist before the join rows that reference them
        self._upsert_tags(session, tag_names)

        existing = set(session.exec(
            select(BlogTag.tag_name).where(BlogTag.blog_id == blog_id, BlogTag.tag_name.in_(tag_names))
        ).all())
        session.add_all([BlogTag(blog_id=blog_id, tag_name=name) for name in tag_names if name not in existing])
        session.flush()

    def _tag_names(self, session: Session, blog_id: str) -> List[str]:
        return list(session.exec(
            select(BlogTag.tag_name).where(BlogTag.blog_id == blog_id).order_by(BlogTag.tag_name)
        ).all())

    def _get_blog_row(self, session: Session, blog_id: str) -> Blog:
        blog = session.get(Blog, blog_id)
        if blog is None:
            raise NotFoundError("Blog not found")
        return blog

    def _load_blog(self, session: Session, blog_id: str) -> Blog:
        blog = session.exec(
            select(Blog)
            .where(Blog.id == blog_id)
            .options(*_aggregate_options())
            .execution_options(populate_existing=True)
        ).first()
        if blog is None:
            raise NotFoundError("Blog not found")
        return blog

    def _load_content(self, session: Session, content_id: str) -> Content:
        content = session.exec(
            select(Content)
            .where(Content.id == content_id)
            .options(selectinload(Content.images), selectinload(Content.videos))
            .execution_options(populate_existing=True)
        ).first()
        if content is None:
            raise NotFoundError("Content not found")
        return content
