"""
Tests for BlogService: the transactional write path and the composed reads.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlmodel import select

from blogapi.core.errors import ConflictError, NotFoundError, ValidationError
from blogapi.models import Blog, BlogTag, Content, ContentImage, ContentType, ContentVideo, Tag
from blogapi.models.blog import utcnow
from blogapi.routers.params import parse_blog_filters
from blogapi.schemas.blog import BlogCreate, BlogFilters, BlogUpdate, ContentUpdate, ImagesContentCreate
from blogapi.services.blog import BlogService, normalize_tag_names


def make_blog(service, **fields):
    fields.setdefault("title", "Untitled")
    return service.create_blog(BlogCreate.model_validate(fields))


def count_rows(db, model):
    with db.session() as session:
        return len(session.exec(select(model)).all())


class TestCreateBlog:
    def test_content_and_media_come_back_in_order(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))

        assert [c.order for c in blog.content] == [0, 1, 2]
        assert [c.type for c in blog.content] == [ContentType.TEXT, ContentType.IMAGES, ContentType.VIDEOS]
        assert [i.url for i in blog.content[1].images] == ["image-a.jpg", "image-b.jpg"]
        assert [v.title for v in blog.content[2].videos] == ["Ascent", "Descent"]
        assert blog.content[0].images == [] and blog.content[0].videos == []
        assert blog.tags == ["hiking", "outdoors"]
        assert blog.view_count == 0

    def test_round_trip_matches_get(self, service, blog_payload):
        created = service.create_blog(BlogCreate.model_validate(blog_payload))
        assert service.get_blog(created.id) == created

    def test_duplicate_tags_collapse_to_one_row(self, db, service):
        blog = make_blog(service, tags=["a", "A", "a"])

        assert blog.tags == ["a"]
        assert count_rows(db, Tag) == 1
        with db.session() as session:
            links = session.exec(select(BlogTag).where(BlogTag.blog_id == blog.id)).all()
        assert [link.tag_name for link in links] == ["a"]

    def test_existing_tags_are_reused(self, db, service):
        make_blog(service, title="First", tags=["python"])
        make_blog(service, title="Second", tags=["python", "web"])
        assert count_rows(db, Tag) == 2

    @pytest.mark.parametrize("title", [None, "", "   "])
    def test_missing_title_fails_before_writing(self, db, service, title):
        with pytest.raises(ValidationError):
            service.create_blog(BlogCreate(title=title, tags=["x"]))
        assert count_rows(db, Blog) == 0
        assert count_rows(db, Tag) == 0

    def test_failure_mid_transaction_leaves_nothing(self, db, service, blog_payload, monkeypatch):
        def explode(self, session, blog_id, tag_names):
            raise RuntimeError("tag store unavailable")

        monkeypatch.setattr(BlogService, "_associate_tags", explode)

        with pytest.raises(RuntimeError):
            service.create_blog(BlogCreate.model_validate(blog_payload))

        for model in (Blog, Content, ContentImage, ContentVideo, BlogTag, Tag):
            assert count_rows(db, model) == 0


class TestListBlogs:
    def test_defaults(self, service):
        for n in range(12):
            make_blog(service, title=f"Post {n}")

        page = service.list_blogs(BlogFilters())

        assert len(page.blogs) == 10
        assert page.total == 12
        assert page.page == 1
        assert page.total_pages == 2

    def test_page_two_equals_offset_ten(self, service):
        for n in range(25):
            make_blog(service, title=f"Post {n:02d}")

        by_page = service.list_blogs(parse_blog_filters(page="2", limit="10"))
        by_offset = service.list_blogs(BlogFilters(offset=10, limit=10))

        assert [b.id for b in by_page.blogs] == [b.id for b in by_offset.blogs]
        assert by_page.page == by_offset.page == 2
        assert by_page.total_pages == 3

    def test_search_is_case_insensitive_across_fields(self, service):
        in_description = make_blog(service, title="Alpha", meta_description="ALL ABOUT FOO")
        in_meta_title = make_blog(service, title="Beta", meta_title="Foobar notes")
        in_title = make_blog(service, title="The foo diaries")
        make_blog(service, title="Gamma", meta_title="bar", meta_description="baz")

        page = service.list_blogs(BlogFilters(search="foo"))

        assert {b.id for b in page.blogs} == {in_description.id, in_meta_title.id, in_title.id}
        assert page.total == 3

    def test_search_wildcards_match_literally(self, service):
        make_blog(service, title="abc")
        make_blog(service, title="100 tips")
        discount = make_blog(service, title="50% off")

        assert service.list_blogs(BlogFilters(search="a_c")).total == 0
        assert [b.id for b in service.list_blogs(BlogFilters(search="%")).blogs] == [discount.id]

    def test_tag_filter_matches_any(self, service):
        python = make_blog(service, title="Py", tags=["python"])
        rust = make_blog(service, title="Rs", tags=["rust"])
        make_blog(service, title="Go", tags=["go"])
        both = make_blog(service, title="Both", tags=["python", "rust"])

        page = service.list_blogs(BlogFilters(tags=["python", "RUST"]))

        assert {b.id for b in page.blogs} == {python.id, rust.id, both.id}
        assert page.total == 3

    def test_tag_and_search_combine_with_and(self, service):
        match = make_blog(service, title="Async python", tags=["python"])
        make_blog(service, title="Async rust", tags=["rust"])
        make_blog(service, title="Typing", tags=["python"])

        page = service.list_blogs(BlogFilters(tags=["python"], search="async"))

        assert [b.id for b in page.blogs] == [match.id]
        assert page.total == 1

    def test_count_ignores_pagination(self, service):
        for n in range(5):
            make_blog(service, title=f"Match {n}")

        page = service.list_blogs(BlogFilters(search="match", limit=2, offset=4))

        assert len(page.blogs) == 1
        assert page.total == 5
        assert page.page == 3
        assert page.total_pages == 3

    def test_sort_by_title(self, service):
        for title in ["Charlie", "Alpha", "Bravo"]:
            make_blog(service, title=title)

        ascending = service.list_blogs(BlogFilters(sort_by="title", sort_order="asc"))
        descending = service.list_blogs(BlogFilters(sort_by="title", sort_order="desc"))

        assert [b.title for b in ascending.blogs] == ["Alpha", "Bravo", "Charlie"]
        assert [b.title for b in descending.blogs] == ["Charlie", "Bravo", "Alpha"]

    def test_sort_by_view_count(self, service):
        quiet = make_blog(service, title="Quiet")
        popular = make_blog(service, title="Popular")
        for _ in range(3):
            service.increment_view_count(popular.id)

        page = service.list_blogs(BlogFilters(sort_by="viewCount"))

        assert [b.id for b in page.blogs] == [popular.id, quiet.id]

    def test_default_sort_is_newest_first(self, db, service):
        older = make_blog(service, title="Older")
        newer = make_blog(service, title="Newer")
        with db.transaction() as session:
            row = session.get(Blog, older.id)
            row.created_at = utcnow().replace(year=2000)

        page = service.list_blogs(parse_blog_filters(sort_by="nonsense", sort_order="sideways"))

        assert [b.id for b in page.blogs] == [newer.id, older.id]

    def test_list_loads_full_aggregate(self, service, blog_payload):
        service.create_blog(BlogCreate.model_validate(blog_payload))

        blog = service.list_blogs(BlogFilters()).blogs[0]

        assert [c.order for c in blog.content] == [0, 1, 2]
        assert [i.order for i in blog.content[1].images] == [0, 1]
        assert blog.tags == ["hiking", "outdoors"]

    def test_empty_store(self, service):
        page = service.list_blogs(BlogFilters())
        assert page.blogs == []
        assert page.total == 0
        assert page.total_pages == 0


class TestUpdateAndDelete:
    def test_update_applies_only_supplied_fields(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))

        updated = service.update_blog(blog.id, BlogUpdate(title="Valley Trails", read_time=9))

        assert updated.title == "Valley Trails"
        assert updated.read_time == 9
        assert updated.meta_title == blog.meta_title
        assert updated.cover_image == blog.cover_image
        assert updated.content == blog.content
        assert updated.tags == blog.tags
        assert updated.updated_at >= blog.updated_at

    def test_update_can_clear_optional_field(self, service):
        blog = make_blog(service, meta_title="Old")
        updated = service.update_blog(blog.id, BlogUpdate(meta_title=None))
        assert updated.meta_title is None

    def test_update_rejects_blank_title(self, service):
        blog = make_blog(service)
        with pytest.raises(ValidationError):
            service.update_blog(blog.id, BlogUpdate(title="  "))

    def test_update_missing_blog(self, service):
        with pytest.raises(NotFoundError):
            service.update_blog("missing", BlogUpdate(title="x"))

    def test_get_missing_blog(self, service):
        with pytest.raises(NotFoundError):
            service.get_blog("missing")

    def test_delete_cascades_but_keeps_shared_tags(self, db, service, blog_payload):
        doomed = service.create_blog(BlogCreate.model_validate(blog_payload))
        survivor = make_blog(service, title="Other", tags=["hiking"])

        service.delete_blog(doomed.id)

        with pytest.raises(NotFoundError):
            service.get_blog(doomed.id)
        assert count_rows(db, Content) == 0
        assert count_rows(db, ContentImage) == 0
        assert count_rows(db, ContentVideo) == 0
        with db.session() as session:
            names = set(session.exec(select(Tag.name)).all())
            links = session.exec(select(BlogTag)).all()
        assert names == {"hiking", "outdoors"}
        assert [(link.blog_id, link.tag_name) for link in links] == [(survivor.id, "hiking")]
        assert service.get_blog(survivor.id).tags == ["hiking"]

    def test_delete_missing_blog(self, service):
        with pytest.raises(NotFoundError):
            service.delete_blog("missing")


class TestViewCount:
    def test_increment(self, service):
        blog = make_blog(service)
        assert service.increment_view_count(blog.id).view_count == 1
        assert service.increment_view_count(blog.id).view_count == 2

    def test_concurrent_increments_are_not_lost(self, service):
        blog = make_blog(service)
        increments = 20

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: service.increment_view_count(blog.id), range(increments)))

        assert service.get_blog(blog.id).view_count == increments

    def test_increment_missing_blog(self, service):
        with pytest.raises(NotFoundError):
            service.increment_view_count("missing")


class TestTags:
    def test_normalize_tag_names(self):
        assert normalize_tag_names([" Python", "python", "", "WEB", "web "]) == ["python", "web"]

    def test_add_is_idempotent(self, db, service):
        blog = make_blog(service, tags=["python"])

        assert service.add_tags(blog.id, ["python", "Web"]) == ["python", "web"]
        assert service.add_tags(blog.id, ["web"]) == ["python", "web"]
        assert count_rows(db, BlogTag) == 2

    def test_remove_only_listed_pairs(self, db, service):
        blog = make_blog(service, tags=["python", "web", "async"])
        other = make_blog(service, title="Other", tags=["web"])

        assert service.remove_tags(blog.id, ["web", "unknown"]) == ["async", "python"]
        assert service.get_blog(other.id).tags == ["web"]
        assert count_rows(db, Tag) == 3

    def test_tag_operations_on_missing_blog(self, service):
        with pytest.raises(NotFoundError):
            service.add_tags("missing", ["python"])
        with pytest.raises(NotFoundError):
            service.remove_tags("missing", ["python"])

    def test_list_tags_counts_blogs(self, service):
        blog = make_blog(service, tags=["python", "web"])
        make_blog(service, title="Other", tags=["python"])
        service.remove_tags(blog.id, ["web"])

        tags = service.list_tags()

        assert [(t.name, t.blog_count) for t in tags] == [("python", 2), ("web", 0)]


class TestContentBlocks:
    def test_add_content_to_existing_blog(self, service):
        blog = make_blog(service)
        block = ImagesContentCreate.model_validate({
            "type": "IMAGES",
            "order": 5,
            "images": [{"url": "b.png", "order": 1}, {"url": "a.png", "order": 0}],
        })

        content = service.add_content(blog.id, block)

        assert content.blog_id == blog.id
        assert [i.url for i in content.images] == ["a.png", "b.png"]
        assert service.get_blog(blog.id).content == [content]

    def test_create_rejects_duplicate_orders(self, db, service):
        payload = {"title": "Twins", "content": [{"type": "TEXT", "order": 0}, {"type": "TEXT", "order": 0}]}

        with pytest.raises(ConflictError):
            service.create_blog(BlogCreate.model_validate(payload))
        assert count_rows(db, Blog) == 0
        assert count_rows(db, Content) == 0

    def test_add_content_rejects_taken_order(self, db, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))

        with pytest.raises(ConflictError):
            service.add_content(blog.id, ImagesContentCreate(type="IMAGES", order=2))
        assert count_rows(db, Content) == 3

    def test_update_content_rejects_taken_order(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))
        intro = blog.content[0]

        with pytest.raises(ConflictError):
            service.update_content(intro.id, ContentUpdate(order=1))
        assert service.update_content(intro.id, ContentUpdate(order=0, title="Intro")).order == 0

    def test_order_is_unique_per_blog_only(self, service, blog_payload):
        first = service.create_blog(BlogCreate.model_validate(blog_payload))
        second = service.create_blog(BlogCreate.model_validate(blog_payload))

        assert [c.order for c in first.content] == [c.order for c in second.content]

    def test_add_content_to_missing_blog(self, db, service):
        block = ImagesContentCreate(type="IMAGES", order=0)
        with pytest.raises(NotFoundError):
            service.add_content("missing", block)
        assert count_rows(db, Content) == 0

    def test_update_content_scalars(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))
        gallery = blog.content[1]

        updated = service.update_content(gallery.id, ContentUpdate(title="Photos", order=7))

        assert updated.title == "Photos"
        assert updated.order == 7
        assert updated.images == gallery.images
        assert [c.id for c in service.get_blog(blog.id).content][-1] == gallery.id

    def test_update_content_rejects_conflicting_type(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))
        gallery = blog.content[1]

        with pytest.raises(ValidationError):
            service.update_content(gallery.id, ContentUpdate(type=ContentType.TEXT))
        with pytest.raises(ValidationError):
            service.update_content(gallery.id, ContentUpdate(type=ContentType.VIDEOS))

    def test_text_block_can_become_images(self, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))
        intro = blog.content[0]

        updated = service.update_content(intro.id, ContentUpdate(type=ContentType.IMAGES))

        assert updated.type == ContentType.IMAGES

    def test_update_missing_content(self, service):
        with pytest.raises(NotFoundError):
            service.update_content("missing", ContentUpdate(title="x"))

    def test_delete_content_removes_media(self, db, service, blog_payload):
        blog = service.create_blog(BlogCreate.model_validate(blog_payload))

        service.delete_content(blog.content[1].id)

        assert [c.order for c in service.get_blog(blog.id).content] == [0, 2]
        assert count_rows(db, ContentImage) == 0
        assert count_rows(db, ContentVideo) == 2

    def test_delete_missing_content(self, service):
        with pytest.raises(NotFoundError):
            service.delete_content("missing")


class TestTimestamps:
    def test_defaults_are_timezone_aware(self):
        assert Blog(title="x").created_at.tzinfo is not None
        assert Tag(name="x").created_at.tzinfo is not None
        assert BlogTag(blog_id="b", tag_name="x").created_at.tzinfo is not None

    def test_columns_keep_timezone(self):
        columns = [
            Blog.__table__.c.created_at,
            Blog.__table__.c.updated_at,
            Tag.__table__.c.created_at,
            BlogTag.__table__.c.created_at,
        ]
        assert all(column.type.timezone for column in columns)

    def test_update_and_tag_writes_succeed(self, service):
        blog = make_blog(service, tags=["python"])

        updated = service.update_blog(blog.id, BlogUpdate(read_time=4))

        assert updated.read_time == 4
        assert service.add_tags(blog.id, ["web"]) == ["python", "web"]
