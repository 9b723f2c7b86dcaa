"""Tests for the relational access layer."""

import pytest
from datetime import datetime
from app.core.errors import (
    DuplicateKeyError,
    ForeignKeyViolationError,
    IntegrityKind,
)
from app.repositories import admins, categories, news_and_events, news_and_events_images


@pytest.mark.unit
class TestAdminRepository:
    def test_create_hashes_password(self, db_session):
        admin = admins.create(db_session, "Someone@Example.com", "Secret123", "Someone")

        assert admin.email == "someone@example.com"
        assert admin.password != "Secret123"
        assert admins.verify_password(admin, "Secret123")

    def test_duplicate_email(self, db_session, test_admin):
        with pytest.raises(DuplicateKeyError) as exc_info:
            admins.create(db_session, test_admin.email, "Secret123", "Twin")
        assert exc_info.value.kind is IntegrityKind.DUPLICATE_KEY

    def test_find_by_email_is_case_insensitive(self, db_session, test_admin):
        assert admins.find_by_email(db_session, "ADMIN@EXAMPLE.COM").id == test_admin.id

    def test_deleting_admin_keeps_their_news(self, db_session, make_news, test_admin):
        item = make_news()

        assert admins.delete(db_session, test_admin.id) is True

        db_session.expire_all()
        assert news_and_events.find_by_id(db_session, item.id).created_by is None


@pytest.mark.unit
class TestCategoryRepository:
    def test_duplicate_slug(self, db_session, test_category):
        with pytest.raises(DuplicateKeyError):
            categories.create(db_session, "Another", test_category.slug)

    def test_count_news_and_events(self, db_session, make_news, test_category):
        make_news()
        make_news(title="Second")

        assert categories.count_news_and_events(db_session, test_category.id) == 2

    def test_delete_in_use_violates_foreign_key(self, db_session, make_news, test_category):
        make_news()

        with pytest.raises(ForeignKeyViolationError):
            categories.delete(db_session, test_category.id)


@pytest.mark.unit
class TestNewsAndEventsRepository:
    def test_create_normalises_date_time(self, db_session, test_category, test_admin):
        item = news_and_events.create(
            db_session,
            {
                "category_id": test_category.id,
                "title": "Lecture",
                "date_time": "2025-05-01T18:00:00+01:00",
                "created_by": test_admin.id,
            },
        )

        assert item.date_time == datetime(2025, 5, 1, 17, 0, 0)
        assert item.status == "active"
        assert item.category.slug == test_category.slug

    def test_create_with_unknown_category(self, db_session, test_admin):
        with pytest.raises(ForeignKeyViolationError):
            news_and_events.create(
                db_session,
                {"category_id": 999, "title": "Orphan", "date_time": "2025-05-01T18:00:00"},
            )

    def test_update_ignores_unknown_columns(self, db_session, make_news):
        item = make_news()

        updated = news_and_events.update(
            db_session, item.id, {"title": "Renamed", "id": 1234, "images": ["/x"]}
        )

        assert updated.id == item.id
        assert updated.title == "Renamed"

    def test_update_missing(self, db_session):
        assert news_and_events.update(db_session, 999, {"title": "Nope"}) is None

    def test_delete_cascades_to_images(self, db_session, make_news):
        item = make_news(images=["/news-images/a.jpg", "/news-images/b.jpg"])
        item_id = item.id

        assert news_and_events.delete(db_session, item_id) is True

        assert news_and_events_images.find_by_news_and_events_id(db_session, item_id) == []
        assert news_and_events.delete(db_session, item_id) is False

    def test_count_honours_filters(self, db_session, make_news):
        make_news(title="Spring fair", date_time=datetime(2025, 3, 1))
        make_news(title="Autumn fair", date_time=datetime(2025, 9, 1))
        make_news(title="Autumn talk", date_time=datetime(2025, 9, 2), status="inactive")

        assert news_and_events.count(db_session, search="fair") == 2
        assert news_and_events.count(db_session, search="autumn", status="active") == 1
        assert news_and_events.count(db_session, date_from="2025-08-01") == 2

    def test_find_all_pages(self, db_session, make_news):
        for day in range(1, 4):
            make_news(title=f"Day {day}", date_time=datetime(2025, 1, day))

        page = news_and_events.find_all(db_session, limit=1, offset=1)

        assert [item.title for item in page] == ["Day 2"]

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"limit": "10"},
            {"limit": 10, "offset": 2.5},
            {"category_id": "1"},
            {"status": 1},
            {"limit": True},
        ],
    )
    def test_filters_must_have_proper_types(self, db_session, kwargs):
        with pytest.raises(TypeError):
            news_and_events.find_all(db_session, **kwargs)


@pytest.mark.unit
class TestImageRepository:
    def test_ordering(self, db_session, make_news):
        item = make_news()
        news_and_events_images.create_multiple(
            db_session, item.id, [("/news-images/b.jpg", 1), ("/news-images/a.jpg", 0)]
        )

        rows = news_and_events_images.find_by_news_and_events_id(db_session, item.id)

        assert [row.image_url for row in rows] == ["/news-images/a.jpg", "/news-images/b.jpg"]

    def test_update_order_and_delete(self, db_session, make_news):
        item = make_news(images=["/news-images/a.jpg", "/news-images/b.jpg"])
        first, second = news_and_events_images.find_by_news_and_events_id(db_session, item.id)

        news_and_events_images.update_order(db_session, first.id, 5)
        assert news_and_events_images.delete(db_session, second.id) is True

        rows = news_and_events_images.find_by_news_and_events_id(db_session, item.id)
        assert [(row.id, row.image_order) for row in rows] == [(first.id, 5)]

    def test_delete_by_parent(self, db_session, make_news):
        item = make_news(images=["/news-images/a.jpg", "/news-images/b.jpg"])

        assert news_and_events_images.delete_by_news_and_events_id(db_session, item.id) == 2
        assert news_and_events_images.delete_by_news_and_events_id(db_session, item.id) == 0

    def test_image_for_unknown_item(self, db_session):
        with pytest.raises(ForeignKeyViolationError):
            news_and_events_images.create(db_session, 999, "/news-images/a.jpg")
