"""Tests for categories API endpoints."""

import pytest
from app.models.category import Category


@pytest.mark.unit
class TestCategoriesAPI:
    """Test categories API endpoints."""

    def test_get_categories(self, client, auth_headers, test_category):
        response = client.get("/api/categories", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        categories = body["data"]["categories"]
        assert len(categories) == 1
        assert categories[0]["id"] == test_category.id
        assert categories[0]["slug"] == "news"

    def test_get_categories_requires_auth(self, client, test_category):
        response = client.get("/api/categories")

        assert response.status_code == 401

    def test_public_categories_include_inactive(self, client, db_session, test_category):
        db_session.add(Category(name="Archive", slug="archive", status="inactive"))
        db_session.commit()

        response = client.get("/api/categories/user")

        assert response.status_code == 200
        slugs = {c["slug"] for c in response.json()["data"]["categories"]}
        assert slugs == {"news", "archive"}

    def test_filter_by_status_and_search(self, client, db_session, test_category):
        db_session.add(Category(name="Events", slug="events", description="Upcoming gatherings"))
        db_session.add(Category(name="Archive", slug="archive", status="inactive"))
        db_session.commit()

        response = client.get("/api/categories/user", params={"status": "active", "search": "GATHER"})

        assert response.status_code == 200
        slugs = [c["slug"] for c in response.json()["data"]["categories"]]
        assert slugs == ["events"]

    def test_filter_rejects_unknown_status(self, client):
        response = client.get("/api/categories/user", params={"status": "archived"})

        assert response.status_code == 400
        assert response.json()["message"] == "Validation failed"

    def test_get_public_category(self, client, test_category):
        response = client.get(f"/api/categories/user/{test_category.id}")

        assert response.status_code == 200
        assert response.json()["data"]["category"]["name"] == "News"

    def test_get_category_not_found(self, client, auth_headers):
        response = client.get("/api/categories/999", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Category not found"

    def test_create_category(self, client, auth_headers):
        response = client.post(
            "/api/categories",
            headers=auth_headers,
            json={"name": "Science", "slug": "science", "description": "Research news"},
        )

        assert response.status_code == 201
        category = response.json()["data"]["category"]
        assert category["name"] == "Science"
        assert category["status"] == "active"

    def test_create_duplicate_slug(self, client, auth_headers, test_category):
        response = client.post(
            "/api/categories",
            headers=auth_headers,
            json={"name": "More News", "slug": "news"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Category with this slug already exists"

    @pytest.mark.parametrize("slug", ["Has Spaces", "UPPER", "trailing-", "a"])
    def test_create_rejects_bad_slug(self, client, auth_headers, slug):
        response = client.post(
            "/api/categories",
            headers=auth_headers,
            json={"name": "Valid name", "slug": slug},
        )

        assert response.status_code == 400
        assert response.json()["data"]["errors"][0]["field"] == "slug"

    def test_update_category(self, client, auth_headers, test_category):
        response = client.put(
            f"/api/categories/{test_category.id}",
            headers=auth_headers,
            json={"name": "Campus News", "status": "inactive"},
        )

        assert response.status_code == 200
        category = response.json()["data"]["category"]
        assert category["name"] == "Campus News"
        assert category["slug"] == "news"
        assert category["status"] == "inactive"

    def test_update_to_taken_slug(self, client, auth_headers, db_session, test_category):
        db_session.add(Category(name="Events", slug="events"))
        db_session.commit()

        response = client.put(
            f"/api/categories/{test_category.id}",
            headers=auth_headers,
            json={"slug": "events"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Category with this slug already exists"

    def test_update_keeping_own_slug(self, client, auth_headers, test_category):
        response = client.put(
            f"/api/categories/{test_category.id}",
            headers=auth_headers,
            json={"slug": "news", "description": "Still news"},
        )

        assert response.status_code == 200

    def test_delete_category(self, client, auth_headers, test_category):
        response = client.delete(f"/api/categories/{test_category.id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Category deleted successfully"

        response = client.get(f"/api/categories/{test_category.id}", headers=auth_headers)
        assert response.status_code == 404

    def test_delete_category_in_use(self, client, auth_headers, make_news, test_category):
        make_news()

        response = client.delete(f"/api/categories/{test_category.id}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["message"] == (
            "Cannot delete category with associated news and events"
        )

    def test_delete_missing_category(self, client, auth_headers):
        response = client.delete("/api/categories/999", headers=auth_headers)

        assert response.status_code == 404
