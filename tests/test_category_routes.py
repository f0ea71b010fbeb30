"""Integration tests for /api/v1/category routes."""

from conftest import make_category


class TestCreateCategory:
    def test_creates_with_slug(self, client, db, admin_headers):
        response = client.post(
            "/api/v1/category/create-category", json={"name": "Home Appliances"}, headers=admin_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "new category created"
        assert body["category"]["slug"] == "home-appliances"
        assert db["category"].count_documents({}) == 1

    def test_name_required(self, client, admin_headers):
        response = client.post("/api/v1/category/create-category", json={"name": "  "}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Name is required"

    def test_duplicate(self, client, admin_headers, electronics):
        response = client.post(
            "/api/v1/category/create-category", json={"name": "Electronics"}, headers=admin_headers
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Category Already Exists"

    def test_admin_only(self, client, customer_headers):
        response = client.post(
            "/api/v1/category/create-category", json={"name": "Toys"}, headers=customer_headers
        )

        assert response.status_code == 401


class TestUpdateCategory:
    def test_renames(self, client, db, admin_headers, electronics):
        response = client.put(
            f"/api/v1/category/update-category/{electronics['_id']}",
            json={"name": "Gadgets"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Category Updated Successfully"
        stored = db["category"].find_one({"_id": electronics["_id"]})
        assert stored["name"] == "Gadgets"
        assert stored["slug"] == "gadgets"

    def test_keeps_own_name(self, client, admin_headers, electronics):
        response = client.put(
            f"/api/v1/category/update-category/{electronics['_id']}",
            json={"name": "Electronics"},
            headers=admin_headers,
        )

        assert response.status_code == 200

    def test_name_taken_by_other(self, client, db, admin_headers, electronics):
        books = make_category(db, "Books")

        response = client.put(
            f"/api/v1/category/update-category/{books['_id']}",
            json={"name": "Electronics"},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Category with this name already exists"

    def test_unknown_id(self, client, admin_headers):
        response = client.put(
            "/api/v1/category/update-category/65f000000000000000000000",
            json={"name": "Gadgets"},
            headers=admin_headers,
        )

        assert response.status_code == 404


class TestReadCategories:
    def test_list(self, client, db, electronics):
        make_category(db, "Books")

        response = client.get("/api/v1/category/get-category")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "All Categories List"
        assert [c["name"] for c in body["category"]] == ["Books", "Electronics"]

    def test_list_empty(self, client):
        response = client.get("/api/v1/category/get-category")

        assert response.json()["category"] == []

    def test_single(self, client, electronics):
        response = client.get("/api/v1/category/single-category/electronics")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Get Single Category Successfully"
        assert body["category"]["id"] == str(electronics["_id"])

    def test_single_missing(self, client):
        response = client.get("/api/v1/category/single-category/nothing-here")

        assert response.status_code == 404
        assert response.json()["message"] == "No category of the given slug was found"


class TestDeleteCategory:
    def test_deletes(self, client, db, admin_headers, electronics):
        response = client.delete(
            f"/api/v1/category/delete-category/{electronics['_id']}", headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Category Deleted Successfully"
        assert db["category"].count_documents({}) == 0

    def test_invalid_id(self, client, admin_headers):
        response = client.delete("/api/v1/category/delete-category/1", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid category id"

    def test_unknown_id(self, client, admin_headers):
        response = client.delete(
            "/api/v1/category/delete-category/65f000000000000000000000", headers=admin_headers
        )

        assert response.status_code == 404
