"""Tests for /api/categories endpoints."""

from tests.conftest import create_category, make_category


class TestCategoryCRUD:

    def test_create_returns_201_with_path(self, client):
        resp = client.post("/api/categories", json=make_category("Technology", color="#3366ff"))
        assert resp.status_code == 201
        data = resp.json()
        assert data["slug"] == "technology"
        assert data["path"] == "Technology"
        assert data["breadcrumbs"] == [{"id": data["id"], "name": "Technology"}]
        assert data["color"] == "#3366ff"

    def test_blank_name_rejected(self, client):
        resp = client.post("/api/categories", json=make_category("   "))
        assert resp.status_code == 422

    def test_get_nested_category(self, client):
        root = create_category(client, "Technology")
        leaf = create_category(client, "Python", parent_id=root["id"])

        resp = client.get(f"/api/categories/{leaf['id']}")
        assert resp.status_code == 200
        assert resp.json()["path"] == "Technology > Python"
        assert resp.json()["depth"] == 1

    def test_get_missing_returns_404(self, client):
        resp = client.get("/api/categories/999")
        assert resp.status_code == 404
        assert resp.json()["error"] == "CATEGORY_NOT_FOUND"

    def test_update_rename(self, client):
        category = create_category(client, "Technology")
        resp = client.put(f"/api/categories/{category['id']}", json={"name": "Science"})
        assert resp.status_code == 200
        assert resp.json()["slug"] == "science"
        assert resp.json()["name"] == "Science"

    def test_unknown_parent_returns_400(self, client):
        resp = client.post("/api/categories", json=make_category("Orphan", parent_id=999))
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "parent_id"


class TestCategoryListing:

    def test_list_roots_only(self, client):
        root = create_category(client, "Technology")
        create_category(client, "Python", parent_id=root["id"])
        create_category(client, "News")

        resp = client.get("/api/categories", params={"parent": "root", "order_by": "name"})
        assert resp.status_code == 200
        assert [c["name"] for c in resp.json()] == ["News", "Technology"]

    def test_search_and_status(self, client):
        create_category(client, "Technology")
        create_category(client, "Travel", is_active=False)

        active = client.get("/api/categories", params={"status": "active"}).json()
        assert [c["name"] for c in active] == ["Technology"]

        found = client.get("/api/categories", params={"search": "trav"}).json()
        assert [c["name"] for c in found] == ["Travel"]

    def test_invalid_parent_filter_rejected(self, client):
        resp = client.get("/api/categories", params={"parent": "nope"})
        assert resp.status_code == 422

    def test_options_exclude_subtree(self, client):
        root = create_category(client, "Technology")
        create_category(client, "Python", parent_id=root["id"])
        news = create_category(client, "News")

        resp = client.get("/api/categories/options", params={"exclude_id": root["id"]})
        assert resp.status_code == 200
        assert resp.json() == [{"id": news["id"], "name": "News", "level": 0}]


class TestCategoryTree:

    def test_move_into_descendant_returns_409(self, client):
        root = create_category(client, "Technology")
        child = create_category(client, "Software", parent_id=root["id"])

        resp = client.put(f"/api/categories/{root['id']}/move", json={"parent_id": child["id"]})
        assert resp.status_code == 409
        assert resp.json()["error"] == "CONFLICT"

    def test_move_to_root(self, client):
        root = create_category(client, "Technology")
        child = create_category(client, "Software", parent_id=root["id"])

        resp = client.put(f"/api/categories/{child['id']}/move", json={"parent_id": None})
        assert resp.status_code == 200
        assert resp.json()["path"] == "Software"

    def test_breadcrumbs_endpoint(self, client):
        root = create_category(client, "Technology")
        child = create_category(client, "Software", parent_id=root["id"])

        resp = client.get(f"/api/categories/{child['id']}/breadcrumbs")
        assert resp.json() == [
            {"id": root["id"], "name": "Technology"},
            {"id": child["id"], "name": "Software"},
        ]

    def test_descendants_endpoint(self, client):
        root = create_category(client, "Technology")
        child = create_category(client, "Software", parent_id=root["id"])
        leaf = create_category(client, "Python", parent_id=child["id"])

        resp = client.get(f"/api/categories/{root['id']}/descendants")
        assert [c["id"] for c in resp.json()] == [child["id"], leaf["id"]]
        assert resp.json()[1]["path"] == "Technology > Software > Python"


class TestCategoryDelete:

    def test_delete_leaf_returns_204(self, client):
        category = create_category(client, "Leaf")
        resp = client.delete(f"/api/categories/{category['id']}")
        assert resp.status_code == 204
        assert client.get(f"/api/categories/{category['id']}").status_code == 404

    def test_delete_with_children_returns_409(self, client):
        root = create_category(client, "Technology")
        create_category(client, "Software", parent_id=root["id"])

        resp = client.delete(f"/api/categories/{root['id']}")
        assert resp.status_code == 409
        assert client.get(f"/api/categories/{root['id']}").status_code == 200

    def test_bulk_delete(self, client):
        a = create_category(client, "A")
        b = create_category(client, "B")
        resp = client.post("/api/categories/bulk-delete", json={"ids": [a["id"], b["id"]]})
        assert resp.status_code == 200
        assert resp.json() == {"deleted_count": 2}

    def test_bulk_delete_requires_ids(self, client):
        resp = client.post("/api/categories/bulk-delete", json={"ids": []})
        assert resp.status_code == 422

    def test_update_order(self, client):
        a = create_category(client, "A")
        b = create_category(client, "B")
        resp = client.post("/api/categories/update-order", json={"items": [
            {"id": a["id"], "order": 5},
            {"id": b["id"], "order": 1},
        ]})
        assert resp.status_code == 200
        assert resp.json() == {"updated_count": 2}

        names = [c["name"] for c in client.get("/api/categories").json()]
        assert names == ["B", "A"]
